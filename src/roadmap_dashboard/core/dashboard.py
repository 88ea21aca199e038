"""Dashboard widget layout and user preference state.

Two concerns live here:

- ``resolve_layout`` turns the persisted widget list into the KPI / main /
  bottom row partition plus grid column counts used for rendering.
- ``PreferencesStore`` is the single mutable preference record. Every
  operation replaces the whole record in memory and then writes the
  serialized record to its persisted mirror.

Widget ids are a closed enumeration and every id maps to exactly one slot,
so partitioning is a lookup rather than an id-prefix convention.
"""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Literal, Protocol

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from roadmap_dashboard.observability import get_logger

logger = get_logger(__name__)

PREFERENCES_STORAGE_KEY: str = "set-roadmap-preferences"


class WidgetId(str, Enum):
    """Every dashboard widget kind the UI knows how to render."""

    KPI_PROGRESS = "kpi-progress"
    KPI_MILESTONES = "kpi-milestones"
    KPI_QUICKWINS = "kpi-quickwins"
    KPI_CRITICAL = "kpi-critical"
    CAPABILITY_PROGRESS = "capability-progress"
    OVERALL_MATURITY = "overall-maturity"
    RECENT_ACTIVITY = "recent-activity"
    CRITICAL_ITEMS = "critical-items"
    QOL_IMPACT = "qol-impact"


class WidgetSlot(str, Enum):
    """Dashboard row a widget renders into."""

    KPI = "kpi"
    MAIN = "main"
    BOTTOM = "bottom"
    STANDALONE = "standalone"


WIDGET_SLOTS: dict[WidgetId, WidgetSlot] = {
    WidgetId.KPI_PROGRESS: WidgetSlot.KPI,
    WidgetId.KPI_MILESTONES: WidgetSlot.KPI,
    WidgetId.KPI_QUICKWINS: WidgetSlot.KPI,
    WidgetId.KPI_CRITICAL: WidgetSlot.KPI,
    WidgetId.CAPABILITY_PROGRESS: WidgetSlot.MAIN,
    WidgetId.OVERALL_MATURITY: WidgetSlot.MAIN,
    WidgetId.RECENT_ACTIVITY: WidgetSlot.BOTTOM,
    WidgetId.CRITICAL_ITEMS: WidgetSlot.BOTTOM,
    WidgetId.QOL_IMPACT: WidgetSlot.STANDALONE,
}

# KPI row column count keyed by number of visible KPI widgets; 4+ -> 4.
_KPI_COLUMNS: dict[int, int] = {1: 1, 2: 2, 3: 3}
_KPI_MAX_COLUMNS: int = 4


class DashboardWidget(BaseModel):
    """One toggleable, orderable dashboard panel."""

    model_config = ConfigDict(frozen=True)

    id: WidgetId
    name: str
    description: str
    visible: bool = True
    order: int
    size: Literal["small", "medium", "large", "full"] = "medium"


DEFAULT_DASHBOARD_WIDGETS: tuple[DashboardWidget, ...] = (
    DashboardWidget(id=WidgetId.KPI_PROGRESS, name="Overall Progress", description="Shows overall progress percentage", order=0, size="small"),
    DashboardWidget(id=WidgetId.KPI_MILESTONES, name="Active Milestones", description="Number of milestones in progress", order=1, size="small"),
    DashboardWidget(id=WidgetId.KPI_QUICKWINS, name="Quick Wins", description="Quick wins completion status", order=2, size="small"),
    DashboardWidget(id=WidgetId.KPI_CRITICAL, name="Critical Items", description="Items needing attention", order=3, size="small"),
    DashboardWidget(id=WidgetId.CAPABILITY_PROGRESS, name="Capability Progress", description="Progress bars for each capability", order=4, size="large"),
    DashboardWidget(id=WidgetId.OVERALL_MATURITY, name="Overall Maturity", description="Maturity progress ring", order=5, size="medium"),
    DashboardWidget(id=WidgetId.RECENT_ACTIVITY, name="Recent Activity", description="Latest changes and updates", order=6, size="medium"),
    DashboardWidget(id=WidgetId.CRITICAL_ITEMS, name="Critical Items List", description="Detailed list of blocked items", order=7, size="medium"),
    DashboardWidget(id=WidgetId.QOL_IMPACT, name="QoL Impact Chart", description="Quality of life impact visualization", order=8, size="full"),
)


def default_dashboard_widgets() -> list[DashboardWidget]:
    """Return a fresh copy of the default widget list."""
    return [widget.model_copy() for widget in DEFAULT_DASHBOARD_WIDGETS]


# ---------------------------------------------------------------------------
# Layout resolution
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DashboardLayout:
    """Rendering plan for the dashboard grid.

    A column count of 0 means the row is omitted entirely.

    Attributes:
        sorted_widgets: Visible widgets ordered by ``order``.
        kpi_widgets: Visible KPI widgets in display order.
        main_widgets: Visible main-row widgets in display order.
        bottom_widgets: Visible bottom-row widgets in display order.
        kpi_columns: Grid columns for the KPI row.
        main_columns: Grid columns for the main row.
        main_column_spans: Columns spanned by each main-row widget.
        bottom_columns: Grid columns for the bottom row.
        show_qol_impact: Whether the standalone QoL impact row renders.
    """

    sorted_widgets: tuple[DashboardWidget, ...]
    kpi_widgets: tuple[DashboardWidget, ...]
    main_widgets: tuple[DashboardWidget, ...]
    bottom_widgets: tuple[DashboardWidget, ...]
    kpi_columns: int
    main_columns: int
    main_column_spans: dict[WidgetId, int] = field(default_factory=dict)
    bottom_columns: int = 0
    show_qol_impact: bool = False

    @property
    def is_empty(self) -> bool:
        """True when no widget is visible and the empty-state prompt shows."""
        return not self.sorted_widgets

    def is_widget_visible(self, widget_id: WidgetId) -> bool:
        return any(widget.id == widget_id for widget in self.sorted_widgets)


def sort_visible_widgets(widgets: list[DashboardWidget] | tuple[DashboardWidget, ...]) -> tuple[DashboardWidget, ...]:
    """Visible widgets ordered by ``order``; ties keep list position."""
    return tuple(sorted((w for w in widgets if w.visible), key=lambda w: w.order))


def kpi_column_count(kpi_widget_count: int) -> int:
    """Map the number of visible KPI widgets to the KPI row column count."""
    if kpi_widget_count <= 0:
        return 0
    return _KPI_COLUMNS.get(kpi_widget_count, _KPI_MAX_COLUMNS)


def resolve_layout(widgets: list[DashboardWidget] | tuple[DashboardWidget, ...]) -> DashboardLayout:
    """Partition widgets into dashboard rows and size each row's grid.

    Args:
        widgets: The persisted widget preference list.

    Returns:
        DashboardLayout describing which widgets render where.
    """
    sorted_widgets = sort_visible_widgets(widgets)
    by_slot: dict[WidgetSlot, list[DashboardWidget]] = {slot: [] for slot in WidgetSlot}
    for widget in sorted_widgets:
        by_slot[WIDGET_SLOTS[widget.id]].append(widget)

    main_ids = {widget.id for widget in by_slot[WidgetSlot.MAIN]}
    if main_ids == {WidgetId.CAPABILITY_PROGRESS, WidgetId.OVERALL_MATURITY}:
        main_columns = 3
        main_spans = {WidgetId.CAPABILITY_PROGRESS: 2, WidgetId.OVERALL_MATURITY: 1}
    elif main_ids:
        main_columns = 1
        main_spans = {widget_id: 1 for widget_id in main_ids}
    else:
        main_columns = 0
        main_spans = {}

    bottom_count = len(by_slot[WidgetSlot.BOTTOM])
    bottom_columns = 2 if bottom_count == 2 else bottom_count

    return DashboardLayout(
        sorted_widgets=sorted_widgets,
        kpi_widgets=tuple(by_slot[WidgetSlot.KPI]),
        main_widgets=tuple(by_slot[WidgetSlot.MAIN]),
        bottom_widgets=tuple(by_slot[WidgetSlot.BOTTOM]),
        kpi_columns=kpi_column_count(len(by_slot[WidgetSlot.KPI])),
        main_columns=main_columns,
        main_column_spans=main_spans,
        bottom_columns=bottom_columns,
        show_qol_impact=bool(by_slot[WidgetSlot.STANDALONE]),
    )


# ---------------------------------------------------------------------------
# Preferences record
# ---------------------------------------------------------------------------


class UserPreferences(BaseModel):
    """The whole persisted preference record for one user."""

    model_config = ConfigDict(frozen=True)

    # Appearance
    theme: Literal["light", "dark", "system"] = "system"
    compact_mode: bool = False

    # Date & time
    date_format: Literal["MM/DD/YYYY", "DD/MM/YYYY", "YYYY-MM-DD"] = "MM/DD/YYYY"
    time_format: Literal["12h", "24h"] = "12h"
    timezone: str = "UTC"

    # Dashboard
    default_dashboard_view: Literal["overview", "capabilities", "timeline"] = "overview"
    show_quick_wins_on_dashboard: bool = True
    show_recent_activity_on_dashboard: bool = True
    dashboard_refresh_interval: int = 30  # seconds, 0 = manual only

    # Email notifications
    email_notifications: bool = True
    notify_on_milestone_complete: bool = True
    notify_on_blocked_items: bool = True
    notify_on_critical_changes: bool = True

    # Microsoft Teams notifications
    teams_notifications: bool = False
    teams_webhook_url: str = ""
    teams_notify_on_milestone_complete: bool = True
    teams_notify_on_blocked_items: bool = True
    teams_notify_on_activity_changes: bool = False

    # Data & export
    default_export_format: Literal["pdf", "csv", "xlsx"] = "pdf"
    include_chart_in_export: bool = True

    dashboard_widgets: tuple[DashboardWidget, ...] = DEFAULT_DASHBOARD_WIDGETS

    @field_validator("dashboard_widgets")
    @classmethod
    def validate_unique_widget_ids(
        cls, widgets: tuple[DashboardWidget, ...]
    ) -> tuple[DashboardWidget, ...]:
        """Reject a widget list that names the same widget twice.

        Raises:
            ValueError: If any widget id appears more than once.
        """
        seen: set[WidgetId] = set()
        for widget in widgets:
            if widget.id in seen:
                raise ValueError(f"Widget {widget.id.value} appears more than once")
            seen.add(widget.id)
        return widgets


def serialize_preferences(preferences: UserPreferences) -> str:
    """Serialize the preference record for the persisted mirror."""
    return preferences.model_dump_json()


def _parse_widgets(raw_widgets: Any) -> tuple[DashboardWidget, ...]:
    if not isinstance(raw_widgets, list):
        if raw_widgets is not None:
            logger.warning("Stored dashboard widgets malformed, using defaults")
        return DEFAULT_DASHBOARD_WIDGETS

    widgets: list[DashboardWidget] = []
    seen: set[WidgetId] = set()
    for entry in raw_widgets:
        try:
            widget = DashboardWidget.model_validate(entry)
        except ValidationError:
            logger.warning("Dropping unrecognised stored widget", entry=entry)
            continue
        if widget.id in seen:
            continue
        seen.add(widget.id)
        widgets.append(widget)
    return tuple(widgets)


def deserialize_preferences(raw: str | None) -> UserPreferences:
    """Rehydrate a preference record from its persisted form.

    Never raises. Unknown keys are ignored, invalid values fall back to
    their defaults, and unknown or malformed widget entries are dropped.

    Args:
        raw: JSON text previously produced by serialize_preferences, or None.

    Returns:
        The rehydrated UserPreferences (defaults when nothing usable is stored).
    """
    if not raw:
        return UserPreferences()

    try:
        payload = json.loads(raw)
    except (json.JSONDecodeError, TypeError):
        logger.warning("Stored preferences are not valid JSON, using defaults")
        return UserPreferences()

    if not isinstance(payload, dict):
        logger.warning("Stored preferences are not an object, using defaults")
        return UserPreferences()

    accepted: dict[str, Any] = {}
    for name, value in payload.items():
        if name == "dashboard_widgets" or name not in UserPreferences.model_fields:
            continue
        try:
            UserPreferences.model_validate({name: value})
        except ValidationError:
            logger.warning("Ignoring invalid stored preference", preference=name)
            continue
        accepted[name] = value

    accepted["dashboard_widgets"] = _parse_widgets(payload.get("dashboard_widgets"))
    return UserPreferences.model_validate(accepted)


# ---------------------------------------------------------------------------
# Preference store
# ---------------------------------------------------------------------------


class PreferencesStorage(Protocol):
    """Client-local key/value storage holding the serialized record."""

    def load(self, key: str) -> str | None:
        """Return the stored value for key, or None."""
        ...

    def save(self, key: str, value: str) -> None:
        """Persist value under key, replacing any previous value."""
        ...


class PreferencesStore:
    """Single mutable preference record with a persisted mirror.

    The record is hydrated from storage on construction. Each operation
    builds a complete new record and swaps it in before writing the mirror;
    no operation touches widgets other than the ones it names.
    """

    def __init__(
        self,
        storage: PreferencesStorage | None = None,
        key: str = PREFERENCES_STORAGE_KEY,
    ) -> None:
        self._storage = storage
        self._key = key
        self._preferences = deserialize_preferences(storage.load(key) if storage else None)

    @property
    def preferences(self) -> UserPreferences:
        return self._preferences

    def _commit(self, preferences: UserPreferences) -> UserPreferences:
        self._preferences = preferences
        if self._storage is not None:
            self._storage.save(self._key, serialize_preferences(preferences))
        return preferences

    def update_preference(self, key: str, value: Any) -> UserPreferences:
        """Replace a single preference field.

        Raises:
            KeyError: If key is not a preference field.
            pydantic.ValidationError: If value is invalid for the field.
        """
        if key not in UserPreferences.model_fields:
            raise KeyError(f"Unknown preference {key!r}")
        return self.update_preferences({key: value})

    def update_preferences(self, updates: dict[str, Any]) -> UserPreferences:
        """Merge several preference fields at once.

        Raises:
            KeyError: If any key is not a preference field.
            pydantic.ValidationError: If any value is invalid.
        """
        unknown = set(updates) - set(UserPreferences.model_fields)
        if unknown:
            raise KeyError(f"Unknown preferences {sorted(unknown)!r}")
        merged = {**dict(self._preferences), **updates}
        return self._commit(UserPreferences.model_validate(merged))

    def update_widget_visibility(self, widget_id: WidgetId, visible: bool) -> UserPreferences:
        """Show or hide one widget, leaving every other widget untouched."""
        widgets = tuple(
            widget.model_copy(update={"visible": visible}) if widget.id == widget_id else widget
            for widget in self._preferences.dashboard_widgets
        )
        return self._commit(self._preferences.model_copy(update={"dashboard_widgets": widgets}))

    def update_widget_order(self, widgets: list[DashboardWidget]) -> UserPreferences:
        """Adopt a reordered widget list, rewriting each ``order`` to its index.

        Raises:
            pydantic.ValidationError: If the list repeats a widget id.
        """
        reordered = tuple(
            widget.model_copy(update={"order": index}) for index, widget in enumerate(widgets)
        )
        return self._commit(
            UserPreferences.model_validate(
                {**dict(self._preferences), "dashboard_widgets": reordered}
            )
        )

    def reset_dashboard_widgets(self) -> UserPreferences:
        """Restore the default widget list, keeping every other preference."""
        return self._commit(
            self._preferences.model_copy(
                update={"dashboard_widgets": tuple(default_dashboard_widgets())}
            )
        )

    def reset_preferences(self) -> UserPreferences:
        """Restore the whole record to defaults."""
        return self._commit(UserPreferences())
