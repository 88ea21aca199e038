"""Unit tests for dashboard layout resolution and the preference store.

Tests cover:
- every widget id maps to exactly one slot
- KPI / main / bottom row column counts
- hidden widgets and order ties
- visibility toggles, reordering and resets on PreferencesStore
- serialization round trip and fail-open deserialization
"""

import json

import pytest
from pydantic import ValidationError

from roadmap_dashboard.core.dashboard import (
    DEFAULT_DASHBOARD_WIDGETS,
    PREFERENCES_STORAGE_KEY,
    WIDGET_SLOTS,
    DashboardWidget,
    PreferencesStore,
    UserPreferences,
    WidgetId,
    WidgetSlot,
    default_dashboard_widgets,
    deserialize_preferences,
    kpi_column_count,
    resolve_layout,
    serialize_preferences,
)


def _only_visible(*visible_ids: WidgetId) -> list[DashboardWidget]:
    return [
        widget.model_copy(update={"visible": widget.id in visible_ids})
        for widget in DEFAULT_DASHBOARD_WIDGETS
    ]


class TestWidgetSlots:
    def test_every_widget_id_has_a_slot(self) -> None:
        assert set(WIDGET_SLOTS) == set(WidgetId)

    def test_kpi_slot_membership(self) -> None:
        kpi_ids = {widget_id for widget_id, slot in WIDGET_SLOTS.items() if slot is WidgetSlot.KPI}
        assert kpi_ids == {
            WidgetId.KPI_PROGRESS,
            WidgetId.KPI_MILESTONES,
            WidgetId.KPI_QUICKWINS,
            WidgetId.KPI_CRITICAL,
        }

    def test_defaults_are_ordered_and_visible(self) -> None:
        assert [w.order for w in DEFAULT_DASHBOARD_WIDGETS] == list(range(9))
        assert all(w.visible for w in DEFAULT_DASHBOARD_WIDGETS)


class TestResolveLayout:
    """Tests for resolve_layout()."""

    def test_default_layout(self) -> None:
        layout = resolve_layout(DEFAULT_DASHBOARD_WIDGETS)
        assert layout.kpi_columns == 4
        assert layout.main_columns == 3
        assert layout.main_column_spans == {WidgetId.CAPABILITY_PROGRESS: 2, WidgetId.OVERALL_MATURITY: 1}
        assert layout.bottom_columns == 2
        assert layout.show_qol_impact is True
        assert layout.is_empty is False

    @pytest.mark.parametrize(("count", "columns"), [(0, 0), (1, 1), (2, 2), (3, 3), (4, 4), (6, 4)])
    def test_kpi_column_count(self, count: int, columns: int) -> None:
        assert kpi_column_count(count) == columns

    def test_single_main_widget_fills_row(self) -> None:
        layout = resolve_layout(_only_visible(WidgetId.OVERALL_MATURITY))
        assert layout.main_columns == 1
        assert layout.main_column_spans == {WidgetId.OVERALL_MATURITY: 1}
        assert layout.kpi_columns == 0
        assert layout.bottom_columns == 0
        assert layout.show_qol_impact is False

    def test_single_bottom_widget(self) -> None:
        layout = resolve_layout(_only_visible(WidgetId.CRITICAL_ITEMS, WidgetId.KPI_PROGRESS))
        assert layout.bottom_columns == 1
        assert layout.kpi_columns == 1
        assert layout.main_columns == 0

    def test_all_hidden_is_empty(self) -> None:
        layout = resolve_layout(_only_visible())
        assert layout.is_empty is True
        assert layout.kpi_widgets == layout.main_widgets == layout.bottom_widgets == ()

    def test_sorted_by_order_with_ties_by_position(self) -> None:
        widgets = [
            DEFAULT_DASHBOARD_WIDGETS[0].model_copy(update={"order": 5}),
            DEFAULT_DASHBOARD_WIDGETS[1].model_copy(update={"order": 1}),
            DEFAULT_DASHBOARD_WIDGETS[2].model_copy(update={"order": 1}),
        ]
        layout = resolve_layout(widgets)
        assert [w.id for w in layout.kpi_widgets] == [
            WidgetId.KPI_MILESTONES,
            WidgetId.KPI_QUICKWINS,
            WidgetId.KPI_PROGRESS,
        ]

    def test_is_widget_visible(self) -> None:
        layout = resolve_layout(_only_visible(WidgetId.QOL_IMPACT))
        assert layout.is_widget_visible(WidgetId.QOL_IMPACT)
        assert not layout.is_widget_visible(WidgetId.KPI_PROGRESS)


class TestPreferencesStore:
    """Tests for PreferencesStore operations."""

    def test_initial_state_is_default(self, preferences_store: PreferencesStore) -> None:
        assert preferences_store.preferences == UserPreferences()
        assert preferences_store.preferences.dashboard_widgets == DEFAULT_DASHBOARD_WIDGETS

    def test_double_toggle_restores_visibility(self, preferences_store: PreferencesStore) -> None:
        before = preferences_store.preferences.dashboard_widgets

        preferences_store.update_widget_visibility(WidgetId.RECENT_ACTIVITY, False)
        hidden = preferences_store.preferences.dashboard_widgets
        assert [w.visible for w in hidden if w.id is WidgetId.RECENT_ACTIVITY] == [False]
        assert [w for w in hidden if w.id is not WidgetId.RECENT_ACTIVITY] == [
            w for w in before if w.id is not WidgetId.RECENT_ACTIVITY
        ]

        preferences_store.update_widget_visibility(WidgetId.RECENT_ACTIVITY, True)
        assert preferences_store.preferences.dashboard_widgets == before

    def test_reorder_rewrites_order_to_index(self, preferences_store: PreferencesStore) -> None:
        reordered = list(reversed(preferences_store.preferences.dashboard_widgets))
        preferences_store.update_widget_order(reordered)

        widgets = preferences_store.preferences.dashboard_widgets
        assert [w.order for w in widgets] == list(range(len(widgets)))
        assert widgets[0].id is WidgetId.QOL_IMPACT

    def test_reorder_rejects_repeated_widget(self, preferences_storage, preferences_store: PreferencesStore) -> None:
        widgets = list(preferences_store.preferences.dashboard_widgets)

        with pytest.raises(ValidationError):
            preferences_store.update_widget_order([widgets[0], *widgets])

        assert preferences_store.preferences.dashboard_widgets == DEFAULT_DASHBOARD_WIDGETS
        assert preferences_storage.save_count == 0

    def test_update_preferences_rejects_repeated_widget(self, preferences_store: PreferencesStore) -> None:
        widgets = list(preferences_store.preferences.dashboard_widgets)

        with pytest.raises(ValidationError):
            preferences_store.update_preferences({"dashboard_widgets": [*widgets, widgets[-1]]})

        assert preferences_store.preferences.dashboard_widgets == DEFAULT_DASHBOARD_WIDGETS

    def test_stored_widgets_survive_round_trip(self, preferences_store: PreferencesStore) -> None:
        preferences_store.update_widget_order(list(reversed(preferences_store.preferences.dashboard_widgets)))
        prefs = preferences_store.preferences

        assert deserialize_preferences(serialize_preferences(prefs)) == prefs
        assert resolve_layout(prefs.dashboard_widgets).kpi_columns == 4

    def test_reset_widgets_restores_defaults_and_keeps_theme(self, preferences_store: PreferencesStore) -> None:
        preferences_store.update_preference("theme", "dark")
        preferences_store.update_widget_visibility(WidgetId.KPI_PROGRESS, False)
        preferences_store.update_widget_order(list(reversed(preferences_store.preferences.dashboard_widgets)))

        preferences_store.reset_dashboard_widgets()

        assert preferences_store.preferences.dashboard_widgets == DEFAULT_DASHBOARD_WIDGETS
        assert preferences_store.preferences.theme == "dark"

    def test_default_copies_are_independent(self) -> None:
        first = default_dashboard_widgets()
        second = default_dashboard_widgets()
        assert first == second
        assert first is not second

    def test_update_unknown_preference_raises(self, preferences_store: PreferencesStore) -> None:
        with pytest.raises(KeyError):
            preferences_store.update_preference("font", "serif")

    def test_update_invalid_value_raises(self, preferences_store: PreferencesStore) -> None:
        with pytest.raises(ValidationError):
            preferences_store.update_preference("theme", "neon")
        assert preferences_store.preferences.theme == "system"

    def test_update_preferences_merges(self, preferences_store: PreferencesStore) -> None:
        preferences_store.update_preferences({"compact_mode": True, "timezone": "America/New_York"})
        assert preferences_store.preferences.compact_mode is True
        assert preferences_store.preferences.timezone == "America/New_York"
        assert preferences_store.preferences.theme == "system"

    def test_reset_preferences(self, preferences_store: PreferencesStore) -> None:
        preferences_store.update_preference("theme", "light")
        preferences_store.reset_preferences()
        assert preferences_store.preferences == UserPreferences()

    def test_every_mutation_is_persisted(self, preferences_storage, preferences_store: PreferencesStore) -> None:
        preferences_store.update_preference("compact_mode", True)
        preferences_store.update_widget_visibility(WidgetId.KPI_CRITICAL, False)

        assert preferences_storage.save_count == 2
        stored = json.loads(preferences_storage.values[PREFERENCES_STORAGE_KEY])
        assert stored["compact_mode"] is True
        critical = next(w for w in stored["dashboard_widgets"] if w["id"] == "kpi-critical")
        assert critical["visible"] is False

    def test_hydrates_from_storage(self, preferences_storage) -> None:
        first = PreferencesStore(storage=preferences_storage)
        first.update_preference("theme", "dark")

        second = PreferencesStore(storage=preferences_storage)
        assert second.preferences.theme == "dark"


class TestSerialization:
    def test_round_trip(self) -> None:
        prefs = UserPreferences(theme="dark", dashboard_refresh_interval=60)
        assert deserialize_preferences(serialize_preferences(prefs)) == prefs

    @pytest.mark.parametrize("raw", [None, "", "not json", "[1, 2]", "42"])
    def test_unusable_blob_yields_defaults(self, raw: str | None) -> None:
        assert deserialize_preferences(raw) == UserPreferences()

    def test_unknown_widget_ids_are_dropped(self) -> None:
        raw = json.dumps(
            {
                "theme": "light",
                "dashboard_widgets": [
                    {"id": "kpi-progress", "name": "Overall Progress", "description": "d", "order": 0},
                    {"id": "weather", "name": "Weather", "description": "d", "order": 1},
                    {"bogus": True},
                ],
            }
        )
        prefs = deserialize_preferences(raw)
        assert prefs.theme == "light"
        assert [w.id for w in prefs.dashboard_widgets] == [WidgetId.KPI_PROGRESS]

    def test_invalid_field_falls_back_to_default(self) -> None:
        raw = json.dumps({"theme": "neon", "compact_mode": True, "unknown": 1})
        prefs = deserialize_preferences(raw)
        assert prefs.theme == "system"
        assert prefs.compact_mode is True
        assert prefs.dashboard_widgets == DEFAULT_DASHBOARD_WIDGETS

    def test_malformed_widget_list_uses_defaults(self) -> None:
        prefs = deserialize_preferences(json.dumps({"dashboard_widgets": "all"}))
        assert prefs.dashboard_widgets == DEFAULT_DASHBOARD_WIDGETS
