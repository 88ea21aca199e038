"""Pydantic request/response schemas for the roadmap-dashboard API.

All API inputs and outputs are typed Pydantic v2 models. Widget and
preference payloads reuse the core models directly so that validation
rules live in one place.
"""

from typing import Any, Literal

from pydantic import BaseModel, EmailStr, Field

from roadmap_dashboard.core.dashboard import DashboardWidget, UserPreferences
from roadmap_dashboard.core.email_templates import EmailData
from roadmap_dashboard.core.teams_cards import TeamsNotificationData


# ---------------------------------------------------------------------------
# Dependency analysis
# ---------------------------------------------------------------------------


class BlockedChainSchema(BaseModel):
    """A blocked milestone and the dependencies that are not yet completed.

    Attributes:
        milestone_id: Id of the blocked milestone.
        milestone: Its display name.
        capability: Name of the owning capability, when known.
        blocked_dependencies: Dependency ids whose status is not completed.
    """

    milestone_id: str
    milestone: str | None
    capability: str | None
    blocked_dependencies: list[str]


class DependencyAnalysisResponse(BaseModel):
    """Blocked-milestone analysis across the whole roadmap."""

    total_milestones: int
    blocked_count: int
    blocked_chains: list[BlockedChainSchema]
    summary: str


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------


class SearchResultSchema(BaseModel):
    """One ranked search hit.

    Attributes:
        id: Entity id.
        type: capability | milestone | quick_win.
        name: Display name.
        description: Optional description.
        path: Application route that opens the entity.
        priority: Capability priority (capabilities only).
        status: Lifecycle status (milestones and quick wins only).
    """

    id: str
    type: str
    name: str
    description: str | None = None
    path: str
    priority: str | None = None
    status: str | None = None


class SearchGroupsSchema(BaseModel):
    """Ranked hits per entity type, truncated for display."""

    capabilities: list[SearchResultSchema]
    milestones: list[SearchResultSchema]
    quick_wins: list[SearchResultSchema]


class SearchResponse(BaseModel):
    """Search results for a free-text query.

    ``results`` is the full ranked list; ``groups`` holds at most the
    display limit per type. ``show_total_footer`` is set when the total
    exceeds the footer threshold.
    """

    query: str
    results: list[SearchResultSchema]
    groups: SearchGroupsSchema
    total_results: int
    has_results: bool
    show_total_footer: bool


# ---------------------------------------------------------------------------
# KPIs and progress report
# ---------------------------------------------------------------------------


class DashboardKPIsResponse(BaseModel):
    """Headline dashboard numbers."""

    overall_progress: int
    total_capabilities: int
    active_milestones: int
    completed_milestones: int
    total_milestones: int
    completed_quick_wins: int
    total_quick_wins: int
    critical_capabilities: int
    blocked_milestones: int


class CapabilityReportSchema(BaseModel):
    total: int
    critical: int
    average_progress: int
    by_priority: dict[str, int]


class MilestoneReportSchema(BaseModel):
    total: int
    completed: int
    in_progress: int
    blocked: int
    not_started: int


class QuickWinReportSchema(BaseModel):
    total: int
    completed: int
    in_progress: int
    not_started: int


class ProgressReportResponse(BaseModel):
    """Structured roadmap progress report."""

    generated_at: str
    summary: str
    capabilities: CapabilityReportSchema
    milestones: MilestoneReportSchema
    quick_wins: QuickWinReportSchema


# ---------------------------------------------------------------------------
# Dashboard layout and preferences
# ---------------------------------------------------------------------------


class LayoutRequest(BaseModel):
    """Widget list to resolve into a dashboard grid."""

    widgets: list[DashboardWidget]


class DashboardLayoutResponse(BaseModel):
    """Resolved dashboard grid.

    Attributes:
        sorted_widgets: Every visible widget ordered by ``order``.
        kpi_widgets: Visible KPI-row widgets in display order.
        main_widgets: Visible main-row widgets in display order.
        bottom_widgets: Visible bottom-row widgets in display order.
        kpi_columns: Column count for the KPI row (1-4, 0 when empty).
        main_columns: Column count for the main row.
        main_column_spans: Column span per main-row widget id.
        bottom_columns: Column count for the bottom row.
        show_qol_impact: Whether the quality-of-life chart is shown.
        is_empty: True when no widget is visible.
    """

    sorted_widgets: list[DashboardWidget]
    kpi_widgets: list[DashboardWidget]
    main_widgets: list[DashboardWidget]
    bottom_widgets: list[DashboardWidget]
    kpi_columns: int
    main_columns: int
    main_column_spans: dict[str, int]
    bottom_columns: int
    show_qol_impact: bool
    is_empty: bool


class WidgetListResponse(BaseModel):
    widgets: list[DashboardWidget]


class PreferencesUpdateRequest(BaseModel):
    """Partial preference update; keys must be preference field names."""

    updates: dict[str, Any] = Field(..., min_length=1)


class WidgetVisibilityRequest(BaseModel):
    visible: bool


class WidgetOrderRequest(BaseModel):
    """Widget list in its new display order."""

    widgets: list[DashboardWidget] = Field(..., min_length=1)


PreferencesResponse = UserPreferences


# ---------------------------------------------------------------------------
# Chat assistant
# ---------------------------------------------------------------------------


class ChatMessageSchema(BaseModel):
    role: Literal["user", "assistant"]
    content: str = Field(..., min_length=1)


class ChatRequest(BaseModel):
    """Conversation so far; the last message is the one being answered."""

    messages: list[ChatMessageSchema] = Field(..., min_length=1)


class ToolCallSchema(BaseModel):
    tool: str
    result: Any


class ChatResponse(BaseModel):
    """Assistant reply with the log of tools it used."""

    message: str
    tool_calls: list[ToolCallSchema]
    usage: dict[str, Any] | None = None


# ---------------------------------------------------------------------------
# Email notifications
# ---------------------------------------------------------------------------


class EmailPreviewRequest(BaseModel):
    type: str = Field(..., description="mention | blocked | status_change | comment | system")
    data: EmailData = Field(default_factory=EmailData)


class EmailPreviewResponse(BaseModel):
    subject: str
    html: str


class EmailSendRequest(BaseModel):
    """Render a notification and send it to one recipient.

    Attributes:
        to: Recipient email address.
        type: Email template type.
        data: Template variables.
        subject: Optional subject line overriding the template's.
    """

    to: EmailStr
    type: str
    data: EmailData = Field(default_factory=EmailData)
    subject: str | None = None


class EmailSendResponse(BaseModel):
    success: bool
    id: str | None = None
    error: str | None = None


# ---------------------------------------------------------------------------
# Microsoft Teams notifications
# ---------------------------------------------------------------------------


class TeamsPreviewRequest(BaseModel):
    type: str = Field(..., description="mention | blocked | status_change | comment | activity | system")
    data: TeamsNotificationData = Field(default_factory=TeamsNotificationData)


class TeamsPreviewResponse(BaseModel):
    card: dict[str, Any]


class TeamsSendRequest(BaseModel):
    """Build a Teams card and post it to a webhook.

    Attributes:
        type: Teams notification type.
        data: Card variables.
        webhook_url: Webhook overriding the configured default.
    """

    type: str
    data: TeamsNotificationData = Field(default_factory=TeamsNotificationData)
    webhook_url: str | None = None


class TeamsNotifyRequest(BaseModel):
    """Teams notification routed through the stored user preferences."""

    type: str
    data: TeamsNotificationData = Field(default_factory=TeamsNotificationData)


class TeamsSendResponse(BaseModel):
    success: bool
    error: str | None = None
