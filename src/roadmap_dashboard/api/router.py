"""FastAPI router for the roadmap dashboard.

All routes are thin: they parse inputs, build dependencies, delegate to the
services or pure core functions, and serialise responses. No business logic
lives here.

API prefix: /api/v1/roadmap
"""

from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException, Path, Query, Request, status
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from roadmap_dashboard.adapters.email_sender import ResendEmailSender
from roadmap_dashboard.adapters.llm_client import AnthropicLLMClient
from roadmap_dashboard.adapters.preferences_storage import JsonFilePreferencesStorage
from roadmap_dashboard.adapters.repositories import (
    CapabilityRepository,
    MilestoneRepository,
    QuickWinRepository,
    ReferenceDataRepository,
)
from roadmap_dashboard.adapters.teams_notifier import TeamsWebhookNotifier
from roadmap_dashboard.api.schemas import (
    BlockedChainSchema,
    ChatRequest,
    ChatResponse,
    DashboardKPIsResponse,
    DashboardLayoutResponse,
    DependencyAnalysisResponse,
    EmailPreviewRequest,
    EmailPreviewResponse,
    EmailSendRequest,
    EmailSendResponse,
    LayoutRequest,
    PreferencesResponse,
    PreferencesUpdateRequest,
    ProgressReportResponse,
    SearchGroupsSchema,
    SearchResponse,
    SearchResultSchema,
    TeamsNotifyRequest,
    TeamsPreviewRequest,
    TeamsPreviewResponse,
    TeamsSendRequest,
    TeamsSendResponse,
    WidgetListResponse,
    WidgetOrderRequest,
    WidgetVisibilityRequest,
)
from roadmap_dashboard.core.chat_tools import ToolDispatcher
from roadmap_dashboard.core.dashboard import (
    DashboardLayout,
    PreferencesStore,
    WidgetId,
    default_dashboard_widgets,
    resolve_layout,
)
from roadmap_dashboard.core.search import GroupedResults, SearchResult, display_groups, show_total_footer
from roadmap_dashboard.core.services import ChatService, NotificationService, RoadmapService
from roadmap_dashboard.database import get_db_session
from roadmap_dashboard.errors import (
    ChatNotConfiguredError,
    UnknownEmailTypeError,
    UnknownNotificationTypeError,
    UpstreamServiceError,
)
from roadmap_dashboard.observability import get_logger
from roadmap_dashboard.settings import Settings

logger = get_logger(__name__)

router = APIRouter(prefix="/roadmap", tags=["Roadmap Dashboard"])


# ---------------------------------------------------------------------------
# Dependency factories
# ---------------------------------------------------------------------------


def get_settings(request: Request) -> Settings:
    """Return the Settings instance attached to the application."""
    return request.app.state.settings


def get_roadmap_service(
    session: AsyncSession = Depends(get_db_session),
) -> RoadmapService:
    """Build RoadmapService with injected repository dependencies.

    Args:
        session: Async SQLAlchemy session from the database pool.

    Returns:
        Configured RoadmapService instance.
    """
    return RoadmapService(
        capability_repository=CapabilityRepository(session),
        milestone_repository=MilestoneRepository(session),
        quick_win_repository=QuickWinRepository(session),
    )


def get_chat_service(
    session: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_settings),
) -> ChatService:
    """Build ChatService; the LLM client is omitted when no API key is set."""
    llm_client = (
        AnthropicLLMClient(
            api_key=settings.anthropic_api_key,
            model=settings.chat_model,
            max_tokens=settings.chat_max_tokens,
        )
        if settings.anthropic_api_key
        else None
    )
    dispatcher = ToolDispatcher(
        capability_repository=CapabilityRepository(session),
        milestone_repository=MilestoneRepository(session),
        quick_win_repository=QuickWinRepository(session),
        reference_repository=ReferenceDataRepository(session),
        default_activity_limit=settings.activity_log_default_limit,
    )
    return ChatService(
        llm_client=llm_client,
        dispatcher=dispatcher,
        max_tool_rounds=settings.chat_max_tool_rounds,
    )


def get_notification_service(
    settings: Settings = Depends(get_settings),
) -> NotificationService:
    sender = ResendEmailSender(
        api_key=settings.resend_api_key,
        from_address=settings.email_from,
        api_url=settings.resend_api_url,
    )
    teams_notifier = TeamsWebhookNotifier(
        default_webhook_url=settings.teams_webhook_url,
        timeout=settings.teams_timeout_seconds,
    )
    return NotificationService(
        email_sender=sender,
        app_url=settings.app_url,
        teams_notifier=teams_notifier,
    )


def get_preferences_store(request: Request) -> PreferencesStore:
    """Return the process-wide PreferencesStore, creating it on first use."""
    store: PreferencesStore | None = getattr(request.app.state, "preferences_store", None)
    if store is None:
        settings: Settings = request.app.state.settings
        store = PreferencesStore(
            storage=JsonFilePreferencesStorage(settings.preferences_storage_path),
            key=settings.preferences_storage_key,
        )
        request.app.state.preferences_store = store
    return store


# ---------------------------------------------------------------------------
# Serialisation helpers
# ---------------------------------------------------------------------------


def _result_schema(result: SearchResult) -> SearchResultSchema:
    return SearchResultSchema(
        id=result.id,
        type=result.type.value,
        name=result.name,
        description=result.description,
        path=result.path,
        priority=result.priority,
        status=result.status,
    )


def _groups_schema(grouped: GroupedResults) -> SearchGroupsSchema:
    return SearchGroupsSchema(
        capabilities=[_result_schema(r) for r in grouped.capabilities],
        milestones=[_result_schema(r) for r in grouped.milestones],
        quick_wins=[_result_schema(r) for r in grouped.quick_wins],
    )


def _layout_response(layout: DashboardLayout) -> DashboardLayoutResponse:
    return DashboardLayoutResponse(
        sorted_widgets=list(layout.sorted_widgets),
        kpi_widgets=list(layout.kpi_widgets),
        main_widgets=list(layout.main_widgets),
        bottom_widgets=list(layout.bottom_widgets),
        kpi_columns=layout.kpi_columns,
        main_columns=layout.main_columns,
        main_column_spans={widget_id.value: span for widget_id, span in layout.main_column_spans.items()},
        bottom_columns=layout.bottom_columns,
        show_qol_impact=layout.show_qol_impact,
        is_empty=layout.is_empty,
    )


# ---------------------------------------------------------------------------
# Analytics endpoints
# ---------------------------------------------------------------------------


@router.get(
    "/dependencies",
    response_model=DependencyAnalysisResponse,
    summary="Find blocked milestones and their unresolved dependencies",
)
async def get_dependency_analysis(
    capability_id: str | None = Query(default=None, description="Optional capability id"),
    service: RoadmapService = Depends(get_roadmap_service),
) -> DependencyAnalysisResponse:
    """Attribute each blocked milestone to the dependencies that are not yet completed.

    Blocked milestones whose dependencies are all completed are counted in
    ``blocked_count`` but produce no chain entry.
    """
    analysis = await service.analyze_dependencies(capability_id=capability_id)
    return DependencyAnalysisResponse(
        total_milestones=analysis.total_milestones,
        blocked_count=analysis.blocked_count,
        blocked_chains=[
            BlockedChainSchema(
                milestone_id=chain.milestone_id,
                milestone=chain.milestone,
                capability=chain.capability,
                blocked_dependencies=list(chain.blocked_dependencies),
            )
            for chain in analysis.blocked_chains
        ],
        summary=analysis.summary,
    )


@router.get(
    "/search",
    response_model=SearchResponse,
    summary="Search capabilities, milestones and quick wins",
)
async def search_roadmap(
    q: str = Query(default="", description="Free-text query"),
    service: RoadmapService = Depends(get_roadmap_service),
    settings: Settings = Depends(get_settings),
) -> SearchResponse:
    """Case-insensitive substring search ranked exact name, name prefix, then other matches."""
    outcome = await service.search(q)
    return SearchResponse(
        query=outcome.query,
        results=[_result_schema(r) for r in outcome.results],
        groups=_groups_schema(display_groups(outcome.grouped, settings.search_group_display_limit)),
        total_results=outcome.total_results,
        has_results=outcome.has_results,
        show_total_footer=show_total_footer(outcome.total_results, settings.search_total_footer_threshold),
    )


@router.get(
    "/kpis",
    response_model=DashboardKPIsResponse,
    summary="Dashboard KPI row",
)
async def get_kpis(
    service: RoadmapService = Depends(get_roadmap_service),
) -> DashboardKPIsResponse:
    kpis = await service.get_kpis()
    return DashboardKPIsResponse(**asdict(kpis))


@router.get(
    "/report",
    response_model=ProgressReportResponse,
    summary="Structured progress report",
)
async def get_progress_report(
    service: RoadmapService = Depends(get_roadmap_service),
) -> ProgressReportResponse:
    report = await service.get_progress_report()
    return ProgressReportResponse.model_validate(report)


# ---------------------------------------------------------------------------
# Dashboard layout and preferences
# ---------------------------------------------------------------------------


@router.post(
    "/dashboard/layout",
    response_model=DashboardLayoutResponse,
    summary="Resolve a widget list into the dashboard grid",
)
async def resolve_dashboard_layout(body: LayoutRequest) -> DashboardLayoutResponse:
    return _layout_response(resolve_layout(body.widgets))


@router.get(
    "/dashboard/layout",
    response_model=DashboardLayoutResponse,
    summary="Resolve the stored widget preferences into the dashboard grid",
)
async def get_dashboard_layout(
    store: PreferencesStore = Depends(get_preferences_store),
) -> DashboardLayoutResponse:
    return _layout_response(resolve_layout(store.preferences.dashboard_widgets))


@router.get(
    "/dashboard/widgets/defaults",
    response_model=WidgetListResponse,
    summary="Default widget catalogue",
)
async def get_default_widgets() -> WidgetListResponse:
    return WidgetListResponse(widgets=default_dashboard_widgets())


@router.get(
    "/dashboard/preferences",
    response_model=PreferencesResponse,
    summary="Current user preferences",
)
async def get_preferences(
    store: PreferencesStore = Depends(get_preferences_store),
) -> PreferencesResponse:
    return store.preferences


@router.patch(
    "/dashboard/preferences",
    response_model=PreferencesResponse,
    summary="Update one or more preference fields",
)
async def update_preferences(
    body: PreferencesUpdateRequest,
    store: PreferencesStore = Depends(get_preferences_store),
) -> PreferencesResponse:
    """Merge the given fields into the stored preferences.

    Unknown field names are rejected with 400; invalid values with 422.
    """
    try:
        return store.update_preferences(body.updates)
    except KeyError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc.args[0]) if exc.args else "Unknown preference",
        ) from exc
    except ValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=exc.errors(include_url=False, include_context=False),
        ) from exc


@router.post(
    "/dashboard/preferences/reset",
    response_model=PreferencesResponse,
    summary="Restore all preferences to defaults",
)
async def reset_preferences(
    store: PreferencesStore = Depends(get_preferences_store),
) -> PreferencesResponse:
    return store.reset_preferences()


@router.put(
    "/dashboard/widgets/order",
    response_model=PreferencesResponse,
    summary="Store a reordered widget list",
)
async def update_widget_order(
    body: WidgetOrderRequest,
    store: PreferencesStore = Depends(get_preferences_store),
) -> PreferencesResponse:
    try:
        return store.update_widget_order(body.widgets)
    except ValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=exc.errors(include_url=False, include_context=False, include_input=False),
        ) from exc


@router.post(
    "/dashboard/widgets/reset",
    response_model=PreferencesResponse,
    summary="Restore the default widget list",
)
async def reset_widgets(
    store: PreferencesStore = Depends(get_preferences_store),
) -> PreferencesResponse:
    return store.reset_dashboard_widgets()


@router.put(
    "/dashboard/widgets/{widget_id}/visibility",
    response_model=PreferencesResponse,
    summary="Show or hide one widget",
)
async def update_widget_visibility(
    body: WidgetVisibilityRequest,
    widget_id: WidgetId = Path(..., description="Widget identifier"),
    store: PreferencesStore = Depends(get_preferences_store),
) -> PreferencesResponse:
    if all(widget.id != widget_id for widget in store.preferences.dashboard_widgets):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Widget {widget_id.value} is not in the stored widget list",
        )

    preferences = store.update_widget_visibility(widget_id, body.visible)
    logger.info("Widget visibility updated", widget_id=widget_id.value, visible=body.visible)
    return preferences


# ---------------------------------------------------------------------------
# Chat assistant
# ---------------------------------------------------------------------------


@router.post(
    "/chat",
    response_model=ChatResponse,
    summary="Ask the roadmap assistant a question",
)
async def chat(
    body: ChatRequest,
    service: ChatService = Depends(get_chat_service),
) -> ChatResponse:
    """Answer the latest message, letting the assistant query roadmap data through tools."""
    try:
        result = await service.chat([message.model_dump() for message in body.messages])
    except ChatNotConfiguredError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(exc),
        ) from exc
    except UpstreamServiceError as exc:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=str(exc),
        ) from exc

    return ChatResponse.model_validate(result)


# ---------------------------------------------------------------------------
# Email notifications
# ---------------------------------------------------------------------------


@router.post(
    "/email/preview",
    response_model=EmailPreviewResponse,
    summary="Render a notification email without sending it",
)
async def preview_email(
    body: EmailPreviewRequest,
    service: NotificationService = Depends(get_notification_service),
) -> EmailPreviewResponse:
    try:
        rendered = service.preview(body.type, body.data)
    except UnknownEmailTypeError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc

    return EmailPreviewResponse(subject=rendered.subject, html=rendered.html)


@router.post(
    "/email/send",
    response_model=EmailSendResponse,
    summary="Render and send a notification email",
)
async def send_email(
    body: EmailSendRequest,
    service: NotificationService = Depends(get_notification_service),
) -> EmailSendResponse:
    """Send a notification email.

    Transport failures, including a missing Resend API key, are reported
    with ``success=false`` rather than an error status.
    """
    try:
        result = await service.send(
            to=str(body.to),
            email_type=body.type,
            data=body.data,
            subject=body.subject,
        )
    except UnknownEmailTypeError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc

    return EmailSendResponse(**result)


# ---------------------------------------------------------------------------
# Microsoft Teams notifications
# ---------------------------------------------------------------------------


@router.post(
    "/teams/preview",
    response_model=TeamsPreviewResponse,
    summary="Build a Teams Adaptive Card without posting it",
)
async def preview_teams_card(
    body: TeamsPreviewRequest,
    service: NotificationService = Depends(get_notification_service),
) -> TeamsPreviewResponse:
    try:
        card = service.preview_teams_card(body.type, body.data)
    except UnknownNotificationTypeError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc

    return TeamsPreviewResponse(card=card)


@router.post(
    "/teams/send",
    response_model=TeamsSendResponse,
    summary="Post a Teams notification to a webhook",
)
async def send_teams_notification(
    body: TeamsSendRequest,
    service: NotificationService = Depends(get_notification_service),
) -> TeamsSendResponse:
    """Post a Teams card to the given webhook, or the configured default.

    A missing webhook or a webhook failure is reported with ``success=false``.
    """
    try:
        result = await service.send_teams(body.type, body.data, webhook_url=body.webhook_url)
    except UnknownNotificationTypeError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc

    return TeamsSendResponse(**result)


@router.post(
    "/teams/notify",
    response_model=TeamsSendResponse,
    summary="Post a Teams notification if the stored preferences allow it",
)
async def notify_teams(
    body: TeamsNotifyRequest,
    service: NotificationService = Depends(get_notification_service),
    store: PreferencesStore = Depends(get_preferences_store),
) -> TeamsSendResponse:
    try:
        result = await service.notify_teams(body.type, body.data, store.preferences)
    except UnknownNotificationTypeError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc

    return TeamsSendResponse(**result)
