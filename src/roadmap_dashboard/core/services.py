"""Service layer for the roadmap-dashboard service.

Services fetch snapshots through repository interfaces and hand them to the
pure core functions. No SQLAlchemy or FastAPI imports belong here; those live
in the adapters and api layers.
"""

import json
from typing import Any

from roadmap_dashboard.core.chat_tools import SYSTEM_PROMPT, TOOL_DEFINITIONS, ToolDispatcher
from roadmap_dashboard.core.dashboard import UserPreferences
from roadmap_dashboard.core.dependencies import DependencyAnalysis, analyze_dependencies
from roadmap_dashboard.core.email_templates import EmailData, RenderedEmail, render_email
from roadmap_dashboard.core.interfaces import (
    ICapabilityRepository,
    IEmailSender,
    ILLMClient,
    IMilestoneRepository,
    IQuickWinRepository,
    ITeamsNotifier,
)
from roadmap_dashboard.core.kpis import DashboardKPIs, compute_dashboard_kpis, generate_progress_report
from roadmap_dashboard.core.search import SearchOutcome, search_entities
from roadmap_dashboard.core.teams_cards import (
    TeamsNotificationData,
    build_teams_card,
    parse_notification_type,
    teams_delivery_blocked_reason,
)
from roadmap_dashboard.errors import ChatNotConfiguredError, RoadmapError
from roadmap_dashboard.observability import get_logger

logger = get_logger(__name__)


class RoadmapService:
    """Read-side roadmap analytics: dependencies, search, KPIs and reports."""

    def __init__(
        self,
        capability_repository: ICapabilityRepository,
        milestone_repository: IMilestoneRepository,
        quick_win_repository: IQuickWinRepository,
    ) -> None:
        """Initialise the service with repository dependencies.

        Args:
            capability_repository: Capability snapshot reads.
            milestone_repository: Milestone snapshot reads.
            quick_win_repository: Quick win snapshot reads.
        """
        self._capabilities = capability_repository
        self._milestones = milestone_repository
        self._quick_wins = quick_win_repository

    async def analyze_dependencies(self, capability_id: str | None = None) -> DependencyAnalysis:
        """Analyse blocked milestones across the full milestone snapshot.

        Args:
            capability_id: Accepted and logged; the analysis is not narrowed.

        Returns:
            DependencyAnalysis for the current snapshot.
        """
        milestones = await self._milestones.list_milestones()
        analysis = analyze_dependencies(milestones, capability_id=capability_id)
        logger.info(
            "Dependency analysis served",
            total_milestones=analysis.total_milestones,
            blocked_count=analysis.blocked_count,
            chain_count=len(analysis.blocked_chains),
        )
        return analysis

    async def search(self, query: str) -> SearchOutcome:
        """Rank capabilities, milestones and quick wins against a query.

        Whitespace-only queries short-circuit without touching the database.
        """
        if not query.strip():
            return search_entities(query, (), (), ())

        capabilities = await self._capabilities.list_capabilities()
        milestones = await self._milestones.list_milestones()
        quick_wins = await self._quick_wins.list_quick_wins()
        return search_entities(query, capabilities, milestones, quick_wins)

    async def get_kpis(self) -> DashboardKPIs:
        """Compute dashboard KPIs from fresh snapshots."""
        capabilities = await self._capabilities.list_capabilities()
        milestones = await self._milestones.list_milestones()
        quick_wins = await self._quick_wins.list_quick_wins()
        return compute_dashboard_kpis(capabilities, milestones, quick_wins)

    async def get_progress_report(self) -> dict[str, object]:
        """Build the structured progress report from fresh snapshots."""
        capabilities = await self._capabilities.list_capabilities()
        milestones = await self._milestones.list_milestones()
        quick_wins = await self._quick_wins.list_quick_wins()
        return generate_progress_report(capabilities, milestones, quick_wins)


class ChatService:
    """Runs the assistant tool-use loop.

    The model is called with the tool catalogue; while it stops with
    ``tool_use`` every requested tool is executed and its result fed back as
    a ``tool_result`` block, until the model answers in text or the round
    limit is reached.
    """

    def __init__(
        self,
        llm_client: ILLMClient | None,
        dispatcher: ToolDispatcher,
        max_tool_rounds: int = 8,
    ) -> None:
        self._llm = llm_client
        self._dispatcher = dispatcher
        self._max_tool_rounds = max_tool_rounds

    async def chat(self, messages: list[dict[str, Any]]) -> dict[str, Any]:
        """Answer the latest user message.

        Args:
            messages: Conversation so far, as {"role", "content"} dicts.

        Returns:
            Dict with message (joined text), tool_calls (name + result per
            executed tool) and usage.

        Raises:
            ChatNotConfiguredError: If no LLM client is configured.
            UpstreamServiceError: If the Messages API call fails.
        """
        if self._llm is None:
            raise ChatNotConfiguredError("Anthropic API key not configured")

        conversation: list[dict[str, Any]] = [
            {"role": msg["role"], "content": msg["content"]} for msg in messages
        ]
        tool_calls: list[dict[str, Any]] = []

        response = await self._llm.create_message(SYSTEM_PROMPT, conversation, TOOL_DEFINITIONS)
        rounds = 0
        while _get(response, "stop_reason") == "tool_use":
            rounds += 1
            if rounds > self._max_tool_rounds:
                logger.warning("Assistant tool round limit reached", rounds=self._max_tool_rounds)
                break

            tool_uses = [block for block in _get(response, "content") if _get(block, "type") == "tool_use"]
            tool_results: list[dict[str, Any]] = []
            for tool_use in tool_uses:
                result_block = await self._run_tool(tool_use, tool_calls)
                tool_results.append(result_block)

            conversation = [
                *conversation,
                {"role": "assistant", "content": [_to_dict(block) for block in _get(response, "content")]},
                {"role": "user", "content": tool_results},
            ]
            response = await self._llm.create_message(SYSTEM_PROMPT, conversation, TOOL_DEFINITIONS)

        text = "\n".join(
            _get(block, "text") for block in _get(response, "content") if _get(block, "type") == "text"
        )
        usage = _get(response, "usage")

        logger.info("Assistant reply generated", tool_call_count=len(tool_calls), rounds=rounds)
        return {
            "message": text,
            "tool_calls": tool_calls,
            "usage": _to_dict(usage) if usage is not None else None,
        }

    async def _run_tool(
        self,
        tool_use: Any,
        tool_calls: list[dict[str, Any]],
    ) -> dict[str, Any]:
        name = _get(tool_use, "name")
        try:
            result = await self._dispatcher.execute(name, _get(tool_use, "input"))
        except RoadmapError as exc:
            # Reported back to the model so it can recover in its answer.
            logger.warning("Assistant tool failed", tool=name, error=str(exc))
            tool_calls.append({"tool": name, "result": {"error": str(exc)}})
            return {
                "type": "tool_result",
                "tool_use_id": _get(tool_use, "id"),
                "content": str(exc),
                "is_error": True,
            }

        tool_calls.append({"tool": name, "result": result})
        return {
            "type": "tool_result",
            "tool_use_id": _get(tool_use, "id"),
            "content": json.dumps(result, default=str),
        }


class NotificationService:
    """Renders notifications and hands them to the email or Teams transport."""

    def __init__(
        self,
        email_sender: IEmailSender,
        app_url: str,
        teams_notifier: ITeamsNotifier | None = None,
    ) -> None:
        self._sender = email_sender
        self._app_url = app_url
        self._teams_notifier = teams_notifier

    def preview(self, email_type: str, data: EmailData) -> RenderedEmail:
        """Render an email without sending it.

        Raises:
            UnknownEmailTypeError: If email_type is not supported.
        """
        return render_email(email_type, data, self._app_url)

    async def send(
        self,
        to: str,
        email_type: str,
        data: EmailData,
        subject: str | None = None,
    ) -> dict[str, Any]:
        """Render and send a notification email.

        Args:
            to: Recipient address.
            email_type: One of the EmailType values.
            data: Template variables.
            subject: Optional subject overriding the template's subject line.

        Returns:
            Transport result dict: {"success": True, "id": ...} or
            {"success": False, "error": ...}.

        Raises:
            UnknownEmailTypeError: If email_type is not supported.
        """
        rendered = render_email(email_type, data, self._app_url)
        result = await self._sender.send(to=to, subject=subject or rendered.subject, html=rendered.html)
        logger.info(
            "Notification email dispatched",
            email_type=email_type,
            success=result.get("success"),
        )
        return result

    def preview_teams_card(self, notification_type: str, data: TeamsNotificationData) -> dict[str, Any]:
        """Build a Teams card without posting it.

        Raises:
            UnknownNotificationTypeError: If notification_type is not supported.
        """
        return build_teams_card(notification_type, data, self._app_url)

    async def send_teams(
        self,
        notification_type: str,
        data: TeamsNotificationData,
        webhook_url: str | None = None,
    ) -> dict[str, Any]:
        """Build a Teams card and post it, ignoring user preferences.

        Args:
            notification_type: One of the TeamsNotificationType values.
            data: Card variables.
            webhook_url: Webhook overriding the configured default.

        Returns:
            Transport result dict: {"success": True} or {"success": False, "error": ...}.

        Raises:
            UnknownNotificationTypeError: If notification_type is not supported.
        """
        card = build_teams_card(notification_type, data, self._app_url)
        if self._teams_notifier is None:
            return {"success": False, "error": "Teams webhook not configured"}

        result = await self._teams_notifier.send(card, webhook_url=webhook_url)
        logger.info(
            "Teams notification dispatched",
            notification_type=notification_type,
            success=result.get("success"),
        )
        return result

    async def notify_teams(
        self,
        notification_type: str,
        data: TeamsNotificationData,
        preferences: UserPreferences,
    ) -> dict[str, Any]:
        """Post a Teams card to the user's own webhook if their preferences allow it.

        Raises:
            UnknownNotificationTypeError: If notification_type is not supported.
        """
        kind = parse_notification_type(notification_type)
        reason = teams_delivery_blocked_reason(kind, preferences)
        if reason is not None:
            logger.debug("Teams notification suppressed", notification_type=kind.value, reason=reason)
            return {"success": False, "error": reason}
        return await self.send_teams(kind.value, data, webhook_url=preferences.teams_webhook_url)


def _get(obj: Any, name: str) -> Any:
    """Read a field from either an SDK response object or a plain dict."""
    if isinstance(obj, dict):
        return obj.get(name)
    return getattr(obj, name, None)


def _to_dict(obj: Any) -> Any:
    if isinstance(obj, dict):
        return obj
    model_dump = getattr(obj, "model_dump", None)
    if callable(model_dump):
        return model_dump(exclude_none=True)
    return obj
