"""Tool catalogue and dispatcher for the roadmap chat assistant.

The assistant model may request any tool in ``TOOL_DEFINITIONS``; the
dispatcher resolves each request to a repository read, optionally followed
by a pure core computation, and returns a JSON-serialisable payload.
"""

from dataclasses import asdict
from typing import Any

from roadmap_dashboard.core.dependencies import analyze_dependencies
from roadmap_dashboard.core.interfaces import (
    ICapabilityRepository,
    IMilestoneRepository,
    IQuickWinRepository,
    IReferenceDataRepository,
)
from roadmap_dashboard.core.kpis import compute_dashboard_kpis, generate_progress_report
from roadmap_dashboard.errors import UnknownToolError
from roadmap_dashboard.observability import get_logger

logger = get_logger(__name__)

_STATUSES = ["not_started", "in_progress", "completed", "blocked"]
_PRIORITIES = ["CRITICAL", "HIGH", "MEDIUM", "LOW"]

TOOL_DEFINITIONS: list[dict[str, Any]] = [
    {
        "name": "get_capabilities",
        "description": (
            "Get all capabilities or filter by priority. Capabilities are the main "
            "areas of transformation in the roadmap."
        ),
        "input_schema": {
            "type": "object",
            "properties": {
                "priority": {
                    "type": "string",
                    "description": "Filter by priority level (CRITICAL, HIGH, MEDIUM, LOW)",
                    "enum": _PRIORITIES,
                },
            },
        },
    },
    {
        "name": "get_milestones",
        "description": (
            "Get milestones with optional filters. Milestones are specific "
            "deliverables within capabilities."
        ),
        "input_schema": {
            "type": "object",
            "properties": {
                "status": {"type": "string", "description": "Filter by status", "enum": _STATUSES},
                "capability_id": {"type": "string", "description": "Filter by capability ID"},
            },
        },
    },
    {
        "name": "get_quick_wins",
        "description": (
            "Get quick wins with optional filters. Quick wins are short-term achievable items."
        ),
        "input_schema": {
            "type": "object",
            "properties": {
                "status": {
                    "type": "string",
                    "description": "Filter by status",
                    "enum": ["not_started", "in_progress", "completed"],
                },
                "category": {"type": "string", "description": "Filter by category"},
            },
        },
    },
    {
        "name": "get_dashboard_kpis",
        "description": (
            "Get key performance indicators for the dashboard including overall "
            "progress, active milestones, and completed quick wins."
        ),
        "input_schema": {"type": "object", "properties": {}},
    },
    {
        "name": "analyze_dependencies",
        "description": "Analyze milestone dependencies and find blockers in the roadmap.",
        "input_schema": {
            "type": "object",
            "properties": {
                "capability_id": {
                    "type": "string",
                    "description": "Optional capability ID to analyze",
                },
            },
        },
    },
    {
        "name": "generate_progress_report",
        "description": (
            "Generate a comprehensive progress report with capability, milestone, "
            "and quick win statistics."
        ),
        "input_schema": {"type": "object", "properties": {}},
    },
    {
        "name": "get_maturity_definitions",
        "description": "Get maturity level definitions (1-5) that describe the progression scale.",
        "input_schema": {"type": "object", "properties": {}},
    },
    {
        "name": "get_technology_options",
        "description": "Get technology options available for implementation.",
        "input_schema": {
            "type": "object",
            "properties": {
                "category": {"type": "string", "description": "Filter by technology category"},
            },
        },
    },
    {
        "name": "get_activity_log",
        "description": "Get recent activity log entries showing changes made to the roadmap.",
        "input_schema": {
            "type": "object",
            "properties": {
                "limit": {
                    "type": "number",
                    "description": "Maximum number of entries to return (default: 10)",
                },
            },
        },
    },
]

TOOL_NAMES: frozenset[str] = frozenset(tool["name"] for tool in TOOL_DEFINITIONS)

SYSTEM_PROMPT: str = """You are an AI assistant for the operational maturity roadmap platform. You help users understand their transformation progress, capabilities, milestones, and quick wins.

Key concepts:
- **Capabilities**: Main transformation areas with maturity levels from 1-5
- **Milestones**: Specific deliverables within capabilities
- **Quick Wins**: Short-term achievable items to demonstrate progress
- **Maturity Levels**: Scale from 1 (Initial) to 5 (Optimized)

When users ask questions:
1. Use the available tools to fetch real data
2. Provide clear, concise answers with specific numbers and details
3. Highlight blocked items or areas needing attention
4. Suggest actionable next steps when appropriate

Be professional, helpful, and focused on providing actionable insights about the roadmap progress."""


class ToolDispatcher:
    """Executes assistant tool calls against the roadmap repositories."""

    def __init__(
        self,
        capability_repository: ICapabilityRepository,
        milestone_repository: IMilestoneRepository,
        quick_win_repository: IQuickWinRepository,
        reference_repository: IReferenceDataRepository,
        default_activity_limit: int = 10,
    ) -> None:
        self._capabilities = capability_repository
        self._milestones = milestone_repository
        self._quick_wins = quick_win_repository
        self._reference = reference_repository
        self._default_activity_limit = default_activity_limit

    async def execute(self, tool_name: str, arguments: dict[str, Any] | None) -> Any:
        """Run one tool and return its JSON-serialisable result.

        Args:
            tool_name: Name from TOOL_DEFINITIONS.
            arguments: Tool input as decoded by the model; may be None.

        Returns:
            A list or dict suitable for json.dumps.

        Raises:
            UnknownToolError: If tool_name is not registered.
        """
        args = arguments or {}
        logger.info("Executing assistant tool", tool=tool_name, arguments=args)

        if tool_name == "get_capabilities":
            records = await self._capabilities.list_capabilities(priority=args.get("priority"))
            return [asdict(record) for record in records]
        if tool_name == "get_milestones":
            records = await self._milestones.list_milestones(
                status=args.get("status"),
                capability_id=args.get("capability_id"),
            )
            return [asdict(record) for record in records]
        if tool_name == "get_quick_wins":
            records = await self._quick_wins.list_quick_wins(
                status=args.get("status"),
                category=args.get("category"),
            )
            return [asdict(record) for record in records]
        if tool_name == "get_dashboard_kpis":
            capabilities, milestones, quick_wins = await self._snapshots()
            return asdict(compute_dashboard_kpis(capabilities, milestones, quick_wins))
        if tool_name == "analyze_dependencies":
            milestones = await self._milestones.list_milestones()
            return asdict(analyze_dependencies(milestones, capability_id=args.get("capability_id")))
        if tool_name == "generate_progress_report":
            capabilities, milestones, quick_wins = await self._snapshots()
            return generate_progress_report(capabilities, milestones, quick_wins)
        if tool_name == "get_maturity_definitions":
            records = await self._reference.list_maturity_definitions()
            return [asdict(record) for record in records]
        if tool_name == "get_technology_options":
            records = await self._reference.list_technology_options(category=args.get("category"))
            return [asdict(record) for record in records]
        if tool_name == "get_activity_log":
            limit = _coerce_limit(args.get("limit"), self._default_activity_limit)
            records = await self._reference.list_activity(limit=limit)
            return [
                {**asdict(record), "created_at": record.created_at.isoformat()}
                for record in records
            ]

        raise UnknownToolError(tool_name)

    async def _snapshots(self) -> tuple[list, list, list]:
        # One AsyncSession backs all repositories, so reads run sequentially.
        capabilities = await self._capabilities.list_capabilities()
        milestones = await self._milestones.list_milestones()
        quick_wins = await self._quick_wins.list_quick_wins()
        return capabilities, milestones, quick_wins


def _coerce_limit(value: Any, default: int) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        return default
    return int(value)
