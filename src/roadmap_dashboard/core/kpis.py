"""Dashboard KPIs and the roadmap progress report.

Capability progress is measured along the maturity ladder from level 1 to
the capability's target level:

    progress = (current_level - 1) / (target_level - 1) * 100

A capability whose target is level 1 counts as 100% complete. Overall
progress is the unweighted mean across capabilities (0 when there are none).
"""

import math
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, timezone

from roadmap_dashboard.core.domain import (
    CapabilityRecord,
    MilestoneRecord,
    MilestoneStatus,
    Priority,
    QuickWinRecord,
)


@dataclass(frozen=True)
class DashboardKPIs:
    """Headline numbers shown on the dashboard KPI row."""

    overall_progress: int
    total_capabilities: int
    active_milestones: int
    completed_milestones: int
    total_milestones: int
    completed_quick_wins: int
    total_quick_wins: int
    critical_capabilities: int
    blocked_milestones: int


def capability_progress(capability: CapabilityRecord) -> float:
    """Percentage progress of one capability toward its target level."""
    if capability.target_level > 1:
        return (capability.current_level - 1) / (capability.target_level - 1) * 100
    return 100.0


def overall_progress(capabilities: Sequence[CapabilityRecord]) -> float:
    """Mean capability progress, unrounded."""
    if not capabilities:
        return 0.0
    return sum(capability_progress(cap) for cap in capabilities) / len(capabilities)


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def _count_status(records: Sequence[MilestoneRecord | QuickWinRecord], status: MilestoneStatus) -> int:
    return sum(1 for record in records if record.status == status)


def compute_dashboard_kpis(
    capabilities: Sequence[CapabilityRecord],
    milestones: Sequence[MilestoneRecord],
    quick_wins: Sequence[QuickWinRecord],
) -> DashboardKPIs:
    """Compute the dashboard KPI row from entity snapshots."""
    return DashboardKPIs(
        overall_progress=_round_half_up(overall_progress(capabilities)),
        total_capabilities=len(capabilities),
        active_milestones=_count_status(milestones, MilestoneStatus.IN_PROGRESS),
        completed_milestones=_count_status(milestones, MilestoneStatus.COMPLETED),
        total_milestones=len(milestones),
        completed_quick_wins=_count_status(quick_wins, MilestoneStatus.COMPLETED),
        total_quick_wins=len(quick_wins),
        critical_capabilities=sum(1 for cap in capabilities if cap.priority == Priority.CRITICAL),
        blocked_milestones=_count_status(milestones, MilestoneStatus.BLOCKED),
    )


def generate_progress_report(
    capabilities: Sequence[CapabilityRecord],
    milestones: Sequence[MilestoneRecord],
    quick_wins: Sequence[QuickWinRecord],
    generated_at: datetime | None = None,
) -> dict[str, object]:
    """Build the structured progress report used by the assistant.

    Args:
        capabilities: Capability snapshot.
        milestones: Milestone snapshot.
        quick_wins: Quick win snapshot.
        generated_at: Report timestamp; defaults to now (UTC).

    Returns:
        Dict with generated_at, summary, and per-entity breakdowns.
    """
    progress = _round_half_up(overall_progress(capabilities))
    timestamp = generated_at or datetime.now(tz=timezone.utc)

    return {
        "generated_at": timestamp.isoformat(),
        "summary": f"Overall transformation is {progress}% complete.",
        "capabilities": {
            "total": len(capabilities),
            "critical": sum(1 for cap in capabilities if cap.priority == Priority.CRITICAL),
            "average_progress": progress,
            "by_priority": {
                priority.value: sum(1 for cap in capabilities if cap.priority == priority)
                for priority in Priority
            },
        },
        "milestones": {
            "total": len(milestones),
            "completed": _count_status(milestones, MilestoneStatus.COMPLETED),
            "in_progress": _count_status(milestones, MilestoneStatus.IN_PROGRESS),
            "blocked": _count_status(milestones, MilestoneStatus.BLOCKED),
            "not_started": _count_status(milestones, MilestoneStatus.NOT_STARTED),
        },
        "quick_wins": {
            "total": len(quick_wins),
            "completed": _count_status(quick_wins, MilestoneStatus.COMPLETED),
            "in_progress": _count_status(quick_wins, MilestoneStatus.IN_PROGRESS),
            "not_started": _count_status(quick_wins, MilestoneStatus.NOT_STARTED),
        },
    }
