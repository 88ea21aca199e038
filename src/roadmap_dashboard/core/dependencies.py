"""Blocked-milestone dependency analysis.

For every milestone currently marked ``blocked``, reports the subset of its
declared dependencies that are not yet completed. The analysis is a single
non-recursive pass: it attributes each block to its direct unresolved
dependencies and does not walk blockers-of-blockers, so cycles and
self-references cannot cause it to loop.
"""

from collections.abc import Iterable
from dataclasses import dataclass

from roadmap_dashboard.core.domain import MilestoneRecord, MilestoneStatus
from roadmap_dashboard.observability import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class BlockedChain:
    """A blocked milestone with its outstanding dependencies.

    Attributes:
        milestone_id: Id of the blocked milestone.
        milestone: Name of the blocked milestone.
        capability: Name of the owning capability, when known.
        blocked_dependencies: Dependency ids whose status is not completed,
            in declaration order.
    """

    milestone_id: str
    milestone: str | None
    capability: str | None
    blocked_dependencies: tuple[str, ...]


@dataclass(frozen=True)
class DependencyAnalysis:
    """Result of analyze_dependencies().

    ``blocked_count`` counts every blocked milestone; ``blocked_chains`` only
    those with at least one unresolved dependency.
    """

    total_milestones: int
    blocked_count: int
    blocked_chains: tuple[BlockedChain, ...]
    summary: str


def analyze_dependencies(
    milestones: Iterable[MilestoneRecord],
    capability_id: str | None = None,
) -> DependencyAnalysis:
    """Find blocked milestones and their unresolved dependencies.

    Args:
        milestones: Full milestone snapshot.
        capability_id: Accepted for API compatibility with the assistant tool
            schema. It is recorded in the log but does not narrow the
            analysis; every milestone in the snapshot is considered.

    Returns:
        DependencyAnalysis with totals, chains in input order, and a summary.
    """
    snapshot = list(milestones)
    status_by_id: dict[str, str] = {ms.id: ms.status for ms in snapshot}

    blocked_count = 0
    chains: list[BlockedChain] = []
    for ms in snapshot:
        if ms.status != MilestoneStatus.BLOCKED:
            continue
        blocked_count += 1

        unresolved = tuple(
            dep_id
            for dep_id in ms.dependencies
            if status_by_id.get(dep_id) != MilestoneStatus.COMPLETED
        )
        if unresolved:
            chains.append(
                BlockedChain(
                    milestone_id=ms.id,
                    milestone=ms.name,
                    capability=ms.capability_name,
                    blocked_dependencies=unresolved,
                )
            )

    logger.debug(
        "Dependency analysis complete",
        total_milestones=len(snapshot),
        blocked_count=blocked_count,
        chain_count=len(chains),
        capability_id=capability_id,
    )

    return DependencyAnalysis(
        total_milestones=len(snapshot),
        blocked_count=blocked_count,
        blocked_chains=tuple(chains),
        summary=f"Found {len(chains)} milestones with unresolved dependencies.",
    )
