"""Global free-text search across capabilities, milestones and quick wins.

Matching is plain case-insensitive substring containment (no tokenising, no
fuzzy matching). Matches are ranked into three tiers:

    1. name equals the query
    2. name starts with the query
    3. any other searched field contains the query

Tiers are concatenated in that order and each tier keeps the original
collection order. The ranker never truncates; display limits are applied by
callers through ``display_groups``.
"""

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import TypeVar

from roadmap_dashboard.core.domain import (
    CapabilityRecord,
    EntityType,
    MilestoneRecord,
    QuickWinRecord,
)
from roadmap_dashboard.observability import get_logger

logger = get_logger(__name__)

GROUP_DISPLAY_LIMIT: int = 5
TOTAL_FOOTER_THRESHOLD: int = 15

_PATH_TEMPLATES: dict[EntityType, str] = {
    EntityType.CAPABILITY: "/capabilities?id={id}",
    EntityType.MILESTONE: "/timeline?milestone={id}",
    EntityType.QUICK_WIN: "/quick-wins?id={id}",
}

_TIER_EXACT = 0
_TIER_PREFIX = 1
_TIER_CONTAINS = 2

_RecordT = TypeVar("_RecordT")


@dataclass(frozen=True)
class SearchResult:
    """One ranked search hit projected to the common searchable shape."""

    id: str
    type: EntityType
    name: str
    path: str
    description: str | None = None
    priority: str | None = None
    status: str | None = None


@dataclass(frozen=True)
class GroupedResults:
    """Ranked results split by source collection."""

    capabilities: tuple[SearchResult, ...] = ()
    milestones: tuple[SearchResult, ...] = ()
    quick_wins: tuple[SearchResult, ...] = ()

    @property
    def total(self) -> int:
        """Untruncated number of matches across all groups."""
        return len(self.capabilities) + len(self.milestones) + len(self.quick_wins)


def normalize_query(query: str | None) -> str:
    """Trim and lower-case a raw query string."""
    if not query:
        return ""
    return query.strip().lower()


def build_path(entity_type: EntityType, entity_id: str) -> str:
    """Return the deep link for an entity."""
    return _PATH_TEMPLATES[entity_type].format(id=entity_id)


def _contains(value: object, term: str) -> bool:
    return isinstance(value, str) and term in value.lower()


def _tier(name: str | None, term: str) -> int:
    if not isinstance(name, str):
        return _TIER_CONTAINS
    lowered = name.lower()
    if lowered == term:
        return _TIER_EXACT
    if lowered.startswith(term):
        return _TIER_PREFIX
    return _TIER_CONTAINS


def _rank(results: Sequence[tuple[int, SearchResult]]) -> tuple[SearchResult, ...]:
    # sorted() is stable, so records within a tier keep collection order.
    return tuple(result for _, result in sorted(results, key=lambda pair: pair[0]))


def _search_collection(
    records: Sequence[_RecordT],
    term: str,
    extra_field: Callable[[_RecordT], object],
    project: Callable[[_RecordT], SearchResult],
) -> list[tuple[int, SearchResult]]:
    matches: list[tuple[int, SearchResult]] = []
    for record in records:
        name = getattr(record, "name", None)
        if not (
            _contains(name, term)
            or _contains(getattr(record, "description", None), term)
            or _contains(extra_field(record), term)
        ):
            continue
        matches.append((_tier(name, term), project(record)))
    return matches


def _project_capability(cap: CapabilityRecord) -> SearchResult:
    return SearchResult(
        id=cap.id,
        type=EntityType.CAPABILITY,
        name=cap.name or "",
        description=cap.description or None,
        priority=cap.priority,
        status=None,
        path=build_path(EntityType.CAPABILITY, cap.id),
    )


def _project_milestone(ms: MilestoneRecord) -> SearchResult:
    return SearchResult(
        id=ms.id,
        type=EntityType.MILESTONE,
        name=ms.name or "",
        description=ms.description or None,
        priority=None,
        status=ms.status,
        path=build_path(EntityType.MILESTONE, ms.id),
    )


def _project_quick_win(qw: QuickWinRecord) -> SearchResult:
    return SearchResult(
        id=qw.id,
        type=EntityType.QUICK_WIN,
        name=qw.name or "",
        description=qw.description or None,
        priority=None,
        status=qw.status,
        path=build_path(EntityType.QUICK_WIN, qw.id),
    )


@dataclass(frozen=True)
class SearchOutcome:
    """Full output of one search evaluation.

    Attributes:
        query: The normalized query that produced this outcome.
        results: Flat ranked list across capabilities, milestones and quick
            wins, in that collection order within each tier.
        grouped: Ranked results per source collection.
    """

    query: str
    results: tuple[SearchResult, ...] = ()
    grouped: GroupedResults = field(default_factory=GroupedResults)

    @property
    def total_results(self) -> int:
        return self.grouped.total

    @property
    def has_results(self) -> bool:
        return self.total_results > 0


def search_entities(
    query: str | None,
    capabilities: Sequence[CapabilityRecord],
    milestones: Sequence[MilestoneRecord],
    quick_wins: Sequence[QuickWinRecord],
) -> SearchOutcome:
    """Rank matching records across the three collections.

    Args:
        query: Raw user query. Normalised by trimming and lower-casing.
        capabilities: Capability snapshot.
        milestones: Milestone snapshot.
        quick_wins: Quick win snapshot.

    Returns:
        SearchOutcome. An empty or whitespace-only query yields no results
        regardless of collection contents.
    """
    term = normalize_query(query)
    if not term:
        return SearchOutcome(query="")

    cap_matches = _search_collection(
        capabilities,
        term,
        lambda cap: getattr(cap, "owner", None),
        _project_capability,
    )
    ms_matches = _search_collection(
        milestones,
        term,
        lambda ms: getattr(ms, "notes", None),
        _project_milestone,
    )
    qw_matches = _search_collection(
        quick_wins,
        term,
        lambda qw: getattr(qw, "owner", None),
        _project_quick_win,
    )

    grouped = GroupedResults(
        capabilities=_rank(cap_matches),
        milestones=_rank(ms_matches),
        quick_wins=_rank(qw_matches),
    )
    outcome = SearchOutcome(
        query=term,
        results=_rank([*cap_matches, *ms_matches, *qw_matches]),
        grouped=grouped,
    )

    logger.debug(
        "Search evaluated",
        query=term,
        capabilities=len(grouped.capabilities),
        milestones=len(grouped.milestones),
        quick_wins=len(grouped.quick_wins),
    )
    return outcome


def display_groups(
    grouped: GroupedResults,
    limit: int = GROUP_DISPLAY_LIMIT,
) -> GroupedResults:
    """Truncate each group to ``limit`` items for display."""
    return GroupedResults(
        capabilities=grouped.capabilities[:limit],
        milestones=grouped.milestones[:limit],
        quick_wins=grouped.quick_wins[:limit],
    )


def show_total_footer(
    total_results: int,
    threshold: int = TOTAL_FOOTER_THRESHOLD,
) -> bool:
    """Whether the "N total matches" footer should be displayed."""
    return total_results > threshold


class GlobalSearch:
    """Search state container backing the global search box.

    Holds the current query and the latest collection snapshots. Results are
    re-evaluated lazily and cached until either the query or the snapshots
    change, so ``clear_search()`` followed by ``set_query(q)`` yields the same
    outcome as a fresh container given ``q``.
    """

    def __init__(
        self,
        capabilities: Sequence[CapabilityRecord] = (),
        milestones: Sequence[MilestoneRecord] = (),
        quick_wins: Sequence[QuickWinRecord] = (),
    ) -> None:
        self._query = ""
        self._capabilities: tuple[CapabilityRecord, ...] = tuple(capabilities)
        self._milestones: tuple[MilestoneRecord, ...] = tuple(milestones)
        self._quick_wins: tuple[QuickWinRecord, ...] = tuple(quick_wins)
        self._cached: SearchOutcome | None = None

    @property
    def query(self) -> str:
        return self._query

    def set_query(self, query: str) -> None:
        """Replace the raw query text."""
        if query != self._query:
            self._query = query
            self._cached = None

    def clear_search(self) -> None:
        """Reset the query to the initial empty state."""
        self.set_query("")

    def load(
        self,
        capabilities: Sequence[CapabilityRecord] | None = None,
        milestones: Sequence[MilestoneRecord] | None = None,
        quick_wins: Sequence[QuickWinRecord] | None = None,
    ) -> None:
        """Swap in freshly fetched snapshots. ``None`` keeps the current one."""
        if capabilities is not None:
            self._capabilities = tuple(capabilities)
        if milestones is not None:
            self._milestones = tuple(milestones)
        if quick_wins is not None:
            self._quick_wins = tuple(quick_wins)
        self._cached = None

    def _outcome(self) -> SearchOutcome:
        if self._cached is None:
            self._cached = search_entities(
                self._query,
                self._capabilities,
                self._milestones,
                self._quick_wins,
            )
        return self._cached

    @property
    def results(self) -> tuple[SearchResult, ...]:
        return self._outcome().results

    @property
    def grouped_results(self) -> GroupedResults:
        return self._outcome().grouped

    @property
    def total_results(self) -> int:
        return self._outcome().total_results

    @property
    def has_results(self) -> bool:
        return self._outcome().has_results
