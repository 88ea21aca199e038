"""Enumerations and snapshot records shared across the core layer.

Repositories translate ORM rows into these frozen records so that the
analyzer, search ranker and KPI functions operate on immutable snapshots.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class MilestoneStatus(str, Enum):
    """Lifecycle status of a milestone or quick win."""

    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    BLOCKED = "blocked"


class Priority(str, Enum):
    """Capability priority level."""

    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class EntityType(str, Enum):
    """Entity kinds that participate in global search."""

    CAPABILITY = "capability"
    MILESTONE = "milestone"
    QUICK_WIN = "quick_win"


@dataclass(frozen=True)
class CapabilityRecord:
    """Snapshot of a capability row.

    Attributes:
        id: Primary key.
        name: Display name.
        description: Optional free-text description.
        priority: CRITICAL | HIGH | MEDIUM | LOW.
        current_level: Current maturity level 1-5.
        target_level: Target maturity level 1-5.
        owner: Optional accountable owner.
    """

    id: str
    name: str | None
    description: str | None = None
    priority: str = Priority.MEDIUM.value
    current_level: int = 1
    target_level: int = 5
    owner: str | None = None


@dataclass(frozen=True)
class MilestoneRecord:
    """Snapshot of a milestone row.

    ``dependencies`` lists other milestone ids. Ids that are absent from the
    snapshot are inert rather than errors.
    """

    id: str
    name: str | None = None
    status: str = MilestoneStatus.NOT_STARTED.value
    dependencies: tuple[str, ...] = ()
    description: str | None = None
    notes: str | None = None
    capability_id: str | None = None
    capability_name: str | None = None


@dataclass(frozen=True)
class QuickWinRecord:
    """Snapshot of a quick win row."""

    id: str
    name: str | None
    description: str | None = None
    owner: str | None = None
    status: str = MilestoneStatus.NOT_STARTED.value
    category: str | None = None
    capability_id: str | None = None
    progress_percent: int = 0


@dataclass(frozen=True)
class MaturityDefinitionRecord:
    """Definition of one rung on the 1-5 maturity ladder."""

    level: int
    name: str
    description: str
    characteristics: tuple[str, ...] = ()


@dataclass(frozen=True)
class TechnologyOptionRecord:
    """A candidate technology for implementing a capability."""

    id: str
    category: str
    name: str
    vendor: str | None = None
    description: str | None = None
    recommended: bool = False
    notes: str | None = None


@dataclass(frozen=True)
class ActivityLogRecord:
    """One audit-trail entry for a roadmap mutation."""

    id: str
    table_name: str
    record_id: str
    action: str
    created_at: datetime
    user_name: str | None = None
    new_values: dict[str, Any] = field(default_factory=dict)
