"""SQLAlchemy ORM models for the roadmap-dashboard service.

Tables:
    capabilities        : transformation areas with current/target maturity
    milestones          : deliverables within a capability, with dependencies
    quick_wins          : short-term items shown on the quick-win board
    maturity_definitions: the 1-5 maturity ladder
    technology_options  : candidate technologies per category
    activity_log        : audit trail of roadmap mutations

Ids are stored as PostgreSQL UUIDs but surfaced as strings; the core layer
treats them as opaque.
"""

from datetime import date, datetime
from typing import Any

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Integer, String, Text, func
from sqlalchemy.dialects.postgresql import ARRAY, JSONB, UUID
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.sql import text


class RoadmapBase(DeclarativeBase):
    """Base class for roadmap ORM models."""


def _uuid_pk() -> Mapped[str]:
    return mapped_column(
        UUID(as_uuid=False),
        primary_key=True,
        server_default=text("gen_random_uuid()"),
        comment="Primary key UUID",
    )


def _created_at() -> Mapped[datetime]:
    return mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        comment="Row creation timestamp",
    )


class Capability(RoadmapBase):
    """An operational capability tracked on the maturity ladder.

    Table: capabilities
    """

    __tablename__ = "capabilities"

    id: Mapped[str] = _uuid_pk()
    name: Mapped[str] = mapped_column(String(255), nullable=False, comment="Display name")
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    priority: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        server_default="MEDIUM",
        index=True,
        comment="CRITICAL | HIGH | MEDIUM | LOW",
    )
    current_level: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        server_default="1",
        comment="Current maturity level 1-5",
    )
    target_level: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        server_default="5",
        comment="Target maturity level 1-5",
    )
    owner: Mapped[str | None] = mapped_column(String(255), nullable=True)
    color: Mapped[str | None] = mapped_column(String(20), nullable=True, comment="UI accent colour")
    qol_impact: Mapped[str | None] = mapped_column(Text, nullable=True, comment="Quality-of-life impact note")
    created_at: Mapped[datetime] = _created_at()
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    milestones: Mapped[list["Milestone"]] = relationship(back_populates="capability")


class Milestone(RoadmapBase):
    """A deliverable that moves a capability from one level to the next.

    ``dependencies`` holds other milestone ids. It is not a foreign key; ids
    that no longer exist are ignored by the dependency analysis.

    Table: milestones
    """

    __tablename__ = "milestones"

    id: Mapped[str] = _uuid_pk()
    capability_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("capabilities.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    from_level: Mapped[int] = mapped_column(Integer, nullable=False, comment="Maturity level before delivery")
    to_level: Mapped[int] = mapped_column(Integer, nullable=False, comment="Maturity level after delivery")
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        server_default="not_started",
        index=True,
        comment="not_started | in_progress | completed | blocked",
    )
    dependencies: Mapped[list[str] | None] = mapped_column(
        ARRAY(String),
        nullable=True,
        comment="Ids of milestones that must complete first",
    )
    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = _created_at()
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    capability: Mapped[Capability] = relationship(back_populates="milestones")


class QuickWin(RoadmapBase):
    """A short-term item on the quick-win board.

    Table: quick_wins
    """

    __tablename__ = "quick_wins"

    id: Mapped[str] = _uuid_pk()
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    capability_id: Mapped[str | None] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("capabilities.id", ondelete="SET NULL"),
        nullable=True,
    )
    owner: Mapped[str | None] = mapped_column(String(255), nullable=True)
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        server_default="not_started",
        index=True,
    )
    timeline_months: Mapped[int] = mapped_column(Integer, nullable=False, server_default="1")
    category: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)
    progress_percent: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        server_default="0",
        comment="Completion 0-100",
    )
    order: Mapped[int] = mapped_column(
        "order",
        Integer,
        nullable=False,
        server_default="0",
        comment="Position within its board column",
    )
    created_at: Mapped[datetime] = _created_at()


class MaturityDefinition(RoadmapBase):
    """One rung of the 1-5 maturity ladder.

    Table: maturity_definitions
    """

    __tablename__ = "maturity_definitions"

    id: Mapped[str] = _uuid_pk()
    level: Mapped[int] = mapped_column(Integer, nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    characteristics: Mapped[list[str]] = mapped_column(
        ARRAY(String),
        nullable=False,
        server_default="{}",
    )
    created_at: Mapped[datetime] = _created_at()


class TechnologyOption(RoadmapBase):
    """A candidate technology for implementing roadmap capabilities.

    Table: technology_options
    """

    __tablename__ = "technology_options"

    id: Mapped[str] = _uuid_pk()
    category: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    vendor: Mapped[str | None] = mapped_column(String(255), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    recommended: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default="false")
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = _created_at()


class ActivityLog(RoadmapBase):
    """Audit-trail entry written whenever a roadmap row changes.

    Table: activity_log
    """

    __tablename__ = "activity_log"

    id: Mapped[str] = _uuid_pk()
    user_name: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        comment="Display name of the acting user at write time",
    )
    table_name: Mapped[str] = mapped_column(String(100), nullable=False)
    record_id: Mapped[str] = mapped_column(String(64), nullable=False)
    action: Mapped[str] = mapped_column(String(20), nullable=False, comment="INSERT | UPDATE | DELETE")
    old_values: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True)
    new_values: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        index=True,
    )
