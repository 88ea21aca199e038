"""SQLAlchemy repositories for the roadmap-dashboard service.

Each repository reads one table (or a small join) and returns frozen
snapshot records from ``core.domain``; ORM instances never leave this
module. All queries are parameterised.
"""

from sqlalchemy import case, select
from sqlalchemy.ext.asyncio import AsyncSession

from roadmap_dashboard.core.domain import (
    ActivityLogRecord,
    CapabilityRecord,
    MaturityDefinitionRecord,
    MilestoneRecord,
    Priority,
    QuickWinRecord,
    TechnologyOptionRecord,
)
from roadmap_dashboard.core.models import (
    ActivityLog,
    Capability,
    MaturityDefinition,
    Milestone,
    QuickWin,
    TechnologyOption,
)
from roadmap_dashboard.observability import get_logger

logger = get_logger(__name__)

_PRIORITY_RANK = case(
    {priority.value: rank for rank, priority in enumerate(Priority)},
    value=Capability.priority,
    else_=len(Priority),
)


class CapabilityRepository:
    """Reads capabilities, most urgent priority first."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialise with an async database session.

        Args:
            session: SQLAlchemy async session.
        """
        self._session = session

    async def list_capabilities(self, priority: str | None = None) -> list[CapabilityRecord]:
        """List capabilities ordered by priority then name.

        Args:
            priority: Optional priority filter (CRITICAL, HIGH, MEDIUM, LOW).

        Returns:
            List of CapabilityRecord snapshots.
        """
        query = select(Capability).order_by(_PRIORITY_RANK, Capability.name)
        if priority:
            query = query.where(Capability.priority == priority)

        result = await self._session.execute(query)
        records = [
            CapabilityRecord(
                id=str(row.id),
                name=row.name,
                description=row.description,
                priority=row.priority,
                current_level=row.current_level,
                target_level=row.target_level,
                owner=row.owner,
            )
            for row in result.scalars().all()
        ]
        logger.debug("Capabilities loaded", count=len(records), priority=priority)
        return records


class MilestoneRepository:
    """Reads milestones joined with their capability's name."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list_milestones(
        self,
        status: str | None = None,
        capability_id: str | None = None,
    ) -> list[MilestoneRecord]:
        """List milestones in creation order.

        Args:
            status: Optional status filter.
            capability_id: Optional owning-capability filter.

        Returns:
            List of MilestoneRecord snapshots. A NULL dependency array
            becomes an empty tuple.
        """
        query = (
            select(Milestone, Capability.name)
            .outerjoin(Capability, Milestone.capability_id == Capability.id)
            .order_by(Milestone.created_at, Milestone.id)
        )
        if status:
            query = query.where(Milestone.status == status)
        if capability_id:
            query = query.where(Milestone.capability_id == capability_id)

        result = await self._session.execute(query)
        records = [
            MilestoneRecord(
                id=str(milestone.id),
                name=milestone.name,
                status=milestone.status,
                dependencies=tuple(str(dep) for dep in milestone.dependencies or ()),
                description=milestone.description,
                notes=milestone.notes,
                capability_id=str(milestone.capability_id) if milestone.capability_id else None,
                capability_name=capability_name,
            )
            for milestone, capability_name in result.all()
        ]
        logger.debug("Milestones loaded", count=len(records), status=status, capability_id=capability_id)
        return records


class QuickWinRepository:
    """Reads quick wins in board order."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list_quick_wins(
        self,
        status: str | None = None,
        category: str | None = None,
    ) -> list[QuickWinRecord]:
        """List quick wins ordered by their board position.

        Args:
            status: Optional status filter.
            category: Optional category filter.

        Returns:
            List of QuickWinRecord snapshots.
        """
        query = select(QuickWin).order_by(QuickWin.order, QuickWin.created_at)
        if status:
            query = query.where(QuickWin.status == status)
        if category:
            query = query.where(QuickWin.category == category)

        result = await self._session.execute(query)
        return [
            QuickWinRecord(
                id=str(row.id),
                name=row.name,
                description=row.description,
                owner=row.owner,
                status=row.status,
                category=row.category,
                capability_id=str(row.capability_id) if row.capability_id else None,
                progress_percent=row.progress_percent,
            )
            for row in result.scalars().all()
        ]


class ReferenceDataRepository:
    """Reads the maturity ladder, technology options and the activity log."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list_maturity_definitions(self) -> list[MaturityDefinitionRecord]:
        result = await self._session.execute(select(MaturityDefinition).order_by(MaturityDefinition.level))
        return [
            MaturityDefinitionRecord(
                level=row.level,
                name=row.name,
                description=row.description,
                characteristics=tuple(row.characteristics or ()),
            )
            for row in result.scalars().all()
        ]

    async def list_technology_options(self, category: str | None = None) -> list[TechnologyOptionRecord]:
        query = select(TechnologyOption).order_by(TechnologyOption.category, TechnologyOption.name)
        if category:
            query = query.where(TechnologyOption.category == category)

        result = await self._session.execute(query)
        return [
            TechnologyOptionRecord(
                id=str(row.id),
                category=row.category,
                name=row.name,
                vendor=row.vendor,
                description=row.description,
                recommended=row.recommended,
                notes=row.notes,
            )
            for row in result.scalars().all()
        ]

    async def list_activity(self, limit: int) -> list[ActivityLogRecord]:
        """Return the most recent activity entries, newest first.

        Args:
            limit: Maximum number of entries.

        Returns:
            List of ActivityLogRecord snapshots.
        """
        result = await self._session.execute(
            select(ActivityLog).order_by(ActivityLog.created_at.desc()).limit(limit)
        )
        return [
            ActivityLogRecord(
                id=str(row.id),
                table_name=row.table_name,
                record_id=row.record_id,
                action=row.action,
                created_at=row.created_at,
                user_name=row.user_name,
                new_values=dict(row.new_values or {}),
            )
            for row in result.scalars().all()
        ]
