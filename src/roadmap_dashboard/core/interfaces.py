"""Abstract interfaces (Protocol classes) for the roadmap-dashboard service.

Services depend on these interfaces, not on concrete implementations.
Concrete SQLAlchemy repositories live in ``adapters/repositories.py``; the
LLM, email and Teams transports live in ``adapters/llm_client.py``,
``adapters/email_sender.py`` and ``adapters/teams_notifier.py``.
"""

from typing import Any, Protocol, runtime_checkable

from roadmap_dashboard.core.domain import (
    ActivityLogRecord,
    CapabilityRecord,
    MaturityDefinitionRecord,
    MilestoneRecord,
    QuickWinRecord,
    TechnologyOptionRecord,
)


@runtime_checkable
class ICapabilityRepository(Protocol):
    """Read access to the capabilities table."""

    async def list_capabilities(self, priority: str | None = None) -> list[CapabilityRecord]:
        """List capabilities ordered by priority, optionally filtered."""
        ...


@runtime_checkable
class IMilestoneRepository(Protocol):
    """Read access to the milestones table."""

    async def list_milestones(
        self,
        status: str | None = None,
        capability_id: str | None = None,
    ) -> list[MilestoneRecord]:
        """List milestones ordered by creation time, optionally filtered."""
        ...


@runtime_checkable
class IQuickWinRepository(Protocol):
    """Read access to the quick_wins table."""

    async def list_quick_wins(
        self,
        status: str | None = None,
        category: str | None = None,
    ) -> list[QuickWinRecord]:
        """List quick wins in board order, optionally filtered."""
        ...


@runtime_checkable
class IReferenceDataRepository(Protocol):
    """Read access to maturity definitions, technology options and activity."""

    async def list_maturity_definitions(self) -> list[MaturityDefinitionRecord]:
        """List maturity definitions ordered by level."""
        ...

    async def list_technology_options(self, category: str | None = None) -> list[TechnologyOptionRecord]:
        """List technology options ordered by name, optionally filtered."""
        ...

    async def list_activity(self, limit: int) -> list[ActivityLogRecord]:
        """List the most recent activity log entries, newest first."""
        ...


@runtime_checkable
class ILLMClient(Protocol):
    """Messages API client used by the chat assistant."""

    async def create_message(
        self,
        system: str,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]],
    ) -> Any:
        """Send one Messages API request and return the response object."""
        ...


@runtime_checkable
class IEmailSender(Protocol):
    """Transactional email transport."""

    async def send(self, to: str, subject: str, html: str) -> dict[str, Any]:
        """Send one email, returning {"success": bool, "id"|"error": ...}."""
        ...


@runtime_checkable
class ITeamsNotifier(Protocol):
    """Microsoft Teams webhook transport."""

    async def send(self, card: dict[str, Any], webhook_url: str | None = None) -> dict[str, Any]:
        """Post one card, returning {"success": bool, "error"?: ...}."""
        ...
