"""Test fixtures for roadmap-dashboard.

Provides snapshot record factories, an in-memory preference storage, mock
repositories, and an async HTTP client with the FastAPI service dependencies
overridden so no database or external API is touched.
"""

from collections.abc import AsyncGenerator
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from roadmap_dashboard.api.router import (
    get_chat_service,
    get_notification_service,
    get_preferences_store,
    get_roadmap_service,
)
from roadmap_dashboard.core.chat_tools import ToolDispatcher
from roadmap_dashboard.core.dashboard import PreferencesStore
from roadmap_dashboard.core.domain import CapabilityRecord, MilestoneRecord, QuickWinRecord
from roadmap_dashboard.core.services import ChatService, NotificationService, RoadmapService
from roadmap_dashboard.main import app


class InMemoryPreferencesStorage:
    """Dict-backed stand-in for the JSON file storage."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self.values: dict[str, str] = dict(initial or {})
        self.save_count = 0

    def load(self, key: str) -> str | None:
        return self.values.get(key)

    def save(self, key: str, value: str) -> None:
        self.values[key] = value
        self.save_count += 1


# ---------------------------------------------------------------------------
# Snapshot data
# ---------------------------------------------------------------------------


@pytest.fixture()
def capabilities() -> list[CapabilityRecord]:
    """Three capabilities at different priorities and progress levels."""
    return [
        CapabilityRecord(
            id="cap-1",
            name="Scheduling",
            description="Shift and appointment scheduling",
            priority="CRITICAL",
            current_level=3,
            target_level=5,
            owner="Operations",
        ),
        CapabilityRecord(
            id="cap-2",
            name="Reporting",
            description="Operational reporting and dashboards",
            priority="HIGH",
            current_level=2,
            target_level=4,
        ),
        CapabilityRecord(
            id="cap-3",
            name="Inventory",
            description=None,
            priority="MEDIUM",
            current_level=1,
            target_level=1,
        ),
    ]


@pytest.fixture()
def milestones() -> list[MilestoneRecord]:
    """Milestones covering every status, with one unresolved dependency chain."""
    return [
        MilestoneRecord(id="ms-a", name="Baseline metrics", status="completed", capability_name="Reporting"),
        MilestoneRecord(
            id="ms-b",
            name="Automated reports",
            status="blocked",
            dependencies=("ms-a",),
            capability_name="Reporting",
        ),
        MilestoneRecord(
            id="ms-c",
            name="Executive dashboard",
            status="blocked",
            dependencies=("ms-a", "ms-b"),
            capability_name="Reporting",
            notes="Waiting on report automation",
        ),
        MilestoneRecord(id="ms-d", name="Scheduling rollout", status="in_progress", capability_name="Scheduling"),
        MilestoneRecord(id="ms-e", name="Inventory audit", status="not_started", capability_name="Inventory"),
    ]


@pytest.fixture()
def quick_wins() -> list[QuickWinRecord]:
    return [
        QuickWinRecord(id="qw-1", name="Shared report template", status="completed", owner="Finance"),
        QuickWinRecord(id="qw-2", name="Daily standup", status="in_progress"),
        QuickWinRecord(id="qw-3", name="Label printers", status="not_started", description="Reporting labels"),
    ]


# ---------------------------------------------------------------------------
# Repository mocks
# ---------------------------------------------------------------------------


@pytest.fixture()
def capability_repository(capabilities: list[CapabilityRecord]) -> AsyncMock:
    repo = AsyncMock()
    repo.list_capabilities.return_value = capabilities
    return repo


@pytest.fixture()
def milestone_repository(milestones: list[MilestoneRecord]) -> AsyncMock:
    repo = AsyncMock()
    repo.list_milestones.return_value = milestones
    return repo


@pytest.fixture()
def quick_win_repository(quick_wins: list[QuickWinRecord]) -> AsyncMock:
    repo = AsyncMock()
    repo.list_quick_wins.return_value = quick_wins
    return repo


@pytest.fixture()
def reference_repository() -> AsyncMock:
    repo = AsyncMock()
    repo.list_maturity_definitions.return_value = []
    repo.list_technology_options.return_value = []
    repo.list_activity.return_value = []
    return repo


@pytest.fixture()
def tool_dispatcher(
    capability_repository: AsyncMock,
    milestone_repository: AsyncMock,
    quick_win_repository: AsyncMock,
    reference_repository: AsyncMock,
) -> ToolDispatcher:
    return ToolDispatcher(
        capability_repository=capability_repository,
        milestone_repository=milestone_repository,
        quick_win_repository=quick_win_repository,
        reference_repository=reference_repository,
    )


@pytest.fixture()
def roadmap_service(
    capability_repository: AsyncMock,
    milestone_repository: AsyncMock,
    quick_win_repository: AsyncMock,
) -> RoadmapService:
    return RoadmapService(
        capability_repository=capability_repository,
        milestone_repository=milestone_repository,
        quick_win_repository=quick_win_repository,
    )


@pytest.fixture()
def preferences_storage() -> InMemoryPreferencesStorage:
    return InMemoryPreferencesStorage()


@pytest.fixture()
def preferences_store(preferences_storage: InMemoryPreferencesStorage) -> PreferencesStore:
    return PreferencesStore(storage=preferences_storage)


@pytest.fixture()
def llm_client() -> AsyncMock:
    """Mock Messages API client; tests set ``create_message.side_effect``."""
    return AsyncMock()


@pytest.fixture()
def email_sender() -> AsyncMock:
    sender = AsyncMock()
    sender.send.return_value = {"success": True, "id": "email-123"}
    return sender


@pytest.fixture()
def teams_notifier() -> AsyncMock:
    notifier = AsyncMock()
    notifier.send.return_value = {"success": True}
    return notifier


# ---------------------------------------------------------------------------
# HTTP client
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture()
async def api_client(
    roadmap_service: RoadmapService,
    tool_dispatcher: ToolDispatcher,
    llm_client: AsyncMock,
    email_sender: AsyncMock,
    teams_notifier: AsyncMock,
    preferences_store: PreferencesStore,
) -> AsyncGenerator[AsyncClient, None]:
    """Async test client with every service dependency overridden."""
    app.dependency_overrides[get_roadmap_service] = lambda: roadmap_service
    app.dependency_overrides[get_chat_service] = lambda: ChatService(
        llm_client=llm_client,
        dispatcher=tool_dispatcher,
        max_tool_rounds=3,
    )
    app.dependency_overrides[get_notification_service] = lambda: NotificationService(
        email_sender=email_sender,
        app_url="https://roadmap.example.com",
        teams_notifier=teams_notifier,
    )
    app.dependency_overrides[get_preferences_store] = lambda: preferences_store

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://testserver",
    ) as test_client:
        yield test_client

    app.dependency_overrides.clear()
