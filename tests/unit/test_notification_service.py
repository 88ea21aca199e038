"""Unit tests for NotificationService Teams delivery."""

from unittest.mock import AsyncMock

import pytest

from roadmap_dashboard.core.dashboard import UserPreferences
from roadmap_dashboard.core.services import NotificationService
from roadmap_dashboard.core.teams_cards import TeamsNotificationData
from roadmap_dashboard.errors import UnknownNotificationTypeError

_HOOK = "https://teams.example.com/hook"


@pytest.fixture()
def notification_service(email_sender: AsyncMock, teams_notifier: AsyncMock) -> NotificationService:
    return NotificationService(
        email_sender=email_sender,
        app_url="https://roadmap.example.com",
        teams_notifier=teams_notifier,
    )


class TestTeamsDelivery:
    @pytest.mark.asyncio()
    async def test_send_posts_card(self, notification_service: NotificationService, teams_notifier: AsyncMock) -> None:
        result = await notification_service.send_teams("system", TeamsNotificationData(message="Deploy at 5"))

        assert result == {"success": True}
        card = teams_notifier.send.await_args.args[0]
        assert card["attachments"][0]["content"]["type"] == "AdaptiveCard"
        assert teams_notifier.send.await_args.kwargs == {"webhook_url": None}

    @pytest.mark.asyncio()
    async def test_send_without_notifier(self, email_sender: AsyncMock) -> None:
        service = NotificationService(email_sender=email_sender, app_url="https://roadmap.example.com")
        result = await service.send_teams("system", TeamsNotificationData())
        assert result == {"success": False, "error": "Teams webhook not configured"}

    @pytest.mark.asyncio()
    async def test_notify_uses_preference_webhook(
        self,
        notification_service: NotificationService,
        teams_notifier: AsyncMock,
    ) -> None:
        prefs = UserPreferences(teams_notifications=True, teams_webhook_url=_HOOK)

        result = await notification_service.notify_teams("blocked", TeamsNotificationData(), prefs)

        assert result == {"success": True}
        assert teams_notifier.send.await_args.kwargs == {"webhook_url": _HOOK}

    @pytest.mark.asyncio()
    async def test_notify_suppressed_by_preferences(
        self,
        notification_service: NotificationService,
        teams_notifier: AsyncMock,
    ) -> None:
        prefs = UserPreferences(teams_notifications=True, teams_webhook_url=_HOOK)

        result = await notification_service.notify_teams("activity", TeamsNotificationData(), prefs)

        assert result == {"success": False, "error": "Notification type disabled"}
        teams_notifier.send.assert_not_awaited()

    @pytest.mark.asyncio()
    async def test_notify_unknown_type(self, notification_service: NotificationService) -> None:
        with pytest.raises(UnknownNotificationTypeError):
            await notification_service.notify_teams("digest", TeamsNotificationData(), UserPreferences())
