"""Microsoft Teams incoming-webhook adapter."""

from typing import Any

import httpx

from roadmap_dashboard.observability import get_logger

logger = get_logger(__name__)


class TeamsWebhookNotifier:
    """Posts Adaptive Card messages to a Teams incoming webhook.

    Like the email sender, failures come back as ``{"success": False, ...}``
    instead of being raised.
    """

    def __init__(
        self,
        default_webhook_url: str = "",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._default_webhook_url = default_webhook_url
        self._timeout = timeout
        self._transport = transport

    async def send(self, card: dict[str, Any], webhook_url: str | None = None) -> dict[str, Any]:
        """Post one card.

        Args:
            card: Webhook message built by build_teams_card.
            webhook_url: Webhook overriding the configured default.

        Returns:
            {"success": True} on success, otherwise {"success": False, "error": <message>}.
        """
        url = webhook_url or self._default_webhook_url
        if not url:
            logger.warning("Teams notification skipped, webhook not configured")
            return {"success": False, "error": "Teams webhook not configured"}

        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.post(url, json=card)
        except httpx.HTTPError as exc:
            logger.error("Teams webhook request failed", error=str(exc))
            return {"success": False, "error": str(exc)}

        if response.is_error:
            logger.error("Teams webhook error", status_code=response.status_code, body=response.text)
            return {"success": False, "error": f"Teams webhook failed: {response.status_code}"}

        logger.info("Teams notification sent")
        return {"success": True}
