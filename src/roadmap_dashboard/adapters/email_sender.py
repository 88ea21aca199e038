"""Resend transactional email adapter."""

from typing import Any

import httpx

from roadmap_dashboard.observability import get_logger

logger = get_logger(__name__)


class ResendEmailSender:
    """Sends HTML email through the Resend REST API.

    Failures are reported in the returned dict rather than raised, so a
    notification problem never fails the request that triggered it.
    """

    def __init__(
        self,
        api_key: str,
        from_address: str,
        api_url: str = "https://api.resend.com/emails",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._from_address = from_address
        self._api_url = api_url
        self._timeout = timeout
        self._transport = transport

    async def send(self, to: str, subject: str, html: str) -> dict[str, Any]:
        """Send one email.

        Args:
            to: Recipient address.
            subject: Subject line.
            html: Rendered HTML body.

        Returns:
            {"success": True, "id": <resend id>} on success, otherwise
            {"success": False, "error": <message>}.
        """
        if not self._api_key:
            logger.warning("Email send skipped, Resend API key not configured", to=to)
            return {"success": False, "error": "Email service not configured"}

        payload = {"from": self._from_address, "to": [to], "subject": subject, "html": html}
        headers = {"Authorization": f"Bearer {self._api_key}"}

        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.post(self._api_url, json=payload, headers=headers)
        except httpx.HTTPError as exc:
            logger.error("Resend request failed", error=str(exc))
            return {"success": False, "error": str(exc)}

        try:
            body = response.json()
        except ValueError:
            body = {}

        if response.is_error:
            message = body.get("message") if isinstance(body, dict) else None
            logger.error("Resend API error", status_code=response.status_code, error=message)
            return {"success": False, "error": message or f"HTTP {response.status_code}"}

        logger.info("Email sent", to=to, email_id=body.get("id"))
        return {"success": True, "id": body.get("id")}
