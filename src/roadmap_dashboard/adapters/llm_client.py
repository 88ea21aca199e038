"""Anthropic Messages API adapter for the chat assistant."""

from typing import Any

from anthropic import APIError, APIStatusError, AsyncAnthropic

from roadmap_dashboard.errors import UpstreamServiceError
from roadmap_dashboard.observability import get_logger

logger = get_logger(__name__)


class AnthropicLLMClient:
    """Thin async wrapper around ``AsyncAnthropic.messages.create``.

    Args:
        api_key: Anthropic API key.
        model: Model name sent with every request.
        max_tokens: Output token ceiling per request.
        client: Optional pre-built SDK client, mainly for tests.
    """

    def __init__(
        self,
        api_key: str,
        model: str,
        max_tokens: int = 4096,
        client: AsyncAnthropic | Any | None = None,
    ) -> None:
        self._client = client or AsyncAnthropic(api_key=api_key)
        self._model = model
        self._max_tokens = max_tokens

    async def create_message(
        self,
        system: str,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]],
    ) -> Any:
        """Send one Messages API request.

        Raises:
            UpstreamServiceError: If the API returns an error or is unreachable.
        """
        try:
            response = await self._client.messages.create(
                model=self._model,
                max_tokens=self._max_tokens,
                system=system,
                tools=tools,
                messages=messages,
            )
        except APIStatusError as exc:
            logger.error("Anthropic API error", status_code=exc.status_code, error=str(exc))
            raise UpstreamServiceError("anthropic", exc.status_code, str(exc)) from exc
        except APIError as exc:
            logger.error("Anthropic API unreachable", error=str(exc))
            raise UpstreamServiceError("anthropic", None, str(exc)) from exc

        logger.debug("Anthropic response received", stop_reason=response.stop_reason)
        return response
