"""Domain exceptions for the roadmap-dashboard service.

Core code raises these; the API layer translates them to HTTP status codes.
"""


class RoadmapError(Exception):
    """Base class for all roadmap-dashboard domain errors."""


class UnknownToolError(RoadmapError):
    """Raised when the chat assistant requests a tool that is not registered."""

    def __init__(self, tool_name: str) -> None:
        super().__init__(f"Unknown tool: {tool_name}")
        self.tool_name = tool_name


class ChatNotConfiguredError(RoadmapError):
    """Raised when the chat assistant is called without an Anthropic API key."""


class UpstreamServiceError(RoadmapError):
    """Raised when an external API such as Anthropic returns an error."""

    def __init__(self, service: str, status_code: int | None, message: str) -> None:
        prefix = f"{service} ({status_code})" if status_code is not None else service
        super().__init__(f"{prefix}: {message}")
        self.service = service
        self.status_code = status_code


class UnknownEmailTypeError(RoadmapError):
    """Raised when an email is requested for an unsupported template type."""

    def __init__(self, email_type: str) -> None:
        super().__init__(f"Unknown email type: {email_type}")
        self.email_type = email_type


class UnknownNotificationTypeError(RoadmapError):
    """Raised when a Teams notification is requested for an unsupported type."""

    def __init__(self, notification_type: str) -> None:
        super().__init__(f"Unknown notification type: {notification_type}")
        self.notification_type = notification_type
