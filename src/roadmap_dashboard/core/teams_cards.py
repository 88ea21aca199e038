"""Microsoft Teams notification cards.

Teams notifications mirror the email types and add ``activity`` for audit
log changes. Each one becomes an Adaptive Card message posted to an incoming
webhook. Whether a user receives a given type depends on their Teams
preferences.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from roadmap_dashboard.core.dashboard import UserPreferences
from roadmap_dashboard.core.domain import EntityType
from roadmap_dashboard.core.email_templates import BRAND_NAME, BRAND_SHORT, EmailData, entity_link, status_label
from roadmap_dashboard.errors import UnknownNotificationTypeError

ADAPTIVE_CARD_CONTENT_TYPE = "application/vnd.microsoft.card.adaptive"
ADAPTIVE_CARD_SCHEMA = "http://adaptivecards.io/schemas/adaptive-card.json"
ADAPTIVE_CARD_VERSION = "1.4"


class TeamsNotificationType(str, Enum):
    """Supported Teams notification kinds."""

    MENTION = "mention"
    BLOCKED = "blocked"
    STATUS_CHANGE = "status_change"
    COMMENT = "comment"
    ACTIVITY = "activity"
    SYSTEM = "system"


class TeamsNotificationData(EmailData):
    """Card variables: the email fields plus the audited table and action."""

    table_name: str | None = None
    action: str | None = None


# Adaptive Card colour per notification kind.
_ACCENT_COLORS: dict[TeamsNotificationType, str] = {
    TeamsNotificationType.MENTION: "accent",
    TeamsNotificationType.BLOCKED: "attention",
    TeamsNotificationType.STATUS_CHANGE: "good",
    TeamsNotificationType.COMMENT: "accent",
    TeamsNotificationType.ACTIVITY: "default",
    TeamsNotificationType.SYSTEM: "default",
}

_ACTION_VERBS: dict[str, str] = {
    "INSERT": "created",
    "UPDATE": "updated",
    "DELETE": "deleted",
}


@dataclass(frozen=True)
class _CardContent:
    title: str
    subtitle: str
    body: str
    button_text: str
    color: str
    quote: str | None = None
    facts: tuple[tuple[str, str], ...] = ()


def parse_notification_type(notification_type: str) -> TeamsNotificationType:
    """Return the enum member for a notification type name.

    Raises:
        UnknownNotificationTypeError: If the name is not a Teams notification type.
    """
    try:
        return TeamsNotificationType(notification_type)
    except ValueError as exc:
        raise UnknownNotificationTypeError(notification_type) from exc


def _table_label(table_name: str | None) -> str:
    return table_name.replace("_", " ", 1) if table_name else "record"


def _content(kind: TeamsNotificationType, data: TeamsNotificationData) -> _CardContent:
    actor = data.actor_name or "Someone"
    color = _ACCENT_COLORS[kind]

    if kind is TeamsNotificationType.MENTION:
        return _CardContent(
            title="You were mentioned",
            subtitle=f"{actor} mentioned you",
            body=f"You were mentioned in a comment on **{data.entity_name or 'an item'}**.",
            quote=data.message,
            button_text="View Comment",
            color=color,
        )
    if kind is TeamsNotificationType.BLOCKED:
        return _CardContent(
            title="Milestone Blocked",
            subtitle="Action Required",
            body=f"**{data.entity_name or 'A milestone'}** has been marked as blocked and requires attention.",
            facts=(("Previous Status", status_label(data.old_status)), ("Current Status", "BLOCKED")),
            button_text="View Milestone",
            color=color,
        )
    if kind is TeamsNotificationType.STATUS_CHANGE:
        return _CardContent(
            title="Status Updated",
            subtitle=data.entity_name or "Item updated",
            body=f"**{data.entity_name or 'An item'}** status has been updated.",
            facts=(
                ("Previous Status", status_label(data.old_status)),
                ("New Status", status_label(data.new_status)),
            ),
            button_text="View Details",
            color=color,
        )
    if kind is TeamsNotificationType.COMMENT:
        return _CardContent(
            title="New Comment",
            subtitle=f"{actor} commented",
            body=f"{actor} commented on **{data.entity_name or 'an item'}**.",
            quote=data.message,
            button_text="View Comment",
            color=color,
        )
    if kind is TeamsNotificationType.ACTIVITY:
        verb = _ACTION_VERBS.get(data.action or "UPDATE", "modified")
        table = _table_label(data.table_name)
        return _CardContent(
            title="Activity Update",
            subtitle=f"{table} {verb}",
            body=f"**{actor}** {verb} {table}: **{data.entity_name or 'item'}**.",
            button_text="View Activity Log",
            color=color,
        )
    return _CardContent(
        title=f"{BRAND_SHORT} {BRAND_NAME}",
        subtitle="System Notification",
        body=data.message or "You have a new notification.",
        button_text="Open Dashboard",
        color=color,
    )


def _action_url(kind: TeamsNotificationType, data: TeamsNotificationData, app_url: str) -> str:
    if kind is TeamsNotificationType.ACTIVITY:
        return f"{app_url.rstrip('/')}/activity-log"
    # Blocked alerts always concern a milestone.
    link_type = EntityType.MILESTONE.value if kind is TeamsNotificationType.BLOCKED else data.entity_type
    return entity_link(app_url, link_type, data.entity_id)


def build_teams_card(
    notification_type: str,
    data: TeamsNotificationData,
    app_url: str,
) -> dict[str, Any]:
    """Build the webhook message carrying one Adaptive Card.

    Args:
        notification_type: One of the TeamsNotificationType values.
        data: Card variables; every field is optional.
        app_url: Public base URL of the web application, for the card button.

    Returns:
        JSON-ready message dict for a Teams incoming webhook.

    Raises:
        UnknownNotificationTypeError: If notification_type is not supported.
    """
    kind = parse_notification_type(notification_type)
    content = _content(kind, data)

    body: list[dict[str, Any]] = [
        {
            "type": "ColumnSet",
            "columns": [
                {
                    "type": "Column",
                    "width": "auto",
                    "items": [
                        {
                            "type": "TextBlock",
                            "text": BRAND_SHORT,
                            "size": "Large",
                            "weight": "Bolder",
                            "color": content.color,
                        }
                    ],
                },
                {
                    "type": "Column",
                    "width": "stretch",
                    "verticalContentAlignment": "Center",
                    "items": [
                        {
                            "type": "TextBlock",
                            "text": BRAND_NAME,
                            "size": "Medium",
                            "weight": "Bolder",
                            "spacing": "None",
                        },
                        {
                            "type": "TextBlock",
                            "text": content.subtitle,
                            "size": "Small",
                            "isSubtle": True,
                            "spacing": "None",
                        },
                    ],
                },
            ],
        },
        {"type": "TextBlock", "text": " ", "separator": True},
        {
            "type": "TextBlock",
            "text": content.title,
            "size": "Large",
            "weight": "Bolder",
            "wrap": True,
            "color": "Attention" if content.color == "attention" else "Default",
        },
        {"type": "TextBlock", "text": content.body, "wrap": True, "spacing": "Small"},
    ]
    if content.quote:
        body.append(
            {
                "type": "Container",
                "style": "emphasis",
                "spacing": "Medium",
                "items": [
                    {
                        "type": "TextBlock",
                        "text": f'"{content.quote}"',
                        "wrap": True,
                        "isSubtle": True,
                        "size": "Small",
                    }
                ],
            }
        )
    if content.facts:
        body.append(
            {
                "type": "FactSet",
                "spacing": "Medium",
                "facts": [{"title": title, "value": value} for title, value in content.facts],
            }
        )

    return {
        "type": "message",
        "attachments": [
            {
                "contentType": ADAPTIVE_CARD_CONTENT_TYPE,
                "contentUrl": None,
                "content": {
                    "$schema": ADAPTIVE_CARD_SCHEMA,
                    "type": "AdaptiveCard",
                    "version": ADAPTIVE_CARD_VERSION,
                    "msteams": {"width": "Full"},
                    "body": body,
                    "actions": [
                        {
                            "type": "Action.OpenUrl",
                            "title": content.button_text,
                            "url": _action_url(kind, data, app_url),
                        }
                    ],
                },
            }
        ],
    }


def teams_delivery_blocked_reason(
    notification_type: TeamsNotificationType,
    preferences: UserPreferences,
) -> str | None:
    """Return why preferences suppress a Teams notification, or None to send it.

    Mentions, comments and system notices go out whenever Teams is enabled;
    the other kinds each have their own switch.
    """
    if not preferences.teams_notifications or not preferences.teams_webhook_url:
        return "Teams notifications not configured"

    switches: dict[TeamsNotificationType, bool] = {
        TeamsNotificationType.BLOCKED: preferences.teams_notify_on_blocked_items,
        TeamsNotificationType.STATUS_CHANGE: preferences.teams_notify_on_milestone_complete,
        TeamsNotificationType.ACTIVITY: preferences.teams_notify_on_activity_changes,
    }
    if not switches.get(notification_type, True):
        return "Notification type disabled"
    return None
