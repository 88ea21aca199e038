"""Notification email rendering.

Each email type has a Jinja2 template under ``templates/email/`` extending a
shared layout. Rendering is autoescaped, so user-supplied text such as
comment bodies cannot inject markup.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape
from pydantic import BaseModel

from roadmap_dashboard.core.domain import EntityType
from roadmap_dashboard.core.search import build_path
from roadmap_dashboard.errors import UnknownEmailTypeError

_TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates" / "email"

BRAND_SHORT = "SET"
BRAND_NAME = "VPC Roadmap"
FOOTER_LEGAL = "Southeast Toyota Distributors, LLC | Confidential"


class EmailType(str, Enum):
    """Supported notification email templates."""

    MENTION = "mention"
    BLOCKED = "blocked"
    STATUS_CHANGE = "status_change"
    COMMENT = "comment"
    SYSTEM = "system"


class EmailData(BaseModel):
    """Template variables for a notification email. Every field is optional."""

    recipient_name: str | None = None
    actor_name: str | None = None
    entity_name: str | None = None
    entity_type: str | None = None
    entity_id: str | None = None
    message: str | None = None
    old_status: str | None = None
    new_status: str | None = None


@dataclass(frozen=True)
class RenderedEmail:
    """A rendered subject line and HTML body."""

    subject: str
    html: str


_environment = Environment(
    loader=FileSystemLoader(str(_TEMPLATE_DIR)),
    autoescape=select_autoescape(["html"]),
    trim_blocks=True,
    lstrip_blocks=True,
)


def status_label(status: str | None) -> str:
    """Upper-case display label; only the first underscore becomes a space."""
    if not status:
        return "N/A"
    return status.replace("_", " ", 1).upper()


def entity_link(app_url: str, entity_type: str | None, entity_id: str | None) -> str:
    """Absolute deep link to the entity an email refers to.

    Unknown or missing entity types link to the capabilities page.
    """
    try:
        kind = EntityType(entity_type) if entity_type else EntityType.CAPABILITY
    except ValueError:
        kind = EntityType.CAPABILITY
    return f"{app_url.rstrip('/')}{build_path(kind, entity_id or '')}"


def _subject(email_type: EmailType, data: EmailData) -> str:
    if email_type is EmailType.MENTION:
        return f"{data.actor_name or 'Someone'} mentioned you in {data.entity_name or 'a discussion'}"
    if email_type is EmailType.BLOCKED:
        return f"Alert: {data.entity_name or 'A milestone'} has been blocked"
    if email_type is EmailType.STATUS_CHANGE:
        new_status = (data.new_status or "unknown").replace("_", " ", 1)
        return f"{data.entity_name or 'An item'} status changed to {new_status}"
    if email_type is EmailType.COMMENT:
        return f"New comment on {data.entity_name or 'an item'}"
    return data.message or "System Notification"


def render_email(
    email_type: str,
    data: EmailData,
    app_url: str,
) -> RenderedEmail:
    """Render the subject and HTML body for a notification email.

    Args:
        email_type: One of the EmailType values.
        data: Template variables.
        app_url: Public base URL of the web application, for deep links.

    Returns:
        RenderedEmail with subject and html.

    Raises:
        UnknownEmailTypeError: If email_type is not supported.
    """
    try:
        kind = EmailType(email_type)
    except ValueError as exc:
        raise UnknownEmailTypeError(email_type) from exc

    # Blocked alerts always concern a milestone.
    link_type = EntityType.MILESTONE.value if kind is EmailType.BLOCKED else data.entity_type

    template = _environment.get_template(f"{kind.value}.html")
    html = template.render(
        data=data,
        link=entity_link(app_url, link_type, data.entity_id),
        old_status_label=status_label(data.old_status),
        new_status_label=status_label(data.new_status),
        brand_short=BRAND_SHORT,
        brand_name=BRAND_NAME,
        footer_legal=FOOTER_LEGAL,
    )
    return RenderedEmail(subject=_subject(kind, data), html=html)
