"""Adapters: SQLAlchemy repositories and external service clients."""

from roadmap_dashboard.adapters.email_sender import ResendEmailSender
from roadmap_dashboard.adapters.llm_client import AnthropicLLMClient
from roadmap_dashboard.adapters.preferences_storage import JsonFilePreferencesStorage
from roadmap_dashboard.adapters.repositories import (
    CapabilityRepository,
    MilestoneRepository,
    QuickWinRepository,
    ReferenceDataRepository,
)
from roadmap_dashboard.adapters.teams_notifier import TeamsWebhookNotifier

__all__ = [
    "AnthropicLLMClient",
    "CapabilityRepository",
    "JsonFilePreferencesStorage",
    "MilestoneRepository",
    "QuickWinRepository",
    "ReferenceDataRepository",
    "ResendEmailSender",
    "TeamsWebhookNotifier",
]
