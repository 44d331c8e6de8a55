"""DynamoDB repositories for data access."""

from folio.repositories.base import BaseRepository, get_table
from folio.repositories.interaction import InteractionRepository
from folio.repositories.lead import LeadRepository
from folio.repositories.page_view import PageViewRepository
from folio.repositories.session import SessionRepository
from folio.repositories.settings import SettingsRepository

__all__ = [
    "BaseRepository",
    "get_table",
    "InteractionRepository",
    "LeadRepository",
    "PageViewRepository",
    "SessionRepository",
    "SettingsRepository",
]
