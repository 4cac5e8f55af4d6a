"""Repository implementations."""

from app.persistence.repositories.base import BaseRepository
from app.persistence.repositories.contact_merge_log_repository import ContactMergeLogRepository
from app.persistence.repositories.contact_repository import ContactRepository
from app.persistence.repositories.lead_repository import LeadRepository
from app.persistence.repositories.reminder_state_repository import ReminderStateRepository

__all__ = [
    "BaseRepository",
    "ContactRepository",
    "ContactMergeLogRepository",
    "LeadRepository",
    "ReminderStateRepository",
]
