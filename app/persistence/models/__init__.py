"""Database models."""

from app.persistence.models.contact import Contact
from app.persistence.models.contact_merge_log import ContactMergeLog
from app.persistence.models.lead import Lead
from app.persistence.models.reminder_state import ReminderState

__all__ = [
    "Contact",
    "ContactMergeLog",
    "Lead",
    "ReminderState",
]
