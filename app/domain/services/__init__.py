"""Domain services."""

from app.domain.services.contact_merge_service import ContactMergeService
from app.domain.services.identity_resolver import IdentityResolver
from app.domain.services.lead_service import LeadService
from app.domain.services.reminder_service import ReminderService

__all__ = ["ContactMergeService", "IdentityResolver", "LeadService", "ReminderService"]
