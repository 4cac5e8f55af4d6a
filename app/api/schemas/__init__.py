"""API schemas package."""

from app.api.schemas.contacts import (
    ContactDetailResponse,
    ContactMergeResponse,
    ContactResponse,
    LinkExternalIdentityRequest,
)
from app.api.schemas.leads import (
    DecisionRequest,
    ExternalIdentityFields,
    LeadFormFields,
    LeadResponse,
    LeadSubmitRequest,
    LeadSubmitResponse,
    RejectionReasonText,
    RejectionRequest,
    RejectionRequestResponse,
)
from app.api.schemas.reminders import DueRemindersResponse, ReminderStateResponse

__all__ = [
    "ContactDetailResponse",
    "ContactMergeResponse",
    "ContactResponse",
    "DecisionRequest",
    "DueRemindersResponse",
    "ExternalIdentityFields",
    "LeadFormFields",
    "LeadResponse",
    "LeadSubmitRequest",
    "LeadSubmitResponse",
    "LinkExternalIdentityRequest",
    "RejectionReasonText",
    "RejectionRequest",
    "RejectionRequestResponse",
    "ReminderStateResponse",
]
