"""Lead request and response schemas."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from app.domain.models.lead_form import ExternalIdentity, LeadForm
from app.domain.models.lead_status import LeadStatus, ReviewOutcome, SubmissionCompleteness
from app.domain.models.rejection import RejectionReasonCode


class LeadFormFields(BaseModel):
    """Application form fields."""

    full_name: str = Field(..., min_length=2, max_length=255)
    phone_number: str = Field(..., min_length=9, max_length=50)
    location: Literal["Toshkent shahri", "Boshqa viloyatda"] | None = None
    company_type: str | None = None
    role_in_company: str | None = None
    interests: list[str] = Field(default_factory=list)
    company_description: str | None = None
    annual_turnover: str | None = None
    number_of_employees: str | None = None
    company_name: str | None = None
    locale: Literal["uz", "en", "ru"] | None = None

    def to_form(self) -> LeadForm:
        return LeadForm(**self.model_dump(include=set(LeadForm.__dataclass_fields__)))


class ExternalIdentityFields(BaseModel):
    """Chat account presented by the bot."""

    external_id: str = Field(..., min_length=1, max_length=64)
    handle: str | None = None
    first_name: str | None = None
    last_name: str | None = None

    def to_identity(self) -> ExternalIdentity:
        return ExternalIdentity(**self.model_dump())


class LeadSubmitRequest(LeadFormFields):
    """Web form submission."""

    completeness: SubmissionCompleteness = SubmissionCompleteness.FULL
    identity: ExternalIdentityFields | None = None


class LeadSubmitResponse(BaseModel):
    """Result of a submission."""

    lead_id: str
    contact_id: str
    status: LeadStatus
    is_returning: bool
    bot_url: str | None = None


class LeadResponse(BaseModel):
    """Lead response model."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    contact_id: str
    status: LeadStatus
    full_name: str
    phone_number: str
    location: str | None = None
    company_type: str | None = None
    role_in_company: str | None = None
    interests: list[str] | None = None
    company_description: str | None = None
    annual_turnover: str | None = None
    number_of_employees: str | None = None
    company_name: str | None = None
    decided_by: str | None = None
    decided_at: datetime | None = None
    decision_reason: str | None = None
    review_chat_id: str | None = None
    review_message_id: str | None = None
    created_at: datetime


class DecisionRequest(BaseModel):
    """Reviewer accept/reject decision."""

    outcome: ReviewOutcome
    decided_by: str = Field(..., min_length=1)
    reason: str | None = None


class RejectionRequest(BaseModel):
    """Reviewer picked a rejection reason button."""

    reviewer: str = Field(..., min_length=1)
    reason_code: RejectionReasonCode


class RejectionRequestResponse(BaseModel):
    """Either the rejected lead, or a prompt for the typed reason."""

    awaiting_reason: bool
    lead: LeadResponse | None = None


class RejectionReasonText(BaseModel):
    """Free-text reason typed by the reviewer."""

    text: str = Field(..., min_length=1)
