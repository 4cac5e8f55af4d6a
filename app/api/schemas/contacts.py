"""Contact request and response schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, model_validator

from app.api.schemas.leads import ExternalIdentityFields


class LinkExternalIdentityRequest(BaseModel):
    """Bot start event carrying an optional lead id or handoff key."""

    identity: ExternalIdentityFields
    lead_id: str | None = None
    session_key: str | None = None

    @model_validator(mode="after")
    def check_single_reference(self) -> "LinkExternalIdentityRequest":
        if self.lead_id and self.session_key:
            raise ValueError("Provide either lead_id or session_key, not both")
        return self


class ContactResponse(BaseModel):
    """Contact response model."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    phone: str
    external_id: str | None = None
    external_handle: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    locale: str
    goal_completed: bool
    created_at: datetime


class ContactMergeResponse(BaseModel):
    """A contact that was folded into this one."""

    model_config = ConfigDict(from_attributes=True)

    loser_contact_id: str
    reason: str
    leads_moved: int
    merged_at: datetime


class ContactDetailResponse(ContactResponse):
    """Contact with the status of its most recent lead."""

    lead_count: int = 0
    latest_lead_id: str | None = None
    latest_lead_status: str | None = None
    merges: list[ContactMergeResponse] = []
