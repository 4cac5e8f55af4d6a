"""Contacts API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_lead_service
from app.api.schemas.contacts import (
    ContactDetailResponse,
    ContactMergeResponse,
    ContactResponse,
    LinkExternalIdentityRequest,
)
from app.core.exceptions import NotFoundError
from app.domain.services.lead_service import LeadService
from app.persistence.database import get_db
from app.persistence.repositories.contact_merge_log_repository import ContactMergeLogRepository
from app.persistence.repositories.contact_repository import ContactRepository
from app.persistence.repositories.lead_repository import LeadRepository

router = APIRouter()


@router.post("/link", response_model=ContactResponse)
async def link_external_identity(
    payload: LinkExternalIdentityRequest,
    lead_service: Annotated[LeadService, Depends(get_lead_service)],
) -> ContactResponse:
    """Bind a chat account when its user starts the bot."""
    contact = await lead_service.link_external_identity(
        payload.identity.to_identity(),
        lead_id=payload.lead_id,
        session_key=payload.session_key,
    )
    return ContactResponse.model_validate(contact)


@router.get("/{contact_id}", response_model=ContactDetailResponse)
async def get_contact(
    contact_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> ContactDetailResponse:
    """Get a contact with its latest lead and merge history."""
    contact = await ContactRepository(db).get_by_id(contact_id)
    if contact is None:
        raise NotFoundError(f"Contact {contact_id} not found", details={"contact_id": contact_id})

    leads = await LeadRepository(db).list_by_contact(contact_id)
    response = ContactDetailResponse.model_validate(contact)
    response.lead_count = len(leads)
    if leads:
        response.latest_lead_id = leads[-1].id
        response.latest_lead_status = leads[-1].status

    merges = await ContactMergeLogRepository(db).list_for_contact(contact_id)
    response.merges = [ContactMergeResponse.model_validate(merge) for merge in merges]
    return response
