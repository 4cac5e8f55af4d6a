"""Leads API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from app.api.deps import get_lead_service
from app.api.schemas.leads import (
    DecisionRequest,
    LeadFormFields,
    LeadResponse,
    LeadSubmitRequest,
    LeadSubmitResponse,
    RejectionRequest,
    RejectionRequestResponse,
)
from app.domain.services.lead_service import LeadService

router = APIRouter()


@router.post("", response_model=LeadSubmitResponse, status_code=status.HTTP_201_CREATED)
async def submit_lead(
    payload: LeadSubmitRequest,
    lead_service: Annotated[LeadService, Depends(get_lead_service)],
) -> LeadSubmitResponse:
    """Submit the web application form."""
    identity = payload.identity.to_identity() if payload.identity else None
    result = await lead_service.submit_lead(payload.to_form(), payload.completeness, identity)
    return LeadSubmitResponse(
        lead_id=result.lead_id,
        contact_id=result.contact_id,
        status=result.status,
        is_returning=result.is_returning,
        bot_url=result.bot_url,
    )


@router.get("/{lead_id}", response_model=LeadResponse)
async def get_lead(
    lead_id: str,
    lead_service: Annotated[LeadService, Depends(get_lead_service)],
) -> LeadResponse:
    """Get a lead."""
    lead = await lead_service.get_lead(lead_id)
    return LeadResponse.model_validate(lead)


@router.post("/{lead_id}/complete", response_model=LeadResponse)
async def complete_lead(
    lead_id: str,
    payload: LeadFormFields,
    lead_service: Annotated[LeadService, Depends(get_lead_service)],
) -> LeadResponse:
    """Supply the remaining fields of a partial lead."""
    lead = await lead_service.complete_lead(lead_id, payload.to_form())
    return LeadResponse.model_validate(lead)


@router.post("/{lead_id}/decision", response_model=LeadResponse)
async def decide_lead(
    lead_id: str,
    payload: DecisionRequest,
    lead_service: Annotated[LeadService, Depends(get_lead_service)],
) -> LeadResponse:
    """Accept or reject a lead."""
    lead = await lead_service.decide_lead(lead_id, payload.outcome, payload.decided_by, payload.reason)
    return LeadResponse.model_validate(lead)


@router.post("/{lead_id}/rejection", response_model=RejectionRequestResponse)
async def request_rejection(
    lead_id: str,
    payload: RejectionRequest,
    lead_service: Annotated[LeadService, Depends(get_lead_service)],
) -> RejectionRequestResponse:
    """Reject a lead with a predefined reason code.

    The "other" code returns awaiting_reason=true and leaves the lead as is
    until the reviewer sends the reason text.
    """
    result = await lead_service.request_rejection(lead_id, payload.reviewer, payload.reason_code)
    return RejectionRequestResponse(
        awaiting_reason=result.awaiting_reason,
        lead=LeadResponse.model_validate(result.lead) if result.lead else None,
    )
