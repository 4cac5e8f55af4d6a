"""Reviewer API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends

from app.api.deps import get_lead_service
from app.api.schemas.leads import LeadResponse, RejectionReasonText
from app.domain.services.lead_service import LeadService

router = APIRouter()


@router.post("/{reviewer}/rejection-reason", response_model=LeadResponse)
async def submit_rejection_reason(
    reviewer: str,
    payload: RejectionReasonText,
    lead_service: Annotated[LeadService, Depends(get_lead_service)],
) -> LeadResponse:
    """Finish a pending rejection with the reviewer's typed reason."""
    lead = await lead_service.submit_rejection_reason(reviewer, payload.text)
    return LeadResponse.model_validate(lead)
