"""FastAPI dependencies for services and shared stores."""

from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.domain.services.lead_service import LeadService
from app.domain.services.reminder_service import ReminderService
from app.infrastructure.handoff_store import HandoffStore
from app.infrastructure.notifications import Notifier
from app.infrastructure.rejection_state_store import RejectionStateStore
from app.persistence.database import get_db


def get_notifier(request: Request) -> Notifier:
    """Notifier built at startup."""
    return request.app.state.notifier


def get_handoff_store(request: Request) -> HandoffStore:
    """Handoff store built at startup."""
    return request.app.state.handoff_store


def get_rejection_store(request: Request) -> RejectionStateStore:
    """Rejection state store built at startup."""
    return request.app.state.rejection_store


async def get_lead_service(
    db: Annotated[AsyncSession, Depends(get_db)],
    notifier: Annotated[Notifier, Depends(get_notifier)],
    handoff_store: Annotated[HandoffStore, Depends(get_handoff_store)],
    rejection_store: Annotated[RejectionStateStore, Depends(get_rejection_store)],
) -> LeadService:
    """Lead service bound to the request's session."""
    return LeadService(
        db,
        notifier=notifier,
        handoff_store=handoff_store,
        rejection_store=rejection_store,
    )


async def get_reminder_service(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> ReminderService:
    """Reminder service bound to the request's session."""
    return ReminderService(db)
