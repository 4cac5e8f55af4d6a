"""Reminder API endpoints."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_reminder_service
from app.api.schemas.reminders import DueRemindersResponse, ReminderStateResponse
from app.core.exceptions import TransientStoreError
from app.domain.services.reminder_service import ReminderService
from app.persistence.database import get_db, transaction

logger = logging.getLogger(__name__)

router = APIRouter()


@asynccontextmanager
async def _reminder_unit(db: AsyncSession, action: str) -> AsyncIterator[None]:
    """Commit reminder changes, reporting an unreachable store as transient."""
    try:
        async with transaction(db):
            yield
    except (OperationalError, InterfaceError) as e:
        logger.error(f"{action}: store unavailable: {e}", exc_info=True)
        raise TransientStoreError(f"{action} could not reach the store") from e


@router.get("/due", response_model=DueRemindersResponse)
async def get_due_reminders(
    db: Annotated[AsyncSession, Depends(get_db)],
    reminder_service: Annotated[ReminderService, Depends(get_reminder_service)],
) -> DueRemindersResponse:
    """List contacts whose reminder is due."""
    async with _reminder_unit(db, "due_set"):
        contact_ids = await reminder_service.due_set()
    return DueRemindersResponse(contact_ids=contact_ids)


@router.post("/{contact_id}/schedule", response_model=ReminderStateResponse | None)
async def schedule_first_reminder(
    contact_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    reminder_service: Annotated[ReminderService, Depends(get_reminder_service)],
) -> ReminderStateResponse | None:
    """Make a contact due for a reminder now."""
    async with _reminder_unit(db, "schedule_first"):
        state = await reminder_service.schedule_first(contact_id)
    return ReminderStateResponse.model_validate(state) if state else None


@router.post("/{contact_id}/sent", response_model=ReminderStateResponse | None)
async def record_reminder_sent(
    contact_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    reminder_service: Annotated[ReminderService, Depends(get_reminder_service)],
) -> ReminderStateResponse | None:
    """Record a sent reminder and schedule the next one."""
    async with _reminder_unit(db, "mark_sent"):
        state = await reminder_service.mark_sent(contact_id)
    return ReminderStateResponse.model_validate(state) if state else None


@router.post("/{contact_id}/goal-completed", status_code=status.HTTP_204_NO_CONTENT)
async def record_goal_completed(
    contact_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    reminder_service: Annotated[ReminderService, Depends(get_reminder_service)],
) -> None:
    """Stop reminders for a contact that joined the channel."""
    async with _reminder_unit(db, "mark_goal_completed"):
        await reminder_service.mark_goal_completed(contact_id)
