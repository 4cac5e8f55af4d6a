"""Worker for sending due onboarding reminders."""

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_notifier
from app.domain.services.reminder_service import ReminderService
from app.infrastructure.notifications import Notifier
from app.persistence.database import AsyncSessionLocal, get_db

logger = logging.getLogger(__name__)

router = APIRouter()


async def run_reminder_cycle(notifier: Notifier) -> dict[str, Any]:
    """Send reminders to every due contact using a fresh session.

    Entry point for the scheduler.
    """
    async with AsyncSessionLocal() as session:
        return await ReminderService(session).send_due_reminders(notifier)


@router.post("/reminders/run")
async def process_due_reminders(
    db: Annotated[AsyncSession, Depends(get_db)],
    notifier: Annotated[Notifier, Depends(get_notifier)],
) -> dict[str, Any]:
    """Run one reminder cycle on demand."""
    try:
        result = await ReminderService(db).send_due_reminders(notifier)
        logger.info(f"Reminder cycle result: {result}")
        return result
    except SQLAlchemyError as e:
        logger.error(f"Error running reminder cycle: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Reminder cycle failed: {str(e)}",
        )
