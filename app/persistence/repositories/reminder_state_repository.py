"""Reminder state repository."""

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.persistence.models.reminder_state import ReminderState
from app.persistence.repositories.base import BaseRepository


class ReminderStateRepository(BaseRepository[ReminderState]):
    """Repository for ReminderState entities."""

    def __init__(self, session: AsyncSession):
        """Initialize reminder state repository."""
        super().__init__(ReminderState, session)

    async def get_by_contact(self, contact_id: str) -> ReminderState | None:
        """Get the reminder state for a contact."""
        stmt = select(ReminderState).where(ReminderState.contact_id == contact_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_due(self, now: datetime, limit: int = 500) -> list[ReminderState]:
        """List states whose next reminder is due.

        Args:
            now: Current time
            limit: Maximum rows to return

        Returns:
            Due states, most overdue first
        """
        stmt = (
            select(ReminderState)
            .where(
                ReminderState.goal_completed.is_(False),
                ReminderState.next_due_at.is_not(None),
                ReminderState.next_due_at <= now,
            )
            .order_by(ReminderState.next_due_at)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
