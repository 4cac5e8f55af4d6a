"""Reminder service for progressive onboarding reminders."""

import logging
from collections.abc import Iterator
from datetime import timedelta
from functools import lru_cache
from itertools import islice

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import Clock, utc_now
from app.core.exceptions import NotFoundError
from app.infrastructure.notifications import Notifier, notify_safely
from app.persistence.database import transaction
from app.persistence.models.reminder_state import ReminderState
from app.persistence.repositories.contact_repository import ContactRepository
from app.persistence.repositories.reminder_state_repository import ReminderStateRepository

logger = logging.getLogger(__name__)

INITIAL_INTERVALS_DAYS = (3, 5, 7, 9, 13)
FIRST_INCREMENT_DAYS = 6
INCREMENT_GROWTH_DAYS = 2
REMINDER_INTERVAL_STEPS = 25


def reminder_intervals() -> Iterator[int]:
    """Yield reminder intervals in days.

    3, 5, 7, 9, 13, then each gap grows by two more days than the last:
    19, 27, 37, 49, ...
    """
    yield from INITIAL_INTERVALS_DAYS
    last = INITIAL_INTERVALS_DAYS[-1]
    increment = FIRST_INCREMENT_DAYS
    while True:
        last += increment
        increment += INCREMENT_GROWTH_DAYS
        yield last


@lru_cache(maxsize=1)
def _interval_table() -> tuple[int, ...]:
    return tuple(islice(reminder_intervals(), REMINDER_INTERVAL_STEPS))


def interval_days(index: int) -> int:
    """Interval after the reminder at the given zero-based position.

    Positions past the end of the table reuse its last interval.
    """
    table = _interval_table()
    if index < 0:
        index = 0
    return table[min(index, len(table) - 1)]


class ReminderService:
    """Service for scheduling onboarding reminders.

    Methods flush within the caller's transaction; only send_due_reminders
    commits, once per contact, so a sent reminder is recorded before the next
    due-set scan.
    """

    def __init__(self, session: AsyncSession, clock: Clock = utc_now) -> None:
        """Initialize reminder service."""
        self.session = session
        self.clock = clock
        self.contact_repo = ContactRepository(session)
        self.reminder_repo = ReminderStateRepository(session)

    async def schedule_first(self, contact_id: str) -> ReminderState | None:
        """Make a contact due for a reminder now.

        Creates the reminder state on first call; later calls only reset the
        due time. A contact that completed the onboarding goal is never
        rescheduled.

        Args:
            contact_id: Contact ID

        Returns:
            The reminder state, or None if the contact already completed the goal
            and has no state

        Raises:
            NotFoundError: If the contact does not exist
        """
        contact = await self.contact_repo.get_by_id(contact_id)
        if contact is None:
            raise NotFoundError(f"Contact {contact_id} not found", details={"contact_id": contact_id})

        state = await self.reminder_repo.get_by_contact(contact_id)
        if contact.goal_completed or (state is not None and state.goal_completed):
            logger.debug(f"Contact {contact_id} completed onboarding, not scheduling reminders")
            return state

        now = self.clock()
        if state is None:
            state = await self.reminder_repo.create(
                contact_id=contact_id,
                reminder_count=0,
                goal_completed=False,
                next_due_at=now,
            )
            logger.info(f"Scheduled first reminder for contact {contact_id}")
        else:
            state = await self.reminder_repo.update(state, next_due_at=now)
            logger.info(f"Reset reminder due time for contact {contact_id}")
        return state

    async def due_set(self) -> list[str]:
        """Contact IDs whose next reminder is due."""
        states = await self.reminder_repo.list_due(self.clock())
        return [state.contact_id for state in states]

    async def mark_sent(self, contact_id: str) -> ReminderState | None:
        """Record that a reminder went out and schedule the next one.

        No-op when the contact has no reminder state or completed the goal.

        Args:
            contact_id: Contact ID

        Returns:
            Updated reminder state, or None if nothing was changed
        """
        state = await self.reminder_repo.get_by_contact(contact_id)
        if state is None or state.goal_completed:
            logger.debug(f"No active reminder state for contact {contact_id}")
            return None

        now = self.clock()
        new_count = (state.reminder_count or 0) + 1
        days = interval_days(new_count - 1)
        state = await self.reminder_repo.update(
            state,
            reminder_count=new_count,
            last_sent_at=now,
            next_due_at=now + timedelta(days=days),
        )
        logger.info(f"Reminder {new_count} sent to contact {contact_id}, next in {days} days")
        return state

    async def mark_goal_completed(self, contact_id: str) -> None:
        """Stop reminders for a contact permanently.

        Idempotent. Also flags the contact itself so later scheduling
        attempts are ignored.

        Raises:
            NotFoundError: If the contact does not exist
        """
        contact = await self.contact_repo.get_by_id(contact_id)
        if contact is None:
            raise NotFoundError(f"Contact {contact_id} not found", details={"contact_id": contact_id})

        now = self.clock()
        state = await self.reminder_repo.get_by_contact(contact_id)
        if state is not None:
            await self.reminder_repo.update(
                state,
                goal_completed=True,
                next_due_at=None,
                completed_at=state.completed_at or now,
            )
        if not contact.goal_completed:
            await self.contact_repo.update(contact, goal_completed=True)
        logger.info(f"Contact {contact_id} completed onboarding goal")

    async def send_due_reminders(self, notifier: Notifier) -> dict:
        """Send a reminder to every due contact and reschedule each one.

        Delivery failures are logged; the contact is rescheduled anyway so a
        broken chat account does not get retried every run.

        Args:
            notifier: Outbound notifier

        Returns:
            Dict with counts of due, sent and failed reminders
        """
        contact_ids = await self.due_set()
        sent = 0
        failed = 0

        for contact_id in contact_ids:
            contact = await self.contact_repo.get_by_id(contact_id)
            if contact is None:
                continue
            delivered = await notify_safely("send_reminder", notifier.send_reminder(contact))
            if delivered:
                sent += 1
            else:
                failed += 1
            async with transaction(self.session):
                await self.mark_sent(contact_id)

        if contact_ids:
            logger.info(f"Reminder run complete: {len(contact_ids)} due, {sent} sent, {failed} failed")
        return {"due": len(contact_ids), "sent": sent, "failed": failed}
