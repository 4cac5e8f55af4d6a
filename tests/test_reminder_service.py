"""Tests for onboarding reminders."""

from datetime import timedelta
from itertools import islice
from unittest.mock import AsyncMock

import pytest

from app.core.exceptions import NotFoundError, NotifierError
from app.domain.services.reminder_service import (
    REMINDER_INTERVAL_STEPS,
    ReminderService,
    interval_days,
    reminder_intervals,
)

PHONE = "+998901234567"


@pytest.fixture
def reminder_service(db_session, clock):
    """Create a reminder service on the fake clock."""
    return ReminderService(db_session, clock=clock)


class TestIntervals:
    """Tests for the reminder interval sequence."""

    def test_sequence_prefix(self):
        """Test the first intervals of the sequence."""
        assert list(islice(reminder_intervals(), 9)) == [3, 5, 7, 9, 13, 19, 27, 37, 49]

    def test_intervals_strictly_increase(self):
        """Test that each interval is longer than the last."""
        values = list(islice(reminder_intervals(), REMINDER_INTERVAL_STEPS))
        assert all(later > earlier for earlier, later in zip(values, values[1:]))

    def test_index_past_table_reuses_last(self):
        """Test that late reminders keep the longest interval."""
        last = interval_days(REMINDER_INTERVAL_STEPS - 1)
        assert interval_days(REMINDER_INTERVAL_STEPS) == last
        assert interval_days(1000) == last


@pytest.mark.asyncio
class TestScheduling:
    """Tests for scheduling and recording reminders."""

    async def test_schedule_first_makes_contact_due(self, reminder_service, make_contact, clock):
        """Test that scheduling makes a contact due immediately."""
        contact = await make_contact(PHONE, external_id="555")

        state = await reminder_service.schedule_first(contact.id)

        assert state.reminder_count == 0
        assert state.next_due_at == clock.now
        assert await reminder_service.due_set() == [contact.id]

    async def test_schedule_first_is_idempotent(self, reminder_service, make_contact, clock):
        """Test that scheduling twice keeps one state and resets the due time."""
        contact = await make_contact(PHONE)
        first = await reminder_service.schedule_first(contact.id)
        await reminder_service.mark_sent(contact.id)

        clock.advance(hours=1)
        second = await reminder_service.schedule_first(contact.id)

        assert second.id == first.id
        assert second.reminder_count == 1
        assert second.next_due_at == clock.now

    async def test_schedule_unknown_contact(self, reminder_service):
        """Test that scheduling an unknown contact is NotFound."""
        with pytest.raises(NotFoundError):
            await reminder_service.schedule_first("missing")

    async def test_mark_sent_follows_sequence(self, reminder_service, make_contact, clock):
        """Test that each sent reminder pushes the next one further out."""
        contact = await make_contact(PHONE)
        await reminder_service.schedule_first(contact.id)

        for expected_count, days in enumerate([3, 5, 7, 9, 13, 19], start=1):
            state = await reminder_service.mark_sent(contact.id)
            assert state.reminder_count == expected_count
            assert state.last_sent_at == clock.now
            assert state.next_due_at == clock.now + timedelta(days=days)
            clock.advance(days=days)

    async def test_not_due_before_next_time(self, reminder_service, make_contact, clock):
        """Test that a rescheduled contact leaves the due set until its time."""
        contact = await make_contact(PHONE)
        await reminder_service.schedule_first(contact.id)
        await reminder_service.mark_sent(contact.id)

        clock.advance(days=2, hours=23)
        assert await reminder_service.due_set() == []

        clock.advance(hours=1)
        assert await reminder_service.due_set() == [contact.id]

    async def test_mark_sent_without_state_is_noop(self, reminder_service, make_contact):
        """Test that recording a reminder for an unscheduled contact does nothing."""
        contact = await make_contact(PHONE)
        assert await reminder_service.mark_sent(contact.id) is None


@pytest.mark.asyncio
class TestGoalCompletion:
    """Tests for the sticky goal-completed flag."""

    async def test_goal_completion_stops_reminders(self, reminder_service, make_contact, clock):
        """Test that a completed contact is never due again."""
        contact = await make_contact(PHONE)
        await reminder_service.schedule_first(contact.id)

        await reminder_service.mark_goal_completed(contact.id)

        assert contact.goal_completed is True
        assert await reminder_service.due_set() == []
        assert await reminder_service.mark_sent(contact.id) is None

        state = await reminder_service.schedule_first(contact.id)
        assert state.goal_completed is True
        assert state.next_due_at is None
        assert state.completed_at == clock.now

    async def test_goal_completion_is_idempotent(self, reminder_service, make_contact, clock):
        """Test that completing twice keeps the first completion time."""
        contact = await make_contact(PHONE)
        await reminder_service.schedule_first(contact.id)
        await reminder_service.mark_goal_completed(contact.id)
        completed_at = clock.now

        clock.advance(days=1)
        await reminder_service.mark_goal_completed(contact.id)

        state = await reminder_service.schedule_first(contact.id)
        assert state.completed_at == completed_at

    async def test_completed_contact_without_state_is_not_scheduled(self, reminder_service, make_contact):
        """Test that a contact flagged completed never gets a state."""
        contact = await make_contact(PHONE, goal_completed=True)
        assert await reminder_service.schedule_first(contact.id) is None
        assert await reminder_service.due_set() == []


@pytest.mark.asyncio
class TestSendDueReminders:
    """Tests for the reminder run."""

    async def test_sends_and_reschedules(self, reminder_service, make_contact, notifier, clock):
        """Test that every due contact gets one reminder."""
        first = await make_contact(PHONE, external_id="555")
        second = await make_contact("+998911111111", external_id="777")
        await reminder_service.schedule_first(first.id)
        await reminder_service.schedule_first(second.id)

        result = await reminder_service.send_due_reminders(notifier)

        assert result == {"due": 2, "sent": 2, "failed": 0}
        assert notifier.send_reminder.await_count == 2
        assert await reminder_service.due_set() == []

    async def test_failed_delivery_is_counted_and_rescheduled(self, reminder_service, make_contact, notifier):
        """Test that a blocked chat does not stall the run."""
        contact = await make_contact(PHONE, external_id="555")
        await reminder_service.schedule_first(contact.id)
        notifier.send_reminder = AsyncMock(side_effect=NotifierError("bot was blocked"))

        result = await reminder_service.send_due_reminders(notifier)

        assert result == {"due": 1, "sent": 0, "failed": 1}
        assert await reminder_service.due_set() == []

    async def test_nothing_due(self, reminder_service, notifier):
        """Test an empty run."""
        result = await reminder_service.send_due_reminders(notifier)
        assert result == {"due": 0, "sent": 0, "failed": 0}
        notifier.send_reminder.assert_not_awaited()
