"""Tests for lead intake and review decisions."""

from unittest.mock import AsyncMock

import pytest
from sqlalchemy import select

from app.core.exceptions import (
    InvalidTransitionError,
    NotFoundError,
    NotifierError,
    TransientStoreError,
    ValidationFailedError,
)
from app.domain.models.lead_form import LeadForm
from app.domain.models.lead_status import LeadStatus, ReviewOutcome, SubmissionCompleteness
from app.domain.models.rejection import RejectionReasonCode
from app.domain.models.resolution import NewContact
from app.persistence.models.contact import Contact
from app.persistence.models.reminder_state import ReminderState
from app.settings import settings

PHONE = "+998901234567"


def _form(**overrides) -> LeadForm:
    data = {
        "full_name": "Aziz Karimov",
        "phone_number": "90 123 45 67",
        "location": "Toshkent shahri",
        "company_name": "Karimov Trade",
        "interests": ["export"],
    }
    data.update(overrides)
    return LeadForm(**data)


@pytest.mark.asyncio
class TestSubmitLead:
    """Tests for web form submissions."""

    async def test_new_full_submission_is_posted_for_review(self, db_session, lead_service, notifier):
        """Test that a first full submission creates a contact and a FULL lead."""
        result = await lead_service.submit_lead(_form(), SubmissionCompleteness.FULL)

        assert result.status == LeadStatus.FULL
        assert result.is_returning is False
        contact = await db_session.get(Contact, result.contact_id)
        assert contact.phone == PHONE

        notifier.post_for_review.assert_awaited_once()
        lead = await lead_service.get_lead(result.lead_id)
        assert lead.phone_number == PHONE
        assert lead.review_chat_id == "-100200"
        assert lead.review_message_id == "42"

    async def test_partial_submission_is_not_posted(self, lead_service, notifier):
        """Test that a partial lead waits for completion."""
        result = await lead_service.submit_lead(_form(), SubmissionCompleteness.PARTIAL)

        assert result.status == LeadStatus.PARTIAL
        notifier.post_for_review.assert_not_awaited()

    async def test_abandoned_submission_is_not_posted(self, lead_service, notifier):
        """Test that abandoned forms are kept but not reviewed."""
        result = await lead_service.submit_lead(_form(), SubmissionCompleteness.ABANDONED_NO_SUBMIT)

        assert result.status == LeadStatus.ABANDONED_NO_SUBMIT
        notifier.post_for_review.assert_not_awaited()

    async def test_second_submission_is_returning(self, lead_service):
        """Test that a known phone with prior leads yields RETURNING."""
        first = await lead_service.submit_lead(_form(), SubmissionCompleteness.FULL)
        second = await lead_service.submit_lead(
            _form(phone_number="+998 90 123 45 67"), SubmissionCompleteness.PARTIAL
        )

        assert second.status == LeadStatus.RETURNING
        assert second.is_returning is True
        assert second.contact_id == first.contact_id

    async def test_full_without_link_beats_returning(self, lead_service):
        """Test the status precedence for returning contacts without a chat link."""
        await lead_service.submit_lead(_form(), SubmissionCompleteness.FULL)
        result = await lead_service.submit_lead(_form(), SubmissionCompleteness.FULL_WITHOUT_EXTERNAL_LINK)
        assert result.status == LeadStatus.FULL_WITHOUT_EXTERNAL_LINK

    async def test_bot_url_for_linkable_statuses(self, lead_service, monkeypatch):
        """Test that full leads get a deep link into the bot."""
        monkeypatch.setattr(settings, "telegram_bot_url", "https://t.me/leadflow_bot")

        full = await lead_service.submit_lead(_form(), SubmissionCompleteness.FULL)
        no_link = await lead_service.submit_lead(_form(), SubmissionCompleteness.FULL_WITHOUT_EXTERNAL_LINK)

        assert full.bot_url == f"https://t.me/leadflow_bot?start={full.lead_id}"
        assert no_link.bot_url is None

    async def test_invalid_form_is_rejected(self, lead_service):
        """Test that a short name fails validation before any write."""
        with pytest.raises(ValidationFailedError):
            await lead_service.submit_lead(_form(full_name="A"), SubmissionCompleteness.FULL)

    async def test_short_phone_is_rejected(self, lead_service):
        """Test that a phone with fewer than nine digits fails validation."""
        with pytest.raises(ValidationFailedError) as exc_info:
            await lead_service.submit_lead(_form(phone_number="12345"), SubmissionCompleteness.FULL)
        assert exc_info.value.details == {"field": "phone_number"}

    async def test_notifier_failure_does_not_fail_submission(self, lead_service, notifier):
        """Test that a review post failure leaves the lead committed."""
        notifier.post_for_review = AsyncMock(side_effect=NotifierError("Telegram down"))

        result = await lead_service.submit_lead(_form(), SubmissionCompleteness.FULL)

        lead = await lead_service.get_lead(result.lead_id)
        assert lead.status == LeadStatus.FULL.value
        assert lead.review_message_id is None


@pytest.mark.asyncio
class TestIdentityRace:
    """Tests for retrying on unique constraint races."""

    async def test_race_is_retried_and_resolves_to_existing_contact(self, lead_service, make_contact):
        """Test that a stale 'new contact' answer is retried against fresh data."""
        existing = await make_contact(PHONE)
        existing_id = existing.id

        real_resolve = lead_service.resolver.resolve
        calls = []

        async def stale_then_real(phone, external_id=None):
            calls.append(phone)
            if len(calls) == 1:
                return NewContact()
            return await real_resolve(phone, external_id)

        lead_service.resolver.resolve = stale_then_real

        result = await lead_service.submit_lead(_form(), SubmissionCompleteness.FULL)

        assert len(calls) == 2
        assert result.contact_id == existing_id

    async def test_race_gives_up_after_max_retries(self, lead_service, make_contact):
        """Test that a persistent conflict surfaces as a transient error."""
        await make_contact(PHONE)
        lead_service.resolver.resolve = AsyncMock(return_value=NewContact())

        with pytest.raises(TransientStoreError) as exc_info:
            await lead_service.submit_lead(_form(), SubmissionCompleteness.FULL)

        assert exc_info.value.details == {"attempts": 3}
        assert lead_service.resolver.resolve.await_count == 3


@pytest.mark.asyncio
class TestCompleteLead:
    """Tests for completing partial leads."""

    async def test_partial_becomes_full_and_is_posted(self, lead_service, notifier):
        """Test that completing a partial lead moves it to FULL."""
        submitted = await lead_service.submit_lead(_form(company_name=None), SubmissionCompleteness.PARTIAL)

        lead = await lead_service.complete_lead(submitted.lead_id, _form(annual_turnover="1-5 mln"))

        assert lead.status == LeadStatus.FULL.value
        assert lead.company_name == "Karimov Trade"
        assert lead.annual_turnover == "1-5 mln"
        notifier.post_for_review.assert_awaited_once()

    async def test_full_lead_cannot_be_completed(self, lead_service):
        """Test that only partial leads accept completion."""
        submitted = await lead_service.submit_lead(_form(), SubmissionCompleteness.FULL)
        with pytest.raises(InvalidTransitionError):
            await lead_service.complete_lead(submitted.lead_id, _form())

    async def test_phone_cannot_change(self, lead_service):
        """Test that completion keeps the original phone."""
        submitted = await lead_service.submit_lead(_form(), SubmissionCompleteness.PARTIAL)
        with pytest.raises(ValidationFailedError):
            await lead_service.complete_lead(submitted.lead_id, _form(phone_number="+998911111111"))

    async def test_missing_lead(self, lead_service):
        """Test that completing an unknown lead is NotFound."""
        with pytest.raises(NotFoundError):
            await lead_service.complete_lead("missing", _form())


@pytest.mark.asyncio
class TestDecideLead:
    """Tests for reviewer decisions."""

    async def test_accept_records_decision_and_notifies(self, db_session, lead_service, notifier, clock):
        """Test that an accept is recorded once and sent out."""
        submitted = await lead_service.submit_lead(_form(), SubmissionCompleteness.FULL)

        lead = await lead_service.decide_lead(submitted.lead_id, ReviewOutcome.ACCEPT, "reviewer_1")

        assert lead.status == LeadStatus.ACCEPTED.value
        assert lead.decided_by == "reviewer_1"
        assert lead.decided_at == clock.now
        notifier.update_review_message.assert_awaited_once()
        notifier.notify_decision.assert_awaited_once()

        state = (await db_session.execute(select(ReminderState))).scalar_one()
        assert state.contact_id == submitted.contact_id
        assert state.next_due_at == clock.now

    async def test_second_decision_is_refused(self, lead_service):
        """Test that a decided lead stays decided."""
        submitted = await lead_service.submit_lead(_form(), SubmissionCompleteness.FULL)
        await lead_service.decide_lead(submitted.lead_id, ReviewOutcome.ACCEPT, "reviewer_1")

        with pytest.raises(InvalidTransitionError):
            await lead_service.decide_lead(submitted.lead_id, ReviewOutcome.REJECT, "reviewer_2", "Late")

        lead = await lead_service.get_lead(submitted.lead_id)
        assert lead.status == LeadStatus.ACCEPTED.value
        assert lead.decided_by == "reviewer_1"

    async def test_reject_requires_reason(self, lead_service):
        """Test that an empty rejection reason is refused."""
        submitted = await lead_service.submit_lead(_form(), SubmissionCompleteness.FULL)
        with pytest.raises(ValidationFailedError):
            await lead_service.decide_lead(submitted.lead_id, ReviewOutcome.REJECT, "reviewer_1", "  ")

    async def test_partial_lead_cannot_be_decided(self, lead_service):
        """Test that partial leads are not reviewable."""
        submitted = await lead_service.submit_lead(_form(), SubmissionCompleteness.PARTIAL)
        with pytest.raises(InvalidTransitionError):
            await lead_service.decide_lead(submitted.lead_id, ReviewOutcome.ACCEPT, "reviewer_1")

    async def test_notifier_failure_after_decision(self, lead_service, notifier):
        """Test that a failed decision message keeps the decision."""
        notifier.notify_decision = AsyncMock(side_effect=NotifierError("blocked by user"))
        submitted = await lead_service.submit_lead(_form(), SubmissionCompleteness.FULL)

        lead = await lead_service.decide_lead(submitted.lead_id, ReviewOutcome.ACCEPT, "reviewer_1")

        assert lead.status == LeadStatus.ACCEPTED.value

    async def test_goal_completed_contact_gets_no_reminder(self, db_session, lead_service, make_contact, make_lead):
        """Test that a contact who already joined is not scheduled."""
        contact = await make_contact(PHONE, goal_completed=True)
        lead = await make_lead(contact)

        await lead_service.decide_lead(lead.id, ReviewOutcome.ACCEPT, "reviewer_1")

        states = (await db_session.execute(select(ReminderState))).scalars().all()
        assert states == []


@pytest.mark.asyncio
class TestRejectionReasons:
    """Tests for the reason picker flow."""

    async def test_predefined_reason_rejects_immediately(self, lead_service):
        """Test that a predefined code rejects with its text."""
        submitted = await lead_service.submit_lead(_form(), SubmissionCompleteness.FULL)

        result = await lead_service.request_rejection(
            submitted.lead_id, "reviewer_1", RejectionReasonCode.DUPLICATE
        )

        assert result.awaiting_reason is False
        assert result.lead.status == LeadStatus.REJECTED.value
        assert result.lead.decision_reason == "Duplicate application"

    async def test_other_waits_for_typed_reason(self, lead_service, rejection_store):
        """Test that 'other' leaves the lead pending until text arrives."""
        submitted = await lead_service.submit_lead(_form(), SubmissionCompleteness.FULL)

        result = await lead_service.request_rejection(submitted.lead_id, "reviewer_1", RejectionReasonCode.OTHER)

        assert result.awaiting_reason is True
        assert result.lead is None
        lead = await lead_service.get_lead(submitted.lead_id)
        assert lead.status == LeadStatus.FULL.value

        lead = await lead_service.submit_rejection_reason("reviewer_1", "Outside our region")

        assert lead.status == LeadStatus.REJECTED.value
        assert lead.decision_reason == "Outside our region"
        assert await rejection_store.get("reviewer_1") is None

    async def test_new_pick_replaces_pending_other(self, lead_service):
        """Test that a reviewer's pending state is per reviewer and replaced by a new pick."""
        first = await lead_service.submit_lead(_form(), SubmissionCompleteness.FULL)
        second = await lead_service.submit_lead(
            _form(phone_number="+998911111111"), SubmissionCompleteness.FULL
        )

        await lead_service.request_rejection(first.lead_id, "reviewer_1", RejectionReasonCode.OTHER)
        await lead_service.request_rejection(second.lead_id, "reviewer_1", RejectionReasonCode.OTHER)
        lead = await lead_service.submit_rejection_reason("reviewer_1", "Not a fit")

        assert lead.id == second.lead_id
        untouched = await lead_service.get_lead(first.lead_id)
        assert untouched.status == LeadStatus.FULL.value

    async def test_reason_without_pending_state(self, lead_service):
        """Test that a stray reason text is NotFound."""
        with pytest.raises(NotFoundError):
            await lead_service.submit_rejection_reason("reviewer_1", "Anything")

    async def test_other_on_decided_lead_is_refused(self, lead_service, rejection_store):
        """Test that 'other' cannot start on a decided lead."""
        submitted = await lead_service.submit_lead(_form(), SubmissionCompleteness.FULL)
        await lead_service.decide_lead(submitted.lead_id, ReviewOutcome.ACCEPT, "reviewer_1")

        with pytest.raises(InvalidTransitionError):
            await lead_service.request_rejection(submitted.lead_id, "reviewer_2", RejectionReasonCode.OTHER)
        assert await rejection_store.get("reviewer_2") is None
