"""Tests for the lead status machine."""

import pytest

from app.core.exceptions import InvalidTransitionError
from app.domain.models.lead_status import (
    LeadStatus,
    SubmissionCompleteness,
    can_transition,
    ensure_transition,
    initial_status,
)
from app.domain.models.rejection import RejectionReasonCode, resolve_reason_text


class TestInitialStatus:
    """Tests for status precedence at creation."""

    def test_abandoned_wins_over_returning(self):
        """Test that the abandoned flag beats everything."""
        assert initial_status(SubmissionCompleteness.ABANDONED_NO_SUBMIT, True) == LeadStatus.ABANDONED_NO_SUBMIT

    def test_full_without_link_wins_over_returning(self):
        """Test that 'full without external link' beats returning."""
        assert (
            initial_status(SubmissionCompleteness.FULL_WITHOUT_EXTERNAL_LINK, True)
            == LeadStatus.FULL_WITHOUT_EXTERNAL_LINK
        )

    def test_returning_wins_over_declared_completeness(self):
        """Test that a returning contact's partial or full lead is RETURNING."""
        assert initial_status(SubmissionCompleteness.PARTIAL, True) == LeadStatus.RETURNING
        assert initial_status(SubmissionCompleteness.FULL, True) == LeadStatus.RETURNING

    def test_declared_completeness_for_new_contact(self):
        """Test that a first-time submitter gets the declared status."""
        assert initial_status(SubmissionCompleteness.PARTIAL, False) == LeadStatus.PARTIAL
        assert initial_status(SubmissionCompleteness.FULL, False) == LeadStatus.FULL


class TestTransitions:
    """Tests for allowed status changes."""

    @pytest.mark.parametrize(
        "current",
        [LeadStatus.FULL, LeadStatus.FULL_WITHOUT_EXTERNAL_LINK, LeadStatus.RETURNING],
    )
    def test_reviewable_statuses_can_be_decided(self, current):
        """Test that reviewable leads accept both decisions."""
        assert can_transition(current, LeadStatus.ACCEPTED)
        assert can_transition(current, LeadStatus.REJECTED)

    @pytest.mark.parametrize(
        "current",
        [LeadStatus.ACCEPTED, LeadStatus.REJECTED, LeadStatus.ABANDONED_NO_SUBMIT],
    )
    def test_terminal_statuses_refuse_everything(self, current):
        """Test that terminal statuses cannot move."""
        for target in LeadStatus:
            assert can_transition(current, target) is False

    def test_partial_only_completes(self):
        """Test that a partial lead can only become full."""
        assert can_transition("PARTIAL", LeadStatus.FULL)
        assert not can_transition("PARTIAL", LeadStatus.ACCEPTED)

    def test_ensure_transition_raises_with_details(self):
        """Test that an illegal change reports both statuses."""
        with pytest.raises(InvalidTransitionError) as exc_info:
            ensure_transition("ACCEPTED", LeadStatus.REJECTED)
        assert exc_info.value.status_code == 409
        assert exc_info.value.details == {"current_status": "ACCEPTED", "requested_status": "REJECTED"}


class TestRejectionReasons:
    """Tests for predefined rejection reasons."""

    def test_codes_resolve_to_text(self):
        """Test the predefined reason texts."""
        assert resolve_reason_text(RejectionReasonCode.INCOMPLETE) == "Incomplete information"
        assert resolve_reason_text(RejectionReasonCode.NOT_QUALIFIED) == "Not qualified"
        assert resolve_reason_text(RejectionReasonCode.DUPLICATE) == "Duplicate application"

    def test_other_has_no_text(self):
        """Test that 'other' needs a typed reason."""
        assert resolve_reason_text(RejectionReasonCode.OTHER) is None
