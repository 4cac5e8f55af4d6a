"""Lead status machine."""

from enum import Enum

from app.core.exceptions import InvalidTransitionError


class LeadStatus(str, Enum):
    """Lifecycle status of a lead."""

    PARTIAL = "PARTIAL"
    FULL = "FULL"
    FULL_WITHOUT_EXTERNAL_LINK = "FULL_WITHOUT_EXTERNAL_LINK"
    RETURNING = "RETURNING"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    ABANDONED_NO_SUBMIT = "ABANDONED_NO_SUBMIT"


class SubmissionCompleteness(str, Enum):
    """Completeness the form client declares when submitting."""

    PARTIAL = "PARTIAL"
    FULL = "FULL"
    FULL_WITHOUT_EXTERNAL_LINK = "FULL_WITHOUT_EXTERNAL_LINK"
    ABANDONED_NO_SUBMIT = "ABANDONED_NO_SUBMIT"


class ReviewOutcome(str, Enum):
    """Reviewer decision on a lead."""

    ACCEPT = "ACCEPT"
    REJECT = "REJECT"


ALLOWED_TRANSITIONS: dict[LeadStatus, frozenset[LeadStatus]] = {
    LeadStatus.PARTIAL: frozenset({LeadStatus.FULL}),
    LeadStatus.FULL: frozenset({LeadStatus.ACCEPTED, LeadStatus.REJECTED}),
    LeadStatus.FULL_WITHOUT_EXTERNAL_LINK: frozenset({LeadStatus.ACCEPTED, LeadStatus.REJECTED}),
    LeadStatus.RETURNING: frozenset({LeadStatus.ACCEPTED, LeadStatus.REJECTED}),
    LeadStatus.ACCEPTED: frozenset(),
    LeadStatus.REJECTED: frozenset(),
    LeadStatus.ABANDONED_NO_SUBMIT: frozenset(),
}

# Statuses that are posted to the review group when a lead enters them
REVIEWABLE_STATUSES = frozenset({
    LeadStatus.FULL,
    LeadStatus.FULL_WITHOUT_EXTERNAL_LINK,
    LeadStatus.RETURNING,
})

# Statuses whose submitter is sent a bot deep link
BOT_LINK_STATUSES = frozenset({LeadStatus.FULL, LeadStatus.RETURNING})

DECISION_STATUSES = {
    ReviewOutcome.ACCEPT: LeadStatus.ACCEPTED,
    ReviewOutcome.REJECT: LeadStatus.REJECTED,
}


def initial_status(completeness: SubmissionCompleteness, is_returning: bool) -> LeadStatus:
    """Derive the status a new lead is created with.

    Evaluated once at creation: abandoned beats "full without external link",
    which beats returning, which beats the declared completeness.

    Args:
        completeness: Completeness declared by the form client
        is_returning: Whether the resolved contact already owned a lead

    Returns:
        Initial lead status
    """
    if completeness == SubmissionCompleteness.ABANDONED_NO_SUBMIT:
        return LeadStatus.ABANDONED_NO_SUBMIT
    if completeness == SubmissionCompleteness.FULL_WITHOUT_EXTERNAL_LINK:
        return LeadStatus.FULL_WITHOUT_EXTERNAL_LINK
    if is_returning:
        return LeadStatus.RETURNING
    if completeness == SubmissionCompleteness.PARTIAL:
        return LeadStatus.PARTIAL
    return LeadStatus.FULL


def can_transition(current: LeadStatus | str, target: LeadStatus) -> bool:
    """Check whether a lead may move from current to target."""
    return target in ALLOWED_TRANSITIONS[LeadStatus(current)]


def ensure_transition(current: LeadStatus | str, target: LeadStatus) -> LeadStatus:
    """Validate a status change.

    Raises:
        InvalidTransitionError: If the change is not allowed
    """
    current = LeadStatus(current)
    if target not in ALLOWED_TRANSITIONS[current]:
        raise InvalidTransitionError(
            f"Lead cannot move from {current.value} to {target.value}",
            details={"current_status": current.value, "requested_status": target.value},
        )
    return target
