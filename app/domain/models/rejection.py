"""Predefined rejection reasons offered to reviewers."""

from enum import Enum


class RejectionReasonCode(str, Enum):
    """Reason codes shown as buttons under a review message."""

    INCOMPLETE = "incomplete"
    NOT_QUALIFIED = "not_qualified"
    DUPLICATE = "duplicate"
    OTHER = "other"  # Reviewer types the reason as free text


REJECTION_REASON_TEXT: dict[RejectionReasonCode, str] = {
    RejectionReasonCode.INCOMPLETE: "Incomplete information",
    RejectionReasonCode.NOT_QUALIFIED: "Not qualified",
    RejectionReasonCode.DUPLICATE: "Duplicate application",
}


def resolve_reason_text(code: RejectionReasonCode) -> str | None:
    """Human-readable reason for a predefined code, None for OTHER."""
    return REJECTION_REASON_TEXT.get(code)
