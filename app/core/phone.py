"""Phone number utilities for consistent handling across the application."""

import re

DEFAULT_COUNTRY_CODE = "998"
NATIONAL_NUMBER_LENGTH = 9
PLACEHOLDER_PHONE_PREFIX = "temp_"


def normalize_phone(phone: str) -> str:
    """Normalize a phone number to its canonical international form.

    Keeps only digits and '+'. Numbers already carrying the default country
    code get a leading '+', bare national numbers get the full prefix, and
    anything else is assumed to be international.

    Examples:
        901234567         → +998901234567
        998 90 123-45-67  → +998901234567
        +998 90 123 45 67 → +998901234567
        (44) 20 7946 0958 → +442079460958

    Args:
        phone: Raw phone number as typed by the user

    Returns:
        Canonical phone number
    """
    cleaned = re.sub(r"[^\d+]", "", phone)

    if cleaned.startswith(DEFAULT_COUNTRY_CODE):
        return f"+{cleaned}"
    if cleaned.startswith(f"+{DEFAULT_COUNTRY_CODE}"):
        return cleaned
    if len(cleaned) == NATIONAL_NUMBER_LENGTH:
        return f"+{DEFAULT_COUNTRY_CODE}{cleaned}"
    if not cleaned.startswith("+"):
        return f"+{cleaned}"
    return cleaned


def count_digits(phone: str) -> int:
    """Count the digits in a raw phone number."""
    return len(re.sub(r"\D", "", phone))


def placeholder_phone(external_id: str) -> str:
    """Build the stand-in phone for a contact first seen in chat.

    Args:
        external_id: Chat platform user id

    Returns:
        Placeholder value that never collides with a real phone
    """
    return f"{PLACEHOLDER_PHONE_PREFIX}{external_id}"


def is_placeholder_phone(phone: str | None) -> bool:
    """Check whether a stored phone is a chat placeholder."""
    return not phone or phone.startswith(PLACEHOLDER_PHONE_PREFIX)
