"""Values carried by a lead submission and a chat identity."""

from dataclasses import dataclass, field
from typing import Any

from app.core.exceptions import ValidationFailedError
from app.core.phone import NATIONAL_NUMBER_LENGTH, count_digits

SUPPORTED_LOCALES = ("uz", "en", "ru")
MIN_FULL_NAME_LENGTH = 2


@dataclass
class LeadForm:
    """Fields of the web application form."""

    full_name: str
    phone_number: str
    location: str | None = None
    company_type: str | None = None
    role_in_company: str | None = None
    interests: list[str] = field(default_factory=list)
    company_description: str | None = None
    annual_turnover: str | None = None
    number_of_employees: str | None = None
    company_name: str | None = None
    locale: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LeadForm":
        """Build a form from a stored payload, ignoring unknown keys."""
        known = {name: data[name] for name in cls.__dataclass_fields__ if name in data}
        missing = [name for name in ("full_name", "phone_number") if not known.get(name)]
        if missing:
            raise ValidationFailedError(
                f"Missing required fields: {', '.join(missing)}", details={"missing": missing}
            )
        return cls(**known)

    def validate(self) -> None:
        """Check required fields and the phone shape.

        Raises:
            ValidationFailedError: On the first problem found
        """
        if not self.full_name or len(self.full_name.strip()) < MIN_FULL_NAME_LENGTH:
            raise ValidationFailedError(
                "Full name must be at least 2 characters", details={"field": "full_name"}
            )
        if not self.phone_number or count_digits(self.phone_number) < NATIONAL_NUMBER_LENGTH:
            raise ValidationFailedError(
                "Phone number must contain at least 9 digits", details={"field": "phone_number"}
            )
        if self.locale is not None and self.locale not in SUPPORTED_LOCALES:
            raise ValidationFailedError(
                f"Unsupported locale: {self.locale}", details={"field": "locale"}
            )

    def lead_fields(self) -> dict[str, Any]:
        """Form values copied onto the lead row, excluding the phone."""
        return {
            "full_name": self.full_name.strip(),
            "location": self.location,
            "company_type": self.company_type,
            "role_in_company": self.role_in_company,
            "interests": list(self.interests or []),
            "company_description": self.company_description,
            "annual_turnover": self.annual_turnover,
            "number_of_employees": self.number_of_employees,
            "company_name": self.company_name,
        }


@dataclass(frozen=True)
class ExternalIdentity:
    """Chat platform account presented by the bot."""

    external_id: str
    handle: str | None = None
    first_name: str | None = None
    last_name: str | None = None
