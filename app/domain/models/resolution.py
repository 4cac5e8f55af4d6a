"""Identity resolution outcomes.

A resolution is one of five frozen dataclasses. Callers dispatch on the type
instead of probing optional fields.
"""

from dataclasses import dataclass

from app.persistence.models.contact import Contact


@dataclass(frozen=True)
class NewContact:
    """Neither the phone nor the external id is known."""

    is_returning: bool = False


@dataclass(frozen=True)
class SinglePhone:
    """Only the phone matched a contact."""

    contact: Contact
    lead_count: int

    @property
    def is_returning(self) -> bool:
        return self.lead_count > 0


@dataclass(frozen=True)
class SingleExternal:
    """Only the external id matched a contact."""

    contact: Contact
    lead_count: int

    @property
    def is_returning(self) -> bool:
        return self.lead_count > 0


@dataclass(frozen=True)
class SameContact:
    """Phone and external id both point at the same contact."""

    contact: Contact
    lead_count: int

    @property
    def is_returning(self) -> bool:
        return self.lead_count > 0


@dataclass(frozen=True)
class Conflict:
    """Phone and external id point at two different contacts."""

    phone_contact: Contact
    external_contact: Contact
    phone_lead_count: int
    external_lead_count: int

    @property
    def is_returning(self) -> bool:
        return self.phone_lead_count > 0 or self.external_lead_count > 0


Resolution = NewContact | SinglePhone | SingleExternal | SameContact | Conflict


def choose_merge_winner(conflict: Conflict) -> tuple[Contact, Contact]:
    """Pick which side of a conflict survives the merge.

    The contact with more leads wins; ties go to the phone-matched contact.

    Returns:
        Tuple of (winner, loser)
    """
    if conflict.phone_lead_count >= conflict.external_lead_count:
        return conflict.phone_contact, conflict.external_contact
    return conflict.external_contact, conflict.phone_contact
