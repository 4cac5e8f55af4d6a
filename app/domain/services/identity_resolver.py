"""Identity resolver mapping a phone and chat account to known contacts."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from app.domain.models.resolution import (
    Conflict,
    NewContact,
    Resolution,
    SameContact,
    SingleExternal,
    SinglePhone,
)
from app.persistence.repositories.contact_repository import ContactRepository
from app.persistence.repositories.lead_repository import LeadRepository

logger = logging.getLogger(__name__)


class IdentityResolver:
    """Classify how a submission's identity relates to existing contacts.

    Read-only: resolution never creates, updates or merges anything.
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize identity resolver."""
        self.session = session
        self.contact_repo = ContactRepository(session)
        self.lead_repo = LeadRepository(session)

    async def resolve(self, phone: str, external_id: str | None = None) -> Resolution:
        """Resolve a canonical phone and optional external id.

        Args:
            phone: Normalized phone number
            external_id: Chat platform user id, if known

        Returns:
            One of NewContact, SinglePhone, SingleExternal, SameContact, Conflict
        """
        by_phone = await self.contact_repo.get_by_phone(phone)
        by_external = None
        if external_id:
            by_external = await self.contact_repo.get_by_external_id(external_id)

        if by_phone is None and by_external is None:
            return NewContact()

        if by_phone is not None and by_external is not None:
            if by_phone.id == by_external.id:
                lead_count = await self.lead_repo.count_by_contact(by_phone.id)
                return SameContact(contact=by_phone, lead_count=lead_count)

            phone_leads = await self.lead_repo.count_by_contact(by_phone.id)
            external_leads = await self.lead_repo.count_by_contact(by_external.id)
            logger.info(
                f"Identity conflict: phone contact {by_phone.id} ({phone_leads} leads) "
                f"vs external contact {by_external.id} ({external_leads} leads)"
            )
            return Conflict(
                phone_contact=by_phone,
                external_contact=by_external,
                phone_lead_count=phone_leads,
                external_lead_count=external_leads,
            )

        if by_phone is not None:
            lead_count = await self.lead_repo.count_by_contact(by_phone.id)
            return SinglePhone(contact=by_phone, lead_count=lead_count)

        lead_count = await self.lead_repo.count_by_contact(by_external.id)
        return SingleExternal(contact=by_external, lead_count=lead_count)
