"""Contact repository."""

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.persistence.models.contact import Contact
from app.persistence.repositories.base import BaseRepository


class ContactRepository(BaseRepository[Contact]):
    """Repository for Contact entities."""

    def __init__(self, session: AsyncSession):
        """Initialize contact repository."""
        super().__init__(Contact, session)

    async def get_by_phone(self, phone: str) -> Contact | None:
        """Get contact by canonical phone.

        Args:
            phone: Normalized phone number

        Returns:
            Contact or None if not found
        """
        stmt = select(Contact).where(Contact.phone == phone)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_external_id(self, external_id: str) -> Contact | None:
        """Get contact by chat platform user id.

        Args:
            external_id: Chat platform user id

        Returns:
            Contact or None if not found
        """
        stmt = select(Contact).where(Contact.external_id == external_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def delete_by_id(self, id: str) -> None:
        """Delete a contact row without touching dependent rows."""
        await self.session.execute(delete(Contact).where(Contact.id == id))
