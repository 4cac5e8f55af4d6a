"""Lead repository."""

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.persistence.models.lead import Lead
from app.persistence.repositories.base import BaseRepository


class LeadRepository(BaseRepository[Lead]):
    """Repository for Lead entities."""

    def __init__(self, session: AsyncSession):
        """Initialize lead repository."""
        super().__init__(Lead, session)

    async def get_with_contact(self, lead_id: str, for_update: bool = False) -> Lead | None:
        """Get a lead with its owning contact loaded.

        Args:
            lead_id: Lead ID
            for_update: Lock the row until the transaction ends

        Returns:
            Lead or None if not found
        """
        stmt = (
            select(Lead)
            .options(selectinload(Lead.contact))
            .where(Lead.id == lead_id)
            .execution_options(populate_existing=True)
        )
        if for_update:
            stmt = stmt.with_for_update()
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def count_by_contact(self, contact_id: str) -> int:
        """Count leads owned by a contact."""
        stmt = select(func.count()).select_from(Lead).where(Lead.contact_id == contact_id)
        result = await self.session.execute(stmt)
        return result.scalar_one()

    async def list_by_contact(self, contact_id: str) -> list[Lead]:
        """List a contact's leads, oldest first."""
        stmt = select(Lead).where(Lead.contact_id == contact_id).order_by(Lead.created_at)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def reassign_contact(self, from_contact_id: str, to_contact_id: str) -> int:
        """Move every lead of one contact to another.

        Returns:
            Number of leads moved
        """
        stmt = (
            update(Lead)
            .where(Lead.contact_id == from_contact_id)
            .values(contact_id=to_contact_id)
            .execution_options(synchronize_session="fetch")
        )
        result = await self.session.execute(stmt)
        return result.rowcount or 0
