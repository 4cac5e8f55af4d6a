"""Contact merge log repository."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.persistence.models.contact_merge_log import ContactMergeLog
from app.persistence.repositories.base import BaseRepository


class ContactMergeLogRepository(BaseRepository[ContactMergeLog]):
    """Repository for ContactMergeLog entities."""

    def __init__(self, session: AsyncSession):
        """Initialize contact merge log repository."""
        super().__init__(ContactMergeLog, session)

    async def create_merge_log(
        self,
        winner_contact_id: str,
        loser_contact_id: str,
        leads_moved: int,
        loser_snapshot: dict | None = None,
        reason: str = "identity_conflict",
    ) -> ContactMergeLog:
        """Create a merge log entry.

        Args:
            winner_contact_id: ID of the surviving contact
            loser_contact_id: ID of the contact merged away
            leads_moved: Number of leads reassigned to the winner
            loser_snapshot: Backup of the loser's identity fields
            reason: Why the merge happened

        Returns:
            Created merge log
        """
        return await self.create(
            winner_contact_id=winner_contact_id,
            loser_contact_id=loser_contact_id,
            leads_moved=leads_moved,
            loser_snapshot=loser_snapshot,
            reason=reason,
        )

    async def list_for_contact(self, contact_id: str) -> list[ContactMergeLog]:
        """List merges that folded other contacts into this one."""
        stmt = (
            select(ContactMergeLog)
            .where(ContactMergeLog.winner_contact_id == contact_id)
            .order_by(ContactMergeLog.merged_at.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
