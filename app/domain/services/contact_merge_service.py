"""Contact merge service for consolidating duplicate contacts."""

import logging
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import Clock, utc_now
from app.core.exceptions import NotFoundError
from app.core.phone import is_placeholder_phone, placeholder_phone
from app.persistence.database import transaction
from app.persistence.models.contact import Contact
from app.persistence.models.reminder_state import ReminderState
from app.persistence.repositories.contact_merge_log_repository import ContactMergeLogRepository
from app.persistence.repositories.contact_repository import ContactRepository
from app.persistence.repositories.lead_repository import LeadRepository
from app.persistence.repositories.reminder_state_repository import ReminderStateRepository
from app.settings import settings

logger = logging.getLogger(__name__)


def _earliest(a: datetime | None, b: datetime | None) -> datetime | None:
    if a is None or b is None:
        return a or b
    return min(a, b)


def _latest(a: datetime | None, b: datetime | None) -> datetime | None:
    if a is None or b is None:
        return a or b
    return max(a, b)


class ContactMergeService:
    """Service for merging a losing contact into a winning one."""

    def __init__(self, session: AsyncSession, clock: Clock = utc_now) -> None:
        """Initialize merge service."""
        self.session = session
        self.clock = clock
        self.contact_repo = ContactRepository(session)
        self.lead_repo = LeadRepository(session)
        self.reminder_repo = ReminderStateRepository(session)
        self.merge_log_repo = ContactMergeLogRepository(session)

    async def merge_contacts(self, loser_id: str, winner_id: str) -> Contact:
        """Merge two contacts in a transaction of its own.

        Args:
            loser_id: ID of the contact that will be deleted
            winner_id: ID of the contact that survives

        Returns:
            The merged winner contact
        """
        async with transaction(self.session):
            return await self.merge(loser_id, winner_id)

    async def merge(self, loser_id: str, winner_id: str) -> Contact:
        """Merge the loser into the winner within the caller's transaction.

        Field rules:
            - phone: loser's, when the winner only has a chat placeholder
            - external id: loser's id and handle when the winner has none,
              otherwise the winner's id and the first non-empty handle
            - names: winner's when non-empty, else loser's
            - locale: winner's, else loser's, else the default locale
            - goal completed: set if either side completed it

        All leads and the reminder state move to the winner, then the loser
        is deleted.

        Args:
            loser_id: ID of the contact that will be deleted
            winner_id: ID of the contact that survives

        Returns:
            The merged winner contact

        Raises:
            NotFoundError: If either contact does not exist
        """
        winner = await self.contact_repo.get_by_id(winner_id)
        if winner is None:
            raise NotFoundError(f"Contact {winner_id} not found", details={"contact_id": winner_id})
        if loser_id == winner_id:
            return winner

        loser = await self.contact_repo.get_by_id(loser_id)
        if loser is None:
            raise NotFoundError(f"Contact {loser_id} not found", details={"contact_id": loser_id})

        snapshot = {
            "phone": loser.phone,
            "external_id": loser.external_id,
            "external_handle": loser.external_handle,
            "first_name": loser.first_name,
            "last_name": loser.last_name,
            "locale": loser.locale,
            "goal_completed": loser.goal_completed,
            "created_at": loser.created_at.isoformat() if loser.created_at else None,
        }

        merged: dict = {
            "first_name": winner.first_name or loser.first_name,
            "last_name": winner.last_name or loser.last_name,
            "locale": winner.locale or loser.locale or settings.default_locale,
            "goal_completed": bool(winner.goal_completed or loser.goal_completed),
        }
        take_phone = is_placeholder_phone(winner.phone) and not is_placeholder_phone(loser.phone)
        if take_phone:
            merged["phone"] = loser.phone
        if winner.external_id is None:
            merged["external_id"] = loser.external_id
            merged["external_handle"] = loser.external_handle
        else:
            merged["external_handle"] = winner.external_handle or loser.external_handle

        # Release the loser's unique values before the winner claims them
        release: dict = {"external_id": None, "external_handle": None}
        if take_phone:
            release["phone"] = placeholder_phone(f"merged_{loser.id}")
        await self.contact_repo.update(loser, **release)

        await self.contact_repo.update(winner, **merged)

        leads_moved = await self.lead_repo.reassign_contact(loser.id, winner.id)
        await self._merge_reminder_state(loser.id, winner)

        await self.merge_log_repo.create_merge_log(
            winner_contact_id=winner.id,
            loser_contact_id=loser.id,
            leads_moved=leads_moved,
            loser_snapshot=snapshot,
        )

        await self.contact_repo.delete_by_id(loser.id)
        await self.session.flush()

        logger.info(
            f"Merged contact {loser_id} into {winner_id}",
            extra={"winner_contact_id": winner_id, "loser_contact_id": loser_id, "leads_moved": leads_moved},
        )
        return winner

    async def _merge_reminder_state(self, loser_id: str, winner: Contact) -> None:
        """Move or combine the loser's reminder state into the winner's."""
        loser_state = await self.reminder_repo.get_by_contact(loser_id)
        winner_state = await self.reminder_repo.get_by_contact(winner.id)

        if loser_state is None and winner_state is None:
            return

        if winner_state is None:
            winner_state = await self.reminder_repo.update(loser_state, contact_id=winner.id)
        elif loser_state is not None:
            combined = self._combine_states(winner_state, loser_state)
            await self.session.delete(loser_state)
            await self.session.flush()
            winner_state = await self.reminder_repo.update(winner_state, **combined)

        if winner.goal_completed and not winner_state.goal_completed:
            await self.reminder_repo.update(
                winner_state,
                goal_completed=True,
                next_due_at=None,
                completed_at=winner_state.completed_at or self.clock(),
            )

    @staticmethod
    def _combine_states(a: ReminderState, b: ReminderState) -> dict:
        """Combine two reminder states; the result does not depend on order."""
        goal_completed = bool(a.goal_completed or b.goal_completed)
        return {
            "reminder_count": max(a.reminder_count or 0, b.reminder_count or 0),
            "goal_completed": goal_completed,
            "last_sent_at": _earliest(a.last_sent_at, b.last_sent_at),
            "completed_at": _earliest(a.completed_at, b.completed_at),
            "next_due_at": None if goal_completed else _latest(a.next_due_at, b.next_due_at),
        }
