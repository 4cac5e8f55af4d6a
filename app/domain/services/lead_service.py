"""Lead service for intake, identity linking and review decisions."""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import Clock, utc_now
from app.core.exceptions import NotFoundError, TransientStoreError, ValidationFailedError
from app.core.phone import normalize_phone, placeholder_phone
from app.domain.models.lead_form import ExternalIdentity, LeadForm
from app.domain.models.lead_status import (
    BOT_LINK_STATUSES,
    DECISION_STATUSES,
    REVIEWABLE_STATUSES,
    LeadStatus,
    ReviewOutcome,
    SubmissionCompleteness,
    ensure_transition,
    initial_status,
)
from app.domain.models.rejection import RejectionReasonCode, resolve_reason_text
from app.domain.models.resolution import (
    Conflict,
    NewContact,
    Resolution,
    SingleExternal,
    choose_merge_winner,
)
from app.domain.services.contact_merge_service import ContactMergeService
from app.domain.services.identity_resolver import IdentityResolver
from app.domain.services.reminder_service import ReminderService
from app.infrastructure.handoff_store import HandoffStore
from app.infrastructure.notifications import Notifier, notify_safely
from app.infrastructure.rejection_state_store import PendingRejection, RejectionStateStore
from app.persistence.database import transaction
from app.persistence.models.contact import Contact
from app.persistence.models.lead import Lead
from app.persistence.repositories.contact_repository import ContactRepository
from app.persistence.repositories.lead_repository import LeadRepository
from app.settings import settings

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class SubmissionResult:
    """Outcome of a web form submission."""

    lead_id: str
    contact_id: str
    status: LeadStatus
    is_returning: bool
    bot_url: str | None = None


@dataclass(frozen=True)
class RejectionRequestResult:
    """Outcome of a reviewer picking a rejection reason."""

    lead: Lead | None
    awaiting_reason: bool


class LeadService:
    """Service for the lead lifecycle.

    Every state-changing operation runs as one transaction. A unique
    constraint violation means another request claimed the same phone or
    chat account first, so the whole unit is rolled back and re-resolved.
    Notifications go out only after commit and never fail the operation.
    """

    def __init__(
        self,
        session: AsyncSession,
        notifier: Notifier,
        handoff_store: HandoffStore | None = None,
        rejection_store: RejectionStateStore | None = None,
        clock: Clock = utc_now,
        max_retries: int | None = None,
    ) -> None:
        """Initialize lead service."""
        self.session = session
        self.notifier = notifier
        self.handoff_store = handoff_store
        self.rejection_store = rejection_store
        self.clock = clock
        self.max_retries = max_retries or settings.identity_max_retries
        self.lead_repo = LeadRepository(session)
        self.contact_repo = ContactRepository(session)
        self.resolver = IdentityResolver(session)
        self.merge_service = ContactMergeService(session, clock=clock)
        self.reminder_service = ReminderService(session, clock=clock)

    async def _run_unit_of_work(self, action: str, unit: Callable[[], Awaitable[T]]) -> T:
        """Run a unit of work in a transaction, retrying on identity races."""
        last_error: IntegrityError | None = None
        for attempt in range(1, self.max_retries + 1):
            try:
                async with transaction(self.session):
                    return await unit()
            except IntegrityError as e:
                last_error = e
                logger.warning(f"{action}: unique constraint race on attempt {attempt}, re-resolving")
            except (OperationalError, InterfaceError) as e:
                logger.error(f"{action}: store unavailable: {e}", exc_info=True)
                raise TransientStoreError(f"{action} could not reach the store") from e
        raise TransientStoreError(
            f"{action} failed after {self.max_retries} attempts",
            details={"attempts": self.max_retries},
        ) from last_error

    # ------------------------------------------------------------------
    # Intake
    # ------------------------------------------------------------------

    async def submit_lead(
        self,
        form: LeadForm,
        completeness: SubmissionCompleteness,
        identity: ExternalIdentity | None = None,
    ) -> SubmissionResult:
        """Record a web form submission as a new lead.

        Resolves the submitter to a contact (creating or merging contacts as
        needed), derives the initial status and posts reviewable leads to the
        review group.

        Args:
            form: Submitted form fields
            completeness: Completeness declared by the form client
            identity: Chat account, when the submission came through the bot

        Returns:
            SubmissionResult with the lead id and status

        Raises:
            ValidationFailedError: If the form is malformed
            TransientStoreError: If the store kept failing
        """
        form.validate()
        phone = normalize_phone(form.phone_number)

        async def unit() -> tuple[Lead, bool]:
            resolution = await self.resolver.resolve(phone, identity.external_id if identity else None)
            contact = await self._reconcile_contact(resolution, phone, identity, form.locale)
            status = initial_status(completeness, resolution.is_returning)
            lead = await self.lead_repo.create(
                contact_id=contact.id,
                phone_number=phone,
                status=status.value,
                **form.lead_fields(),
            )
            return lead, resolution.is_returning

        lead, is_returning = await self._run_unit_of_work("submit_lead", unit)
        status = LeadStatus(lead.status)
        logger.info(
            f"Lead {lead.id} created with status {status.value}",
            extra={"lead_id": lead.id, "contact_id": lead.contact_id, "lead_status": status.value},
        )

        if status in REVIEWABLE_STATUSES:
            await self._post_for_review(lead.id)

        bot_url = None
        if status in BOT_LINK_STATUSES and settings.telegram_bot_url:
            bot_url = f"{settings.telegram_bot_url}?start={lead.id}"

        return SubmissionResult(
            lead_id=lead.id,
            contact_id=lead.contact_id,
            status=status,
            is_returning=is_returning,
            bot_url=bot_url,
        )

    async def complete_lead(self, lead_id: str, form: LeadForm) -> Lead:
        """Fill in the remaining fields of a partial lead and mark it full.

        Args:
            lead_id: ID of the partial lead
            form: Complete form fields; the phone must match the lead's

        Returns:
            The updated lead

        Raises:
            NotFoundError: If the lead does not exist
            InvalidTransitionError: If the lead is not partial
            ValidationFailedError: If the form is malformed or changes the phone
        """
        form.validate()
        phone = normalize_phone(form.phone_number)

        async def unit() -> Lead:
            lead = await self._get_lead(lead_id, for_update=True)
            ensure_transition(lead.status, LeadStatus.FULL)
            if phone != lead.phone_number:
                raise ValidationFailedError(
                    "Phone number cannot change when completing a lead",
                    details={"field": "phone_number"},
                )
            return await self.lead_repo.update(lead, status=LeadStatus.FULL.value, **form.lead_fields())

        lead = await self._run_unit_of_work("complete_lead", unit)
        logger.info(f"Lead {lead.id} completed")
        await self._post_for_review(lead.id)
        return lead

    # ------------------------------------------------------------------
    # Chat identity linking
    # ------------------------------------------------------------------

    async def link_external_identity(
        self,
        identity: ExternalIdentity,
        lead_id: str | None = None,
        session_key: str | None = None,
    ) -> Contact:
        """Bind a chat account when its user opens the bot.

        The bot start parameter is either a lead id or a handoff session key.
        A handoff holds either a lead id or a full pending submission. Without
        either, the chat account is registered on its own.

        Args:
            identity: Chat account of the user
            lead_id: Lead the user came from
            session_key: Handoff key stored by the web form

        Returns:
            The contact now owning the chat account

        Raises:
            NotFoundError: If the lead or handoff does not exist
            ValidationFailedError: If the handoff payload is unusable
        """
        if session_key is not None:
            if self.handoff_store is None:
                raise NotFoundError("Handoff store not configured")
            payload = await self.handoff_store.take(session_key)
            if payload is None:
                raise NotFoundError(
                    "Handoff expired or already used", details={"session_key": session_key}
                )
            if payload.get("lead_id"):
                lead_id = str(payload["lead_id"])
            elif payload.get("form"):
                form = LeadForm.from_dict(payload["form"])
                try:
                    completeness = SubmissionCompleteness(payload.get("completeness", SubmissionCompleteness.FULL.value))
                except ValueError as e:
                    raise ValidationFailedError("Unknown completeness in handoff") from e
                result = await self.submit_lead(form, completeness, identity)
                return await self._link_side_effects(result.contact_id)
            else:
                raise ValidationFailedError("Handoff payload has neither lead nor form")

        if lead_id is not None:
            return await self._link_lead(lead_id, identity)

        contact = await self._run_unit_of_work("register_chat_contact", lambda: self._register_chat_contact(identity))
        return await self._link_side_effects(contact.id)

    async def _link_lead(self, lead_id: str, identity: ExternalIdentity) -> Contact:
        async def unit() -> tuple[str, bool]:
            lead = await self._get_lead(lead_id)
            # Resolve through the owner's current phone so the owner is always a candidate
            phone = lead.contact.phone
            resolution = await self.resolver.resolve(phone, identity.external_id)
            await self._reconcile_contact(resolution, phone, identity, locale=None)

            promoted = lead.status == LeadStatus.PARTIAL.value
            if promoted:
                await self.lead_repo.update(lead, status=LeadStatus.FULL.value)
            return lead.id, promoted

        lead_id, promoted = await self._run_unit_of_work("link_external_identity", unit)

        lead = await self.lead_repo.get_with_contact(lead_id)
        logger.info(f"Linked chat account to contact {lead.contact_id} via lead {lead.id}")
        if promoted:
            logger.info(f"Lead {lead.id} completed through the bot")
        if lead.review_message_id:
            await notify_safely("update_review_message", self.notifier.update_review_message(lead))
        elif LeadStatus(lead.status) in REVIEWABLE_STATUSES:
            await self._post_for_review(lead.id)
        return await self._link_side_effects(lead.contact_id)

    async def _link_side_effects(self, contact_id: str) -> Contact:
        """Start onboarding reminders for a freshly linked chat account."""
        if settings.schedule_reminder_on_link:
            async def unit() -> None:
                await self.reminder_service.schedule_first(contact_id)

            await self._run_unit_of_work("schedule_first_reminder", unit)
        contact = await self.contact_repo.get_by_id(contact_id)
        if contact is None:
            raise NotFoundError(f"Contact {contact_id} not found")
        return contact

    async def _register_chat_contact(self, identity: ExternalIdentity) -> Contact:
        contact = await self.contact_repo.get_by_external_id(identity.external_id)
        if contact is not None:
            await self._attach_identity(contact, identity, overwrite=False)
            return contact
        logger.info(f"Creating chat-only contact for external id {identity.external_id}")
        return await self.contact_repo.create(
            phone=placeholder_phone(identity.external_id),
            external_id=identity.external_id,
            external_handle=identity.handle,
            first_name=identity.first_name,
            last_name=identity.last_name,
            locale=settings.default_locale,
        )

    async def _reconcile_contact(
        self,
        resolution: Resolution,
        phone: str,
        identity: ExternalIdentity | None,
        locale: str | None,
    ) -> Contact:
        """Turn a resolution into the single contact the work applies to."""
        if isinstance(resolution, NewContact):
            return await self.contact_repo.create(
                phone=phone,
                external_id=identity.external_id if identity else None,
                external_handle=identity.handle if identity else None,
                first_name=identity.first_name if identity else None,
                last_name=identity.last_name if identity else None,
                locale=locale or settings.default_locale,
            )

        if isinstance(resolution, Conflict):
            winner, loser = choose_merge_winner(resolution)
            logger.info(f"Merging contact {loser.id} into {winner.id} to resolve identity conflict")
            contact = await self.merge_service.merge(loser.id, winner.id)
            if identity is not None:
                await self._attach_identity(contact, identity, overwrite=False)
        else:
            contact = resolution.contact
            updates: dict = {}
            if isinstance(resolution, SingleExternal) and contact.phone != phone:
                # Chat-first contact, or a person who changed numbers
                updates["phone"] = phone
            if updates:
                await self.contact_repo.update(contact, **updates)
            if identity is not None:
                await self._attach_identity(contact, identity, overwrite=True)

        if locale and locale != contact.locale:
            await self.contact_repo.update(contact, locale=locale)
        return contact

    async def _attach_identity(self, contact: Contact, identity: ExternalIdentity, overwrite: bool) -> None:
        updates: dict = {}
        if contact.external_id is None or (overwrite and contact.external_id != identity.external_id):
            updates["external_id"] = identity.external_id
            updates["external_handle"] = identity.handle
        elif contact.external_id == identity.external_id and identity.handle:
            updates["external_handle"] = identity.handle
        if identity.first_name and not contact.first_name:
            updates["first_name"] = identity.first_name
        if identity.last_name and not contact.last_name:
            updates["last_name"] = identity.last_name
        if updates:
            await self.contact_repo.update(contact, **updates)

    # ------------------------------------------------------------------
    # Review
    # ------------------------------------------------------------------

    async def decide_lead(
        self,
        lead_id: str,
        outcome: ReviewOutcome,
        decided_by: str,
        reason: str | None = None,
    ) -> Lead:
        """Record a reviewer's accept or reject decision.

        Args:
            lead_id: Lead ID
            outcome: ACCEPT or REJECT
            decided_by: Reviewer identity
            reason: Rejection reason, required for REJECT

        Returns:
            The decided lead

        Raises:
            NotFoundError: If the lead does not exist
            ValidationFailedError: If a rejection has no reason
            InvalidTransitionError: If the lead was already decided or is not reviewable
        """
        if outcome == ReviewOutcome.REJECT and not (reason and reason.strip()):
            raise ValidationFailedError("A rejection needs a reason", details={"field": "reason"})
        target = DECISION_STATUSES[outcome]

        async def unit() -> Lead:
            lead = await self._get_lead(lead_id, for_update=True)
            ensure_transition(lead.status, target)
            lead = await self.lead_repo.update(
                lead,
                status=target.value,
                decided_by=decided_by,
                decided_at=self.clock(),
                decision_reason=reason.strip() if reason else None,
            )
            contact = await self.contact_repo.get_by_id(lead.contact_id)
            if contact is not None and not contact.goal_completed:
                await self.reminder_service.schedule_first(contact.id)
            return lead

        lead = await self._run_unit_of_work("decide_lead", unit)
        logger.info(
            f"Lead {lead_id} {target.value.lower()} by {decided_by}",
            extra={"lead_id": lead_id, "lead_status": target.value, "decided_by": decided_by},
        )

        lead = await self.lead_repo.get_with_contact(lead_id)
        await notify_safely("update_review_message", self.notifier.update_review_message(lead))
        await notify_safely("notify_decision", self.notifier.notify_decision(lead))
        return lead

    async def request_rejection(
        self,
        lead_id: str,
        reviewer: str,
        reason_code: RejectionReasonCode,
    ) -> RejectionRequestResult:
        """Reject a lead with a predefined reason, or wait for a typed one.

        Picking OTHER leaves the lead untouched and remembers, per reviewer,
        that the next text they send is the reason.

        Raises:
            NotFoundError: If the lead does not exist
            InvalidTransitionError: If the lead cannot be rejected
        """
        if self.rejection_store is not None:
            await self.rejection_store.clear(reviewer)

        if reason_code == RejectionReasonCode.OTHER:
            if self.rejection_store is None:
                raise ValidationFailedError("Free-text rejection reasons are not available")
            lead = await self._get_lead(lead_id)
            ensure_transition(lead.status, LeadStatus.REJECTED)
            await self.rejection_store.set(PendingRejection(lead_id=lead_id, reviewer=reviewer))
            logger.info(f"Reviewer {reviewer} owes a rejection reason for lead {lead_id}")
            return RejectionRequestResult(lead=None, awaiting_reason=True)

        lead = await self.decide_lead(lead_id, ReviewOutcome.REJECT, reviewer, resolve_reason_text(reason_code))
        return RejectionRequestResult(lead=lead, awaiting_reason=False)

    async def submit_rejection_reason(self, reviewer: str, text: str) -> Lead:
        """Complete a pending rejection with the reviewer's typed reason.

        Raises:
            NotFoundError: If the reviewer has no pending rejection
            ValidationFailedError: If the text is empty
        """
        if self.rejection_store is None:
            raise NotFoundError("No pending rejection")
        pending = await self.rejection_store.get(reviewer)
        if pending is None:
            raise NotFoundError(f"No pending rejection for reviewer {reviewer}", details={"reviewer": reviewer})
        lead = await self.decide_lead(pending.lead_id, ReviewOutcome.REJECT, reviewer, text)
        await self.rejection_store.clear(reviewer)
        return lead

    async def get_lead(self, lead_id: str) -> Lead:
        """Get a lead with its contact.

        Raises:
            NotFoundError: If the lead does not exist
        """
        return await self._get_lead(lead_id)

    async def _get_lead(self, lead_id: str, for_update: bool = False) -> Lead:
        lead = await self.lead_repo.get_with_contact(lead_id, for_update=for_update)
        if lead is None:
            raise NotFoundError(f"Lead {lead_id} not found", details={"lead_id": lead_id})
        return lead

    async def _post_for_review(self, lead_id: str) -> None:
        """Post a lead to the review group and remember where it was posted."""
        lead = await self.lead_repo.get_with_contact(lead_id)
        if lead is None or lead.review_message_id:
            return
        ref = await notify_safely("post_for_review", self.notifier.post_for_review(lead))
        if ref is None:
            return
        try:
            async with transaction(self.session):
                await self.lead_repo.update(lead, review_chat_id=ref.chat_id, review_message_id=ref.message_id)
        except SQLAlchemyError as e:
            logger.error(f"Could not store review message for lead {lead_id}: {e}", exc_info=True)
