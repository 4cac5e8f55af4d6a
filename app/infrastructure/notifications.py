"""Outbound notifications to the review group and to prospects.

Every notifier call is best effort: callers go through notify_safely so a
delivery failure is logged and never undoes committed work.
"""

import logging
from collections.abc import Awaitable
from dataclasses import dataclass
from typing import Any, Protocol, TypeVar

from app.domain.models.lead_status import LeadStatus
from app.infrastructure.telegram_client import TelegramClient
from app.persistence.models.contact import Contact
from app.persistence.models.lead import Lead

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class ReviewMessageRef:
    """Location of a lead's message in the review group."""

    chat_id: str
    message_id: str


class Notifier(Protocol):
    """Delivery channel for review posts, decisions and reminders."""

    async def post_for_review(self, lead: Lead) -> ReviewMessageRef | None: ...

    async def update_review_message(self, lead: Lead) -> None: ...

    async def notify_decision(self, lead: Lead) -> None: ...

    async def send_reminder(self, contact: Contact) -> bool: ...


async def notify_safely(action: str, call: Awaitable[T]) -> T | None:
    """Await a notifier call, logging and swallowing any failure.

    Args:
        action: Name of the notifier action, for the log
        call: The pending notifier call

    Returns:
        The call's result, or None if it failed
    """
    try:
        return await call
    except Exception as e:
        logger.error(f"Notifier {action} failed: {e}", exc_info=True, extra={"notifier_action": action})
        return None


def format_review_text(lead: Lead) -> str:
    """Render a lead as plain text for the review group."""
    contact = lead.contact
    lines = [
        f"Status: {lead.status}",
        f"Name: {lead.full_name}",
        f"Phone: {lead.phone_number}",
    ]
    optional_fields = (
        ("Company", lead.company_name),
        ("Location", lead.location),
        ("Company type", lead.company_type),
        ("Role", lead.role_in_company),
        ("Annual turnover", lead.annual_turnover),
        ("Employees", lead.number_of_employees),
        ("About", lead.company_description),
    )
    for label, value in optional_fields:
        if value:
            lines.append(f"{label}: {value}")
    if lead.interests:
        lines.append(f"Interests: {', '.join(lead.interests)}")
    if contact is not None and contact.external_id:
        handle = f"@{contact.external_handle}" if contact.external_handle else contact.external_id
        lines.append(f"Telegram: {handle}")
    if lead.status == LeadStatus.ACCEPTED.value:
        lines.append(f"Accepted by {lead.decided_by}")
    elif lead.status == LeadStatus.REJECTED.value:
        lines.append(f"Rejected by {lead.decided_by}: {lead.decision_reason}")
    return "\n".join(lines)


def review_keyboard(lead: Lead) -> dict[str, Any]:
    """Accept/reject buttons shown under a lead awaiting review."""
    return {
        "inline_keyboard": [[
            {"text": "Accept", "callback_data": f"accept_{lead.id}"},
            {"text": "Reject", "callback_data": f"reject_{lead.id}"},
        ]]
    }


class LoggingNotifier:
    """Notifier that only logs, used when no chat transport is configured."""

    async def post_for_review(self, lead: Lead) -> ReviewMessageRef | None:
        logger.info(f"[NOTIFY] Lead {lead.id} ready for review ({lead.status})")
        return None

    async def update_review_message(self, lead: Lead) -> None:
        logger.info(f"[NOTIFY] Review message for lead {lead.id} now {lead.status}")

    async def notify_decision(self, lead: Lead) -> None:
        logger.info(f"[NOTIFY] Lead {lead.id} decision {lead.status} for contact {lead.contact_id}")

    async def send_reminder(self, contact: Contact) -> bool:
        logger.info(f"[NOTIFY] Onboarding reminder for contact {contact.id}")
        return True


class TelegramNotifier:
    """Notifier posting to a Telegram review group and bot chats."""

    def __init__(
        self,
        client: TelegramClient,
        group_id: str,
        channel_url: str | None = None,
    ) -> None:
        """Initialize Telegram notifier.

        Args:
            client: Bot API client
            group_id: Chat id of the sales review group
            channel_url: Public link of the onboarding channel
        """
        self.client = client
        self.group_id = group_id
        self.channel_url = channel_url

    def _channel_keyboard(self) -> dict[str, Any] | None:
        if not self.channel_url:
            return None
        return {"inline_keyboard": [[{"text": "Join channel", "url": self.channel_url}]]}

    async def post_for_review(self, lead: Lead) -> ReviewMessageRef | None:
        message = await self.client.send_message(
            self.group_id, format_review_text(lead), reply_markup=review_keyboard(lead)
        )
        chat_id = str(message.get("chat", {}).get("id", self.group_id))
        logger.info(f"[TELEGRAM] Posted lead {lead.id} for review")
        return ReviewMessageRef(chat_id=chat_id, message_id=str(message["message_id"]))

    async def update_review_message(self, lead: Lead) -> None:
        if not lead.review_chat_id or not lead.review_message_id:
            logger.debug(f"[TELEGRAM] Lead {lead.id} has no review message to update")
            return
        decided = lead.status in (LeadStatus.ACCEPTED.value, LeadStatus.REJECTED.value)
        await self.client.edit_message_text(
            lead.review_chat_id,
            lead.review_message_id,
            format_review_text(lead),
            reply_markup={"inline_keyboard": []} if decided else review_keyboard(lead),
        )

    async def notify_decision(self, lead: Lead) -> None:
        contact = lead.contact
        if contact is None or not contact.external_id:
            logger.info(f"[TELEGRAM] Lead {lead.id} owner has no chat account, decision not sent")
            return
        if lead.status == LeadStatus.ACCEPTED.value:
            text = "Your application has been accepted. Our team will contact you soon."
        else:
            text = f"Your application has been declined. Reason: {lead.decision_reason}"
        keyboard = None if contact.goal_completed else self._channel_keyboard()
        await self.client.send_message(contact.external_id, text, reply_markup=keyboard)

    async def send_reminder(self, contact: Contact) -> bool:
        if not contact.external_id:
            logger.warning(f"[TELEGRAM] Contact {contact.id} has no chat account, reminder skipped")
            return False
        await self.client.send_message(
            contact.external_id,
            "Join our channel to stay up to date with news and offers.",
            reply_markup=self._channel_keyboard(),
        )
        return True


def build_notifier(settings: Any) -> Notifier:
    """Pick the notifier for the configured environment."""
    if settings.telegram_bot_token and settings.telegram_group_id:
        client = TelegramClient(settings.telegram_bot_token, timeout=settings.notifier_timeout_seconds)
        return TelegramNotifier(client, settings.telegram_group_id, channel_url=settings.telegram_channel_url)
    logger.info("Telegram not configured - using logging notifier")
    return LoggingNotifier()
