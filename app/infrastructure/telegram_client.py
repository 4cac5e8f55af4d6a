"""Telegram Bot API client.

Thin wrapper over the HTTP Bot API used for the review group, decision
messages and onboarding reminders.

API docs: https://core.telegram.org/bots/api
"""

import logging
from typing import Any

import httpx

from app.core.exceptions import NotifierError

logger = logging.getLogger(__name__)

BASE_URL = "https://api.telegram.org"


class TelegramClient:
    """Async client for the Telegram Bot API."""

    def __init__(self, bot_token: str, timeout: float = 10.0, base_url: str = BASE_URL) -> None:
        """Initialize Telegram client.

        Args:
            bot_token: Bot token issued by BotFather
            timeout: Request timeout in seconds
            base_url: API root, overridable for tests
        """
        self._bot_token = bot_token
        self._timeout = timeout
        self._base_url = base_url.rstrip("/")

    async def call(self, method: str, payload: dict[str, Any]) -> dict[str, Any]:
        """Call a Bot API method.

        Args:
            method: API method name, e.g. "sendMessage"
            payload: JSON body

        Returns:
            The "result" object of the response

        Raises:
            NotifierError: On timeout, HTTP error or an API-level failure
        """
        url = f"{self._base_url}/bot{self._bot_token}/{method}"
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.post(url, json=payload)
                resp.raise_for_status()
                data = resp.json()
        except httpx.TimeoutException as e:
            logger.warning(f"[TELEGRAM] Timeout calling {method}")
            raise NotifierError(f"Telegram {method} timed out") from e
        except httpx.HTTPStatusError as e:
            logger.warning(f"[TELEGRAM] HTTP {e.response.status_code} calling {method}")
            raise NotifierError(
                f"Telegram {method} failed", details={"status_code": e.response.status_code}
            ) from e
        except httpx.HTTPError as e:
            logger.warning(f"[TELEGRAM] Transport error calling {method}: {e}")
            raise NotifierError(f"Telegram {method} failed") from e

        if not data.get("ok"):
            raise NotifierError(
                f"Telegram {method} rejected: {data.get('description', 'unknown error')}",
                details={"error_code": data.get("error_code")},
            )
        return data.get("result") or {}

    async def send_message(
        self,
        chat_id: str,
        text: str,
        reply_markup: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Send a text message, returning the sent Message object."""
        payload: dict[str, Any] = {"chat_id": chat_id, "text": text}
        if reply_markup:
            payload["reply_markup"] = reply_markup
        return await self.call("sendMessage", payload)

    async def edit_message_text(
        self,
        chat_id: str,
        message_id: str,
        text: str,
        reply_markup: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Replace the text of a previously sent message."""
        payload: dict[str, Any] = {"chat_id": chat_id, "message_id": int(message_id), "text": text}
        if reply_markup is not None:
            payload["reply_markup"] = reply_markup
        return await self.call("editMessageText", payload)
