"""Telegram Bot API notification adapter.

Uses the Bot API for delivery so outcomes can be routed to a chat.
"""

from __future__ import annotations

import json
import logging
import urllib.error
import urllib.request

from adapters.notification_formatting import format_notification
from core.models import Outcome, Settings

LOGGER = logging.getLogger(__name__)


class TelegramBotNotifier:
    """Notifier adapter that sends outcomes via the Telegram Bot API."""

    def __init__(self, bot_token: str, chat_id: str, page_url: str) -> None:
        self._bot_token = bot_token
        self._chat_id = chat_id
        self._page_url = page_url

    def _endpoint(self) -> str:
        # The Bot API endpoint is deterministic and derived from the token.
        return f"https://api.telegram.org/bot{self._bot_token}/sendMessage"

    async def notify(self, outcome: Outcome, settings: Settings) -> None:
        """Send the formatted notification via the Bot API."""

        if not settings.audio_enabled:
            LOGGER.info("Notifications disabled; skipping %s", outcome.value)
            return

        message = format_notification(outcome, settings, self._page_url, mode="html")
        payload = {
            "chat_id": self._chat_id,
            "text": message,
            "parse_mode": "HTML",
            "disable_web_page_preview": True,
        }
        data = json.dumps(payload).encode("utf-8")
        request = urllib.request.Request(self._endpoint(), data=data, method="POST")
        request.add_header("Content-Type", "application/json")
        # Blocking call is fine at this rate; at most one per detected turn.
        try:
            with urllib.request.urlopen(request, timeout=10):
                pass
        except urllib.error.HTTPError as e:
            body = e.read().decode("utf-8", errors="replace")
            raise RuntimeError(f"Bot API error {e.code}: {body}") from e
