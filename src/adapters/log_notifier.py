"""Log notification adapter.

Writes each outcome to the application log; the default sink when no chat
delivery is configured.
"""

from __future__ import annotations

import logging

from adapters.notification_formatting import format_notification
from core.models import Outcome, Settings

LOGGER = logging.getLogger(__name__)


class LogNotifier:
    """Notifier adapter that records outcomes in the log."""

    def __init__(self, page_url: str, logger: logging.Logger = LOGGER) -> None:
        self._page_url = page_url
        self._logger = logger

    async def notify(self, outcome: Outcome, settings: Settings) -> None:
        if not settings.audio_enabled:
            self._logger.info("Notifications disabled; skipping %s", outcome.value)
            return
        self._logger.info(format_notification(outcome, settings, self._page_url, mode="text"))
