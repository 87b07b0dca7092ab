"""Per-page monitor session.

The session enforces a strict order on every check:
1) Fast-exit on excluded pages
2) Extract candidate messages from the document
3) Count-level idempotency against ``last_message_count``
4) Classify the newest few candidates, first non-none wins
5) Emit at most one notification with the settings snapshot
6) Advance ``last_message_count``

The count is a cumulative number of filtered candidates, not a turn index.
It never decreases: when nodes leave the page the lower count is ignored, so
content that later reappears up to the old count is not announced again.
"""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Callable, List, Optional, Sequence, Set, Tuple

from core.classifier import explain
from core.config import MonitorConfig, PageConfig
from core.extractor import MessageExtractor
from core.models import CandidateMessage, ClassificationResult, Outcome, Settings
from core.observer import ChangeObserver
from core.ports import DocumentPort, NotifierPort, SettingsPort

LOGGER = logging.getLogger(__name__)

SNIPPET_CHARS = 100


def is_excluded_page(url: str, config: PageConfig) -> bool:
    """Return True for the bare landing page, where nothing is announced.

    Project URLs are always monitored, and unknown URLs default to monitored.
    """

    if any(marker in url for marker in config.project_path_markers):
        return False
    return any(re.match(pattern, url) for pattern in config.home_url_patterns)


class MonitorSession:
    """Owns page state and turns document changes into outcome notifications."""

    def __init__(
        self,
        page_url: str,
        document: DocumentPort,
        settings_provider: SettingsPort,
        notifier: NotifierPort,
        monitor_config: Optional[MonitorConfig] = None,
        page_config: Optional[PageConfig] = None,
        extractor: Optional[MessageExtractor] = None,
        classifier: Callable[[str], ClassificationResult] = explain,
    ) -> None:
        self.page_url = page_url
        self._document = document
        self._settings_provider = settings_provider
        self._notifier = notifier
        self._monitor_config = monitor_config or MonitorConfig()
        self._page_config = page_config or PageConfig()
        self._extractor = extractor or MessageExtractor()
        self._classifier = classifier
        self._observer = ChangeObserver(document, self.check, self._monitor_config)
        self._tasks: Set[asyncio.Task] = set()

        self._is_monitoring = False
        self._is_excluded_page = is_excluded_page(page_url, self._page_config)
        self._last_message_count = 0
        self._settings = Settings()

    @property
    def is_monitoring(self) -> bool:
        return self._is_monitoring

    @property
    def is_excluded_page(self) -> bool:
        return self._is_excluded_page

    @property
    def last_message_count(self) -> int:
        return self._last_message_count

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def observer(self) -> ChangeObserver:
        return self._observer

    async def start(self) -> None:
        """Load settings, subscribe to changes and start both triggers."""

        if self._is_monitoring:
            return
        LOGGER.info("Page check - %s excluded=%s", self.page_url, self._is_excluded_page)
        await self.refresh_settings()
        self._settings_provider.on_change(self._on_settings_changed)
        self._observer.start()
        self._is_monitoring = True

    def stop(self) -> None:
        self._observer.stop()
        self._is_monitoring = False

    async def refresh_settings(self) -> None:
        """Fetch a fresh settings snapshot, keeping the old one on failure."""

        try:
            self._settings = await self._settings_provider.get()
        except Exception:
            LOGGER.exception("Failed to load settings; keeping previous snapshot")
            return
        LOGGER.info("Settings loaded: %s", self._settings)

    def _on_settings_changed(self) -> None:
        self._track(asyncio.get_running_loop().create_task(self.refresh_settings()))

    def check(self) -> Optional[Outcome]:
        """Run one detection pass.

        Returns None when nothing new was seen, otherwise the outcome of the
        classification (``Outcome.NONE`` when no pattern matched). Errors are
        logged and swallowed; the next trigger simply tries again.
        """

        if self._is_excluded_page:
            return None

        settings = self._settings
        try:
            messages = self._extractor.extract(self._document)
            count = len(messages)
            LOGGER.debug("Found %s total messages", count)

            if count <= self._last_message_count:
                if count < self._last_message_count:
                    LOGGER.debug(
                        "Message count dropped %s -> %s; keeping the higher count",
                        self._last_message_count,
                        count,
                    )
                return None

            LOGGER.info("New messages detected: %s -> %s", self._last_message_count, count)
            outcome = self._classify_recent(messages)
            if outcome is not Outcome.NONE:
                self._emit(outcome, settings)
            self._last_message_count = count
            return outcome
        except Exception:
            LOGGER.exception("Error checking messages")
            return None

    def _classify_recent(self, messages: Sequence[CandidateMessage]) -> Outcome:
        recent = messages[-self._monitor_config.recent_window :]
        LOGGER.debug("Checking %s recent messages for completion patterns", len(recent))
        for message in recent:
            result = self._classifier(message.text)
            if result.outcome is Outcome.NONE:
                continue
            LOGGER.info(
                "%s detected (%s) in message: %s",
                result.outcome.value.upper(),
                result.reason,
                message.text[:SNIPPET_CHARS],
            )
            return result.outcome
        return Outcome.NONE

    def trigger(self, outcome: Outcome) -> bool:
        """Send a notification for ``outcome`` without classifying anything."""

        if outcome is Outcome.NONE:
            raise ValueError("Cannot trigger a notification for outcome 'none'")
        if self._is_excluded_page:
            LOGGER.info("Manual %s trigger ignored on excluded page", outcome.value)
            return False
        self._emit(outcome, self._settings)
        return True

    def inspect(self, limit: int = 10) -> List[Tuple[CandidateMessage, ClassificationResult]]:
        """Classify the newest candidates without touching session state."""

        if limit <= 0:
            return []
        messages = self._extractor.extract(self._document)[-limit:]
        return [(message, self._classifier(message.text)) for message in messages]

    def _emit(self, outcome: Outcome, settings: Settings) -> None:
        if self._is_excluded_page:
            return
        LOGGER.info("Triggering %s notification for %s", outcome.value, self.page_url)
        self._track(asyncio.get_running_loop().create_task(self._deliver(outcome, settings)))

    async def _deliver(self, outcome: Outcome, settings: Settings) -> None:
        try:
            await self._notifier.notify(outcome, settings)
        except Exception:
            # Delivery is best effort; a missed notification is not re-sent.
            LOGGER.exception("Failed to deliver %s notification", outcome.value)
            return
        LOGGER.info("%s notification delivered", outcome.value)

    def _track(self, task: asyncio.Task) -> None:
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def drain(self) -> None:
        """Wait for in-flight settings refreshes and deliveries to finish."""

        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
