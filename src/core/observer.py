"""Change observer: structural and polling triggers for the check routine.

Two independent triggers feed the same check callable:
1) Mutation batches from the document, debounced so a burst of inserts
   collapses into one check no earlier than ``debounce_seconds`` after the
   first qualifying event.
2) An unconditional poll every ``poll_interval_seconds`` that catches content
   inserted without a usable mutation signal.

Both run on the current asyncio loop, so checks never overlap.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Iterable, Optional

from core.config import MonitorConfig
from core.models import MutationRecord
from core.ports import DocumentPort

LOGGER = logging.getLogger(__name__)


class ChangeObserver:
    """Schedules the check routine from mutations and a fixed poll."""

    def __init__(
        self,
        document: DocumentPort,
        check: Callable[[], Any],
        config: MonitorConfig,
    ) -> None:
        self._document = document
        self._check = check
        self._config = config
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._debounce: Optional[asyncio.TimerHandle] = None
        self._poll_task: Optional[asyncio.Task] = None
        self._subscribed = False

    @property
    def is_running(self) -> bool:
        return self._poll_task is not None

    def start(self) -> None:
        """Subscribe to mutations and start polling on the running loop."""

        if self.is_running:
            return
        self._loop = asyncio.get_running_loop()
        if not self._subscribed:
            self._document.subscribe(self.on_mutations)
            self._subscribed = True
        self._poll_task = self._loop.create_task(self._poll())
        LOGGER.debug(
            "Observer started (debounce=%ss, poll=%ss)",
            self._config.debounce_seconds,
            self._config.poll_interval_seconds,
        )

    def stop(self) -> None:
        """Drop any scheduled callbacks, as page teardown would."""

        if self._debounce is not None:
            self._debounce.cancel()
            self._debounce = None
        if self._poll_task is not None:
            self._poll_task.cancel()
            self._poll_task = None

    def qualifies(self, records: Iterable[MutationRecord]) -> bool:
        """Return True when a batch added an element with substantial text."""

        for record in records:
            if record.kind != "childList":
                continue
            for node in record.added_nodes:
                if not self._document.is_element(node):
                    continue
                text = (self._document.text_of(node) or "").strip()
                if len(text) > self._config.mutation_min_chars:
                    return True
        return False

    def on_mutations(self, records: Iterable[MutationRecord]) -> None:
        if not self.is_running:
            return
        if self.qualifies(records):
            self.schedule_check()

    def schedule_check(self) -> None:
        # Later events in the same burst ride on the pending handle.
        if self._debounce is not None or self._loop is None:
            return
        self._debounce = self._loop.call_later(self._config.debounce_seconds, self._run_debounced)

    def _run_debounced(self) -> None:
        self._debounce = None
        self._check()

    async def _poll(self) -> None:
        while True:
            await asyncio.sleep(self._config.poll_interval_seconds)
            self._check()
