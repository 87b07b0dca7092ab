"""HTML snapshot host.

Stands in for a browser tab: the page is an HTML file that some other process
keeps rewriting (a saved page, a scraper dump). Every tick the host reloads the
document when the file changed, which surfaces as a mutation batch, and lets
the settings provider look for edits on the same cadence.
"""

from __future__ import annotations

import asyncio
import logging
import os
from typing import Optional

from adapters.json_settings import JsonSettingsProvider
from adapters.soup_document import SoupDocument

LOGGER = logging.getLogger(__name__)


class FilePageHost:
    """Drives a SoupDocument from a file on disk."""

    def __init__(
        self,
        path: str,
        document: SoupDocument,
        settings_provider: Optional[JsonSettingsProvider] = None,
        interval_seconds: float = 1.0,
    ) -> None:
        self._path = path
        self._document = document
        self._settings_provider = settings_provider
        self._interval = interval_seconds
        self._mtime = self._current_mtime()

    def _current_mtime(self) -> Optional[float]:
        try:
            return os.path.getmtime(self._path)
        except OSError:
            return None

    def refresh(self) -> bool:
        """Reload the document if the snapshot changed. Returns True on reload."""

        mtime = self._current_mtime()
        if mtime is None or mtime == self._mtime:
            return False
        self._mtime = mtime
        with open(self._path, "r", encoding="utf-8") as handle:
            html = handle.read()
        LOGGER.debug("Page snapshot changed: %s", self._path)
        self._document.load(html)
        return True

    async def run(self) -> None:
        """Watch the snapshot until cancelled."""

        while True:
            try:
                self.refresh()
                if self._settings_provider is not None:
                    self._settings_provider.poll_for_changes()
            except Exception:
                LOGGER.exception("Error while refreshing page snapshot")
            await asyncio.sleep(self._interval)
