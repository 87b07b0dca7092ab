"""JSON file settings adapter.

Reads the user preference record from the ``settings`` object of the config
file and signals subscribers when the file changes on disk.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Callable, List, Optional

from core.config import build_settings
from core.models import Settings

LOGGER = logging.getLogger(__name__)


class JsonSettingsProvider:
    """Settings source backed by a JSON file, change-detected by mtime."""

    def __init__(self, path: str) -> None:
        self._path = path
        self._callbacks: List[Callable[[], None]] = []
        self._mtime = self._current_mtime()

    def _current_mtime(self) -> Optional[float]:
        try:
            return os.path.getmtime(self._path)
        except OSError:
            return None

    def _read(self) -> dict:
        with open(self._path, "r", encoding="utf-8") as handle:
            return json.load(handle)

    async def get(self) -> Settings:
        raw = self._read().get("settings", {})
        return build_settings(raw)

    def on_change(self, callback: Callable[[], None]) -> None:
        self._callbacks.append(callback)

    def poll_for_changes(self) -> bool:
        """Fire change callbacks when the file was modified since last poll."""

        mtime = self._current_mtime()
        if mtime == self._mtime:
            return False
        self._mtime = mtime
        LOGGER.info("Settings file changed: %s", self._path)
        for callback in list(self._callbacks):
            callback()
        return True
