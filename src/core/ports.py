"""Ports (interfaces) used by the monitor session.

Ports define the minimal contracts for the document host, the settings source
and notification adapters so that the core can run against a real page, a
parsed HTML snapshot or a stub tree in tests.
"""

from __future__ import annotations

from typing import Any, Callable, Iterable, List, Protocol

from core.models import MutationRecord, Outcome, Settings


class DocumentPort(Protocol):
    """Read and subscription access to the live document tree."""

    def select(self, selector: str) -> Iterable[Any]:
        ...

    def text_of(self, node: Any) -> str:
        ...

    def is_element(self, node: Any) -> bool:
        ...

    def compare_position(self, first: Any, second: Any) -> int:
        """Negative when ``first`` precedes ``second`` in document order."""
        ...

    def subscribe(self, callback: Callable[[List[MutationRecord]], None]) -> None:
        ...


class SettingsPort(Protocol):
    """Source of user preference snapshots."""

    async def get(self) -> Settings:
        ...

    def on_change(self, callback: Callable[[], None]) -> None:
        ...


class NotifierPort(Protocol):
    """Notification operations required by the monitor session."""

    async def notify(self, outcome: Outcome, settings: Settings) -> None:
        ...
