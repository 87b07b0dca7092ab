"""BeautifulSoup document adapter.

Wraps a parsed HTML snapshot behind the DocumentPort contract so the core can
query it with CSS selectors (via soupsieve) and be told when it is replaced.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List

from bs4 import BeautifulSoup, Tag

from core.models import MutationRecord

LOGGER = logging.getLogger(__name__)

MutationCallback = Callable[[List[MutationRecord]], None]


class SoupDocument:
    """Document tree backed by BeautifulSoup, reloadable in place."""

    def __init__(self, html: str = "", parser: str = "html.parser") -> None:
        self._parser = parser
        self._subscribers: List[MutationCallback] = []
        self._soup = BeautifulSoup("", parser)
        self._positions: Dict[int, int] = {}
        self._parse(html)

    @classmethod
    def from_file(cls, path: str, parser: str = "html.parser") -> "SoupDocument":
        with open(path, "r", encoding="utf-8") as handle:
            return cls(handle.read(), parser=parser)

    def _parse(self, html: str) -> None:
        self._soup = BeautifulSoup(html, self._parser)
        # Pre-order index of every tag gives document order for sorting.
        self._positions = {id(tag): index for index, tag in enumerate(self._soup.find_all(True))}

    @property
    def root(self) -> Tag:
        return self._soup.body or self._soup

    def load(self, html: str) -> None:
        """Replace the tree and report the new content to subscribers."""

        self._parse(html)
        records = [MutationRecord(kind="childList", added_nodes=(self.root,))]
        LOGGER.debug("Document reloaded (%s tags)", len(self._positions))
        for callback in list(self._subscribers):
            callback(records)

    def select(self, selector: str) -> List[Tag]:
        return self._soup.select(selector)

    def text_of(self, node: Any) -> str:
        return node.get_text()

    def is_element(self, node: Any) -> bool:
        return isinstance(node, Tag)

    def compare_position(self, first: Any, second: Any) -> int:
        # Unknown nodes sort after everything in the current tree.
        missing = len(self._positions)
        return self._positions.get(id(first), missing) - self._positions.get(id(second), missing)

    def subscribe(self, callback: MutationCallback) -> None:
        self._subscribers.append(callback)
