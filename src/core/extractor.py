"""Candidate message extraction (core domain).

The extractor probes the document with an ordered list of selector strategies,
specific ones first and the broad ``div`` fallback last, and keeps every node
whose text passes the conversational filter.
"""

from __future__ import annotations

import functools
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, List, Tuple

from core.models import CandidateMessage
from core.ports import DocumentPort
from core.text_filter import is_conversational

LOGGER = logging.getLogger(__name__)

MIN_MESSAGE_CHARS = 50
MAX_MESSAGE_CHARS = 10000


@dataclass(frozen=True)
class SelectorStrategy:
    """One structural query tried against the document."""

    name: str
    selector: str

    def find(self, document: DocumentPort) -> List[Any]:
        return list(document.select(self.selector))


DEFAULT_STRATEGIES: Tuple[SelectorStrategy, ...] = (
    SelectorStrategy("data-role-assistant", '[data-role="assistant"]'),
    SelectorStrategy("role-assistant", '[role="assistant"]'),
    SelectorStrategy("prose", 'div[class*="prose"]'),
    SelectorStrategy("markdown", 'div[class*="markdown"]'),
    SelectorStrategy("conversation", '[class*="conversation"]'),
    SelectorStrategy("chat-message", '[class*="chat-message"]'),
    SelectorStrategy("testid-chat", '[data-testid*="chat"]'),
    SelectorStrategy("testid-message", '[data-testid*="message"]'),
    SelectorStrategy(
        "paragraph-container",
        'div:has(p):not([class*="sidebar"]):not([class*="header"]):not([class*="footer"])',
    ),
    SelectorStrategy("main-div", "main div"),
    SelectorStrategy("article-div", "article div"),
    SelectorStrategy("any-div", "div"),
)


class MessageExtractor:
    """Collects unique conversational texts from the document in page order."""

    def __init__(
        self,
        strategies: Iterable[SelectorStrategy] = DEFAULT_STRATEGIES,
        min_chars: int = MIN_MESSAGE_CHARS,
        max_chars: int = MAX_MESSAGE_CHARS,
        text_filter: Callable[[str], bool] = is_conversational,
    ) -> None:
        self._strategies = list(strategies)
        self._min_chars = min_chars
        self._max_chars = max_chars
        self._text_filter = text_filter

    def _accepts(self, text: str, seen: set[str]) -> bool:
        return (
            self._min_chars < len(text) < self._max_chars
            and text not in seen
            and self._text_filter(text)
        )

    def extract(self, document: DocumentPort) -> List[CandidateMessage]:
        """Return candidate messages ordered by document position."""

        seen: set[str] = set()
        found: List[Tuple[Any, str]] = []

        for strategy in self._strategies:
            # A broken query or a tree mutating under us only costs this strategy.
            try:
                for node in strategy.find(document):
                    text = (document.text_of(node) or "").strip()
                    if self._accepts(text, seen):
                        seen.add(text)
                        found.append((node, text))
            except Exception:
                LOGGER.debug("Skipping selector strategy %s", strategy.name, exc_info=True)
                continue

        found.sort(
            key=functools.cmp_to_key(lambda a, b: document.compare_position(a[0], b[0]))
        )

        observed_at = datetime.now(timezone.utc)
        return [CandidateMessage.from_node(node, text, observed_at) for node, text in found]
