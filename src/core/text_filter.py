"""Conversational text filter (core domain).

Tells assistant prose apart from the UI chrome that surrounds it on the page.
"""

from __future__ import annotations

import re

MIN_TEXT_CHARS = 20

# Chrome phrases that never belong to a conversational turn.
BLOCKED_PHRASES = (
    "subscribe to pro",
    "monthly tokens",
    "waiting for preview",
    "help center",
    "join our community",
    "your preview will appear",
)

CONVERSATION_MARKERS = (
    "i'll",
    "i've",
    "let me",
    "here's",
    "i can",
    "i will",
    "created",
    "updated",
    "implemented",
    "added",
    "built",
    "the project",
    "the application",
    "the component",
    "now you can",
    "you should see",
    "this will",
)

_NUMERIC_ONLY = re.compile(r"^\d+$")


def is_conversational(text: str) -> bool:
    """Return True when the text reads like a conversational message.

    Matching logic:
    - Short text, digit-only text and block-listed chrome are rejected.
    - Otherwise at least one conversation marker must be present.
    """

    lowered = text.lower()
    if len(lowered) < MIN_TEXT_CHARS or _NUMERIC_ONLY.match(lowered):
        return False
    if any(phrase in lowered for phrase in BLOCKED_PHRASES):
        return False
    return any(marker in lowered for marker in CONVERSATION_MARKERS)
