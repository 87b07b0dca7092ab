"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to any host-specific types.
"""

from __future__ import annotations

import enum
import weakref
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Optional, Tuple


class Outcome(str, enum.Enum):
    """Classification result for a single candidate message."""

    SUCCESS = "success"
    ERROR = "error"
    NONE = "none"


@dataclass(frozen=True)
class FavoriteProject:
    name: str
    url: str


@dataclass(frozen=True)
class Settings:
    """User preference snapshot handed to notifiers with every outcome."""

    success_sound: str = "sounds/success1.mp3"
    error_sound: str = "sounds/error1.mp3"
    volume: float = 0.7
    audio_enabled: bool = True
    favorite_projects: Tuple[FavoriteProject, ...] = ()

    def sound_for(self, outcome: Outcome) -> str:
        """Return the sound reference configured for an outcome."""

        if outcome is Outcome.SUCCESS:
            return self.success_sound
        if outcome is Outcome.ERROR:
            return self.error_sound
        raise ValueError(f"No sound for outcome: {outcome.value}")


@dataclass(frozen=True)
class CandidateMessage:
    """A text fragment extracted from the page that looks like a turn.

    The node is referenced weakly: the document owns it and may drop it
    between passes.
    """

    element_ref: Callable[[], Any]
    text: str
    observed_at: datetime

    @classmethod
    def from_node(cls, node: Any, text: str, observed_at: datetime) -> "CandidateMessage":
        return cls(element_ref=weakref.ref(node), text=text, observed_at=observed_at)

    @property
    def element(self) -> Optional[Any]:
        return self.element_ref()


@dataclass(frozen=True)
class MutationRecord:
    """A batched structural change reported by the document host."""

    kind: str
    added_nodes: Tuple[Any, ...] = ()


@dataclass(frozen=True)
class ClassificationResult:
    """Outcome plus the table and pattern that produced it."""

    outcome: Outcome
    table: Optional[str] = None
    pattern: Optional[str] = None

    @property
    def reason(self) -> str:
        if self.pattern is None:
            return "no pattern matched"
        return f"{self.table}: {self.pattern}"
