"""Outcome classification tables and matching logic (core domain)."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from core.models import ClassificationResult, Outcome

MIN_CLASSIFY_CHARS = 10


@dataclass(frozen=True)
class PatternTable:
    """Compiled, ordered regex table mapped to a single outcome."""

    name: str
    outcome: Outcome
    patterns: Tuple[re.Pattern, ...]

    def first_match(self, text: str) -> Optional[re.Pattern]:
        for pattern in self.patterns:
            if pattern.search(text):
                return pattern
        return None


def build_table(name: str, outcome: Outcome, raw_patterns: Iterable[str]) -> PatternTable:
    """Compile raw patterns case-insensitively, keeping their order."""

    compiled = tuple(re.compile(pattern, re.IGNORECASE) for pattern in raw_patterns)
    return PatternTable(name=name, outcome=outcome, patterns=compiled)


ERROR_PATTERNS = (
    r"should we try to fix this problem\?",
    r"potential problem detected",
    r"\berror\s+(occurred|detected|found)",
    r"\bfailed\s+to\s+(create|build|deploy|install|load)",
    r"\bsomething\s+went\s+wrong",
    r"\bthere\s+was\s+an?\s+(error|issue|problem)",
    r"\bunable\s+to\s+(connect|access|load|create)",
    r"\bconnection\s+(failed|error|timeout)",
    r"\bbuild\s+(failed|error)",
    r"\bdeployment\s+(failed|error)",
    r"\binstallation\s+(failed|error)",
    r"\btimeout\s+(error|occurred)",
    r"\bnetwork\s+(error|issue)",
    r"\bpermission\s+(denied|error)",
    r"\bfile\s+not\s+found",
    r"\bmodule\s+not\s+found",
    r"\bsyntax\s+error",
    r"\breference\s+error",
    r"\btype\s+error",
    # A turn that reports repairing a failure still means the task hit one.
    r"\b(fixed|fixing|resolved)\s+(the|an?|this|that|these|those)\s+(errors?|issues?|problems?)\b",
)

# "I've done X" narration is the most reliable completion signal.
IVE_PATTERNS = (
    r"\bi've\s+(created|updated|implemented|added|built|set up|configured|fixed|modified|established|deployed|successfully)",
    r"\bi've\s+(now|just|already)\s+(created|updated|implemented|added|built)",
    r"\bi've\s+(made|completed|finished)",
)

COMPLETION_PATTERNS = (
    r"\b(perfect|great|excellent)!\s+(i've|now)",
    r"\b(changes|improvements|updates)\s+(made|completed)",
    r"\b(task|implementation|setup|configuration|deployment)\s+(complete|completed|finished|done)",
    r"\b(successfully|now)\s+(created|implemented|deployed|built|added)",
    r"\bdeployment\s+(successful|complete|finished)",
    r"\bsite\s+is\s+(live|deployed|ready)",
    r"\bbuild\s+(successful|complete|finished)",
    r"\ball\s+set!",
    r"\bready\s+to\s+(go|use)",
    r"\bproject\s+is\s+(ready|complete)",
    r"\bperfect!\s+",
    r"\bexcellent!\s+",
    r"\bgreat!\s+",
)

ERROR_TABLE = build_table("error", Outcome.ERROR, ERROR_PATTERNS)
IVE_TABLE = build_table("ive", Outcome.SUCCESS, IVE_PATTERNS)
COMPLETION_TABLE = build_table("completion", Outcome.SUCCESS, COMPLETION_PATTERNS)

# Error precedence: ambiguous text must never be reported as success.
DEFAULT_TABLES: Tuple[PatternTable, ...] = (ERROR_TABLE, IVE_TABLE, COMPLETION_TABLE)


def _normalize(text: str) -> str:
    return text.replace("’", "'")


def explain(text: str, tables: Iterable[PatternTable] = DEFAULT_TABLES) -> ClassificationResult:
    """Return the outcome for the text along with the pattern that decided it."""

    if not text or len(text) < MIN_CLASSIFY_CHARS:
        return ClassificationResult(outcome=Outcome.NONE)

    normalized = _normalize(text)
    for table in tables:
        pattern = table.first_match(normalized)
        if pattern is not None:
            return ClassificationResult(
                outcome=table.outcome,
                table=table.name,
                pattern=pattern.pattern,
            )
    return ClassificationResult(outcome=Outcome.NONE)


def classify(text: str) -> Outcome:
    """Classify a message as success, error or none."""

    return explain(text).outcome


def is_error_message(text: str) -> bool:
    return explain(text, (ERROR_TABLE,)).outcome is Outcome.ERROR


def is_completion_message(text: str) -> bool:
    return explain(text, (IVE_TABLE, COMPLETION_TABLE)).outcome is Outcome.SUCCESS


def matching_patterns(text: str, tables: Iterable[PatternTable] = DEFAULT_TABLES) -> List[str]:
    """Return every pattern that matches, across all tables, for diagnostics."""

    normalized = _normalize(text)
    hits: List[str] = []
    for table in tables:
        hits.extend(
            f"{table.name}: {pattern.pattern}"
            for pattern in table.patterns
            if pattern.search(normalized)
        )
    return hits
