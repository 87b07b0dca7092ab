"""Shared notification formatting helpers.

Keeping formatting here prevents drift between adapters and keeps messages
consistent regardless of delivery channel.
"""

from __future__ import annotations

import html
from datetime import datetime
from typing import Optional

from core.models import Outcome, Settings

HEADLINES = {
    Outcome.SUCCESS: "Task completed",
    Outcome.ERROR: "Task failed",
}


def format_page_label(page_url: str, settings: Settings) -> str:
    """Return a human-friendly page label, using favorite project names if set."""

    for project in settings.favorite_projects:
        if project.name and project.url and page_url.startswith(project.url):
            return f"{project.name} ({page_url})"
    return page_url


def _headline(outcome: Outcome) -> str:
    try:
        return HEADLINES[outcome]
    except KeyError:
        raise ValueError(f"Unsupported notification outcome: {outcome.value}") from None


def _format_text(outcome: Outcome, settings: Settings, page_url: str, timestamp: str) -> str:
    """Create the plain text body used by the log notifier."""

    return "\n".join(
        [
            f"[{timestamp}] {_headline(outcome)}",
            f"Page:   {format_page_label(page_url, settings)}",
            f"Sound:  {settings.sound_for(outcome)} @ {round(settings.volume * 100)}%",
        ]
    )


def _format_html(outcome: Outcome, settings: Settings, page_url: str, timestamp: str) -> str:
    """Create the HTML body used by the Bot API adapter."""

    label = html.escape(format_page_label(page_url, settings))
    safe_link = html.escape(page_url)
    parts = [
        f"[{html.escape(timestamp)}]",
        f"<b>{html.escape(_headline(outcome))}</b>",
        "──────────────",
        f"<b>Page:</b> <a href=\"{safe_link}\">{label}</a>",
        f"<b>Sound:</b> {html.escape(settings.sound_for(outcome))}",
    ]
    return "\n".join(parts)


def format_notification(
    outcome: Outcome,
    settings: Settings,
    page_url: str,
    mode: str,
    when: Optional[datetime] = None,
) -> str:
    """Return the notification formatted for the requested mode."""

    timestamp = (when or datetime.now().astimezone()).astimezone().strftime("%H:%M:%S %d-%m-%Y")
    if mode == "text":
        return _format_text(outcome, settings, page_url, timestamp)
    if mode == "html":
        return _format_html(outcome, settings, page_url, timestamp)
    raise ValueError(f"Unsupported notification format: {mode}")
