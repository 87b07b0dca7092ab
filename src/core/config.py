"""Core configuration dataclasses.

We keep config parsing outside the core, but these dataclasses define the
shape the core expects so adapters and app layers can build safely.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Tuple

from core.models import FavoriteProject, Settings

_DEFAULTS = Settings()


@dataclass(frozen=True)
class MonitorConfig:
    """Scheduling and selection tunables for a monitor session."""

    debounce_seconds: float = 0.5
    poll_interval_seconds: float = 3.0
    recent_window: int = 3
    mutation_min_chars: int = 50


@dataclass(frozen=True)
class PageConfig:
    """Rules deciding whether a page URL is excluded from notifications."""

    home_url_patterns: Tuple[str, ...] = (r"^https://bolt\.new/?(\?.*)?$",)
    project_path_markers: Tuple[str, ...] = field(default=("/~/", "/edit/", "/project/"))


def _clamp_volume(raw: Any) -> float:
    if raw is None:
        return _DEFAULTS.volume
    try:
        volume = float(raw)
    except (TypeError, ValueError):
        return _DEFAULTS.volume
    return min(1.0, max(0.0, volume))


def build_settings(raw: Mapping[str, Any]) -> Settings:
    """Normalize a raw preference mapping into a Settings snapshot.

    Missing keys fall back to defaults and only an explicit ``false`` turns
    audio off, so a partially written preference file still yields a usable
    snapshot.
    """

    favorites = []
    for entry in raw.get("favoriteProjects") or []:
        if not isinstance(entry, Mapping):
            continue
        favorites.append(
            FavoriteProject(name=str(entry.get("name", "")), url=str(entry.get("url", "")))
        )

    return Settings(
        success_sound=raw.get("successSound") or _DEFAULTS.success_sound,
        error_sound=raw.get("errorSound") or _DEFAULTS.error_sound,
        volume=_clamp_volume(raw.get("volume")),
        audio_enabled=raw.get("audioEnabled") is not False,
        favorite_projects=tuple(favorites),
    )
