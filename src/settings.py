"""Static configuration for turnwatch.

All user-editable settings (page, scheduling, preferences, notifications,
logging) live in a single JSON file for quick edits without touching Python.
"""

import json
import os

from dotenv import load_dotenv

from core.config import MonitorConfig, PageConfig

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

load_dotenv()

# The config path can be pointed elsewhere through the environment (or .env).
CONFIG_PATH = os.getenv("TURNWATCH_CONFIG", os.path.join(PROJECT_ROOT, "config.json"))


def _load_json_config() -> dict:
    """Load config.json with a flat, user-friendly schema."""

    if not os.path.exists(CONFIG_PATH):
        raise FileNotFoundError(f"Config file not found: {CONFIG_PATH}")

    with open(CONFIG_PATH, "r", encoding="utf-8") as handle:
        return json.load(handle)


def _resolve_path(path: str) -> str:
    if not path or os.path.isabs(path):
        return path
    return os.path.join(PROJECT_ROOT, path)


_CONFIG = _load_json_config()

# Expose the raw config for modules that need structured access.
CONFIG = _CONFIG

# Page being watched and the rules for the excluded landing page.
_page = _CONFIG.get("page", {})
PAGE_URL = _page.get("url", "")
PAGE_SNAPSHOT_PATH = _resolve_path(_page.get("snapshot_path", ""))
_page_defaults = PageConfig()
PAGE_CONFIG = PageConfig(
    home_url_patterns=tuple(_page.get("home_url_patterns", _page_defaults.home_url_patterns)),
    project_path_markers=tuple(
        _page.get("project_path_markers", _page_defaults.project_path_markers)
    ),
)

# Scheduling for the debounced mutation trigger and the fallback poll.
_monitor = _CONFIG.get("monitor", {})
MONITOR_CONFIG = MonitorConfig(
    debounce_seconds=float(_monitor.get("debounce_seconds", 0.5)),
    poll_interval_seconds=float(_monitor.get("poll_interval_seconds", 3.0)),
    recent_window=int(_monitor.get("recent_window", 3)),
    mutation_min_chars=int(_monitor.get("mutation_min_chars", 50)),
)
# How often the snapshot host looks at the page and config files.
WATCH_INTERVAL_SECONDS = float(_monitor.get("watch_interval_seconds", 1.0))

# Notification method switches adapters without changing core logic.
_notifications = _CONFIG.get("notifications", {})
NOTIFICATION_METHOD = _notifications.get("notification_method", "log")
# Bot chat id is only required when notification_method=bot.
BOT_CHAT_ID = _notifications.get("bot_chat_id")

# Logging configuration (optional).
LOGGING = _CONFIG.get("logging", {})
