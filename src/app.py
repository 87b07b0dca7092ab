"""Application entry point for the turnwatch monitor."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional

from art import tprint

import settings
from adapters.file_page import FilePageHost
from adapters.json_settings import JsonSettingsProvider
from adapters.log_notifier import LogNotifier
from adapters.soup_document import SoupDocument
from adapters.telegram_bot_notifier import TelegramBotNotifier
from core.classifier import explain, matching_patterns
from core.models import Outcome
from core.ports import NotifierPort
from core.session import MonitorSession

NAME = "TURNWATCH"
FONT = "tarty-1"
PREVIEW_CHARS = 150


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


class _RedactingFormatter(logging.Formatter):
    def __init__(self, secrets: list[str], fmt: str, datefmt: Optional[str] = None) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self._secrets = [secret for secret in secrets if secret]

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        for secret in self._secrets:
            message = message.replace(secret, "***")
        return message


def _collect_redaction_values(config: dict) -> list[str]:
    redact_cfg = config.get("redact", {}) if config else {}
    if not redact_cfg.get("enabled", False):
        return []
    values = []
    for name in redact_cfg.get("patterns", []):
        value = os.getenv(name)
        if value:
            values.append(value)
    return sorted(set(values), key=len, reverse=True)


def _configure_logging() -> None:
    config = settings.LOGGING or {}
    if not config.get("enabled", False):
        return

    level_name = str(config.get("level", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    fmt = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"
    secrets = _collect_redaction_values(config)
    formatter = _RedactingFormatter(secrets, fmt=fmt, datefmt=datefmt)

    handlers: list[logging.Handler] = []

    if config.get("console", True):
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    file_cfg = config.get("file", {})
    if file_cfg.get("enabled", False):
        path = file_cfg.get("path", "logs/turnwatch.log")
        if not os.path.isabs(path):
            path = os.path.join(settings.PROJECT_ROOT, path)
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        max_bytes = int(file_cfg.get("max_bytes", 5 * 1024 * 1024))
        backup_count = int(file_cfg.get("backup_count", 5))
        file_handler = RotatingFileHandler(
            path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    if not handlers:
        return

    logging.basicConfig(level=level, handlers=handlers)


def _build_notifier(page_url: str) -> NotifierPort:
    # Select the notification adapter based on configuration to keep the core
    # session independent from delivery details.
    if settings.NOTIFICATION_METHOD == "bot":
        bot_token = os.getenv("BOT_API")
        if not bot_token:
            raise RuntimeError("BOT_API is required when notification_method=bot")
        if not settings.BOT_CHAT_ID:
            raise RuntimeError("notifications.bot_chat_id is required for bot notifications")
        return TelegramBotNotifier(
            bot_token=bot_token,
            chat_id=str(settings.BOT_CHAT_ID),
            page_url=page_url,
        )
    if settings.NOTIFICATION_METHOD == "log":
        return LogNotifier(page_url)
    raise RuntimeError("notification_method must be 'log' or 'bot'")


def _build_session(
    page_url: str,
    document: SoupDocument,
    settings_provider: JsonSettingsProvider,
) -> MonitorSession:
    notifier = _build_notifier(page_url)
    logging.getLogger(__name__).info("Selected notification method - %s", settings.NOTIFICATION_METHOD)
    return MonitorSession(
        page_url=page_url,
        document=document,
        settings_provider=settings_provider,
        notifier=notifier,
        monitor_config=settings.MONITOR_CONFIG,
        page_config=settings.PAGE_CONFIG,
    )


async def _watch(page_path: str, page_url: str) -> None:
    document = SoupDocument.from_file(page_path)
    settings_provider = JsonSettingsProvider(settings.CONFIG_PATH)
    session = _build_session(page_url, document, settings_provider)
    host = FilePageHost(
        page_path,
        document,
        settings_provider=settings_provider,
        interval_seconds=settings.WATCH_INTERVAL_SECONDS,
    )

    await session.start()
    logging.getLogger(__name__).info("Watching %s as %s", page_path, page_url)
    try:
        await host.run()
    finally:
        session.stop()
        await session.drain()


def _run(page_path: Optional[str], page_url: Optional[str]) -> None:
    _print_banner()
    _configure_logging()
    logger = logging.getLogger(__name__)

    page_path = page_path or settings.PAGE_SNAPSHOT_PATH
    page_url = page_url or settings.PAGE_URL
    if not page_path:
        raise RuntimeError("A page snapshot is required (--page or page.snapshot_path)")

    logger.info("Starting turnwatch")
    try:
        asyncio.run(_watch(page_path, page_url))
    except KeyboardInterrupt:
        logger.info("Stopped")


def _classify(text: Optional[str]) -> None:
    if text is None:
        text = sys.stdin.read()
    result = explain(text)
    print(result.outcome.value)
    print(f"  decided by: {result.reason}")
    for hit in matching_patterns(text):
        print(f"  also matches {hit}")


def _detect(page_path: str, limit: int) -> None:
    _configure_logging()
    document = SoupDocument.from_file(page_path)
    session = MonitorSession(
        page_url=settings.PAGE_URL,
        document=document,
        settings_provider=JsonSettingsProvider(settings.CONFIG_PATH),
        notifier=LogNotifier(settings.PAGE_URL),
        monitor_config=settings.MONITOR_CONFIG,
        page_config=settings.PAGE_CONFIG,
    )
    inspected = session.inspect(limit)
    if not inspected:
        print("No candidate messages found.")
        return

    for index, (message, result) in enumerate(inspected, start=1):
        preview = message.text[:PREVIEW_CHARS].replace("\n", " ")
        print(f"{index}. [{result.outcome.value}] {preview}")
        if result.pattern:
            print(f"   {result.reason}")


def _test_notify(outcome_name: str) -> None:
    _configure_logging()
    outcome = Outcome(outcome_name)

    async def _send() -> None:
        session = _build_session(
            settings.PAGE_URL,
            SoupDocument(),
            JsonSettingsProvider(settings.CONFIG_PATH),
        )
        await session.refresh_settings()
        if not session.trigger(outcome):
            print(f"{settings.PAGE_URL} is an excluded page; nothing sent.")
        await session.drain()

    asyncio.run(_send())


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="turnwatch")
    subparsers = parser.add_subparsers(dest="command")

    run_parser = subparsers.add_parser("run", help="Watch a page snapshot for finished turns")
    run_parser.add_argument("--page", help="HTML snapshot file to watch")
    run_parser.add_argument("--url", help="URL the snapshot was taken from")

    classify_parser = subparsers.add_parser("classify", help="Classify text (argument or stdin)")
    classify_parser.add_argument("text", nargs="?")

    detect_parser = subparsers.add_parser("detect", help="List candidate messages in an HTML file")
    detect_parser.add_argument("page")
    detect_parser.add_argument("--limit", type=int, default=10)

    notify_parser = subparsers.add_parser("test-notify", help="Send one test notification")
    notify_parser.add_argument("outcome", choices=[Outcome.SUCCESS.value, Outcome.ERROR.value])

    args = parser.parse_args(argv)
    if args.command == "classify":
        _classify(args.text)
        return
    if args.command == "detect":
        _detect(args.page, args.limit)
        return
    if args.command == "test-notify":
        _test_notify(args.outcome)
        return
    _run(getattr(args, "page", None), getattr(args, "url", None))


if __name__ == "__main__":
    main()
