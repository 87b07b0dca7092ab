from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from core.config import MonitorConfig
from core.models import CandidateMessage, Outcome, Settings
from core.session import MonitorSession

PROJECT_URL = "https://bolt.new/~/sb1-demo"
NEUTRAL = "Here is an overview of the layout with a header and a footer area."
SUCCESS = "I've created the login page and deployed it successfully."
ERROR = "There was an error building the project. Should we try to fix this problem?"


class Node:
    pass


class FakeDocument:
    def __init__(self) -> None:
        self.subscribers: list[Callable] = []

    def select(self, selector: str) -> list:
        return []

    def text_of(self, node) -> str:
        return ""

    def is_element(self, node) -> bool:
        return True

    def compare_position(self, first, second) -> int:
        return 0

    def subscribe(self, callback: Callable) -> None:
        self.subscribers.append(callback)


class FakeExtractor:
    """Returns whatever texts the test put on the page."""

    def __init__(self) -> None:
        self.texts: list[str] = []
        self.fail = False
        self._nodes: list[Node] = []

    def extract(self, document) -> list[CandidateMessage]:
        if self.fail:
            raise RuntimeError("tree changed mid-scan")
        self._nodes = [Node() for _ in self.texts]
        now = datetime(2024, 1, 1, tzinfo=timezone.utc)
        return [
            CandidateMessage.from_node(node, text, now)
            for node, text in zip(self._nodes, self.texts)
        ]


class FakeSettingsProvider:
    def __init__(self, settings: Optional[Settings] = None) -> None:
        self.settings = settings or Settings()
        self.fail = False
        self.callbacks: list[Callable[[], None]] = []

    async def get(self) -> Settings:
        if self.fail:
            raise OSError("preferences unavailable")
        return self.settings

    def on_change(self, callback: Callable[[], None]) -> None:
        self.callbacks.append(callback)


class FakeNotifier:
    def __init__(self, fail: bool = False) -> None:
        self.sent: list[tuple[Outcome, Settings]] = []
        self.fail = fail

    async def notify(self, outcome: Outcome, settings: Settings) -> None:
        if self.fail:
            raise RuntimeError("receiver is gone")
        self.sent.append((outcome, settings))


def _session(
    extractor: FakeExtractor,
    notifier: FakeNotifier,
    provider: Optional[FakeSettingsProvider] = None,
    url: str = PROJECT_URL,
) -> MonitorSession:
    return MonitorSession(
        page_url=url,
        document=FakeDocument(),
        settings_provider=provider or FakeSettingsProvider(),
        notifier=notifier,
        monitor_config=MonitorConfig(poll_interval_seconds=60.0),
        extractor=extractor,
    )


def test_three_checks_notify_on_growth_only() -> None:
    extractor = FakeExtractor()
    notifier = FakeNotifier()
    session = _session(extractor, notifier)

    async def scenario() -> None:
        extractor.texts = [NEUTRAL] * 5
        assert session.check() is Outcome.NONE
        assert session.last_message_count == 5

        extractor.texts = [NEUTRAL] * 5 + [SUCCESS, NEUTRAL]
        assert session.check() is Outcome.SUCCESS
        await session.drain()
        assert len(notifier.sent) == 1

        assert session.check() is None
        await session.drain()
        assert len(notifier.sent) == 1

        extractor.texts = extractor.texts + [NEUTRAL, ERROR]
        assert session.check() is Outcome.ERROR
        await session.drain()

    asyncio.run(scenario())

    assert [outcome for outcome, _ in notifier.sent] == [Outcome.SUCCESS, Outcome.ERROR]
    assert session.last_message_count == 9


def test_repeated_check_is_idempotent() -> None:
    extractor = FakeExtractor()
    notifier = FakeNotifier()
    session = _session(extractor, notifier)
    extractor.texts = [NEUTRAL, SUCCESS]

    async def scenario() -> None:
        session.check()
        session.check()
        await session.drain()

    asyncio.run(scenario())

    assert len(notifier.sent) == 1


def test_only_the_newest_window_is_classified() -> None:
    extractor = FakeExtractor()
    notifier = FakeNotifier()
    session = _session(extractor, notifier)
    extractor.texts = [SUCCESS, NEUTRAL, NEUTRAL, NEUTRAL]

    async def scenario() -> None:
        assert session.check() is Outcome.NONE
        await session.drain()

    asyncio.run(scenario())

    assert notifier.sent == []
    assert session.last_message_count == 4


def test_first_non_none_in_window_wins() -> None:
    extractor = FakeExtractor()
    notifier = FakeNotifier()
    session = _session(extractor, notifier)
    extractor.texts = [NEUTRAL, SUCCESS, ERROR]

    async def scenario() -> None:
        assert session.check() is Outcome.SUCCESS
        await session.drain()

    asyncio.run(scenario())

    assert [outcome for outcome, _ in notifier.sent] == [Outcome.SUCCESS]


def test_count_never_decreases() -> None:
    extractor = FakeExtractor()
    notifier = FakeNotifier()
    session = _session(extractor, notifier)
    seen_counts = []

    async def scenario() -> None:
        for size in (5, 3, 5, 4, 6):
            extractor.texts = [NEUTRAL] * (size - 1) + [SUCCESS]
            session.check()
            seen_counts.append(session.last_message_count)
        await session.drain()

    asyncio.run(scenario())

    assert seen_counts == [5, 5, 5, 5, 6]
    assert len(notifier.sent) == 2


def test_excluded_page_never_checks() -> None:
    extractor = FakeExtractor()
    notifier = FakeNotifier()
    session = _session(extractor, notifier, url="https://bolt.new/")
    extractor.texts = [SUCCESS]

    async def scenario() -> None:
        assert session.check() is None
        assert session.trigger(Outcome.SUCCESS) is False
        await session.drain()

    asyncio.run(scenario())

    assert session.is_excluded_page
    assert session.last_message_count == 0
    assert notifier.sent == []


def test_extraction_error_is_swallowed(caplog) -> None:
    extractor = FakeExtractor()
    notifier = FakeNotifier()
    session = _session(extractor, notifier)
    extractor.texts = [SUCCESS]
    extractor.fail = True

    async def scenario() -> None:
        with caplog.at_level(logging.ERROR):
            assert session.check() is None
        extractor.fail = False
        assert session.check() is Outcome.SUCCESS
        await session.drain()

    asyncio.run(scenario())

    assert "Error checking messages" in caplog.text
    assert len(notifier.sent) == 1


def test_delivery_failure_is_logged_not_retried(caplog) -> None:
    extractor = FakeExtractor()
    notifier = FakeNotifier(fail=True)
    session = _session(extractor, notifier)
    extractor.texts = [ERROR]

    async def scenario() -> None:
        with caplog.at_level(logging.ERROR):
            assert session.check() is Outcome.ERROR
            await session.drain()
        assert session.check() is None
        await session.drain()

    asyncio.run(scenario())

    assert "Failed to deliver error notification" in caplog.text
    assert session.last_message_count == 1


def test_notification_carries_settings_snapshot() -> None:
    extractor = FakeExtractor()
    notifier = FakeNotifier()
    custom = Settings(success_sound="sounds/success3.mp3", volume=0.2)
    provider = FakeSettingsProvider(custom)
    session = _session(extractor, notifier, provider)
    extractor.texts = [SUCCESS]

    async def scenario() -> None:
        await session.refresh_settings()
        session.check()
        await session.drain()

    asyncio.run(scenario())

    assert notifier.sent == [(Outcome.SUCCESS, custom)]


def test_settings_change_triggers_refetch() -> None:
    provider = FakeSettingsProvider()
    session = _session(FakeExtractor(), FakeNotifier(), provider)
    updated = Settings(audio_enabled=False)

    async def scenario() -> None:
        await session.start()
        assert session.is_monitoring
        provider.settings = updated
        for callback in provider.callbacks:
            callback()
        await session.drain()
        session.stop()

    asyncio.run(scenario())

    assert session.settings == updated
    assert not session.is_monitoring


def test_failed_settings_fetch_keeps_last_snapshot() -> None:
    first = Settings(volume=0.3)
    provider = FakeSettingsProvider(first)
    session = _session(FakeExtractor(), FakeNotifier(), provider)

    async def scenario() -> None:
        await session.refresh_settings()
        provider.fail = True
        await session.refresh_settings()

    asyncio.run(scenario())

    assert session.settings == first


def test_start_twice_subscribes_once() -> None:
    provider = FakeSettingsProvider()
    session = _session(FakeExtractor(), FakeNotifier(), provider)

    async def scenario() -> None:
        await session.start()
        await session.start()
        session.stop()

    asyncio.run(scenario())

    assert len(provider.callbacks) == 1


def test_manual_trigger_sends_notification() -> None:
    notifier = FakeNotifier()
    session = _session(FakeExtractor(), notifier)

    async def scenario() -> None:
        assert session.trigger(Outcome.ERROR) is True
        await session.drain()

    asyncio.run(scenario())

    assert [outcome for outcome, _ in notifier.sent] == [Outcome.ERROR]


def test_inspect_leaves_state_untouched() -> None:
    extractor = FakeExtractor()
    notifier = FakeNotifier()
    session = _session(extractor, notifier)
    extractor.texts = [NEUTRAL, SUCCESS, ERROR]

    inspected = session.inspect(limit=2)

    assert [result.outcome for _, result in inspected] == [Outcome.SUCCESS, Outcome.ERROR]
    assert session.last_message_count == 0
    assert notifier.sent == []
    assert session.inspect(limit=0) == []
