"""Tests for the TickSource background timer."""

from __future__ import annotations

import time

import pytest

from archon_tui.tui.events import EventQueue, Tick
from archon_tui.tui.poller import TickSource


@pytest.fixture
def event_queue() -> EventQueue:
    return EventQueue()


class TestTickSourceInit:
    """Tests for TickSource initialization."""

    def test_initialization(self, event_queue: EventQueue) -> None:
        """TickSource should store its parameters and start idle."""
        source = TickSource(event_queue, interval_seconds=0.5)

        assert source.event_queue is event_queue
        assert source.interval_seconds == 0.5
        assert source.tick_count == 0
        assert source.is_running is False


class TestTick:
    """Tests for publishing ticks."""

    def test_tick_uses_clock(self, event_queue: EventQueue) -> None:
        source = TickSource(event_queue, clock=lambda: 42.0)
        source._tick()
        assert event_queue.drain() == [Tick(now=42.0)]
        assert source.tick_count == 1

    def test_ticks_coalesce(self, event_queue: EventQueue) -> None:
        """Unconsumed ticks collapse to the latest one."""
        now = iter([1.0, 2.0, 3.0])
        source = TickSource(event_queue, clock=lambda: next(now))
        for _ in range(3):
            source._tick()
        assert event_queue.drain() == [Tick(now=3.0)]
        assert source.tick_count == 3


class TestTickSourceThread:
    """Tests for start/stop lifecycle."""

    def test_start_and_stop(self, event_queue: EventQueue) -> None:
        source = TickSource(event_queue, interval_seconds=0.01)
        source.start()
        try:
            assert source.is_running is True
            time.sleep(0.1)
        finally:
            source.stop()

        assert source.is_running is False
        assert source.tick_count > 0
        events = event_queue.drain()
        assert len(events) == 1
        assert isinstance(events[0], Tick)

    def test_start_twice_is_harmless(self, event_queue: EventQueue) -> None:
        source = TickSource(event_queue, interval_seconds=0.01)
        source.start()
        thread = source._thread
        try:
            source.start()
            assert source._thread is thread
        finally:
            source.stop()

    def test_stop_without_start(self, event_queue: EventQueue) -> None:
        TickSource(event_queue).stop()
