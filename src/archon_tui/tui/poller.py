"""Background timer feeding Tick events into the event queue.

Ticks drive the loading spinner, status message expiry and chord timeouts.
The queue coalesces ticks, so a slow main loop never sees a backlog.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable

from .events import EventQueue, Tick

logger = logging.getLogger(__name__)


class TickSource:
    """Background thread that publishes a Tick every ``interval_seconds``."""

    def __init__(
        self,
        event_queue: EventQueue,
        interval_seconds: float = 0.1,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize tick source.

        Args:
            event_queue: Queue to publish Tick events to
            interval_seconds: Delay between ticks
            clock: Monotonic time source stamped on each tick
        """
        self.event_queue = event_queue
        self.interval_seconds = interval_seconds
        self.clock = clock

        # Thread control
        self._thread: threading.Thread | None = None
        self._stop_event = threading.Event()
        self._tick_count = 0

    @property
    def tick_count(self) -> int:
        return self._tick_count

    def _tick(self) -> None:
        """Publish one tick."""
        self.event_queue.put(Tick(now=self.clock()))
        self._tick_count += 1

    def _run(self) -> None:
        """Main loop running in background thread."""
        logger.info(f"TickSource started with interval {self.interval_seconds}s")

        while not self._stop_event.is_set():
            try:
                self._tick()
            except Exception as err:
                # Catch all exceptions to prevent thread crash
                logger.error(f"Error publishing tick: {err}", exc_info=True)

            self._stop_event.wait(self.interval_seconds)

        logger.info("TickSource stopped")

    def start(self) -> None:
        """Start the background tick thread."""
        if self._thread is not None and self._thread.is_alive():
            logger.warning("TickSource already running")
            return

        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, daemon=True, name="TickSource")
        self._thread.start()

    def stop(self) -> None:
        """Stop the background tick thread gracefully."""
        if self._thread is None:
            return

        self._stop_event.set()
        self._thread.join(timeout=max(self.interval_seconds * 2, 1.0))

        if self._thread.is_alive():
            logger.warning("TickSource thread did not stop within timeout")

        self._thread = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()
