"""Multi-key chord recognition (e.g. ``gg``) with a timeout.

The clock is injectable so tests can step time deterministically.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

logger = logging.getLogger(__name__)

JUMP_TO_FIRST = "gg"

# Two-key sequences mapped to the command they trigger.
CHORDS = {("g", "g"): JUMP_TO_FIRST}
CHORD_PREFIXES = frozenset(first for first, _ in CHORDS)


class ChordTracker:
    """Tracks a pending chord prefix and completes it within the timeout."""

    def __init__(
        self,
        timeout_ms: int = 500,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize chord tracker.

        Args:
            timeout_ms: Maximum gap between the two keys of a chord
            clock: Monotonic time source in seconds
        """
        self.timeout_ms = timeout_ms
        self.clock = clock
        self._pending: str | None = None
        self._pending_at = 0.0

    @property
    def pending(self) -> str | None:
        return self._pending

    def _expired(self, now: float) -> bool:
        return (now - self._pending_at) * 1000 > self.timeout_ms

    def feed(self, key: str) -> tuple[bool, str | None]:
        """Process a key press.

        Args:
            key: Normalized key name

        Returns:
            Tuple of (consumed, chord):
                - consumed: True if the key was swallowed by the recognizer
                - chord: Completed chord command, or None
        """
        now = self.clock()
        pending = self._pending
        self._pending = None

        if pending is not None and not self._expired(now):
            chord = CHORDS.get((pending, key))
            if chord is not None:
                logger.debug(f"Chord completed: {chord}")
                return True, chord

        if key in CHORD_PREFIXES:
            self._pending = key
            self._pending_at = now
            return True, None

        return False, None

    def expire(self, now: float | None = None) -> bool:
        """Drop a stale pending prefix. Returns True if one was dropped."""
        if self._pending is None:
            return False
        if self._expired(self.clock() if now is None else now):
            self._pending = None
            return True
        return False

    def clear(self) -> None:
        self._pending = None
