"""Retry with exponential backoff for idempotent API requests."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import TypeVar

from .tui.exceptions import ArchonConnectionError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """Configuration for retry behavior."""

    max_attempts: int = 3
    """Total number of attempts including the first one (default: 3)"""

    backoff_seconds: float = 0.2
    """Delay before the second attempt (default: 0.2)"""

    backoff_multiplier: float = 2.0
    """Exponential backoff multiplier (default: 2.0)"""

    max_backoff_seconds: float = 2.0
    """Maximum backoff delay in seconds (default: 2.0)"""

    def _calculate_backoff(self, attempt: int) -> float:
        """Calculate exponential backoff delay.

        Args:
            attempt: Attempt that just failed (1-indexed)

        Returns:
            Backoff delay in seconds
        """
        delay = self.backoff_seconds * (self.backoff_multiplier ** (attempt - 1))
        return min(delay, self.max_backoff_seconds)

    def call(
        self,
        fn: Callable[[], T],
        retry_on: tuple[type[BaseException], ...] = (ArchonConnectionError,),
        sleep: Callable[[float], None] = time.sleep,
    ) -> T:
        """Call ``fn`` until it succeeds or attempts run out.

        Args:
            fn: Zero-argument callable performing the request
            retry_on: Exception types that trigger a retry
            sleep: Sleep function (injectable for tests)

        Returns:
            Whatever ``fn`` returns

        Raises:
            The last exception raised by ``fn`` once attempts are exhausted,
            or any exception not listed in ``retry_on`` immediately.
        """
        attempt = 1
        while True:
            try:
                return fn()
            except retry_on as err:
                if attempt >= self.max_attempts:
                    logger.warning(f"Giving up after {attempt} attempt(s): {err}")
                    raise
                backoff = self._calculate_backoff(attempt)
                logger.debug(
                    f"Request failed, retrying in {backoff:.2f}s "
                    f"({attempt}/{self.max_attempts}): {err}"
                )
                sleep(backoff)
                attempt += 1
