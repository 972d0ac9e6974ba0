# ============================================================================
# Kraken Market Adapter v0.1.0
# Nonce Generator
# ============================================================================
#
# Nonce format (19 ASCII digits):
#   [seconds since epoch]<width = 10> || [sub-second nanoseconds]<width = 9>
#
# Thread Safety: single point of generation behind a mutex
#
# ============================================================================

import time
import threading
import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)

SECONDS_WIDTH = 10
SUBSECOND_WIDTH = 9
NONCE_WIDTH = SECONDS_WIDTH + SUBSECOND_WIDTH

_NANOS_PER_SECOND = 10 ** SUBSECOND_WIDTH


def format_nonce(seconds: int, nanoseconds: int) -> str:
    """Compose the fixed-width nonce string from its two fields."""
    return f"{seconds:0{SECONDS_WIDTH}d}{nanoseconds:0{SUBSECOND_WIDTH}d}"


class NonceGenerator:
    """
    Strictly increasing nonce source for one credential set.

    Fixed-width fields keep lexical order equal to numeric order. When the
    clock repeats a reading or steps backwards the previous value + 1 is
    emitted instead.

    Example Usage:
        nonces = NonceGenerator()
        nonce = nonces.next()   # e.g. "1700000000123456789"
    """

    def __init__(self, clock_ns: Optional[Callable[[], int]] = None):
        """
        Args:
            clock_ns: Wall clock in integer nanoseconds (default: time.time_ns)
        """
        self._clock_ns = clock_ns or time.time_ns
        self._last = 0
        self._lock = threading.Lock()

    def next(self) -> str:
        """Return the next nonce. Never fails and never repeats."""
        with self._lock:
            now = self._clock_ns()
            candidate = int(
                format_nonce(now // _NANOS_PER_SECOND, now % _NANOS_PER_SECOND)
            )
            if candidate <= self._last:
                logger.debug(
                    f"[KRK-NONCE] Clock did not advance | "
                    f"clock={candidate} | last={self._last}"
                )
                candidate = self._last + 1
            self._last = candidate
            return f"{candidate:0{NONCE_WIDTH}d}"

    @property
    def last(self) -> int:
        """Last emitted value (0 before the first call)."""
        return self._last
