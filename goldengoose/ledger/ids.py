"""
Time-derived identifiers.

Ids are wall-clock milliseconds, bumped so that every id handed out by one
generator is strictly greater than the previous one. Transactions sort by id
for display, so two deposits in the same millisecond must not collide.
"""

import threading
import time
from typing import Callable, Optional


def _wall_clock_ms() -> int:
    return time.time_ns() // 1_000_000


class MonotonicIdGenerator:
    """Hands out strictly increasing integer ids."""
    
    def __init__(self, clock: Optional[Callable[[], int]] = None):
        self._clock = clock or _wall_clock_ms
        self._last = 0
        self._lock = threading.Lock()
    
    def next_id(self, floor: int = 0) -> int:
        """
        Next id, greater than every id issued so far and than `floor`.
        
        Pass the newest existing id as `floor` so ids stay increasing across
        restarts even if the wall clock moved backwards.
        """
        with self._lock:
            candidate = max(self._clock(), self._last + 1, floor + 1)
            self._last = candidate
            return candidate


_default_generator = MonotonicIdGenerator()


def default_id_generator() -> MonotonicIdGenerator:
    """Process-wide generator shared by components that are not given one."""
    return _default_generator
