from __future__ import annotations

import math
import threading
from typing import List, Optional, Sequence

from .schema import Listing


def allocate(max_items: Optional[int], portal_count: int) -> Optional[int]:
    """Per-portal item cap. ``None`` means unbounded.

    Rounds up, so caps may sum to slightly more than ``max_items``; the
    orchestrator enforces the global cap on its own.
    """
    if max_items is None:
        return None
    if portal_count <= 0:
        return 0
    return math.ceil(max_items / portal_count)


class Quota:
    """Thread-safe item budget shared by the combinations of one portal."""

    def __init__(self, cap: Optional[int]) -> None:
        self.cap = cap
        self.collected = 0
        self._lock = threading.Lock()

    @property
    def exhausted(self) -> bool:
        return self.cap is not None and self.collected >= self.cap

    @property
    def remaining(self) -> Optional[int]:
        if self.cap is None:
            return None
        return max(self.cap - self.collected, 0)

    def take(self, listings: Sequence[Listing]) -> List[Listing]:
        """Claim as many of ``listings`` as the budget allows."""
        with self._lock:
            room = len(listings) if self.cap is None else self.remaining
            taken = list(listings[:room])
            self.collected += len(taken)
            return taken
