"""
Shared holder for the canonical telemetry snapshot.

Recorder and PersistenceManager both hold the same MetricsState, so when
a load or reset swaps in a new snapshot every component sees it.
"""

from __future__ import annotations

import time
from typing import Callable, Optional

from services.telemetry_service.models import MetricsSnapshot


class MetricsState:
    """Owns the current MetricsSnapshot and the clock used to stamp it."""

    def __init__(self, clock: Optional[Callable[[], float]] = None) -> None:
        self._clock = clock or time.time
        self.snapshot = self.fresh()

    def now_ms(self) -> int:
        """Current time in epoch milliseconds."""
        return int(self._clock() * 1000)

    def fresh(self) -> MetricsSnapshot:
        return MetricsSnapshot.fresh(self.now_ms())

    def replace(self, snapshot: MetricsSnapshot) -> None:
        self.snapshot = snapshot
