"""
Snapshot persistence — hydrate at startup, flush periodically and on reset.

Failure policy:
  1. A failed load is logged and the in-memory state is kept as-is
     (defaults at startup). Nothing is raised to the caller.
  2. A failed save is logged and dropped. The next periodic save
     supersedes it; there are no retries.
  3. Saves are full overwrites of one key, so overlapping saves are
     harmless (last write wins) and need no lock.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Optional, Set

from services.telemetry_service.models import MetricsSnapshot
from services.telemetry_service.state import MetricsState
from services.telemetry_service.stores import KeyValueStore
from utils.logger import get_logger

_log = get_logger(__name__)


class PeriodicSaver:
    """
    Handle for the recurring save task.

    Every tick spawns a save without waiting for the previous one, so a
    slow store never delays the schedule. `trigger()` runs one save now,
    which lets tests skip the wall-clock interval.
    """

    def __init__(self, save: Callable[[], Awaitable[None]], interval: float) -> None:
        self._save = save
        self._interval = interval
        self._task: Optional[asyncio.Task] = None
        self._in_flight: Set[asyncio.Task] = set()

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Schedule the loop on the running event loop. No-op if already running."""
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())
        _log.info("telemetry_periodic_save_started", interval_s=self._interval)

    async def stop(self) -> None:
        """Cancel the loop and wait for saves already in flight."""
        task, self._task = self._task, None
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
            _log.info("telemetry_periodic_save_stopped")
        if self._in_flight:
            await asyncio.gather(*self._in_flight)

    async def trigger(self) -> None:
        await self._save()

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            save = asyncio.get_running_loop().create_task(self._save())
            self._in_flight.add(save)
            save.add_done_callback(self._in_flight.discard)


class PersistenceManager:
    """Moves the shared snapshot between memory and a KeyValueStore."""

    def __init__(self, state: MetricsState, store: KeyValueStore, key: str = "telemetry") -> None:
        self._state = state
        self._store = store
        self._key = key

    @property
    def store(self) -> KeyValueStore:
        return self._store

    @property
    def key(self) -> str:
        return self._key

    async def initialize(self) -> None:
        """Overlay the persisted snapshot on the current one (persisted fields win)."""
        try:
            stored = await self._store.get(self._key)
            if stored is None:
                _log.info("telemetry_no_snapshot", key=self._key)
                return
            if not isinstance(stored, dict):
                raise TypeError(f"expected a JSON object, got {type(stored).__name__}")
            merged = {**self._state.snapshot.to_document(), **stored}
            self._state.replace(MetricsSnapshot.model_validate(merged))
            _log.info(
                "telemetry_loaded",
                key=self._key,
                searches=self._state.snapshot.search_count,
                providers=len(self._state.snapshot.api_success_rates),
            )
        except Exception as e:
            _log.warning("telemetry_load_failed", key=self._key, error=str(e))

    async def save(self) -> None:
        """Write the whole snapshot under the fixed key."""
        # Serialized before the first await: the stored copy is never a
        # mix of two states.
        document = self._state.snapshot.to_document()
        try:
            await self._store.set(self._key, document)
            _log.debug("telemetry_saved", key=self._key, searches=document["searchCount"])
        except Exception as e:
            _log.warning("telemetry_save_failed", key=self._key, error=str(e))

    async def reset(self) -> None:
        """Start a new measurement window and persist it immediately."""
        self._state.replace(self._state.fresh())
        _log.info("telemetry_reset", last_reset=self._state.snapshot.last_reset)
        await self.save()

    def start_periodic_save(self, interval: float = 30.0) -> PeriodicSaver:
        saver = PeriodicSaver(self.save, interval)
        saver.start()
        return saver


__all__ = ["PersistenceManager", "PeriodicSaver"]
