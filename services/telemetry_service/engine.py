"""
TelemetryEngine — one explicitly constructed object per process.

Wires Recorder, PersistenceManager, the aggregate functions, the ranker
and the reporter around a single MetricsState. The process that owns the
search pipeline and the UI builds it once and hands it to both; there is
no module-level instance.

Lifecycle:
    engine = TelemetryEngine(store=JsonFileStore("telemetry.json"))
    await engine.initialize()
    engine.start_periodic_save()
    ...
    await engine.stop_periodic_save()
"""

from __future__ import annotations

from contextlib import contextmanager
from importlib.metadata import PackageNotFoundError, version
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional

from configs.settings import Settings, get_settings
from services.telemetry_service import aggregator
from services.telemetry_service.models import MetricsSnapshot, PerformanceReport, QueryStat, RankedSource
from services.telemetry_service.persistence import PeriodicSaver, PersistenceManager
from services.telemetry_service.ranker import get_optimal_sources
from services.telemetry_service.recorder import Recorder
from services.telemetry_service.reporter import build_performance_report, popular_queries
from services.telemetry_service.state import MetricsState
from services.telemetry_service.stores import InMemoryStore, KeyValueStore
from utils.logger import get_logger

_log = get_logger(__name__)

_DISTRIBUTION = "search-telemetry"


def _package_version() -> str:
    try:
        return version(_DISTRIBUTION)
    except PackageNotFoundError:
        return "unknown"


class TelemetryEngine:
    """Local, privacy-preserving performance telemetry for a multi-provider search client."""

    def __init__(
        self,
        store: Optional[KeyValueStore] = None,
        *,
        settings: Optional[Settings] = None,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        cfg = settings or get_settings()
        self._cfg = cfg
        self._state = MetricsState(clock=clock)
        self._recorder = Recorder(
            self._state,
            latency_window=cfg.telemetry_latency_window,
            popular_queries_limit=cfg.telemetry_popular_queries_limit,
        )
        self._persistence = PersistenceManager(
            self._state,
            store if store is not None else InMemoryStore(),
            key=cfg.telemetry_storage_key,
        )
        self._saver: Optional[PeriodicSaver] = None
        self._save_interval: Optional[float] = None
        self._recorder.enabled = cfg.telemetry_enabled

    # ── State ───────────────────────────────────────────────

    @property
    def snapshot(self) -> MetricsSnapshot:
        return self._state.snapshot

    @property
    def store(self) -> KeyValueStore:
        return self._persistence.store

    @property
    def enabled(self) -> bool:
        return self._recorder.enabled

    @property
    def periodic_save_running(self) -> bool:
        return self._saver is not None and self._saver.running

    # ── Ingestion ───────────────────────────────────────────

    def record_search(
        self,
        query: str,
        sources: Iterable[str],
        response_time: float,
        result_count: int = 0,
    ) -> None:
        self._recorder.record_search(query, sources, response_time, result_count)

    def record_api_call(self, source: str, success: bool, response_time: Optional[float] = None) -> None:
        self._recorder.record_api_call(source, success, response_time)

    def record_error(self, source: str, error_type: str) -> None:
        self._recorder.record_error(source, error_type)

    def record_cache_hit(self, cache_type: str, hit: bool) -> None:
        self._recorder.record_cache_hit(cache_type, hit)

    @contextmanager
    def track_api_call(self, source: str) -> Iterator[dict]:
        with self._recorder.track_api_call(source) as timing:
            yield timing

    # ── Queries ─────────────────────────────────────────────

    def get_success_rate(self, source: str) -> float:
        return aggregator.success_rate(self._state.snapshot, source)

    def get_average_response_time(self, source: str) -> float:
        return aggregator.average_response_time(self._state.snapshot, source)

    def get_cache_efficiency(self, cache_type: str) -> float:
        return aggregator.cache_efficiency(self._state.snapshot, cache_type)

    def get_overall_error_rate(self) -> float:
        return aggregator.overall_error_rate(self._state.snapshot)

    def get_optimal_sources(self, category: Optional[str] = None) -> List[RankedSource]:
        return get_optimal_sources(
            self._state.snapshot,
            category,
            min_success_rate=self._cfg.ranking_min_success_rate,
            tolerance=self._cfg.ranking_tolerance,
        )

    def get_performance_report(self) -> PerformanceReport:
        return build_performance_report(
            self._state.snapshot,
            self._state.now_ms(),
            top_errors=self._cfg.telemetry_top_errors_limit,
        )

    def get_popular_queries(self, limit: int = 10) -> List[QueryStat]:
        return popular_queries(self._state.snapshot, limit)

    def export_data(self) -> Dict[str, Any]:
        """Anonymized dump for debugging: report, top digests, timestamp, version."""
        return {
            "report": self.get_performance_report().model_dump(by_alias=True),
            "popularQueries": [q.model_dump(by_alias=True) for q in self.get_popular_queries()],
            "overallErrorRate": round(self.get_overall_error_rate(), 4),
            "timestamp": self._state.now_ms(),
            "version": _package_version(),
        }

    # ── Lifecycle ───────────────────────────────────────────

    async def initialize(self) -> None:
        await self._persistence.initialize()

    async def save(self) -> None:
        await self._persistence.save()

    async def reset(self) -> None:
        await self._persistence.reset()

    def start_periodic_save(self, interval: Optional[float] = None) -> Optional[PeriodicSaver]:
        """
        Start (or return the already running) periodic save task.

        The interval is remembered either way. While recording is disabled
        nothing starts and None is returned; `set_enabled(True)` starts it.
        """
        self._save_interval = interval or self._cfg.telemetry_save_interval_seconds
        if not self.enabled:
            return None
        if self._saver is not None and self._saver.running:
            return self._saver
        self._saver = self._persistence.start_periodic_save(self._save_interval)
        return self._saver

    async def stop_periodic_save(self) -> None:
        if self._saver is not None:
            await self._saver.stop()
            self._saver = None

    async def set_enabled(self, enabled: bool) -> None:
        """Toggle recording. Disabling also stops periodic saves; enabling resumes them."""
        self._recorder.enabled = enabled
        if not enabled:
            await self.stop_periodic_save()
        elif self._save_interval is not None:
            self.start_periodic_save(self._save_interval)
        _log.info("telemetry_enabled_changed", enabled=enabled)


__all__ = ["TelemetryEngine"]
