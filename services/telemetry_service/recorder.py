"""
Recorder — the mutation API for telemetry ingestion.

Every call is synchronous and runs to completion on the caller's thread,
so a reader never sees a half-applied update. Nothing here touches
persistence and nothing here raises: callers on the search path never
need to guard a recording call. Malformed input is coerced where it can
be (keys and query text become strings) and dropped where it cannot
(a latency that is not a finite number is not sampled).

Latency windows: both record_search and record_api_call feed the same
bounded FIFO window per provider (`latency_window`, 100 by default).
"""

from __future__ import annotations

import math
import numbers
import time
from contextlib import contextmanager
from typing import Any, Iterable, Iterator, List, Optional

from services.telemetry_service.hashing import hash_query
from services.telemetry_service.models import CacheStats, ProviderStats, QueryStat
from services.telemetry_service.state import MetricsState


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def _as_latency(value: Any) -> Optional[float]:
    """Numeric, finite latency in ms, or None for anything else."""
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        return None
    ms = float(value)
    return ms if math.isfinite(ms) else None


def _as_sources(sources: Any) -> List[str]:
    if sources is None:
        return []
    if isinstance(sources, str):
        return [sources]
    try:
        return [_as_text(s) for s in sources]
    except TypeError:
        return [_as_text(sources)]


class Recorder:
    """Applies ingestion events to the shared MetricsState."""

    def __init__(
        self,
        state: MetricsState,
        *,
        latency_window: int = 100,
        popular_queries_limit: int = 50,
    ) -> None:
        self._state = state
        self._latency_window = latency_window
        self._popular_limit = popular_queries_limit
        self.enabled = True

    def record_search(
        self,
        query: str,
        sources: Iterable[str],
        response_time: float,
        result_count: int = 0,
    ) -> None:
        """Count a search, bump its query digest, and sample latency for each source."""
        if not self.enabled:
            return
        snap = self._state.snapshot
        now = self._state.now_ms()
        snap.search_count += 1

        text = _as_text(query)
        digest = hash_query(text)
        for stat in snap.popular_queries:
            if stat.hash == digest:
                stat.count += 1
                stat.last_used = now
                break
        else:
            snap.popular_queries.append(
                QueryStat(hash=digest, length=len(text), count=1, last_used=now)
            )
        # list.sort is stable, reverse=True included
        snap.popular_queries.sort(key=lambda q: q.count, reverse=True)
        del snap.popular_queries[self._popular_limit:]

        latency = _as_latency(response_time)
        if latency is None:
            return
        for source in _as_sources(sources):
            self._add_latency(source, latency)

    def record_api_call(
        self,
        source: str,
        success: bool,
        response_time: Optional[float] = None,
    ) -> None:
        if not self.enabled:
            return
        stats = self._state.snapshot.api_success_rates.setdefault(_as_text(source), ProviderStats())
        stats.total += 1
        if success:
            stats.success += 1
        latency = _as_latency(response_time)
        if latency is not None:
            self._add_latency(_as_text(source), latency)

    def record_error(self, source: str, error_type: str) -> None:
        if not self.enabled:
            return
        counts = self._state.snapshot.error_counts
        key = f"{_as_text(source)}:{_as_text(error_type)}"
        counts[key] = counts.get(key, 0) + 1

    def record_cache_hit(self, cache_type: str, hit: bool) -> None:
        if not self.enabled:
            return
        stats = self._state.snapshot.cache_hit_rates.setdefault(_as_text(cache_type), CacheStats())
        stats.total += 1
        if hit:
            stats.hits += 1

    @contextmanager
    def track_api_call(self, source: str) -> Iterator[dict]:
        """
        Time a provider call and record its outcome.

        Usage:
            with recorder.track_api_call("brave") as t:
                results = await client.search(q)
            print(t["ms"])

        A clean exit records a success with the measured latency. An
        exception records a failure, counts the exception class as the
        error type, and propagates.
        """
        result: dict = {}
        start = time.perf_counter_ns()
        try:
            yield result
        except Exception as exc:
            result["ms"] = (time.perf_counter_ns() - start) / 1_000_000
            self.record_api_call(source, False, result["ms"])
            self.record_error(source, type(exc).__name__)
            raise
        result["ms"] = (time.perf_counter_ns() - start) / 1_000_000
        self.record_api_call(source, True, result["ms"])

    def _add_latency(self, source: str, response_time: float) -> None:
        samples: List[float] = self._state.snapshot.average_response_times.setdefault(source, [])
        samples.append(response_time)
        overflow = len(samples) - self._latency_window
        if overflow > 0:
            del samples[:overflow]
