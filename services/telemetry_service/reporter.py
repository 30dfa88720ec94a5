"""
Human-readable performance report assembled from a snapshot.
"""

from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal
from typing import List, Optional

from services.telemetry_service.aggregator import (
    average_response_time,
    cache_efficiency,
    latency_stats,
    success_rate,
)
from services.telemetry_service.models import (
    CacheReport,
    ErrorReport,
    MetricsSnapshot,
    PerformanceReport,
    ProviderReport,
    QueryStat,
)


def _round_half_up(value: float, places: str) -> Decimal:
    # ties away from zero, like the extension's toFixed
    return Decimal(value).quantize(Decimal(places), rounding=ROUND_HALF_UP)


def _percent(ratio: float) -> str:
    return f"{_round_half_up(ratio * 100, '0.1')}%"


def _millis(value: Optional[float]) -> str:
    if value is None or math.isinf(value):
        return "n/a"
    return f"{_round_half_up(value, '1')}ms"


def _provider_report(snapshot: MetricsSnapshot, source: str, total: int) -> ProviderReport:
    report = ProviderReport(
        source=source,
        success_rate=_percent(success_rate(snapshot, source)),
        avg_response_time=_millis(average_response_time(snapshot, source)),
        total_calls=total,
    )
    stats = latency_stats(snapshot, source)
    if stats is not None:
        report.median_response_time = _millis(stats.p50)
        report.p95_response_time = _millis(stats.p95)
        report.fastest_response = _millis(stats.min)
        report.slowest_response = _millis(stats.max)
    return report


def build_performance_report(
    snapshot: MetricsSnapshot,
    now_ms: int,
    *,
    top_errors: int = 10,
) -> PerformanceReport:
    """Summarize `snapshot` as of `now_ms`. Never mutates the snapshot."""
    providers = [
        _provider_report(snapshot, source, stats.total)
        for source, stats in snapshot.api_success_rates.items()
    ]
    caches = [
        CacheReport(
            type=cache_type,
            hit_rate=_percent(cache_efficiency(snapshot, cache_type)),
            total_requests=stats.total,
        )
        for cache_type, stats in snapshot.cache_hit_rates.items()
    ]
    errors = sorted(snapshot.error_counts.items(), key=lambda kv: kv[1], reverse=True)
    minutes = max(0, (now_ms - snapshot.last_reset) // 60_000)

    return PerformanceReport(
        total_searches=snapshot.search_count,
        api_performance=providers,
        cache_performance=caches,
        top_errors=[ErrorReport(error=k, count=v) for k, v in errors[:top_errors]],
        uptime=f"{minutes} minutes",
        uptime_minutes=minutes,
    )


def popular_queries(snapshot: MetricsSnapshot, limit: int = 10) -> List[QueryStat]:
    """Most frequent query digests. The list is kept sorted on insert."""
    return [q.model_copy() for q in snapshot.popular_queries[:limit]]


__all__ = ["build_performance_report", "popular_queries"]
