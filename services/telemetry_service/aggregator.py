"""
Derived statistics computed on demand from a snapshot. Pure, no mutation.
"""

from __future__ import annotations

import statistics

from typing import Optional

from services.telemetry_service.models import LatencyStats, MetricsSnapshot

# Mean latency reported for a provider with no samples. Sorts after every
# real measurement, so no-data providers rank last on the latency tier.
NO_DATA = float("inf")


def success_rate(snapshot: MetricsSnapshot, source: str) -> float:
    stats = snapshot.api_success_rates.get(source)
    if stats is None or stats.total == 0:
        return 0.0
    return stats.success / stats.total


def average_response_time(snapshot: MetricsSnapshot, source: str) -> float:
    samples = snapshot.average_response_times.get(source)
    if not samples:
        return NO_DATA
    return statistics.fmean(samples)


def latency_stats(snapshot: MetricsSnapshot, source: str) -> Optional[LatencyStats]:
    """
    Distribution of the provider's latency window, or None without samples.

    p50 is the upper median of the sorted window. p95 needs at least 20
    samples to mean anything and is None below that.
    """
    samples = snapshot.average_response_times.get(source)
    if not samples:
        return None
    vals = sorted(samples)
    n = len(vals)
    return LatencyStats(
        count=n,
        p50=vals[n // 2],
        p95=vals[int(n * 0.95)] if n >= 20 else None,
        min=vals[0],
        max=vals[-1],
    )


def cache_efficiency(snapshot: MetricsSnapshot, cache_type: str) -> float:
    stats = snapshot.cache_hit_rates.get(cache_type)
    if stats is None or stats.total == 0:
        return 0.0
    return stats.hits / stats.total


def overall_error_rate(snapshot: MetricsSnapshot) -> float:
    """Failed calls over all calls, across every provider."""
    total = sum(s.total for s in snapshot.api_success_rates.values())
    if total == 0:
        return 0.0
    failed = sum(s.total - s.success for s in snapshot.api_success_rates.values())
    return failed / total


__all__ = [
    "NO_DATA",
    "success_rate",
    "average_response_time",
    "latency_stats",
    "cache_efficiency",
    "overall_error_rate",
]
