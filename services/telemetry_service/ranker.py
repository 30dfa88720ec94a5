"""
Provider ranking by observed reliability.

Providers are first filtered on success rate, then ordered with a
two-tier comparison: a success-rate gap wider than the tolerance band
decides outright; inside the band the rates count as tied and the lower
mean latency wins. The comparison is not transitive across long chains
of near-ties, so the order is whatever a stable sort produces from the
provider insertion order.
"""

from __future__ import annotations

from functools import cmp_to_key
from typing import List, Optional

from services.telemetry_service.aggregator import average_response_time, success_rate
from services.telemetry_service.models import MetricsSnapshot, RankedSource


def _compare(tolerance: float):
    def compare(a: RankedSource, b: RankedSource) -> int:
        if abs(a.success_rate - b.success_rate) > tolerance:
            return -1 if a.success_rate > b.success_rate else 1
        if a.avg_response_time < b.avg_response_time:
            return -1
        if a.avg_response_time > b.avg_response_time:
            return 1
        return 0

    return compare


def get_optimal_sources(
    snapshot: MetricsSnapshot,
    category: Optional[str] = None,
    *,
    min_success_rate: float = 0.5,
    tolerance: float = 0.1,
) -> List[RankedSource]:
    """
    Rank every provider with call data, most reliable first.

    `category` is accepted for callers that pass the search category but
    does not filter or partition the result.
    """
    candidates = [
        RankedSource(
            source=source,
            success_rate=success_rate(snapshot, source),
            avg_response_time=average_response_time(snapshot, source),
        )
        for source in snapshot.api_success_rates
    ]
    reliable = [c for c in candidates if c.success_rate > min_success_rate]
    return sorted(reliable, key=cmp_to_key(_compare(tolerance)))


__all__ = ["get_optimal_sources"]
