"""
Telemetry record types — the snapshot and everything derived from it.

Python code uses snake_case; the persisted document and the report use
the camelCase keys the extension writes (`searchCount`, `lastUsed`, ...),
so every model carries a camelCase alias and accepts either spelling.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ── Snapshot ────────────────────────────────────────────────

class QueryStat(_CamelModel):
    """Popularity bucket for one query digest. The query text itself is never kept."""

    hash: str
    length: int = Field(ge=0)
    count: int = Field(default=1, ge=0)
    last_used: int


class ProviderStats(_CamelModel):
    """Call outcomes for one content provider."""

    success: int = Field(default=0, ge=0)
    total: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def _success_within_total(self) -> "ProviderStats":
        if self.success > self.total:
            raise ValueError(f"success ({self.success}) exceeds total ({self.total})")
        return self


class CacheStats(_CamelModel):
    """Hit counts for one cache type."""

    hits: int = Field(default=0, ge=0)
    total: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def _hits_within_total(self) -> "CacheStats":
        if self.hits > self.total:
            raise ValueError(f"hits ({self.hits}) exceeds total ({self.total})")
        return self


class MetricsSnapshot(_CamelModel):
    """The complete telemetry state; persisted and replaced as a whole."""

    search_count: int = Field(default=0, ge=0)
    api_success_rates: Dict[str, ProviderStats] = Field(default_factory=dict)
    average_response_times: Dict[str, List[float]] = Field(default_factory=dict)
    popular_queries: List[QueryStat] = Field(default_factory=list)
    error_counts: Dict[str, int] = Field(default_factory=dict)
    cache_hit_rates: Dict[str, CacheStats] = Field(default_factory=dict)
    last_reset: int = 0

    @classmethod
    def fresh(cls, now_ms: int) -> "MetricsSnapshot":
        """All-zero snapshot whose measurement window starts at `now_ms`."""
        return cls(last_reset=now_ms)

    def to_document(self) -> dict:
        """JSON-ready dict in the persisted camelCase shape."""
        return self.model_dump(mode="json", by_alias=True)


# ── Derived views ───────────────────────────────────────────

class RankedSource(_CamelModel):
    """A provider that passed the reliability filter, with its ranking inputs."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    source: str
    success_rate: float
    avg_response_time: float


class LatencyStats(_CamelModel):
    """Order statistics over one provider's latency window, in ms."""

    count: int
    p50: float
    p95: Optional[float] = None
    min: float
    max: float


class ProviderReport(_CamelModel):
    source: str
    success_rate: str
    avg_response_time: str
    median_response_time: str = "n/a"
    p95_response_time: str = "n/a"
    fastest_response: str = "n/a"
    slowest_response: str = "n/a"
    total_calls: int


class CacheReport(_CamelModel):
    type: str
    hit_rate: str
    total_requests: int


class ErrorReport(_CamelModel):
    error: str
    count: int


class PerformanceReport(_CamelModel):
    """Human-readable summary of every derived statistic."""

    total_searches: int
    api_performance: List[ProviderReport] = Field(default_factory=list)
    cache_performance: List[CacheReport] = Field(default_factory=list)
    top_errors: List[ErrorReport] = Field(default_factory=list)
    uptime: str
    uptime_minutes: int


__all__ = [
    "QueryStat",
    "ProviderStats",
    "CacheStats",
    "MetricsSnapshot",
    "RankedSource",
    "LatencyStats",
    "ProviderReport",
    "CacheReport",
    "ErrorReport",
    "PerformanceReport",
]
