"""
Request/Response models — strict validation at the API boundary.

Ingestion bodies are validated here so the engine only ever sees
well-typed events. Report bodies reuse the engine's own models.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field


# ── Ingestion ───────────────────────────────────────────────

class SearchEvent(BaseModel):
    """A completed search across one or more providers."""

    query: str = Field(
        ...,
        max_length=512,
        description="Raw query text. Hashed on arrival, never stored or logged",
        examples=["aurora borealis wallpaper"],
    )
    sources: List[str] = Field(
        default_factory=list,
        description="Providers the search fanned out to",
        examples=[["brave", "googleImages"]],
    )
    response_time: float = Field(..., ge=0.0, description="End-to-end latency in ms")
    result_count: int = Field(default=0, ge=0)


class ApiCallEvent(BaseModel):
    """Outcome of one provider call."""

    source: str = Field(..., min_length=1)
    success: bool
    response_time: Optional[float] = Field(default=None, ge=0.0, description="Call latency in ms")


class ErrorEvent(BaseModel):
    source: str = Field(..., min_length=1)
    error_type: str = Field(..., min_length=1, examples=["rate_limited"])


class CacheEvent(BaseModel):
    cache_type: str = Field(..., min_length=1, examples=["imageCache"])
    hit: bool


class EnabledRequest(BaseModel):
    enabled: bool


# ── Queries ─────────────────────────────────────────────────

class RankedSourceResponse(BaseModel):
    source: str
    success_rate: float
    avg_response_time_ms: Optional[float] = Field(
        default=None,
        description="Mean latency; null when the provider has no samples",
    )


class OptimalSourcesResponse(BaseModel):
    category: Optional[str] = None
    sources: List[RankedSourceResponse]


class EnabledResponse(BaseModel):
    enabled: bool
    periodic_save_running: bool


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    telemetry_enabled: bool
    storage_backend: str
    storage_connected: bool
    periodic_save_running: bool
