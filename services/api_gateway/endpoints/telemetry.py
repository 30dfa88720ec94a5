"""
Telemetry endpoints — event ingestion from the search client, plus the
report, ranking and reset operations the popup reads.
"""

from __future__ import annotations

import math
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query, Request, Response

from services.api_gateway.models import (
    ApiCallEvent,
    CacheEvent,
    EnabledRequest,
    EnabledResponse,
    ErrorEvent,
    OptimalSourcesResponse,
    RankedSourceResponse,
    SearchEvent,
)
from services.telemetry_service import TelemetryEngine
from services.telemetry_service.models import PerformanceReport, QueryStat
from utils.logger import get_logger

_log = get_logger(__name__)
router = APIRouter(prefix="/telemetry", tags=["telemetry"])


def get_engine(request: Request) -> TelemetryEngine:
    return request.app.state.telemetry


# ── Ingestion ───────────────────────────────────────────────

@router.post("/search", status_code=204, response_class=Response)
async def ingest_search(event: SearchEvent, engine: TelemetryEngine = Depends(get_engine)) -> Response:
    engine.record_search(event.query, event.sources, event.response_time, event.result_count)
    return Response(status_code=204)


@router.post("/api-call", status_code=204, response_class=Response)
async def ingest_api_call(event: ApiCallEvent, engine: TelemetryEngine = Depends(get_engine)) -> Response:
    engine.record_api_call(event.source, event.success, event.response_time)
    return Response(status_code=204)


@router.post("/error", status_code=204, response_class=Response)
async def ingest_error(event: ErrorEvent, engine: TelemetryEngine = Depends(get_engine)) -> Response:
    engine.record_error(event.source, event.error_type)
    return Response(status_code=204)


@router.post("/cache", status_code=204, response_class=Response)
async def ingest_cache(event: CacheEvent, engine: TelemetryEngine = Depends(get_engine)) -> Response:
    engine.record_cache_hit(event.cache_type, event.hit)
    return Response(status_code=204)


# ── Queries ─────────────────────────────────────────────────

@router.get("/report", response_model=PerformanceReport)
async def report(engine: TelemetryEngine = Depends(get_engine)) -> PerformanceReport:
    return engine.get_performance_report()


@router.get("/optimal-sources", response_model=OptimalSourcesResponse)
async def optimal_sources(
    category: Optional[str] = None,
    engine: TelemetryEngine = Depends(get_engine),
) -> OptimalSourcesResponse:
    ranked = engine.get_optimal_sources(category)
    return OptimalSourcesResponse(
        category=category,
        sources=[
            RankedSourceResponse(
                source=r.source,
                success_rate=round(r.success_rate, 4),
                avg_response_time_ms=None if math.isinf(r.avg_response_time) else round(r.avg_response_time, 2),
            )
            for r in ranked
        ],
    )


@router.get("/popular-queries", response_model=List[QueryStat])
async def popular(
    limit: int = Query(default=10, ge=1, le=50),
    engine: TelemetryEngine = Depends(get_engine),
) -> List[QueryStat]:
    return engine.get_popular_queries(limit)


@router.get("/export")
async def export(engine: TelemetryEngine = Depends(get_engine)) -> Dict[str, Any]:
    return engine.export_data()


# ── Management ──────────────────────────────────────────────

@router.post("/reset", response_model=PerformanceReport)
async def reset(engine: TelemetryEngine = Depends(get_engine)) -> PerformanceReport:
    """Zero every counter, persist the empty snapshot, return the fresh report."""
    await engine.reset()
    return engine.get_performance_report()


@router.put("/enabled", response_model=EnabledResponse)
async def set_enabled(body: EnabledRequest, engine: TelemetryEngine = Depends(get_engine)) -> EnabledResponse:
    await engine.set_enabled(body.enabled)
    return EnabledResponse(enabled=engine.enabled, periodic_save_running=engine.periodic_save_running)
