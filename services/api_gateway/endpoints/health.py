"""
Health endpoint.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from services.api_gateway.endpoints.telemetry import get_engine
from services.api_gateway.models import HealthResponse
from services.telemetry_service import RedisStore, TelemetryEngine

router = APIRouter(tags=["system"])


@router.get("/health", response_model=HealthResponse)
async def health(engine: TelemetryEngine = Depends(get_engine)) -> HealthResponse:
    """Liveness + storage readiness. Telemetry keeps working in memory when storage is down."""
    store = engine.store
    if isinstance(store, RedisStore):
        storage_ok = await store.ping()
    else:
        storage_ok = True

    return HealthResponse(
        status="healthy" if storage_ok else "degraded",
        telemetry_enabled=engine.enabled,
        storage_backend=store.name,
        storage_connected=storage_ok,
        periodic_save_running=engine.periodic_save_running,
    )
