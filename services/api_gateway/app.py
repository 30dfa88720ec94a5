"""
FastAPI Gateway — local HTTP surface for the telemetry engine.

Architecture decisions:
  1. ONE process, ONE worker. The telemetry snapshot lives in this
     process's memory; a second worker would keep a second, diverging copy.
  2. The engine is built once in the lifespan hook and stored on
     app.state. Routes receive it through a dependency, never a global.
  3. Startup hydrates the snapshot from the store before serving; a
     failed load leaves zeroed counters and the server still starts.
  4. Shutdown stops the periodic saver and writes one final snapshot.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse

from configs.settings import get_settings
from services.api_gateway.endpoints import health_router, telemetry_router
from services.telemetry_service import TelemetryEngine, create_store, hash_query
from utils.logger import get_logger, setup_logging

_log = get_logger(__name__)


def create_app(engine: Optional[TelemetryEngine] = None) -> FastAPI:
    """Build the gateway. Pass `engine` to serve an already constructed one (tests)."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        cfg = get_settings()
        setup_logging(level=cfg.log_level, json_output=cfg.log_json, query_digest=hash_query)
        _log.info("startup_begin")

        telemetry = engine if engine is not None else TelemetryEngine(create_store(cfg), settings=cfg)
        await telemetry.initialize()
        telemetry.start_periodic_save(cfg.telemetry_save_interval_seconds)
        app.state.telemetry = telemetry

        _log.info("startup_complete", enabled=telemetry.enabled, store=telemetry.store.name)

        yield  # ← Application runs here

        _log.info("shutdown_begin")
        await telemetry.stop_periodic_save()
        await telemetry.save()
        await telemetry.store.close()
        _log.info("shutdown_complete")

    app = FastAPI(
        title="Search Telemetry",
        description="Local performance telemetry and provider ranking for multi-provider search",
        version="1.0.0",
        lifespan=lifespan,
        default_response_class=ORJSONResponse,
        docs_url="/docs",
        redoc_url=None,
    )

    # Extension popups call from chrome-extension:// origins.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(telemetry_router)
    app.include_router(health_router)
    return app


app = create_app()


# ── Entry point for `uvicorn` ──────────────────────────────

def start_server() -> None:
    """Start the server programmatically (for scripts/CLI)."""
    import uvicorn
    cfg = get_settings()
    uvicorn.run(
        "services.api_gateway.app:app",
        host=cfg.api_host,
        port=cfg.api_port,
        workers=1,  # Keep at 1 — see architecture notes
        log_level="info",
        access_log=False,  # We do our own structured logging
    )


if __name__ == "__main__":
    start_server()
