"""
API Gateway endpoint routers — mounted by the main app.
"""

from services.api_gateway.endpoints.telemetry import router as telemetry_router
from services.api_gateway.endpoints.health import router as health_router

__all__ = [
    "telemetry_router",
    "health_router",
]
