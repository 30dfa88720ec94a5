"""
Telemetry Service — local search performance metrics and provider ranking.
"""

from services.telemetry_service.engine import TelemetryEngine
from services.telemetry_service.hashing import hash_query
from services.telemetry_service.stores import (
    InMemoryStore,
    JsonFileStore,
    KeyValueStore,
    RedisStore,
    create_store,
)

__all__ = [
    "TelemetryEngine",
    "hash_query",
    "KeyValueStore",
    "InMemoryStore",
    "JsonFileStore",
    "RedisStore",
    "create_store",
]
