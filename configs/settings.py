"""
Centralized configuration — loaded once at process startup.

Every component reads the same settings object. Pydantic validates types
at import time so a bad env var fails fast instead of skewing telemetry.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """Immutable, validated application settings from environment."""

    # ── Telemetry ───────────────────────────────────────────
    telemetry_enabled: bool = Field(default=True, description="Record ingestion events")
    telemetry_storage_key: str = Field(default="telemetry", description="Key the snapshot is persisted under")
    telemetry_save_interval_seconds: float = Field(default=30.0, gt=0, description="Periodic save interval")
    telemetry_latency_window: int = Field(default=100, ge=1, description="Latency samples kept per provider")
    telemetry_popular_queries_limit: int = Field(default=50, ge=1, description="Query digests kept")
    telemetry_top_errors_limit: int = Field(default=10, ge=1, description="Errors listed in the report")

    # ── Source ranking ──────────────────────────────────────
    ranking_min_success_rate: float = Field(default=0.5, ge=0.0, le=1.0, description="Providers at or below are dropped")
    ranking_tolerance: float = Field(default=0.1, ge=0.0, le=1.0, description="Success rates closer than this tie")

    # ── Storage ─────────────────────────────────────────────
    storage_backend: str = Field(default="file", description="Snapshot store: memory, file or redis")
    storage_file_path: str = Field(default="./data/telemetry.json")

    # ── Redis ───────────────────────────────────────────────
    redis_host: str = Field(default="localhost")
    redis_port: int = Field(default=6379)
    redis_db: int = Field(default=0)

    # ── API ─────────────────────────────────────────────────
    api_host: str = Field(default="127.0.0.1")
    api_port: int = Field(default=8787)

    # ── Logging ─────────────────────────────────────────────
    log_level: str = Field(default="INFO")
    log_json: bool = Field(default=False)

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Singleton accessor — parsed once and cached for the process lifetime.
        from configs.settings import get_settings
        cfg = get_settings()
    """
    return Settings()
