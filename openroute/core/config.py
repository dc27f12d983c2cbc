# path: open-route-api/openroute/core/config.py

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
import os

from pydantic import BaseModel, Field


ENV_PREFIX = "OPENROUTE_"


class Settings(BaseModel):
    # Store service
    database_path: Path = Path("routes.db")
    guide_service_url: str | None = None

    # Client core
    api_base_url: str = "http://localhost:3001/api"
    osrm_base_url: str = "https://router.project-osrm.org"
    cache_path: Path = Path(".openroute-cache.json")
    http_timeout_s: float = Field(default=10.0, gt=0)
    probe_interval_s: float = Field(default=15.0, gt=0)
    probe_failure_threshold: int = Field(default=2, ge=1)
    publish_cooldown_s: float = Field(default=30.0, ge=0)
    snap_debounce_s: float = Field(default=0.5, ge=0)
    proximity_threshold_m: float = Field(default=120.0, gt=0)

    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ=None) -> "Settings":
        """Build settings from OPENROUTE_* variables; unset keys keep their defaults."""
        environ = os.environ if environ is None else environ
        values = {}
        for name in cls.model_fields:
            raw = environ.get(ENV_PREFIX + name.upper())
            if raw is not None and raw != "":
                values[name] = raw
        return cls(**values)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()
