"""Application configuration and settings management."""

from typing import Any, Literal, Optional

import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="ROUTE_OPT_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "Camper Route Optimizer API"
    api_prefix: str = "/api"
    log_level: str = Field(default="INFO", description="Root log level applied by the API entry point.")

    routing_base_url: Optional[str] = Field(
        default="https://router.project-osrm.org",
        description="Base URL of the OSRM-compatible routing service.",
    )
    routing_profile: Literal["driving", "driving-hgv"] = Field(
        default="driving",
        description="Routing profile used when no vehicle profile forces the heavy-goods profile.",
    )
    routing_timeout_seconds: float = Field(default=15.0, gt=0.0)
    routing_max_retries: int = Field(default=2, ge=0)
    routing_backoff_seconds: float = Field(default=0.5, ge=0.0)

    segment_retries: int = Field(
        default=0,
        ge=0,
        description="Extra attempts per pairwise lookup before the geometric estimate is used.",
    )
    max_concurrent_segment_requests: int = Field(default=8, ge=1)
    matrix_cache_size: int = Field(
        default=64,
        ge=0,
        description="Maximum number of cached distance matrices (0 keeps every matrix).",
    )

    fallback_minutes_per_km: float = Field(default=1.2, gt=0.0)
    fuel_price_per_litre: float = Field(default=1.5, ge=0.0)
    toll_cost_per_km: float = Field(default=0.1, ge=0.0)
    max_daily_driving_km: float = Field(default=400.0, gt=0.0)
    two_opt_max_iterations: int = Field(default=1000, ge=1)

    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ),
        description="Permitted web origins for browser clients (CORS).",
    )

    @field_validator("frontend_allowed_origins", mode="before")
    @classmethod
    def _parse_str_tuple_from_env(cls, value: Any) -> tuple[str, ...]:
        """Parse string tuple from environment variable (comma-separated or JSON array)."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(str(item) for item in value)
        if isinstance(value, str):
            try:
                parsed = json.loads(value)
                if isinstance(parsed, list):
                    return tuple(str(item) for item in parsed)
            except (json.JSONDecodeError, TypeError):
                pass
            if "," in value:
                return tuple(item.strip() for item in value.split(",") if item.strip())
            if value.strip():
                return (value.strip(),)
        return tuple()


settings = Settings()
