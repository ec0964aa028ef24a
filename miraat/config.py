"""
Configuration management using pydantic-settings.
All settings loaded from environment variables (12-factor app).
"""

from functools import lru_cache
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Dataset
    buildings_path: str = Field(
        default="./data/buildings.geojson",
        description="GeoJSON FeatureCollection of buildings",
    )
    hospitals_path: str = Field(
        default="./data/hospitals.json", description="JSON list of hospitals"
    )

    # Scenario store
    store_type: str = Field(default="duckdb", description="Scenario store (duckdb|memory)")
    db_path: str = Field(default="./data/miraat.duckdb", description="DuckDB file path")

    # API
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=8000, description="API port")
    api_reload: bool = Field(default=True, description="Enable hot reload")
    cors_origins: str = Field(
        default="http://localhost:3000,http://localhost:5173",
        description="CORS allowed origins (comma-separated)",
    )

    # Logging
    log_level: str = Field(default="info", description="Log level")
    log_format: str = Field(default="json", description="Log format (json|console)")

    # Engine Configuration
    reference_year: int = Field(
        default=2026, ge=1900, description="Year building ages are measured against"
    )
    high_risk_threshold: float = Field(
        default=0.6, ge=0.0, le=1.0, description="Vulnerability score marking a building high-risk"
    )
    default_yield_kg: float = Field(
        default=1000.0, gt=0.0, description="Blast yield used when a scenario omits one"
    )
    default_magnitude: float = Field(
        default=6.0, ge=1.0, le=10.0, description="Magnitude used when a scenario omits one"
    )
    notification_buffer_size: int = Field(
        default=256, ge=1, description="Events buffered per session before the oldest is dropped"
    )

    # Development
    dev_mode: bool = Field(default=True, description="Development mode")
    testing: bool = Field(default=False, description="Testing mode")

    @field_validator("cors_origins")
    @classmethod
    def parse_cors_origins(cls, v: str) -> List[str]:
        """Parse comma-separated CORS origins."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @field_validator("store_type")
    @classmethod
    def validate_store_type(cls, v: str) -> str:
        """Restrict the scenario store to the supported backends."""
        v = v.lower()
        if v not in ("duckdb", "memory"):
            raise ValueError(f"Unsupported store_type: {v}")
        return v


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.
    Uses lru_cache to ensure singleton behavior.
    """
    return Settings()
