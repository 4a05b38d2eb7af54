"""
Application settings loaded from environment variables.

Uses pydantic-settings for validation and type safety.
Engine policy values (horizon, service level, transfer thresholds)
live here so every calculation reads the same configuration object.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    """
    Application settings.

    All values loaded from .env file or environment variables.
    Validation happens automatically on startup.
    """

    model_config = SettingsConfigDict(
        env_file=(".env", "../.env"),  # Check current dir, then parent
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"  # Ignore extra env vars
    )

    # ===================
    # SUPABASE
    # ===================
    supabase_url: Optional[str] = Field(
        None,
        description="Supabase project URL"
    )
    supabase_key: Optional[str] = Field(
        None,
        description="Supabase anon/public key"
    )

    # ===================
    # PROJECTION POLICY
    # ===================
    projection_horizon_days: int = Field(
        default=30,
        ge=1,
        le=365,
        description="Default number of days to project on-hand inventory"
    )
    warning_buffer_ratio: float = Field(
        default=0.5,
        ge=0,
        le=5,
        description="Warning band above the safety stock threshold, as a ratio of the threshold"
    )

    # ===================
    # SAFETY STOCK POLICY
    # ===================
    service_level: float = Field(
        default=0.95,
        gt=0.5,
        lt=1,
        description="Target probability of not stocking out during a replenishment cycle"
    )
    min_history_points: int = Field(
        default=6,
        ge=2,
        le=365,
        description="Minimum demand observations before a method is trusted"
    )
    default_lead_time_days: float = Field(
        default=14,
        gt=0,
        le=365,
        description="Lead time used when no lead-time history is available"
    )
    default_unit_holding_cost: float = Field(
        default=10,
        ge=0,
        description="Holding cost per unit when the data layer has none"
    )
    trend_window: int = Field(
        default=3,
        ge=1,
        le=52,
        description="Observations per window when comparing recent vs prior demand"
    )
    max_trend_adjustment: float = Field(
        default=1.0,
        ge=0,
        le=5,
        description="Largest upward trend adjustment applied to base stock (1.0 = +100%)"
    )

    # ===================
    # NETWORK POLICY
    # ===================
    min_transfer_quantity: float = Field(
        default=10,
        gt=0,
        description="Smallest transfer worth recommending between two nodes"
    )

    # ===================
    # BATCH
    # ===================
    batch_max_workers: int = Field(
        default=4,
        ge=1,
        le=64,
        description="Worker threads used for batch risk assessment"
    )

    # ===================
    # APP SETTINGS
    # ===================
    environment: str = Field(
        default="development",
        pattern="^(development|staging|production)$",
        description="Application environment"
    )
    debug: bool = Field(
        default=True,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Logging level"
    )
    api_host: str = Field(
        default="0.0.0.0",
        description="API host"
    )
    api_port: int = Field(
        default=8000,
        ge=1000,
        le=65535,
        description="API port"
    )

    # ===================
    # COMPUTED PROPERTIES
    # ===================
    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == "production"

    @property
    def supabase_configured(self) -> bool:
        """Check if the data source is configured."""
        return bool(self.supabase_url and self.supabase_key)


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload.

    Returns:
        Settings: Application settings

    Raises:
        ValidationError: If env vars are invalid
    """
    return Settings()


# For convenient imports: from config.settings import settings
settings = get_settings()
