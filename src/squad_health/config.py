"""Configuration management for the squad health aggregation service."""

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class BackendConfig(BaseSettings):
    """Health-check backend API settings."""

    model_config = SettingsConfigDict(
        env_prefix="HEALTH_API_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    base_url: str = "http://localhost:8080"
    timeout: float = 30.0
    max_retries: int = 3
    retry_delay: float = 1.0
    team_cache_ttl: int = Field(300, description="Seconds a cached team info entry stays fresh")

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v):
        """Validate backend URL format."""
        if not v or not v.startswith(("http://", "https://")):
            raise ValueError("HEALTH_API_BASE_URL must be an http:// or https:// URL")
        return v.rstrip("/")

    @field_validator("max_retries", "team_cache_ttl")
    @classmethod
    def validate_non_negative(cls, v):
        if v < 0:
            raise ValueError("must not be negative")
        return v


class AggregationConfig(BaseSettings):
    """Tuning knobs for the roll-up engine."""

    model_config = SettingsConfigDict(
        env_prefix="AGGREGATION_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    completion_window_days: int = 30
    enforce_rank_order: bool = True
    trend_threshold: float = 0.2
    green_threshold: float = 2.5
    yellow_threshold: float = 1.5

    @field_validator("completion_window_days")
    @classmethod
    def validate_window(cls, v):
        if v < 1:
            raise ValueError("completion window must be at least one day")
        return v

    @model_validator(mode="after")
    def validate_thresholds(self):
        """Status thresholds must sit inside the 1-3 score range, green above yellow."""
        if not 1.0 <= self.yellow_threshold < self.green_threshold <= 3.0:
            raise ValueError("thresholds must satisfy 1 <= yellow < green <= 3")
        return self


class AppConfig(BaseSettings):
    """Application configuration settings."""

    model_config = SettingsConfigDict(
        env_prefix="APP_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    name: str = "squad-health"
    version: str = "0.1.0"
    log_level: str = "INFO"
    debug: bool = False


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    backend: BackendConfig = Field(default_factory=BackendConfig)
    aggregation: AggregationConfig = Field(default_factory=AggregationConfig)
    app: AppConfig = Field(default_factory=AppConfig)

    @classmethod
    def load(cls) -> "Settings":
        """Load settings from environment."""
        return cls()
