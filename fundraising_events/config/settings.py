# fundraising_events/config/settings.py

from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # --- Application ---
    app_name: str = "fundraising-events"
    environment: Literal["dev", "test", "prod"] = "dev"
    debug: bool = False
    version: str = "0.1.0"

    # --- Database ---
    database_url: str = "postgresql+asyncpg://localhost:5432/fundraising"

    # --- Redis stream ---
    redis_url: Optional[str] = None
    event_stream_name: str = "events"
    stream_max_reconnect_attempts: int = Field(default=5, ge=0)
    stream_reconnect_delay_seconds: float = Field(default=1.0, gt=0)

    # --- Remote processing function ---
    functions_base_url: Optional[str] = None
    functions_api_key: Optional[str] = None
    event_processor_function: str = "event-processor"
    functions_timeout_seconds: float = 10.0
    enable_remote_publish: bool = True
    enable_remote_trigger: bool = True

    # --- Circuit breaker (remote trigger) ---
    trigger_failure_threshold: int = Field(default=5, ge=1)
    trigger_reset_timeout_seconds: float = Field(default=60.0, gt=0)
    trigger_half_open_attempts: int = Field(default=3, ge=1)

    # --- Event store ---
    store_batch_size: int = Field(default=50, ge=1)
    store_flush_interval_seconds: float = Field(default=1.0, gt=0)

    # --- Event bus ---
    enable_replay: bool = True

    # --- Idempotency ---
    idempotency_backend: Literal["memory", "redis"] = "memory"
    idempotency_processing_ttl_seconds: int = Field(default=300, ge=1)
    idempotency_terminal_ttl_seconds: int = Field(default=86400, ge=1)
    idempotency_sweep_interval_seconds: float = Field(default=60.0, gt=0)

    # --- Observability ---
    enable_metrics: bool = True
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"


@lru_cache
def get_settings() -> AppSettings:
    return AppSettings()
