"""Runtime configuration for the pdfnotary services."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed configuration model."""

    model_config = SettingsConfigDict(env_prefix="pdfnotary_", env_file=".env", case_sensitive=False)

    environment: Literal["dev", "test", "prod"] = "dev"

    # Reproducibility stamp
    agent_version: str = "v1"

    generator_model: str = "Qwen/Qwen2.5-1.8B-Instruct"
    generator_max_new_tokens: int = 512
    generator_temperature: float = 0.2
    generator_device: str | None = None
    generator_max_input_chars: int = 8000
    use_model_generator: bool = False
    fallback_summary_chars: int = 500

    # Extraction
    page_limit: int = Field(default=30, ge=1)

    # API & upload safety
    max_upload_size_mb: int = 10
    metadata_body_limit_kb: int = 1024

    # CORS
    cors_allow_origins: tuple[str, ...] = ()  # e.g., ("http://localhost:5173",)
    cors_allow_credentials: bool = False
    cors_allow_methods: tuple[str, ...] = ("GET", "POST", "OPTIONS")
    cors_allow_headers: tuple[str, ...] = ("*",)

    # Security
    api_key: str | None = None  # if set, required in X-API-Key header
    rate_limit_requests: int = 120  # per window per client
    rate_limit_window_seconds: int = 60

    # Registry (read-only contract lookups)
    registry_rpc_url: str | None = None
    registry_contract: str | None = None
    registry_timeout_seconds: float = 10.0

    @property
    def is_test(self) -> bool:
        return self.environment == "test"

    @property
    def registry_enabled(self) -> bool:
        return bool(self.registry_rpc_url) and bool(self.registry_contract)


@lru_cache(maxsize=1)
def _cached_settings() -> Settings:
    return Settings()


def get_settings(override: Optional[dict[str, object]] = None) -> Settings:
    """Return settings, optionally overriding values without mutating cache."""

    if override:
        return Settings(**override)
    return _cached_settings()
