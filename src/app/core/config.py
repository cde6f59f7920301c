# src/app/core/config.py
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # App
    app_name: str = "Artisan Dashboard API"
    app_version: str = "1.0.0"
    debug: bool = False
    log_level: str = "INFO"

    # API Keys: Mapping von API-Key zu User-ID (JSON-String als Env-Var)
    # Format: '{"key_abc123": "user_alice", "key_xyz789": "user_bob"}'
    api_keys: dict[str, str] = Field(default_factory=dict)

    # User-IDs mit Zugriff auf den gesamten Recommendation Cache (Stats, Clear)
    admin_user_ids: set[str] = Field(default_factory=set)

    # Persistence: None = In-Memory Repository
    database_url: str | None = None

    # Recommendation Cache (15 Minuten TTL)
    cache_ttl_seconds: int = Field(default=900, ge=0)
    cache_max_size: int = Field(default=1000, ge=1)

    # Externe Recommendation Engine; ohne URL wird die regelbasierte Engine genutzt
    recommendation_engine_url: str | None = None
    recommendation_engine_timeout_seconds: float = Field(default=30.0, gt=0)

    # CORS
    cors_origins: list[str] = Field(default=["*"])

    # Rate Limiting
    rate_limit_requests: int = 100
    rate_limit_window_seconds: int = 60

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()
