"""
Centralized application configuration using Pydantic Settings.

Why it's needed:
    The search layer talks to two external collaborators (OpenSearch and Redis)
    whose addresses differ between a laptop, a Docker compose stack and
    production. Pydantic Settings reads from environment variables and .env
    files, giving one source of truth with sensible local defaults.

What it does:
    - Each collaborator gets its own Settings class with env_prefix
      (e.g., OPENSEARCH__, REDIS__)
    - SearchSettings holds the engine-imposed caps and the defaults of the
      facade (page sizes, fan-out indices, suggestion limits)
    - The main Settings class composes all sub-settings into one object

How it helps:
    - Local development: defaults work out of the box (localhost, default ports)
    - Docker: compose sets OPENSEARCH__HOST=http://opensearch:9200
    - Tests: construct Settings(...) directly with overrides, no env needed

Architecture:
    Settings is a singleton accessed via get_settings(). It's stored on
    app.state during FastAPI lifespan startup and injected into routers
    via the SettingsDep dependency (see dependency.py).
"""

from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class OpenSearchSettings(BaseSettings):
    """OpenSearch search engine settings.

    Used by: services/opensearch/factory.py to build the AsyncOpenSearch client.
    index_prefix is prepended to every entity index name so several
    environments (or tenants) can share one cluster: "staging-products".
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="OPENSEARCH__",
        extra="ignore",
    )

    host: str = "http://localhost:9200"
    username: str = ""
    password: str = ""
    verify_certs: bool = False
    request_timeout: int = 30  # seconds, timeouts surface as SearchUnavailable
    max_retries: int = 3
    http_compress: bool = True
    index_prefix: str = ""


class RedisSettings(BaseSettings):
    """Redis cache settings.

    search_ttl_seconds bounds staleness when an invalidation is lost.
    """

    model_config = SettingsConfigDict(env_prefix="REDIS__", extra="ignore")

    host: str = "localhost"
    port: int = 6379
    password: str = ""
    db: int = 0
    socket_timeout: float = 2.0
    socket_connect_timeout: float = 2.0
    decode_responses: bool = True
    enabled: bool = True
    key_prefix: str = "search"
    search_ttl_seconds: int = 300


class SearchSettings(BaseSettings):
    """Search facade defaults and engine-imposed caps."""

    model_config = SettingsConfigDict(env_prefix="SEARCH__", extra="ignore")

    default_size: int = 20
    max_size: int = 100
    fan_out_max_size: int = 50
    fan_out_default_size: int = 10
    fan_out_indices: List[str] = Field(
        default_factory=lambda: ["products", "companies", "users"]
    )
    suggest_field: str = "name.suggest"
    suggest_size: int = 10
    suggest_min_prefix_length: int = 2
    bulk_batch_size: int = 100


class AppSettings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(env_prefix="APP__", extra="ignore")

    debug: bool = True
    log_level: str = "INFO"
    environment: str = "development"
    service_name: str = "tradesearch-api"
    version: str = "0.1.0"


class Settings(BaseSettings):
    """Root settings class composing all sub-settings into one object.

    Access pattern: settings.opensearch.host, settings.redis.search_ttl_seconds, etc.
    Loaded once at startup and stored on FastAPI app.state for dependency injection.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    opensearch: OpenSearchSettings = Field(default_factory=OpenSearchSettings)
    redis: RedisSettings = Field(default_factory=RedisSettings)
    search: SearchSettings = Field(default_factory=SearchSettings)
    app: AppSettings = Field(default_factory=AppSettings)


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
