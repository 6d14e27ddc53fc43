"""Configuration management for the Personal OS content pipeline.

Loads environment variables using pydantic-settings for type-safe configuration.
Broker, database, provider credentials and worker tuning parameters are defined here.
"""

import os
import socket
from functools import lru_cache
from pathlib import Path
from threading import Lock

from dotenv import load_dotenv
from pydantic import Field, HttpUrl, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from packages.core.events import TOPIC_MEDIA_EVENTS, TOPIC_POST_EVENTS

_ENV_LOADED = False
_ENV_LOCK = Lock()


def _resolve_env_file() -> str | None:
    """Locate the .env file regardless of the current working directory.

    Preference order:
        1. PERSONAL_OS_ENV_FILE environment variable (explicit override)
        2. Current working directory (common for local runs)
        3. Ancestors of this file (covers package execution within Docker)
    """
    override = os.getenv("PERSONAL_OS_ENV_FILE")
    if override:
        override_path = Path(override).expanduser()
        if override_path.is_file():
            return str(override_path)

    cwd_candidate = Path.cwd() / ".env"
    if cwd_candidate.is_file():
        return str(cwd_candidate)

    for parent in Path(__file__).resolve().parents:
        candidate = parent / ".env"
        if candidate.is_file():
            return str(candidate)

    return None


_DEFAULT_ENV_FILE = _resolve_env_file()


def ensure_env_loaded() -> None:
    """Load environment variables from disk exactly once."""
    global _ENV_LOADED

    with _ENV_LOCK:
        if _ENV_LOADED:
            return

        env_path = _DEFAULT_ENV_FILE or _resolve_env_file()
        if env_path:
            load_dotenv(env_path, override=False)

        _ENV_LOADED = True


ensure_env_loaded()


def default_consumer_name() -> str:
    """Consumer name unique to this process: ``<hostname>-<pid>``."""
    return f"{socket.gethostname()}-{os.getpid()}"


class OllamaConfig(BaseSettings):
    """Configuration block for the Ollama embedding and chat endpoints."""

    model_config = SettingsConfigDict(extra="ignore")

    url: HttpUrl
    embedding_model: str = "nomic-embed-text"
    chat_model: str = "phi3:mini"
    embedding_dim: int = Field(default=768, ge=1)
    timeout: float = Field(default=60.0, gt=0, le=600)


class PersonalOSConfig(BaseSettings):
    """Main configuration class for the API process, worker and CLI.

    Loads all service URLs, credentials, and tuning parameters from environment variables.
    Uses pydantic-settings for validation and type safety.
    """

    model_config = SettingsConfigDict(
        env_file=_DEFAULT_ENV_FILE,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========== Event Channel (Redis Streams) ==========
    redis_url: str = "redis://localhost:6379"
    post_events_topic: str = TOPIC_POST_EVENTS
    media_events_topic: str = TOPIC_MEDIA_EVENTS
    post_events_group: str = "post-processor-group"
    media_events_group: str = "media-processor-group"
    events_stream_maxlen: int = Field(default=10000, ge=1)
    enable_event_publishing: bool = True

    # ========== Enrichment Worker ==========
    worker_consumer_name: str = Field(default_factory=default_consumer_name)
    worker_consumer_stale_ms: int = Field(default=60000, ge=1)
    worker_block_ms: int = Field(default=5000, ge=1)
    worker_fetch_error_delay: float = Field(default=1.0, ge=0)

    # ========== Database Credentials ==========
    postgres_user: str = "personal_os"
    postgres_password: SecretStr = SecretStr("changeme")
    postgres_db: str = "personal_os"
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_min_pool_size: int = Field(default=1, ge=1)
    postgres_max_pool_size: int = Field(default=8, ge=1)

    # ========== Asset Store (Cloudinary) ==========
    cloudinary_cloud_name: str = ""
    cloudinary_api_key: str = ""
    cloudinary_api_secret: SecretStr = SecretStr("")
    cloudinary_timeout: float = Field(default=30.0, gt=0)

    # ========== Embedding & Generation (Ollama) ==========
    ollama_url: str = "http://localhost:11434"
    ollama_embedding_model: str = "nomic-embed-text"
    ollama_chat_model: str = "phi3:mini"
    embedding_dim: int = 768
    ollama_timeout: float = 60.0

    # ========== Chat & Reconciliation ==========
    chat_default_limit: int = 3
    reconcile_pending_after_minutes: int = 15
    reconcile_batch_size: int = 100

    # ========== Observability ==========
    log_level: str = "INFO"

    @field_validator("embedding_dim", "chat_default_limit", "reconcile_batch_size")
    @classmethod
    def _validate_positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("value must be positive")
        return value

    @field_validator("reconcile_pending_after_minutes")
    @classmethod
    def _validate_non_negative(cls, value: int) -> int:
        if value < 0:
            raise ValueError("reconcile_pending_after_minutes cannot be negative")
        return value

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level: {value}")
        return level

    @property
    def ollama_config(self) -> OllamaConfig:
        """Return validated Ollama configuration block."""

        return OllamaConfig(
            url=self.ollama_url,
            embedding_model=self.ollama_embedding_model,
            chat_model=self.ollama_chat_model,
            embedding_dim=self.embedding_dim,
            timeout=self.ollama_timeout,
        )

    @property
    def postgres_connection_string(self) -> str:
        """Get PostgreSQL connection string."""
        pwd = self.postgres_password.get_secret_value()
        return (
            f"postgresql://{self.postgres_user}:{pwd}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )


@lru_cache(maxsize=1)
def get_config() -> PersonalOSConfig:
    """Return cached Settings instance (thread-safe, process-local).

    Uses lru_cache to ensure a single instance is created and reused.

    Returns:
        PersonalOSConfig: The configuration instance loaded from environment variables.
    """
    return PersonalOSConfig()


# Export convenience accessors
__all__ = [
    "OllamaConfig",
    "PersonalOSConfig",
    "default_consumer_name",
    "ensure_env_loaded",
    "get_config",
]
