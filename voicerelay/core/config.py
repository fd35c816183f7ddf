"""
Application configuration via pydantic-settings.

Loads values from .env file with sensible defaults for local development.
Use ``get_settings()`` to obtain the cached singleton instance.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """VoiceRelay settings loaded from environment / .env file.

    All settings can be overridden via environment variables or a `.env` file.
    Field names map directly to env var names (case-insensitive).

    Attributes:
        collector_base_url: Base URL of the remote collector receiving voice data.
        request_timeout: Transport timeout (seconds) for submissions.
        health_timeout: Timeout (seconds) for the ``GET /health`` probe.
        queue_backend: Durable slot backend for the offline queue ("file" or "sqlite").
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Silently ignore unrecognized env vars
    )

    # --- Collector ---
    collector_base_url: str = "http://localhost:8080"
    request_timeout: float = 10.0
    health_timeout: float = 5.0

    # --- Offline queue ---
    # "file" = JSON file per slot, "sqlite" = key/value row via SQLAlchemy
    queue_backend: str = "file"
    queue_path: str = "data/voicedata_offline_queue.json"
    queue_slot_name: str = "voiceDataOfflineQueue"
    database_url: str = "sqlite+aiosqlite:///data/voicerelay.db"

    # --- Dev collector ---
    collector_host: str = "127.0.0.1"  # Bind address for `python -m voicerelay collector`
    collector_port: int = 8080

    # --- Application ---
    log_level: str = "INFO"  # Python logging level


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings singleton.

    Uses ``functools.lru_cache`` so the .env file is read only once.
    Subsequent calls return the same ``Settings`` instance.

    Returns:
        Settings: The application-wide configuration object.
    """
    return Settings()
