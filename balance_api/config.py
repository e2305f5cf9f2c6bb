"""
Application configuration using Pydantic Settings.

All configuration is loaded from environment variables, with an optional .env file
as a fallback. The API process and the reset worker read the same settings, so
both point at the same database and Redis queue.

Pydantic Settings automatically:
  1. Reads from environment variables (highest priority)
  2. Falls back to .env file values
  3. Uses defaults defined here (lowest priority)

Usage:
    from balance_api.config import settings
    print(settings.DATABASE_URL)
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Central configuration for the Balance API and its reset worker.

    Required fields (no defaults) MUST be set in .env or environment:
      - SECRET_KEY: Used to sign JWT tokens
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # --- Application ---
    APP_NAME: str = "Balance API"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # --- Database ---
    # SQLite for local use; swap to a postgresql+asyncpg URL for production
    DATABASE_URL: str = "sqlite+aiosqlite:///./data/balance.db"
    # How long a transaction waits for a locked row (PostgreSQL lock_timeout)
    # or for the database write lock (SQLite busy timeout) before failing.
    DB_LOCK_TIMEOUT_SECONDS: float = Field(default=5.0, gt=0)

    # --- Authentication ---
    # REQUIRED: no default, forces the developer to set a real secret
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    # --- Job queue (arq / Redis) ---
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_DATABASE: int = 0
    REDIS_PASSWORD: str | None = None
    RESET_QUEUE_NAME: str = "reset-balance"
    # Number of reset jobs a single worker process runs at once
    RESET_WORKER_MAX_JOBS: int = Field(default=1, ge=1)

    # --- CORS ---
    ALLOWED_ORIGINS: list[str] = ["http://localhost:3000"]


# Singleton: import this instance everywhere instead of creating new Settings()
settings = Settings()
