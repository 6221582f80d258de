"""
Configuration module - centralized settings for the entire application.
Uses pydantic-settings to load values from environment variables and .env file.
"""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Pydantic-settings automatically:
    1. Reads from environment variables (highest priority)
    2. Falls back to .env file values
    3. Uses default values if neither exists

    To override in production, set environment variables:
        export ANTHROPIC_API_KEY=sk-ant-...
        export OUTPUT_DIR=/srv/screendoc/output
    """

    # ---------------------------------------------------------------------------
    # PYDANTIC SETTINGS CONFIGURATION
    # ---------------------------------------------------------------------------
    model_config = SettingsConfigDict(
        env_file=".env",        # Load from .env file in project root
        env_file_encoding="utf-8",
        extra="ignore",         # Ignore extra env vars not defined here
    )

    # ---------------------------------------------------------------------------
    # APPLICATION SETTINGS
    # ---------------------------------------------------------------------------
    APP_NAME: str = "Screendoc"

    # DEBUG: Include stack traces in error responses
    DEBUG: bool = False

    # ---------------------------------------------------------------------------
    # DATABASE SETTINGS
    # ---------------------------------------------------------------------------
    # DATABASE_URL: History store location
    # - SQLite file by default, any SQLAlchemy URL works
    DATABASE_URL: str = "sqlite:///./data/screendoc.db"

    # ---------------------------------------------------------------------------
    # AI/LLM PROVIDER SETTINGS
    # ---------------------------------------------------------------------------
    ANTHROPIC_API_KEY: str = ""

    # Two model classes: "large" for analysis/content/planning,
    # "small" for build/validation
    ANTHROPIC_MODEL_LARGE: str = "claude-sonnet-4-20250514"
    ANTHROPIC_MODEL_SMALL: str = "claude-3-5-haiku-20241022"

    # AI Request timeout in seconds (enforced by the transport, not the pipeline)
    AI_REQUEST_TIMEOUT: int = 300

    # Averaged pricing per 1M tokens, used for the per-job cost estimate
    INPUT_COST_PER_1M: float = 2.0
    OUTPUT_COST_PER_1M: float = 10.0

    # ---------------------------------------------------------------------------
    # FILE LOCATIONS
    # ---------------------------------------------------------------------------
    UPLOAD_DIR: str = "uploads"
    OUTPUT_DIR: str = "output"
    DEBUG_DUMP_DIR: str = "."

    # MAX_UPLOAD_BYTES: Screenshots larger than this are rejected (10 MiB)
    MAX_UPLOAD_BYTES: int = 10 * 1024 * 1024

    # ---------------------------------------------------------------------------
    # PREVIEW SERVER SETTINGS
    # ---------------------------------------------------------------------------
    # Extracted packages live under PREVIEW_TEMP_DIR/<job id>
    PREVIEW_TEMP_DIR: str = "temp"

    # Address every preview listener binds to
    PREVIEW_HOST: str = "0.0.0.0"

    # First port handed out; every later server gets the next one
    PREVIEW_BASE_PORT: int = 9000

    # Host used in preview URLs (default: detected LAN address)
    PREVIEW_PUBLIC_HOST: Optional[str] = None


# ---------------------------------------------------------------------------
# GLOBAL SETTINGS INSTANCE
# ---------------------------------------------------------------------------
# Usage: from screendoc.core.config import settings
settings = Settings()
