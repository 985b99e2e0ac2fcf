"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Determine which environment to load (default: development)
APP_ENV = os.getenv("APP_ENV", "development")

# Project root (so .env resolution doesn't depend on current working directory)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

# Map environments to their respective .env files (relative to PROJECT_ROOT)
ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

# Select the .env file for the current environment
_env_filename = ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Only load from file if it exists (production might inject via env vars only)
_env_file = str(_env_path) if _env_path.is_file() else None


# Load .env file early to populate os.environ before creating nested settings
# This is necessary because Pydantic nested BaseSettings don't inherit env_file
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


def _build_app_settings() -> "AppSettings":
    """Build app settings from environment.

    Pydantic Settings (v2) can populate values from environment variables.
    However, static type checkers often treat required fields as required
    constructor arguments, which is not how BaseSettings is intended to be used.
    """

    return AppSettings()  # type: ignore[call-arg]


def _build_log_settings() -> "LogSettings":
    """Build log settings from environment."""

    return LogSettings()  # type: ignore[call-arg]


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )

    data_dir: Path = Field(
        PROJECT_ROOT / "data",
        description="Directory holding the submission collections and cooldown map",
    )
    proposed_questions_file: str = Field(
        "proposed-questions.json",
        description="File name (inside data_dir) of the proposed questions collection",
    )
    reported_questions_file: str = Field(
        "reported-questions.json",
        description="File name (inside data_dir) of the reported questions collection",
    )
    propose_cooldown_file: str = Field(
        "propose-cooldowns.json",
        description="File name (inside data_dir) of the per-client propose cooldown map",
    )
    questions_file: Path = Field(
        PROJECT_ROOT / "data" / "questions.json",
        description="Read-only bilingual question dataset served by the catalog",
    )

    rate_limit_enabled: bool = Field(
        True,
        description="Enable the per-client, per-route rate limiter",
    )
    rate_limit_requests: int = Field(
        60,
        description="Default maximum number of requests per window (per client and route)",
        ge=1,
    )
    rate_limit_window_seconds: int = Field(
        60,
        description="Default rate limit window size in seconds",
        ge=1,
    )
    rate_limit_strict_requests: int = Field(
        1,
        description="Maximum number of requests per window on the strict (write) routes",
        ge=1,
    )
    rate_limit_strict_window_seconds: int = Field(
        60,
        description="Window size in seconds on the strict (write) routes",
        ge=1,
    )
    rate_limit_strict_paths: list[str] = Field(
        default_factory=lambda: ["/api/propose-question", "/api/report-question"],
        description="Routes that use the strict quota instead of the default one",
    )
    rate_limit_path_prefixes: list[str] = Field(
        default_factory=lambda: ["/api"],
        description="Only paths under these prefixes are rate limited",
    )
    rate_limit_skip_prefixes: list[str] = Field(
        default_factory=lambda: [
            "/_next",
            "/static",
            "/favicon.ico",
            "/robots.txt",
            "/sitemap.xml",
            "/public",
        ],
        description="Static-asset-like prefixes that always bypass the rate limiter",
    )
    rate_limit_include_headers: bool = Field(
        True,
        description="Include X-RateLimit-* headers on limited responses",
    )

    propose_cooldown_enabled: bool = Field(
        True,
        description="Enable the durable per-client cooldown on question proposals",
    )
    propose_cooldown_seconds: int = Field(
        60,
        description="Minimum delay between two accepted proposals from the same client",
        ge=1,
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )

    @property
    def proposed_questions_path(self) -> Path:
        return Path(self.data_dir) / self.proposed_questions_file

    @property
    def reported_questions_path(self) -> Path:
        return Path(self.data_dir) / self.reported_questions_file

    @property
    def propose_cooldown_path(self) -> Path:
        return Path(self.data_dir) / self.propose_cooldown_file


class LogSettings(BaseSettings):
    """Logging configuration (format, destination, correlation header)."""

    level: str = Field(
        "INFO",
        description="Root log level (DEBUG, INFO, WARNING, ERROR)",
    )
    format: str = Field(
        "json",
        description="Log format: 'json' for structured logs, 'plain' for human-readable",
    )
    output: str = Field(
        "stdout",
        description="Log destination: 'stdout' or 'file'",
    )
    file_path: str | None = Field(
        None,
        description="Log file path when output is 'file' (default logs/app.log)",
    )
    max_bytes: int = Field(
        10 * 1024 * 1024,
        description="Rotate the log file after this many bytes (0 disables rotation)",
        ge=0,
    )
    backup_count: int = Field(
        5,
        description="Number of rotated log files to keep",
        ge=0,
    )
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to read and propagate the request correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.
    Raises validation errors on startup if settings are invalid.

    Environments:
    - development: Local development (DEBUG=true)
    - testing: Automated tests (uses .env.testing)
    - staging: Pre-production (uses .env.staging)
    - production: Production deployment (uses .env.production)
    """

    app_env: str = APP_ENV
    app: AppSettings = Field(default_factory=_build_app_settings)
    log: LogSettings = Field(default_factory=_build_log_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Global settings instance - composed from domain-specific settings
# Nested settings are created via default_factory so env loading works.
settings = Settings()
