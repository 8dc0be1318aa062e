"""Engine configuration using Pydantic Settings.

Configuration is environment-aware:
- THROTTLE_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file

Only this module reads the environment. The engine itself receives fully
built settings or collaborators and never looks at os.environ.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from throttle.schemas.rule import Algorithm, Rule


# Determine which environment to load (default: development)
THROTTLE_ENV = os.getenv("THROTTLE_ENV", "development")

# Project root (so .env resolution doesn't depend on current working directory)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

# Map environments to their respective .env files (relative to PROJECT_ROOT)
ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

_env_filename = ENV_FILE_MAP.get(THROTTLE_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Only load from file if it exists (production might inject via env vars only)
_env_file = str(_env_path) if _env_path.is_file() else None


# Load .env file early to populate os.environ before creating nested settings
# This is necessary because Pydantic nested BaseSettings don't inherit env_file
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=False)


class RuleSettings(BaseSettings):
    """Rule table and unknown-API policy.

    `apis` is read from RULE_APIS as JSON, for example
    ``{"search": {"window_seconds": 10, "quota": 3, "algorithm": "SLIDING_WINDOW"}}``.
    """

    default_window_seconds: int = Field(
        60,
        description="Window length of the default rule, in seconds",
        ge=1,
    )
    default_quota: int = Field(
        20,
        description="Quota of the default rule",
        ge=1,
    )
    default_algorithm: Algorithm = Field(
        Algorithm.TOKEN_BUCKET,
        description="Algorithm of the default rule",
    )
    unknown_api_policy: Literal["default", "reject"] = Field(
        "default",
        description="Apply the default rule to unknown APIs, or reject them as misconfigured",
    )
    apis: dict[str, Rule] = Field(
        default_factory=dict,
        description="Per-API rules keyed by API identifier",
    )

    model_config = SettingsConfigDict(
        env_prefix="RULE_",
        case_sensitive=False,
    )

    def default_rule(self) -> Rule:
        """Return the configured default rule."""
        return Rule.build(
            window_seconds=self.default_window_seconds,
            quota=self.default_quota,
            algorithm=self.default_algorithm,
        )


class LimiterSettings(BaseSettings):
    """Engine tuning knobs."""

    lock_stripes: int = Field(
        1024,
        description="Number of lock stripes each algorithm shards its keys over",
        ge=1,
    )
    idle_key_ttl_seconds: int | None = Field(
        None,
        description="Default idle age for RateLimiter.purge_idle(); keys are never purged before their window ends",
        ge=1,
    )

    model_config = SettingsConfigDict(
        env_prefix="LIMITER_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging output configuration."""

    level: str = Field("INFO", description="Root log level")
    format: Literal["json", "plain"] = Field("json", description="Log line format")
    output: Literal["stdout", "file"] = Field("stdout", description="Log destination")
    file_path: str | None = Field(
        None,
        description="Log file path when output is 'file' (defaults to logs/throttle.log)",
    )
    max_bytes: int = Field(
        10_485_760,
        description="Rotate the log file after this many bytes (0 disables rotation)",
        ge=0,
    )
    backup_count: int = Field(5, description="Number of rotated log files to keep", ge=0)

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


def _build_rule_settings() -> "RuleSettings":
    """Build rule settings from environment."""

    return RuleSettings()


def _build_limiter_settings() -> "LimiterSettings":
    return LimiterSettings()


def _build_log_settings() -> "LogSettings":
    return LogSettings()


class Settings(BaseSettings):
    """Main settings container.

    Automatically loads from the appropriate .env.{THROTTLE_ENV} file.
    Raises validation errors on startup if a setting is malformed.
    """

    throttle_env: str = THROTTLE_ENV
    rules: RuleSettings = Field(default_factory=_build_rule_settings)
    limiter: LimiterSettings = Field(default_factory=_build_limiter_settings)
    log: LogSettings = Field(default_factory=_build_log_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Global settings instance - composed from domain-specific settings
# Nested settings are created via default_factory so env loading works.
settings = Settings()
