"""
horizon_sdk.tier0_core.config
────────────────────────────────
Typed SDK configuration with env layering. Reads from .env → environment
variables → explicit keyword arguments. A config file exported from the
horizOn dashboard (``{"apiKey": ..., "backendDomains": [...]}``) can be
loaded with :func:`load_config_file`.

Minimal stack: pydantic-settings
All env vars are prefixed with HORIZON_.
"""
from __future__ import annotations

import json
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from horizon_sdk.tier0_core.errors import ConfigurationError


@dataclass(frozen=True)
class RetryPolicy:
    """Retry settings handed to the request executor. Immutable."""
    max_retry_attempts: int = 3
    fixed_delay_seconds: float = 1.0
    connection_timeout_seconds: int = 10

    def __post_init__(self) -> None:
        if self.max_retry_attempts < 0:
            raise ConfigurationError(
                f"max_retry_attempts must be >= 0, got {self.max_retry_attempts}"
            )
        if self.fixed_delay_seconds < 0:
            raise ConfigurationError(
                f"fixed_delay_seconds must be >= 0, got {self.fixed_delay_seconds}"
            )
        if self.connection_timeout_seconds <= 0:
            raise ConfigurationError(
                "connection_timeout_seconds must be > 0, "
                f"got {self.connection_timeout_seconds}"
            )

    @property
    def max_attempts(self) -> int:
        """Initial attempt plus configured retries."""
        return self.max_retry_attempts + 1


class HorizonConfig(BaseSettings):
    """
    Typed SDK configuration.
    All env vars are prefixed with HORIZON_ (e.g. HORIZON_API_KEY).
    """

    model_config = SettingsConfigDict(
        env_prefix="HORIZON_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── Backend ───────────────────────────────────────────────────────────────
    api_key: str = ""
    backend_domains: list[str] = Field(default_factory=list)
    health_path: str = "/"

    # ── Network ───────────────────────────────────────────────────────────────
    max_retry_attempts: int = Field(default=3, ge=0)
    retry_delay_seconds: float = Field(default=1.0, ge=0)
    connection_timeout_seconds: int = Field(default=10, gt=0)

    # ── Events ────────────────────────────────────────────────────────────────
    replay_ttl_seconds: float = Field(default=300.0, gt=0)

    # ── Logging ───────────────────────────────────────────────────────────────
    log_level: str = "INFO"
    log_format: str = "console"

    @field_validator("backend_domains")
    @classmethod
    def strip_domains(cls, v: list[str]) -> list[str]:
        return [d.strip().rstrip("/") for d in v if d and d.strip()]

    @field_validator("log_format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        allowed = {"console", "json"}
        if v.lower() not in allowed:
            raise ValueError(f"log_format must be one of {allowed}, got {v!r}")
        return v.lower()

    def is_valid(self) -> bool:
        return bool(self.api_key) and bool(self.backend_domains)

    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_retry_attempts=self.max_retry_attempts,
            fixed_delay_seconds=self.retry_delay_seconds,
            connection_timeout_seconds=self.connection_timeout_seconds,
        )


def load_config_file(path: str | Path) -> HorizonConfig:
    """
    Build a HorizonConfig from a dashboard export file.

    Values in the file override HORIZON_API_KEY / HORIZON_BACKEND_DOMAINS;
    every other setting still comes from the environment.
    Raises ConfigurationError if the file is missing or malformed.
    """
    try:
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigurationError(f"Cannot read config file {path}: {exc}") from exc

    if not isinstance(raw, dict):
        raise ConfigurationError(f"Config file {path} must contain a JSON object")

    overrides: dict = {}
    if "apiKey" in raw:
        overrides["api_key"] = raw["apiKey"]
    if "backendDomains" in raw:
        overrides["backend_domains"] = raw["backendDomains"]

    try:
        return HorizonConfig(**overrides)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid config file {path}: {exc}") from exc


@lru_cache(maxsize=1)
def get_config() -> HorizonConfig:
    """
    Return the process-wide config built from the environment. Cached after
    first call. Call _reset_config() in tests to pick up new env vars.
    """
    try:
        return HorizonConfig()
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid HORIZON_* configuration: {exc}") from exc


def _reset_config() -> None:
    """For tests: clear the config cache."""
    get_config.cache_clear()
