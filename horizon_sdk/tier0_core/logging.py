"""
horizon_sdk.tier0_core.logging
────────────────────────────────
Structured SDK logs with levels, per-call context (endpoint, method) bound
through ``request_context`` and redaction of credentials before anything
reaches a sink.

Minimal stack: structlog (stdout, console or JSON)
Configure via: HORIZON_LOG_LEVEL, HORIZON_LOG_FORMAT=console|json
"""
from __future__ import annotations

import logging
import os
import sys
from contextlib import AbstractContextManager
from typing import Any

import structlog


# ── Configuration ─────────────────────────────────────────────────────────────

_handler: logging.Handler | None = None


def configure_logging(level: str | None = None, fmt: str | None = None) -> None:
    """
    (Re)configure structlog and the stdlib root handler.

    Explicit arguments win over HORIZON_LOG_LEVEL / HORIZON_LOG_FORMAT.
    Safe to call more than once: the SDK's stdout handler is replaced, not
    duplicated.
    """
    global _handler, _configured

    log_level = (level or os.getenv("HORIZON_LOG_LEVEL", "INFO")).upper()
    log_format = (fmt or os.getenv("HORIZON_LOG_FORMAT", "console")).lower()
    numeric_level = getattr(logging, log_level, logging.INFO)

    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        _scrub_credentials,
    ]

    render_chain: list[Any]
    if log_format == "json":
        render_chain = [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        render_chain = [structlog.dev.ConsoleRenderer()]

    structlog.configure(
        processors=shared_processors + [
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            *render_chain,
        ],
    )

    sdk_logger = logging.getLogger("horizon_sdk")
    if _handler is not None:
        sdk_logger.removeHandler(_handler)
    _handler = logging.StreamHandler(sys.stdout)
    _handler.setFormatter(formatter)
    sdk_logger.addHandler(_handler)
    sdk_logger.setLevel(numeric_level)

    _configured = True


# ── Credential scrubbing ──────────────────────────────────────────────────────

_SECRET_FIELDS = frozenset({
    "api_key", "apikey", "x-api-key", "x_api_key",
    "authorization", "bearer", "token", "session_token",
    "access_token", "refresh_token", "password", "secret",
})


def _scrub_credentials(logger: Any, method: str, event_dict: dict) -> dict:
    """Replace values of credential-named fields with ``***``."""
    for name in event_dict:
        if name.lower() in _SECRET_FIELDS:
            event_dict[name] = "***"
    return event_dict


def mask_key(value: str | None, visible: int = 10) -> str:
    """Describe a credential by length and prefix only, e.g. ``len=32 prefix=hk_live_ab...``."""
    if not value:
        return "<empty>"
    return f"len={len(value)} prefix={value[:visible]}..."


# ── Loggers and context ───────────────────────────────────────────────────────

_configured = False


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """
    Logger for an SDK module; configures logging on first use.

    Usage:
        log = get_logger(__name__)
        log.warning("request.rate_limited", url=url, retry_after=2.0)
    """
    if not _configured:
        configure_logging()
    return structlog.get_logger(name or "horizon_sdk")


def request_context(**fields: Any) -> AbstractContextManager[Any]:
    """
    Attach ``fields`` to every log line emitted inside the ``with`` block,
    including lines from other modules. Safe across concurrent tasks.
    """
    return structlog.contextvars.bound_contextvars(**fields)
