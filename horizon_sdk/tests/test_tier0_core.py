"""Tests for tier0_core modules."""
from __future__ import annotations

import json

import pytest


# ── errors ─────────────────────────────────────────────────────────────────

class TestErrors:
    def test_error_has_code_and_message(self):
        from horizon_sdk.tier0_core.errors import ClientError

        err = ClientError("Bad request", status_code=400)
        assert err.code == "client_error"
        assert err.message == "Bad request"
        assert err.status_code == 400
        assert not err.retryable

    def test_transient_errors_are_retryable(self):
        from horizon_sdk.tier0_core.errors import (
            ClientError,
            ConnectionFailure,
            DecodeError,
            RateLimitError,
            ServerError,
        )

        assert ConnectionFailure.retryable
        assert ServerError.retryable
        assert RateLimitError.retryable
        assert not ClientError.retryable
        assert not DecodeError.retryable

    def test_rate_limit_error_carries_retry_after(self):
        from horizon_sdk.tier0_core.errors import RateLimitError

        err = RateLimitError(retry_after=2.5)
        assert err.retry_after == 2.5
        assert err.status_code == 429

    def test_precondition_errors_have_default_messages(self):
        from horizon_sdk.tier0_core.errors import NoActiveHostError, NotInitializedError

        assert "No active host" in NoActiveHostError().message
        assert NotInitializedError().code == "not_initialized"

    def test_all_errors_are_horizon_errors(self):
        from horizon_sdk.tier0_core import errors

        for name in errors.__all__:
            assert issubclass(getattr(errors, name), errors.HorizonError)


# ── http ───────────────────────────────────────────────────────────────────

class TestHttp:
    def test_status_helpers(self):
        from horizon_sdk.tier0_core.http import HTTP

        assert HTTP.is_success(200)
        assert HTTP.is_success(204)
        assert not HTTP.is_success(301)
        assert HTTP.is_server_error(500)
        assert not HTTP.is_server_error(429)

    def test_typed_response_success_and_failure(self):
        from horizon_sdk.tier0_core.http import TypedResponse

        ok = TypedResponse.success({"a": 1})
        assert ok.ok and ok.data == {"a": 1} and ok.error is None
        failed = TypedResponse.failure("nope", 404, "client_error")
        assert not failed.ok
        assert failed.data is None
        assert failed.status_code == 404
        assert failed.error_code == "client_error"

    def test_binary_not_found_is_success(self):
        from horizon_sdk.tier0_core.http import BinaryResponse

        r = BinaryResponse.not_found()
        assert r.is_success
        assert not r.found
        assert r.data is None
        assert r.status_code == 204

    def test_wire_model_uses_camel_case_aliases(self):
        from horizon_sdk.tier0_core.http import WireModel

        class Entry(WireModel):
            release_date: str

        assert Entry.model_validate({"releaseDate": "2025-01-01"}).release_date == "2025-01-01"
        assert Entry(release_date="x").model_dump(by_alias=True) == {"releaseDate": "x"}

    def test_wire_model_ignores_unknown_fields(self):
        from horizon_sdk.tier0_core.http import MessageResponse

        msg = MessageResponse.model_validate({"success": True, "message": "hi", "extra": 1})
        assert msg.success and msg.message == "hi"


# ── config ─────────────────────────────────────────────────────────────────

class TestConfig:
    def test_retry_policy_defaults(self):
        from horizon_sdk.tier0_core.config import RetryPolicy

        p = RetryPolicy()
        assert p.max_retry_attempts == 3
        assert p.fixed_delay_seconds == 1.0
        assert p.connection_timeout_seconds == 10
        assert p.max_attempts == 4

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"max_retry_attempts": -1},
            {"fixed_delay_seconds": -0.5},
            {"connection_timeout_seconds": 0},
        ],
    )
    def test_retry_policy_rejects_invalid_values(self, kwargs):
        from horizon_sdk.tier0_core.config import RetryPolicy
        from horizon_sdk.tier0_core.errors import ConfigurationError

        with pytest.raises(ConfigurationError):
            RetryPolicy(**kwargs)

    def test_config_reads_env(self, monkeypatch):
        from horizon_sdk.tier0_core.config import _reset_config, get_config

        monkeypatch.setenv("HORIZON_API_KEY", "env-key")
        monkeypatch.setenv("HORIZON_BACKEND_DOMAINS", '["https://a.example/", " https://b.example "]')
        monkeypatch.setenv("HORIZON_MAX_RETRY_ATTEMPTS", "5")
        _reset_config()
        cfg = get_config()
        assert cfg.api_key == "env-key"
        assert cfg.backend_domains == ["https://a.example", "https://b.example"]
        assert cfg.retry_policy().max_attempts == 6

    def test_get_config_is_cached(self):
        from horizon_sdk.tier0_core.config import get_config

        assert get_config() is get_config()

    def test_invalid_env_raises_configuration_error(self, monkeypatch):
        from horizon_sdk.tier0_core.config import _reset_config, get_config
        from horizon_sdk.tier0_core.errors import ConfigurationError

        monkeypatch.setenv("HORIZON_LOG_FORMAT", "xml")
        _reset_config()
        with pytest.raises(ConfigurationError):
            get_config()

    def test_is_valid_requires_key_and_domains(self, make_config):
        assert make_config().is_valid()
        assert not make_config(api_key="").is_valid()
        assert not make_config(backend_domains=[]).is_valid()

    def test_load_config_file(self, tmp_path):
        from horizon_sdk.tier0_core.config import load_config_file

        path = tmp_path / "horizOn-config.json"
        path.write_text(json.dumps({
            "apiKey": "file-key",
            "backendDomains": ["https://eu.example", "https://us.example/"],
        }))
        cfg = load_config_file(path)
        assert cfg.api_key == "file-key"
        assert cfg.backend_domains == ["https://eu.example", "https://us.example"]

    def test_load_config_file_missing(self, tmp_path):
        from horizon_sdk.tier0_core.config import load_config_file
        from horizon_sdk.tier0_core.errors import ConfigurationError

        with pytest.raises(ConfigurationError):
            load_config_file(tmp_path / "absent.json")

    def test_load_config_file_not_an_object(self, tmp_path):
        from horizon_sdk.tier0_core.config import load_config_file
        from horizon_sdk.tier0_core.errors import ConfigurationError

        path = tmp_path / "config.json"
        path.write_text("[1, 2]")
        with pytest.raises(ConfigurationError):
            load_config_file(path)


# ── logging ────────────────────────────────────────────────────────────────

class TestLogging:
    def test_credentials_are_scrubbed(self):
        from horizon_sdk.tier0_core.logging import _scrub_credentials

        event = {"event": "x", "api_key": "secret", "Authorization": "Bearer t", "url": "/a"}
        out = _scrub_credentials(None, "info", event)
        assert out["api_key"] == "***"
        assert out["Authorization"] == "***"
        assert out["url"] == "/a"

    def test_mask_key_shows_length_and_prefix_only(self):
        from horizon_sdk.tier0_core.logging import mask_key

        masked = mask_key("hk_live_abcdefghijklmnop")
        assert masked == "len=24 prefix=hk_live_ab..."
        assert mask_key("") == "<empty>"
        assert mask_key("abc") == "len=3 prefix=abc..."

    def test_get_logger_returns_usable_logger(self):
        from horizon_sdk.tier0_core.logging import get_logger

        log = get_logger("horizon_sdk.test")
        log.info("test.event", value=1)

    def test_configure_logging_does_not_duplicate_handlers(self):
        import logging

        from horizon_sdk.tier0_core.logging import configure_logging

        configure_logging("INFO", "json")
        configure_logging("DEBUG", "console")
        sdk_logger = logging.getLogger("horizon_sdk")
        streams = [h for h in sdk_logger.handlers if isinstance(h, logging.StreamHandler)]
        assert len(streams) == 1
        assert sdk_logger.level == logging.DEBUG

    def test_request_context_binds_fields_for_block(self):
        import structlog

        from horizon_sdk.tier0_core.logging import request_context

        with request_context(endpoint="/api/v1/app/news", method="GET"):
            bound = structlog.contextvars.get_contextvars()
            assert bound["endpoint"] == "/api/v1/app/news"
        assert "endpoint" not in structlog.contextvars.get_contextvars()
