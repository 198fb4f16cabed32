"""Tests for the error hierarchy, error handler and log helpers."""

import json
import logging

import pytest

from mailsync.utils.errors import (
    CacheReadError,
    ErrorCategory,
    ErrorHandler,
    MessageNotFoundError,
    NetworkError,
    NetworkRefreshError,
    format_error_message,
    safe_execute_async,
    wrap_network_error,
)
from mailsync.utils.logging import JSONFormatter, LogManager, SensitiveDataMasker, init_logging


class TestErrorHierarchy:
    """Tests for exception categories and serialisation"""

    def test_categories(self):
        assert CacheReadError().category is ErrorCategory.DATABASE
        assert NetworkRefreshError().category is ErrorCategory.NETWORK
        assert isinstance(MessageNotFoundError(), NetworkError)

    def test_default_message_is_user_message(self):
        error = MessageNotFoundError()

        assert error.message == "Message not found"
        assert str(error) == "Message not found"

    def test_to_dict(self):
        error = NetworkRefreshError("Server unreachable", details={"folder": "INBOX"})

        assert error.to_dict() == {
            "error_type": "NetworkRefreshError",
            "category": "network",
            "message": "Server unreachable",
            "details": {"folder": "INBOX"},
        }


class TestErrorHandling:
    """Tests for ErrorHandler and helpers"""

    def test_handle_known_error(self):
        result = ErrorHandler.handle(CacheReadError("disk gone"), "Reading cache", log_traceback=False)

        assert result["error_type"] == "CacheReadError"

    def test_handle_unknown_error(self):
        result = ErrorHandler.handle(RuntimeError("oops"), "Somewhere", log_traceback=False)

        assert result["category"] == ErrorCategory.UNKNOWN.value
        assert result["details"] == {"context": "Somewhere"}

    @pytest.mark.asyncio
    async def test_safe_execute_async_returns_default(self):
        async def broken():
            raise RuntimeError("nope")

        assert await safe_execute_async(broken, default="fallback", context="test") == "fallback"

    def test_format_error_message(self):
        assert format_error_message(NetworkError("Server unreachable")) == "Server unreachable"
        assert format_error_message(ValueError("bad value")) == "bad value"
        assert format_error_message(TimeoutError()) == "TimeoutError"

    def test_wrap_network_error(self):
        typed = CacheReadError("typed")
        assert wrap_network_error(typed, "ignored") is typed

        wrapped = wrap_network_error(OSError("reset"), "Failed to refresh INBOX", {"folder": "INBOX"})
        assert isinstance(wrapped, NetworkRefreshError)
        assert wrapped.message == "Failed to refresh INBOX: reset"


class TestLogHelpers:
    """Tests for log formatting and masking"""

    def test_masks_secrets_and_addresses(self):
        masker = SensitiveDataMasker()

        masked = masker.mask_string("password=hunter2 for alice@example.com")

        assert "hunter2" not in masked
        assert "alice@example.com" not in masked
        assert "[REDACTED]" in masked

    def test_json_formatter_includes_context(self):
        record = logging.makeLogRecord(
            {"name": "mailsync.test", "levelname": "INFO", "msg": "Folder refresh completed", "folder": "INBOX"}
        )

        entry = json.loads(JSONFormatter().format(record))

        assert entry["message"] == "Folder refresh completed"
        assert entry["context"] == {"folder": "INBOX"}

    def test_log_manager_writes_to_log_dir(self, tmp_path):
        manager = LogManager("DEBUG", log_dir=tmp_path / "logs")
        try:
            manager.get_logger("test").info("hello")
            manager.log_event("refresh", "Folder refreshed", folder="INBOX")

            assert (tmp_path / "logs" / "app.log").exists()
            assert "Folder refreshed" in (tmp_path / "logs" / "events.log").read_text()
        finally:
            init_logging()._setup_handlers()

    def test_set_level_rejects_unknown_level(self):
        with pytest.raises(ValueError):
            init_logging().set_level("LOUD")
