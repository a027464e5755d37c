"""Tests for Presto webhook structured logging."""

import io
import logging
import sys

import structlog

from presto_webhooks.logging import (
    REDACTED,
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
    redact_secrets,
    unbind_context,
)


class TestConfigureLogging:
    """Tests for logging configuration."""

    def test_configure_with_defaults(self):
        """Should configure with INFO level and JSON format by default."""
        configure_logging()
        logger = get_logger("test")
        logger.info("test message")

    def test_configure_with_text_format(self):
        """Should accept text format for development."""
        configure_logging(level="DEBUG", format="text")
        logger = get_logger("test")
        logger.debug("text format message")

    def test_configure_multiple_times(self):
        """Should handle multiple configuration calls."""
        configure_logging(level="INFO")
        configure_logging(level="WARNING")
        logger = get_logger("test")
        logger.warning("after reconfigure")


class TestRedactSecrets:
    """Tests for the secret-masking processor."""

    def test_masks_secret_keys(self):
        event = {"event": "signing", "secret": "s3cr3t", "Authorization": "Bearer x"}
        result = redact_secrets(None, "info", event)
        assert result["secret"] == REDACTED
        assert result["Authorization"] == REDACTED
        assert result["event"] == "signing"

    def test_leaves_other_keys(self):
        event = {"event": "delivered", "subscription_id": "whk_1", "status": 200}
        assert redact_secrets(None, "info", dict(event)) == event

    def test_stdlib_records_are_redacted(self, monkeypatch):
        """Plain logging calls from the engine pass through the same redaction."""
        stream = io.StringIO()
        monkeypatch.setattr(sys, "stdout", stream)
        configure_logging(level="INFO", format="json")

        logging.getLogger("presto_webhooks.webhooks.delivery").warning(
            "Signing webhook", extra={"secret": "s3cr3t-value", "delivery_id": "dlv_1"}
        )

        out = stream.getvalue()
        assert "s3cr3t-value" not in out
        assert REDACTED in out
        assert "dlv_1" in out


class TestContextBinding:
    """Tests for context variable binding."""

    def setup_method(self):
        """Clear context before each test."""
        clear_context()

    def teardown_method(self):
        """Clear context after each test."""
        clear_context()

    def test_bind_and_unbind(self):
        bind_context(delivery_id="dlv_1", subscription_id="whk_1")
        assert structlog.contextvars.get_contextvars() == {
            "delivery_id": "dlv_1",
            "subscription_id": "whk_1",
        }

        unbind_context("delivery_id")
        assert structlog.contextvars.get_contextvars() == {"subscription_id": "whk_1"}

    def test_clear(self):
        bind_context(delivery_id="dlv_1")
        clear_context()
        assert structlog.contextvars.get_contextvars() == {}
