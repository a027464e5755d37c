"""Tests for the Presto webhook exception hierarchy."""

import pytest

from presto_webhooks.exceptions import (
    AttemptFailure,
    ConfigurationError,
    DeliveryExhausted,
    InvalidTransitionError,
    NotFoundError,
    PrestoError,
    RejectedDelivery,
    SigningError,
    StorageError,
)


class TestHierarchy:
    """All errors should share one base."""

    @pytest.mark.parametrize(
        "exc",
        [
            RejectedDelivery("whk_1", "inactive"),
            SigningError("bad key"),
            AttemptFailure(1, 500, "response", None),
            DeliveryExhausted("dlv_1", 3, 0),
            InvalidTransitionError("pending", "succeeded"),
            NotFoundError("subscription", "whk_1"),
            StorageError("down"),
            ConfigurationError("missing"),
        ],
    )
    def test_inherits_from_base(self, exc):
        assert isinstance(exc, PrestoError)
        assert exc.to_dict()["error"]["code"] == exc.code


class TestRejectedDelivery:
    """Tests for RejectedDelivery."""

    def test_inactive_message(self):
        exc = RejectedDelivery("whk_1", "inactive")
        assert "inactive" in exc.message
        assert exc.outcome is None

    def test_unsubscribed_to_dict(self):
        exc = RejectedDelivery("whk_1", "event_not_subscribed")
        error = exc.to_dict()["error"]
        assert error["reason"] == "event_not_subscribed"
        assert error["subscription_id"] == "whk_1"


class TestAttemptFailure:
    """Tests for AttemptFailure messages."""

    def test_response_message(self):
        assert str(AttemptFailure(2, 503, "response", None)) == "Attempt 2 got HTTP 503"

    def test_network_message(self):
        exc = AttemptFailure(1, 0, "timeout", "Request timed out after 5.0s")
        assert "timeout" in str(exc)
        assert "5.0s" in str(exc)


class TestNotFoundAndExhausted:
    """Tests for structured error payloads."""

    def test_not_found_to_dict(self):
        error = NotFoundError("subscription", "whk_1").to_dict()["error"]
        assert error["resource_type"] == "subscription"
        assert error["resource_id"] == "whk_1"
        assert error["message"] == "subscription not found: whk_1"

    def test_exhausted_to_dict(self):
        error = DeliveryExhausted("dlv_1", 3, 500).to_dict()["error"]
        assert error["attempts"] == 3
        assert error["status_code"] == 500
