"""Tests for the webhook trigger REST API."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from presto_webhooks.api import create_app, register_exception_handlers
from presto_webhooks.api.router import router, set_service
from presto_webhooks.config import Settings
from presto_webhooks.exceptions import NotFoundError, RejectedDelivery, SigningError
from presto_webhooks.models import DeliveryOutcome, DeliveryState
from presto_webhooks.service import DeliveryService
from presto_webhooks.storage import InMemoryStore


@pytest.fixture
def mock_service():
    """Create a mock DeliveryService."""
    service = MagicMock(spec=DeliveryService)
    service.trigger = AsyncMock()
    return service


@pytest.fixture
def test_app(mock_service):
    """Create a test FastAPI app with mocked service."""
    app = FastAPI()
    register_exception_handlers(app)
    app.include_router(router, prefix="/api/v1")
    set_service(mock_service)
    yield app
    set_service(None)  # type: ignore[arg-type]


@pytest.fixture
def client(test_app):
    """Create a test client."""
    return TestClient(test_app)


def make_outcome(success: bool, status_code: int, attempts: int) -> DeliveryOutcome:
    return DeliveryOutcome(
        delivery_id="dlv_abc",
        subscription_id="whk_test123",
        event_type="checkin.created",
        state=DeliveryState.SUCCEEDED if success else DeliveryState.EXHAUSTED,
        success=success,
        status_code=status_code,
        attempts=attempts,
    )


class TestHealthEndpoint:
    """Tests for /health endpoint."""

    def test_health_when_service_initialized(self, client):
        """Should return healthy when service is ready."""
        response = client.get("/api/v1/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert "version" in data

    def test_health_when_service_not_initialized(self):
        """Should return unhealthy when service not ready."""
        app = FastAPI()
        app.include_router(router, prefix="/api/v1")
        set_service(None)  # type: ignore[arg-type]
        test_client = TestClient(app)

        response = test_client.get("/api/v1/health")

        assert response.status_code == 200
        assert response.json()["status"] == "unhealthy"


class TestDeliveriesEndpoint:
    """Tests for POST /deliveries."""

    def test_successful_delivery(self, client, mock_service):
        """Should return the delivery summary."""
        mock_service.trigger.return_value = make_outcome(True, 200, 1)

        response = client.post(
            "/api/v1/deliveries",
            json={
                "subscription_id": "whk_test123",
                "event_type": "checkin.created",
                "data": {"attendee_id": "att_42"},
            },
        )

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "status": 200,
            "attempts": 1,
            "subscription_id": "whk_test123",
            "delivery_id": "dlv_abc",
        }
        mock_service.trigger.assert_called_once_with(
            subscription_id="whk_test123",
            event_type="checkin.created",
            data={"attendee_id": "att_42"},
        )

    def test_failed_delivery_is_still_200(self, client, mock_service):
        """An exhausted delivery reports success=false, not an error status."""
        mock_service.trigger.return_value = make_outcome(False, 0, 3)

        response = client.post(
            "/api/v1/deliveries",
            json={"subscription_id": "whk_test123", "event_type": "checkin.created"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is False
        assert data["status"] == 0
        assert data["attempts"] == 3

    def test_unknown_subscription(self, client, mock_service):
        """Should return 404 for unknown subscriptions."""
        mock_service.trigger.side_effect = NotFoundError("subscription", "whk_missing")

        response = client.post(
            "/api/v1/deliveries",
            json={"subscription_id": "whk_missing", "event_type": "checkin.created"},
        )

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "not_found"

    def test_inactive_subscription(self, client, mock_service):
        """Inactive subscriptions should look missing."""
        mock_service.trigger.side_effect = RejectedDelivery("whk_test123", "inactive")

        response = client.post(
            "/api/v1/deliveries",
            json={"subscription_id": "whk_test123", "event_type": "checkin.created"},
        )

        assert response.status_code == 404
        assert response.json()["error"]["reason"] == "inactive"

    def test_unsubscribed_event(self, client, mock_service):
        """Should return 400 when the event type is not subscribed."""
        mock_service.trigger.side_effect = RejectedDelivery(
            "whk_test123", "event_not_subscribed"
        )

        response = client.post(
            "/api/v1/deliveries",
            json={"subscription_id": "whk_test123", "event_type": "order.paid"},
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "delivery_rejected"

    def test_signing_error(self, client, mock_service):
        """Should return 500 when the secret is unusable."""
        mock_service.trigger.side_effect = SigningError("Secret must not be empty")

        response = client.post(
            "/api/v1/deliveries",
            json={"subscription_id": "whk_test123", "event_type": "checkin.created"},
        )

        assert response.status_code == 500
        assert response.json()["error"]["code"] == "signing_error"

    def test_missing_fields(self, client):
        """Should return 422 for invalid requests."""
        response = client.post("/api/v1/deliveries", json={"event_type": "checkin.created"})

        assert response.status_code == 422

    def test_service_not_initialized(self):
        """Should return 503 before startup."""
        app = FastAPI()
        app.include_router(router, prefix="/api/v1")
        set_service(None)  # type: ignore[arg-type]
        test_client = TestClient(app)

        response = test_client.post(
            "/api/v1/deliveries",
            json={"subscription_id": "whk_test123", "event_type": "checkin.created"},
        )

        assert response.status_code == 503


class TestCreateApp:
    """Tests for the application factory."""

    def test_lifespan_wires_service(self):
        """The real app should look subscriptions up in the given store."""
        app = create_app(settings=Settings(log_format="text"), store=InMemoryStore())

        with TestClient(app) as test_client:
            assert test_client.get("/api/v1/health").json()["status"] == "healthy"
            response = test_client.post(
                "/api/v1/deliveries",
                json={"subscription_id": "whk_nope", "event_type": "checkin.created"},
            )

        assert response.status_code == 404
        assert response.json()["error"]["resource_id"] == "whk_nope"

    def test_cors_middleware(self):
        """CORS headers should be sent when enabled."""
        app = create_app(
            settings=Settings(cors_enabled=True, cors_allow_origins=["https://app.example.com"])
        )

        with TestClient(app) as test_client:
            response = test_client.options(
                "/api/v1/deliveries",
                headers={
                    "Origin": "https://app.example.com",
                    "Access-Control-Request-Method": "POST",
                },
            )

        assert response.headers["access-control-allow-origin"] == "https://app.example.com"
