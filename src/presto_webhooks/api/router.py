"""FastAPI router for the webhook trigger API."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from presto_webhooks import __version__
from presto_webhooks.service import DeliveryService

from .schemas import DeliveryRequest, DeliveryResponse, HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter()

# Service instance (set by app lifespan)
_service: DeliveryService | None = None


def set_service(service: DeliveryService) -> None:
    """Set the global service instance."""
    global _service
    _service = service


async def get_service() -> DeliveryService:
    """Dependency to get the DeliveryService instance."""
    if _service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service not initialized",
        )
    return _service


ServiceDep = Annotated[DeliveryService, Depends(get_service)]


@router.get("/health", response_model=HealthResponse, tags=["system"])
async def health_check() -> HealthResponse:
    """Check service health."""
    if _service is not None:
        return HealthResponse(status="healthy", version=__version__)
    return HealthResponse(status="unhealthy", version=__version__)


@router.post("/deliveries", response_model=DeliveryResponse, tags=["webhooks"])
async def trigger_delivery(
    request: DeliveryRequest,
    service: ServiceDep,
) -> DeliveryResponse:
    """Deliver an event to one subscription and wait for the outcome.

    The response arrives after the delivery sequence finishes, which can
    take up to max_attempts x (timeout + backoff cap). A failed delivery
    is still a 200 response with success=false; only unknown, inactive
    or unsubscribed targets produce error statuses.

    Args:
        request: Subscription ID, event type and payload.
        service: Injected DeliveryService.

    Returns:
        Delivery summary.
    """
    logger.info(
        "Processing webhook delivery: %s, event: %s",
        request.subscription_id,
        request.event_type,
    )
    outcome = await service.trigger(
        subscription_id=request.subscription_id,
        event_type=request.event_type,
        data=request.data,
    )
    return DeliveryResponse.model_validate(outcome.summary())
