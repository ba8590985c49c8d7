"""Health routes - end-to-end pricing probe and readiness."""

from fastapi import APIRouter, Depends, Response

from token_pricer.api.deps import get_price_service
from token_pricer.schemas.api import ReadinessResponse
from token_pricer.schemas.pricing import ServiceStatus
from token_pricer.services.price_service import PriceService

router = APIRouter(prefix="/health", tags=["health"])


@router.get("", response_model=ServiceStatus)
async def health(response: Response, service: PriceService = Depends(get_price_service)):
    """
    Health check that prices one unit of the probe token end-to-end.

    Returns 503 if the pricing engine cannot resolve a price.
    """
    status = await service.status()
    if not status.resolvable:
        response.status_code = 503
    return status


@router.get("/ready", response_model=ReadinessResponse)
def readiness(response: Response, service: PriceService = Depends(get_price_service)):
    """
    Readiness probe - ready once a catalog (live, snapshot or built-in) is loaded.

    Returns 200 if ready, 503 otherwise.
    """
    loaded = service.catalog.is_loaded
    if not loaded:
        response.status_code = 503
    return ReadinessResponse(
        status="ready" if loaded else "not_ready",
        catalog_loaded=loaded,
        catalog_size=service.catalog.size,
    )
