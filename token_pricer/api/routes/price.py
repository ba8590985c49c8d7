"""Price routes - single and batch token price lookups."""

import time
import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from token_pricer.api.deps import get_price_service
from token_pricer.core.errors import ValidationError
from token_pricer.core.logging import request_logger
from token_pricer.schemas.api import BatchPriceRequest, PriceRequest
from token_pricer.schemas.pricing import BatchResult, PriceOutcome
from token_pricer.services.price_service import PriceService

router = APIRouter(prefix="/api/price", tags=["price"])

_STATUS_BY_ERROR = {
    "validation_error": 400,
    "pricing_error": 404,
    "timeout": 504,
    "internal_error": 500,
}


def _apply_status(response: Response, outcome: PriceOutcome, request_id: str, started: float) -> None:
    if not outcome.success:
        response.status_code = _STATUS_BY_ERROR.get(outcome.error_type or "", 502)
    response.headers["X-Request-ID"] = request_id
    response.headers["X-Latency-Ms"] = str(int((time.perf_counter() - started) * 1000))


@router.get("/{contract_address}", response_model=PriceOutcome)
async def get_price(
    contract_address: str,
    response: Response,
    amount: float = Query(1.0, description="Number of tokens to price (default 1)"),
    service: PriceService = Depends(get_price_service),
):
    """
    Get the value of `amount` tokens in the quote currency.

    Returns 400 for a malformed address or amount and 404 when no
    liquidity route was found.
    """
    started = time.perf_counter()
    request_id = str(uuid.uuid4())
    request_logger("price_routes", request_id).info(f"Price request: {amount} of {contract_address}")

    outcome = await service.price(contract_address, amount)
    _apply_status(response, outcome, request_id, started)
    return outcome


@router.post("", response_model=PriceOutcome)
async def post_price(
    body: PriceRequest,
    response: Response,
    service: PriceService = Depends(get_price_service),
):
    """Same as the GET endpoint with the address and amount in the JSON body."""
    started = time.perf_counter()
    request_id = str(uuid.uuid4())
    request_logger("price_routes", request_id).info(f"Price request: {body.amount} of {body.contract_address}")

    outcome = await service.price(body.contract_address, body.amount)
    _apply_status(response, outcome, request_id, started)
    return outcome


@router.post("/batch", response_model=BatchResult)
async def post_price_batch(
    body: BatchPriceRequest,
    response: Response,
    service: PriceService = Depends(get_price_service),
):
    """
    Price up to 10 tokens sequentially.

    Items are paced to respect upstream rate limits; one failing item does not
    abort the rest.
    """
    request_id = str(uuid.uuid4())
    try:
        result = await service.price_batch(body.tokens)
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=exc.message) from exc

    response.headers["X-Request-ID"] = request_id
    return result
