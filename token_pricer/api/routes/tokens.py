"""Token routes - catalog search and paging."""

import uuid

from fastapi import APIRouter, Depends, HTTPException, Query

from token_pricer.api.deps import get_price_service
from token_pricer.core.errors import ValidationError
from token_pricer.schemas.api import SearchResponse
from token_pricer.schemas.token import CatalogPage
from token_pricer.services.price_service import PriceService

router = APIRouter(prefix="/api", tags=["tokens"])


@router.get("/search/{query}", response_model=SearchResponse)
async def search_tokens(
    query: str,
    limit: int = Query(10, ge=1, le=100, description="Maximum number of matches"),
    service: PriceService = Depends(get_price_service),
):
    """Case-insensitive search on token symbol and name, in catalog order."""
    try:
        results = await service.search(query, limit)
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=exc.message) from exc

    return SearchResponse(request_id=str(uuid.uuid4()), query=query, count=len(results), results=results)


@router.get("/tokens", response_model=CatalogPage)
async def list_tokens(
    page: int = Query(1, ge=1, description="1-based page number"),
    page_size: int = Query(100, ge=1, le=1000, description="Tokens per page"),
    service: PriceService = Depends(get_price_service),
):
    """Page through every known token."""
    return await service.list_tokens(page, page_size)
