from typing import Any, Optional

from pydantic import BaseModel, Field

from token_pricer.schemas.token import TokenMetadata


class PriceRequest(BaseModel):
    """One lookup. Fields stay untyped so a bad item fails on its own inside a batch."""

    contract_address: Any = None
    amount: Any = 1.0


class BatchPriceRequest(BaseModel):
    tokens: list[PriceRequest] = Field(default_factory=list)


class SearchResponse(BaseModel):
    request_id: str
    query: str
    count: int
    results: list[TokenMetadata]


class DiagnosticEntry(BaseModel):
    url: str
    reachable: bool
    status_code: Optional[int] = None
    latency_ms: Optional[int] = None
    error: Optional[str] = None


class ReadinessResponse(BaseModel):
    status: str
    catalog_loaded: bool
    catalog_size: int
