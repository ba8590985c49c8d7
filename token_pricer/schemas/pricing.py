"""Price quote, outcome and status schemas"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel

from token_pricer.schemas.token import TokenMetadata


class PricingStrategy(str, Enum):
    DIRECT_QUOTE = "direct_quote"
    SOL_BRIDGE = "sol_bridge"
    RELAXED_SLIPPAGE = "relaxed_slippage"


class Confidence(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class PriceQuote(BaseModel):
    """A successful price estimate in the quote currency."""

    token: TokenMetadata
    token_address: str
    amount_requested: float
    price_per_unit: float
    total_value: float
    strategy: PricingStrategy
    confidence: Confidence
    slippage_bps: int
    conversion_path: str
    route_available: bool
    quote_currency: str
    timestamp: datetime


class PriceOutcome(BaseModel):
    """Success/failure envelope returned for every single-token lookup."""

    success: bool
    token_address: Optional[str] = None
    amount: Optional[float] = None
    quote: Optional[PriceQuote] = None
    error: Optional[str] = None
    error_type: Optional[str] = None
    suggestion: Optional[str] = None


class BatchSummary(BaseModel):
    total_tokens: int
    successful_prices: int
    failed_prices: int
    total_value: float


class BatchResult(BaseModel):
    items: list[PriceOutcome]
    summary: BatchSummary


class ServiceStatus(BaseModel):
    resolvable: bool
    status: str  # working | degraded | error
    probe_token: str
    sample_price: Optional[float] = None
    error: Optional[str] = None
    catalog_size: int
    catalog_age_seconds: Optional[float] = None
    metadata_cache_size: int
    price_cache_size: int
    timestamp: datetime
