"""Token metadata and catalog schemas"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

UNKNOWN_TOKEN_NAME = "Unknown Token"
UNKNOWN_TOKEN_SYMBOL = "UNK"
DEFAULT_DECIMALS = 6


class TokenSource(str, Enum):
    """Where a metadata record was resolved from."""

    CATALOG = "catalog"
    ON_CHAIN = "on-chain"
    FALLBACK = "fallback"


class TokenMetadata(BaseModel):
    """Resolved identity of a token mint. Never mutated once built."""

    model_config = ConfigDict(frozen=True)

    address: str
    name: str = UNKNOWN_TOKEN_NAME
    symbol: str = UNKNOWN_TOKEN_SYMBOL
    decimals: int = Field(default=DEFAULT_DECIMALS, ge=0)
    source: TokenSource = TokenSource.CATALOG
    logo_uri: Optional[str] = None
    tags: list[str] = Field(default_factory=list)

    @classmethod
    def fallback(cls, address: str) -> "TokenMetadata":
        return cls(address=address, source=TokenSource.FALLBACK)


class Pagination(BaseModel):
    page: int
    page_size: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool


class CatalogPage(BaseModel):
    items: list[TokenMetadata]
    pagination: Pagination


# Embedded list used when the live token list is unreachable and nothing was loaded before.
DEFAULT_TOKENS = [
    TokenMetadata(address="EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v", name="USD Coin", symbol="USDC", decimals=6),
    TokenMetadata(address="So11111111111111111111111111111111111111112", name="Wrapped SOL", symbol="SOL", decimals=9),
    TokenMetadata(address="EKpQGSJtjMFqKZ9KQanSqYXRcF8fBopzLHYxdM65zcjm", name="dogwifhat", symbol="$WIF", decimals=6),
    TokenMetadata(address="5z3EqYQo9HiCEs3R84RCDMu2n7anpDMxRhdK8PSWmrRC", name="PONKE", symbol="PONKE", decimals=5),
    TokenMetadata(address="DezXAZ8z7PnrnRJjz3wXBoRgixCa6xjnB7YaB1pPB263", name="Bonk", symbol="Bonk", decimals=5),
    TokenMetadata(address="JUPyiwrYJFskUPiHa7hkeR8VUtAeFoSYbKedZNsDvCN", name="Jupiter", symbol="JUP", decimals=6),
]
