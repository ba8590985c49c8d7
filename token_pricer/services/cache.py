"""Process-wide in-memory caches for token metadata and recent quotes."""

from __future__ import annotations

import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Optional, Tuple

from token_pricer.schemas.pricing import PricingStrategy
from token_pricer.schemas.token import TokenMetadata, TokenSource


@dataclass(frozen=True)
class CachedQuote:
    price_per_unit: float
    total_value: float
    amount: float
    recorded_at: float


class TokenCache:
    """Metadata index plus an advisory price cache.

    One instance is built per process and handed to every component that needs
    it. Catalog and on-chain metadata never expire within a session. Fallback
    records are bounded by ``max_fallback_entries``, oldest evicted first.
    Price entries are recorded after successful quotes and expire after
    ``price_ttl_seconds``; the pricing engine writes them but never reads them
    before a live quote.
    """

    def __init__(
        self,
        price_ttl_seconds: float = 300.0,
        clock: Callable[[], float] = time.time,
        max_fallback_entries: int = 1000,
    ):
        self.price_ttl_seconds = price_ttl_seconds
        self.max_fallback_entries = max_fallback_entries
        self._clock = clock
        self._metadata: Dict[str, TokenMetadata] = {}
        self._fallbacks: "OrderedDict[str, None]" = OrderedDict()
        self._prices: Dict[Tuple[str, PricingStrategy], CachedQuote] = {}

    # -------------------------------------------------------------------------
    # Token metadata
    # -------------------------------------------------------------------------
    def get_metadata(self, address: str) -> Optional[TokenMetadata]:
        return self._metadata.get(address)

    def put_metadata(self, metadata: TokenMetadata) -> None:
        self._metadata[metadata.address] = metadata
        if metadata.source != TokenSource.FALLBACK:
            self._fallbacks.pop(metadata.address, None)
            return

        self._fallbacks[metadata.address] = None
        self._fallbacks.move_to_end(metadata.address)
        while len(self._fallbacks) > self.max_fallback_entries:
            evicted, _ = self._fallbacks.popitem(last=False)
            self._metadata.pop(evicted, None)

    def index_tokens(self, tokens: Iterable[TokenMetadata]) -> int:
        count = 0
        for token in tokens:
            self.put_metadata(token)
            count += 1
        return count

    def metadata_snapshot(self, include_fallback: bool = False) -> Dict[str, TokenMetadata]:
        """Copy of the metadata index. Fallback records stay session-local by default."""
        return {
            address: metadata
            for address, metadata in self._metadata.items()
            if include_fallback or metadata.source != TokenSource.FALLBACK
        }

    @property
    def metadata_size(self) -> int:
        return len(self._metadata)

    # -------------------------------------------------------------------------
    # Price quotes
    # -------------------------------------------------------------------------
    def record_quote(
        self,
        address: str,
        strategy: PricingStrategy,
        price_per_unit: float,
        total_value: float,
        amount: float,
    ) -> None:
        now = self._clock()
        self._prune_prices(now)
        self._prices[(address, strategy)] = CachedQuote(
            price_per_unit=price_per_unit,
            total_value=total_value,
            amount=amount,
            recorded_at=now,
        )

    def recent_quote(
        self, address: str, strategy: PricingStrategy = PricingStrategy.DIRECT_QUOTE
    ) -> Optional[CachedQuote]:
        """Last recorded quote if still inside the cache window. Diagnostics only."""
        entry = self._prices.get((address, strategy))
        if entry is None:
            return None
        if self._clock() - entry.recorded_at > self.price_ttl_seconds:
            del self._prices[(address, strategy)]
            return None
        return entry

    @property
    def price_size(self) -> int:
        self._prune_prices(self._clock())
        return len(self._prices)

    def _prune_prices(self, now: float) -> None:
        expired = [key for key, entry in self._prices.items() if now - entry.recorded_at > self.price_ttl_seconds]
        for key in expired:
            del self._prices[key]

    def clear(self) -> None:
        self._metadata.clear()
        self._fallbacks.clear()
        self._prices.clear()
