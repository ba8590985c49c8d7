"""Token catalog: the list of all known tokens, with search and paging."""

from __future__ import annotations

import asyncio
import math
import time
from typing import Callable, List, Optional

from token_pricer.core.config import Settings, settings as default_settings
from token_pricer.core.errors import CatalogUnavailableError, NetworkError, ValidationError
from token_pricer.core.logging import get_logger
from token_pricer.core.snapshot import SnapshotStore
from token_pricer.schemas.token import DEFAULT_TOKENS, CatalogPage, Pagination, TokenMetadata
from token_pricer.services.cache import TokenCache
from token_pricer.sources.token_list import TokenListSource

log = get_logger("catalog")


class TokenCatalog:
    """Holds the token list and refreshes it at most once per freshness window.

    Refreshes are single-flight: the lock serialises them and freshness is
    re-checked inside it, so callers arriving mid-refresh reuse its result.
    """

    def __init__(
        self,
        source: TokenListSource,
        cache: TokenCache,
        snapshot_store: Optional[SnapshotStore] = None,
        settings: Optional[Settings] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.source = source
        self.cache = cache
        self.snapshot_store = snapshot_store
        self.settings = settings or default_settings
        self._clock = clock
        self._tokens: Optional[List[TokenMetadata]] = None
        self._fetched_at: Optional[float] = None
        self._ttl = float(self.settings.CATALOG_TTL_SECONDS)
        self._lock = asyncio.Lock()

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------
    @property
    def is_loaded(self) -> bool:
        return self._tokens is not None

    @property
    def size(self) -> int:
        return len(self._tokens) if self._tokens else 0

    @property
    def age_seconds(self) -> Optional[float]:
        if self._fetched_at is None:
            return None
        return max(0.0, self._clock() - self._fetched_at)

    def is_fresh(self) -> bool:
        age = self.age_seconds
        return self._tokens is not None and age is not None and age < self._ttl

    def seed(self, tokens: List[TokenMetadata], fetched_at: Optional[float]) -> None:
        """Install a previously persisted catalog.

        ``fetched_at=None`` marks it stale so the next ``load`` re-fetches while
        still serving the seed if that fetch fails.
        """
        self._tokens = list(tokens)
        self._fetched_at = fetched_at
        self._ttl = float(self.settings.CATALOG_TTL_SECONDS)
        self.cache.index_tokens(self._tokens)

    def clear(self) -> None:
        self._tokens = None
        self._fetched_at = None

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------
    async def load(self) -> List[TokenMetadata]:
        if self.is_fresh():
            return self._tokens  # type: ignore[return-value]

        async with self._lock:
            if self.is_fresh():
                return self._tokens  # type: ignore[return-value]
            return await self._refresh()

    async def _refresh(self) -> List[TokenMetadata]:
        log.info(f"Fetching token catalog from {self.source.url}")
        try:
            tokens = await self.source.fetch()
        except NetworkError as exc:
            return self._fall_back(exc)

        now = self._clock()
        self._tokens = tokens
        self._fetched_at = now
        self._ttl = float(self.settings.CATALOG_TTL_SECONDS)
        indexed = self.cache.index_tokens(tokens)
        log.info(f"Loaded {len(tokens)} catalog tokens ({indexed} indexed)")

        if self.snapshot_store is not None:
            self.snapshot_store.save(self.cache.metadata_snapshot(), tokens, timestamp=now)
        return tokens

    def _fall_back(self, exc: NetworkError) -> List[TokenMetadata]:
        retry_ttl = float(self.settings.CATALOG_RETRY_SECONDS)

        if self._tokens:
            log.warning(f"Catalog refresh failed ({exc.message}); serving {len(self._tokens)} previously loaded tokens")
            self._fetched_at = self._clock()
            self._ttl = retry_ttl
            return self._tokens

        if not DEFAULT_TOKENS:
            raise CatalogUnavailableError(
                "Token catalog unavailable and no fallback list is configured",
                suggestion="Check connectivity to the token list endpoint",
            )

        log.warning(f"Catalog refresh failed ({exc.message}); using {len(DEFAULT_TOKENS)} built-in tokens")
        self._tokens = list(DEFAULT_TOKENS)
        self._fetched_at = self._clock()
        self._ttl = retry_ttl
        self.cache.index_tokens(self._tokens)
        return self._tokens

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------
    async def find(self, address: str) -> Optional[TokenMetadata]:
        tokens = await self.load()
        for token in tokens:
            if token.address == address:
                return token
        return None

    async def search(self, query: str, limit: Optional[int] = None) -> List[TokenMetadata]:
        """Case-insensitive substring match on symbol or name, in catalog order."""
        limit = self.settings.SEARCH_DEFAULT_LIMIT if limit is None else limit
        if limit <= 0:
            return []

        needle = query.lower()
        tokens = await self.load()
        matches: List[TokenMetadata] = []
        for token in tokens:
            if needle in token.symbol.lower() or needle in token.name.lower():
                matches.append(token)
                if len(matches) >= limit:
                    break
        return matches

    async def page(self, page: int = 1, page_size: Optional[int] = None) -> CatalogPage:
        if page_size is None:
            page_size = self.settings.PAGE_DEFAULT_SIZE
        if page < 1 or page_size < 1:
            raise ValidationError("Page and page size must be positive integers")

        tokens = await self.load()
        total = len(tokens)
        start = (page - 1) * page_size
        end = start + page_size

        return CatalogPage(
            items=tokens[start:end],
            pagination=Pagination(
                page=page,
                page_size=page_size,
                total=total,
                total_pages=math.ceil(total / page_size),
                has_next=end < total,
                has_prev=page > 1,
            ),
        )
