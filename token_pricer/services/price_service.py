"""Price Service - the operations the API routes and the CLI consume.

Wires the HTTP client, caches, catalog, metadata resolver and pricing engine
together and turns every failure into a structured outcome.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

import httpx

from token_pricer.core.config import Settings, settings as default_settings
from token_pricer.core.errors import PriceServiceError, ValidationError
from token_pricer.core.http_client import ResilientHttpClient, SleepFunc
from token_pricer.core.logging import get_logger
from token_pricer.core.snapshot import SnapshotStore
from token_pricer.schemas.api import PriceRequest
from token_pricer.schemas.pricing import BatchResult, BatchSummary, PriceOutcome, ServiceStatus
from token_pricer.schemas.token import CatalogPage, TokenMetadata
from token_pricer.services.cache import TokenCache
from token_pricer.services.catalog import TokenCatalog
from token_pricer.services.metadata import TokenMetadataResolver
from token_pricer.services.pricing import PriceResolutionEngine, validate_price_request
from token_pricer.sources.base import BaseSource
from token_pricer.sources.jupiter_quote import JupiterQuoteSource
from token_pricer.sources.solana_rpc import SolanaRpcSource
from token_pricer.sources.token_list import TokenListSource

log = get_logger("price_service")


class PriceService:
    """Facade over the pricing core.

    Usage:
        service = PriceService.build()
        await service.initialize()   # snapshot + catalog warm-up
        outcome = await service.price("EKpQ...", 100)
        await service.aclose()
    """

    def __init__(
        self,
        settings: Settings,
        http_client: ResilientHttpClient,
        cache: TokenCache,
        catalog: TokenCatalog,
        resolver: TokenMetadataResolver,
        engine: PriceResolutionEngine,
        sources: Sequence[BaseSource],
        snapshot_store: Optional[SnapshotStore] = None,
        sleep: SleepFunc = asyncio.sleep,
    ):
        self.settings = settings
        self.http_client = http_client
        self.cache = cache
        self.catalog = catalog
        self.resolver = resolver
        self.engine = engine
        self.sources = list(sources)
        self.snapshot_store = snapshot_store
        self._sleep = sleep

    @classmethod
    def build(
        cls,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: SleepFunc = asyncio.sleep,
        snapshot_store: Optional[SnapshotStore] = None,
    ) -> "PriceService":
        """Construct the full object graph from settings.

        ``transport`` and ``sleep`` are passed through to the HTTP client so
        tests can run the whole stack against ``httpx.MockTransport``.
        """
        settings = settings or default_settings
        http_client = ResilientHttpClient(settings, transport=transport, sleep=sleep)
        cache = TokenCache(
            price_ttl_seconds=settings.PRICE_CACHE_TTL_SECONDS,
            max_fallback_entries=settings.FALLBACK_CACHE_MAX_ENTRIES,
        )
        if snapshot_store is None and settings.SNAPSHOT_PATH:
            snapshot_store = SnapshotStore(settings.SNAPSHOT_PATH)

        token_list = TokenListSource(http_client, settings.TOKEN_LIST_URL)
        quote_source = JupiterQuoteSource(http_client, settings.QUOTE_API_URL)
        rpc_sources = [SolanaRpcSource(http_client, url) for url in settings.RPC_URLS]

        catalog = TokenCatalog(token_list, cache, snapshot_store, settings)
        resolver = TokenMetadataResolver(cache, catalog, rpc_sources)
        engine = PriceResolutionEngine(resolver, quote_source, cache, settings)

        return cls(
            settings=settings,
            http_client=http_client,
            cache=cache,
            catalog=catalog,
            resolver=resolver,
            engine=engine,
            sources=[token_list, quote_source, *rpc_sources],
            snapshot_store=snapshot_store,
            sleep=sleep,
        )

    # =========================================================================
    # LIFECYCLE
    # =========================================================================
    async def initialize(self) -> None:
        """Seed caches from the snapshot, then warm the catalog. Never fatal."""
        log.info("Initializing token price service...")
        self._load_snapshot()
        try:
            tokens = await self.catalog.load()
            log.info(f"Initialization complete ({len(tokens)} catalog tokens)")
        except PriceServiceError as exc:
            log.error(f"Catalog warm-up failed, continuing with cached data: {exc.message}")

    def _load_snapshot(self) -> None:
        if self.snapshot_store is None:
            return
        snapshot = self.snapshot_store.load()
        if snapshot is None:
            return

        self.cache.index_tokens(snapshot.token_metadata.values())
        if not snapshot.all_tokens:
            return
        if snapshot.age_seconds() < self.settings.SNAPSHOT_TTL_SECONDS:
            self.catalog.seed(snapshot.all_tokens, fetched_at=snapshot.timestamp)
        else:
            log.info("Snapshot is stale; seeding catalog but scheduling a re-fetch")
            self.catalog.seed(snapshot.all_tokens, fetched_at=None)

    async def aclose(self) -> None:
        await self.http_client.aclose()

    def clear_cache(self) -> None:
        self.cache.clear()
        self.catalog.clear()
        log.info("Cleared metadata cache, price cache and catalog")

    # =========================================================================
    # PRICING
    # =========================================================================
    async def price(self, token_address: str, amount: float = 1.0) -> PriceOutcome:
        """Price one token. Always returns an outcome, never raises."""
        try:
            coro = self.engine.get_price(token_address, amount)
            if self.settings.REQUEST_DEADLINE_SECONDS:
                quote = await asyncio.wait_for(coro, timeout=self.settings.REQUEST_DEADLINE_SECONDS)
            else:
                quote = await coro
        except PriceServiceError as exc:
            log.info(f"Price lookup failed for {token_address}: {exc.message}")
            return self._failure(token_address, amount, exc.message, exc.error_type, exc.suggestion)
        except asyncio.TimeoutError:
            log.warning(f"Price lookup for {token_address} exceeded {self.settings.REQUEST_DEADLINE_SECONDS}s")
            return self._failure(
                token_address,
                amount,
                "Request deadline exceeded",
                "timeout",
                "Retry later; upstream services are slow to respond",
            )
        except Exception as exc:
            log.exception(f"Unexpected error pricing {token_address}: {exc}")
            return self._failure(token_address, amount, "Internal error while pricing token", "internal_error", None)

        return PriceOutcome(success=True, token_address=token_address, amount=quote.amount_requested, quote=quote)

    async def price_batch(self, items: Sequence[PriceRequest]) -> BatchResult:
        """Price several tokens strictly one after another.

        Raises:
            ValidationError: empty batch or more than ``BATCH_MAX_ITEMS`` entries.
        """
        if not items:
            raise ValidationError(
                "Batch must contain at least one token",
                suggestion="Provide a list of {contract_address, amount} objects",
            )
        if len(items) > self.settings.BATCH_MAX_ITEMS:
            raise ValidationError(
                f"Maximum {self.settings.BATCH_MAX_ITEMS} tokens allowed per batch request",
                suggestion="Split the request into smaller batches",
            )

        log.info(f"Batch request: {len(items)} tokens")
        outcomes: List[PriceOutcome] = []

        for item in items:
            try:
                validate_price_request(item.contract_address, item.amount)
            except ValidationError as exc:
                outcomes.append(
                    self._failure(item.contract_address, item.amount, exc.message, exc.error_type, exc.suggestion)
                )
                continue

            outcomes.append(await self.price(item.contract_address, item.amount))
            # upstream rate limit
            await self._sleep(self.settings.BATCH_ITEM_DELAY_SECONDS)

        successes = [o for o in outcomes if o.success]
        return BatchResult(
            items=outcomes,
            summary=BatchSummary(
                total_tokens=len(items),
                successful_prices=len(successes),
                failed_prices=len(outcomes) - len(successes),
                total_value=sum(o.quote.total_value for o in successes if o.quote),
            ),
        )

    @staticmethod
    def _failure(
        token_address: Any,
        amount: Any,
        message: str,
        error_type: Optional[str],
        suggestion: Optional[str],
    ) -> PriceOutcome:
        return PriceOutcome(
            success=False,
            token_address=token_address if isinstance(token_address, str) else None,
            amount=amount if isinstance(amount, (int, float)) and not isinstance(amount, bool) else None,
            error=message,
            error_type=error_type,
            suggestion=suggestion,
        )

    # =========================================================================
    # CATALOG
    # =========================================================================
    async def search(self, query: str, limit: Optional[int] = None) -> List[TokenMetadata]:
        query = (query or "").strip()
        if len(query) < self.settings.SEARCH_MIN_QUERY_LENGTH:
            raise ValidationError(
                f"Search query must be at least {self.settings.SEARCH_MIN_QUERY_LENGTH} characters long"
            )
        if limit is not None and limit < 1:
            raise ValidationError("Limit must be a positive integer")
        return await self.catalog.search(query, limit)

    async def list_tokens(self, page: int = 1, page_size: Optional[int] = None) -> CatalogPage:
        return await self.catalog.page(page, page_size)

    # =========================================================================
    # HEALTH
    # =========================================================================
    async def status(self) -> ServiceStatus:
        """End-to-end probe: price one unit of the probe token."""
        probe = self.settings.health_probe_mint
        outcome = await self.price(probe, 1.0)

        return ServiceStatus(
            resolvable=outcome.success,
            status="working" if outcome.success else "degraded",
            probe_token=probe,
            sample_price=outcome.quote.price_per_unit if outcome.quote else None,
            error=outcome.error,
            catalog_size=self.catalog.size,
            catalog_age_seconds=self.catalog.age_seconds,
            metadata_cache_size=self.cache.metadata_size,
            price_cache_size=self.cache.price_size,
            timestamp=datetime.now(timezone.utc),
        )

    async def diagnose(self) -> List[Dict[str, Any]]:
        """Probe every configured upstream endpoint once, without retries."""
        urls = [url for source in self.sources for url in source.endpoints()]
        results = await asyncio.gather(*(self.http_client.probe(url) for url in urls))
        for result in results:
            if result["reachable"]:
                log.info(f"{result['url']} - {result['latency_ms']}ms - status {result['status_code']}")
            else:
                log.warning(f"{result['url']} - unreachable: {result['error']}")
        return list(results)
