"""Token metadata resolution cascade."""

from __future__ import annotations

from typing import List

from token_pricer.core.errors import PriceServiceError
from token_pricer.core.logging import get_logger
from token_pricer.schemas.token import TokenMetadata
from token_pricer.services.cache import TokenCache
from token_pricer.services.catalog import TokenCatalog
from token_pricer.sources.solana_rpc import SolanaRpcSource

log = get_logger("metadata")


class TokenMetadataResolver:
    """Resolves a mint address to name, symbol and decimals.

    Order: in-memory cache, token catalog, each RPC endpoint in priority
    order, then a synthetic fallback record. Whatever is found is cached, the
    fallback included, so an unresolvable address is only looked up once per
    session. ``resolve`` never raises.
    """

    def __init__(
        self,
        cache: TokenCache,
        catalog: TokenCatalog,
        rpc_sources: List[SolanaRpcSource],
    ):
        self.cache = cache
        self.catalog = catalog
        self.rpc_sources = rpc_sources

    async def resolve(self, address: str) -> TokenMetadata:
        cached = self.cache.get_metadata(address)
        if cached is not None:
            return cached

        try:
            token = await self.catalog.find(address)
        except PriceServiceError as exc:
            log.warning(f"Catalog lookup failed for {address}: {exc.message}")
            token = None
        if token is not None:
            self.cache.put_metadata(token)
            return token

        for source in self.rpc_sources:
            metadata = await source.fetch_metadata(address)
            if metadata is not None:
                log.info(f"Resolved {address} on-chain via {source.url} (decimals={metadata.decimals})")
                self.cache.put_metadata(metadata)
                return metadata

        log.warning(f"No metadata found for {address}; using fallback record")
        fallback = TokenMetadata.fallback(address)
        self.cache.put_metadata(fallback)
        return fallback
