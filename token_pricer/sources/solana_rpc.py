"""Solana JSON-RPC source for on-chain mint metadata."""

from __future__ import annotations

from typing import List, Optional

from token_pricer.core.errors import NetworkError
from token_pricer.core.http_client import ResilientHttpClient
from token_pricer.core.logging import get_logger
from token_pricer.schemas.token import TokenMetadata
from token_pricer.schemas.upstream import parse_account_info
from .base import BaseSource

log = get_logger("sources.solana_rpc")


class SolanaRpcSource(BaseSource):
    """One RPC endpoint. The resolver tries several of these in priority order."""

    name = "solana_rpc"

    def __init__(self, client: ResilientHttpClient, url: str):
        super().__init__(client)
        self.url = url

    def endpoints(self) -> List[str]:
        return [self.url]

    async def fetch_metadata(self, address: str) -> Optional[TokenMetadata]:
        payload = {
            "jsonrpc": "2.0",
            "id": 1,
            "method": "getAccountInfo",
            "params": [address, {"encoding": "jsonParsed"}],
        }
        try:
            data = await self.client.post(self.url, json=payload)
        except NetworkError as exc:
            log.warning(f"RPC {self.url} failed for {address}: {exc.message}")
            return None

        metadata = parse_account_info(address, data)
        if metadata is None:
            log.debug(f"RPC {self.url} returned no parsed mint info for {address}")
        return metadata
