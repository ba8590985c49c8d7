"""Jupiter quote API source."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from token_pricer.core.errors import NetworkError
from token_pricer.core.http_client import ResilientHttpClient
from token_pricer.core.logging import get_logger
from token_pricer.schemas.upstream import QuoteResponse, parse_quote
from .base import BaseSource

log = get_logger("sources.jupiter_quote")


class JupiterQuoteSource(BaseSource):
    """Requests swap quotes used as price estimates."""

    name = "jupiter_quote"

    def __init__(self, client: ResilientHttpClient, base_url: str):
        super().__init__(client)
        self.base_url = base_url.rstrip("/")

    def endpoints(self) -> List[str]:
        return [f"{self.base_url}/quote"]

    async def quote(
        self,
        input_mint: str,
        output_mint: str,
        amount: int,
        slippage_bps: int,
        only_direct_routes: bool = False,
    ) -> Optional[QuoteResponse]:
        """Quote ``amount`` smallest units of ``input_mint`` into ``output_mint``.

        Returns ``None`` when the service is unreachable after retries or the
        answer carries no positive output amount.
        """
        params: Dict[str, Any] = {
            "inputMint": input_mint,
            "outputMint": output_mint,
            "amount": amount,
            "slippageBps": slippage_bps,
            "onlyDirectRoutes": "true" if only_direct_routes else "false",
            "asLegacyTransaction": "false",
        }
        try:
            data = await self.client.get(f"{self.base_url}/quote", params=params)
        except NetworkError as exc:
            log.warning(f"Quote {input_mint} -> {output_mint} unavailable: {exc.message}")
            return None

        quote = parse_quote(data)
        if quote is None:
            log.debug(f"Quote {input_mint} -> {output_mint} returned no usable outAmount")
        return quote
