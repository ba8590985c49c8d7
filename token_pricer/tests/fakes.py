"""Scripted upstream services served through httpx.MockTransport."""

import asyncio
import json
from typing import Any, Dict, List, Optional, Tuple

import httpx

TOKEN_LIST_URL = "https://tokens.test/all"
QUOTE_API_URL = "https://quote.test/v6"
QUOTE_URL = f"{QUOTE_API_URL}/quote"
RPC_URLS = ["https://rpc-1.test", "https://rpc-2.test"]

USDC = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"
SOL = "So11111111111111111111111111111111111111112"
WIF = "EKpQGSJtjMFqKZ9KQanSqYXRcF8fBopzLHYxdM65zcjm"
BONK = "DezXAZ8z7PnrnRJjz3wXBoRgixCa6xjnB7YaB1pPB263"
UNKNOWN = "UnknownToken1111111111111111111111111111111"
ONCHAIN_ONLY = "Mint2222222222222222222222222222222222222222"

CATALOG = [
    {"address": USDC, "name": "USD Coin", "symbol": "USDC", "decimals": 6, "logoURI": None, "tags": ["stable"]},
    {"address": SOL, "name": "Wrapped SOL", "symbol": "SOL", "decimals": 9, "tags": []},
    {"address": WIF, "name": "dogwifhat", "symbol": "$WIF", "decimals": 6, "tags": []},
    {"address": BONK, "name": "Bonk", "symbol": "Bonk", "decimals": 5, "tags": []},
]

class FakeSleep:
    """Records requested delays instead of waiting."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)

class FakeClock:
    def __init__(self, now: float = 1_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class FakeUpstream:
    """Scripted Jupiter token list, Jupiter quote API and Solana RPC endpoints."""

    def __init__(self):
        self.tokens: List[Dict[str, Any]] = [dict(t) for t in CATALOG]
        self.token_list_status = 200
        self.decimals: Dict[str, int] = {t["address"]: t["decimals"] for t in CATALOG}
        # (input, output) -> {"rate": human units out per unit in, "min_slippage_bps": int}
        self.routes: Dict[Tuple[str, str], Dict[str, Any]] = {}
        self.rpc_accounts: Dict[str, Dict[str, Any]] = {}
        self.rpc_down: set = set()
        self.latency = 0.0
        self.calls: List[Tuple[str, str, Dict[str, Any]]] = []

    def add_route(
        self, input_mint: str, output_mint: str, rate: float, min_slippage_bps: int = 0, route_plan: bool = True
    ) -> None:
        self.routes[(input_mint, output_mint)] = {
            "rate": rate,
            "min_slippage_bps": min_slippage_bps,
            "route_plan": route_plan,
        }

    def count(self, url: str) -> int:
        return sum(1 for _, called, _ in self.calls if called == url)

    def quote_calls(self) -> List[Dict[str, Any]]:
        return [params for _, url, params in self.calls if url == QUOTE_URL]

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    async def handle(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url.copy_with(query=None))
        if request.method == "POST":
            params = json.loads(request.content or b"{}")
        else:
            params = dict(request.url.params)
        self.calls.append((request.method, url, params))

        if self.latency:
            await asyncio.sleep(self.latency)

        if url == TOKEN_LIST_URL:
            if self.token_list_status != 200:
                return httpx.Response(self.token_list_status, json={"error": "unavailable"})
            return httpx.Response(200, json=self.tokens)
        if url == QUOTE_URL:
            return self._quote(params)
        if url in RPC_URLS:
            return self._rpc(url, params)
        return httpx.Response(404, json={"error": "not found"})

    def _quote(self, params: Dict[str, Any]) -> httpx.Response:
        if "inputMint" not in params:
            return httpx.Response(400, json={"error": "inputMint is required"})
        key = (params["inputMint"], params["outputMint"])
        route = self.routes.get(key)
        if route is None or int(params["slippageBps"]) < route["min_slippage_bps"]:
            return httpx.Response(400, json={"error": "Could not find any route"})

        amount_in = int(params["amount"])
        human_in = amount_in / 10 ** self.decimals.get(key[0], 6)
        out_amount = int(round(human_in * route["rate"] * 10 ** self.decimals.get(key[1], 6)))
        return httpx.Response(
            200,
            json={
                "inputMint": key[0],
                "outputMint": key[1],
                "inAmount": str(amount_in),
                "outAmount": str(out_amount),
                "priceImpactPct": "0.001",
                "routePlan": [{"swapInfo": {"label": "Test AMM"}}] if route["route_plan"] else [],
            },
        )

    def _rpc(self, url: str, payload: Dict[str, Any]) -> httpx.Response:
        if url in self.rpc_down:
            return httpx.Response(503, json={"error": "down"})
        address = (payload.get("params") or [None])[0]
        info = self.rpc_accounts.get(address)
        value: Optional[Dict[str, Any]] = None
        if info is not None:
            value = {"data": {"parsed": {"info": info, "type": "mint"}, "program": "spl-token"}}
        return httpx.Response(200, json={"jsonrpc": "2.0", "result": {"context": {"slot": 1}, "value": value}, "id": 1})
