"""Outbound HTTP with a fixed timeout and bounded exponential-backoff retry."""

from __future__ import annotations

import asyncio
import time
from typing import Any, Awaitable, Callable, Dict, Optional

import httpx

from token_pricer.core.config import Settings, settings as default_settings
from token_pricer.core.errors import NetworkError
from token_pricer.core.logging import get_logger

log = get_logger("http_client")

SleepFunc = Callable[[float], Awaitable[None]]


class ResilientHttpClient:
    """JSON-over-HTTP client shared by every upstream source.

    A call is attempted once plus ``HTTP_MAX_RETRIES`` retries. Transport
    errors, timeouts, non-2xx statuses and non-JSON bodies all count as
    transient; the delay before retry ``n`` is ``base * 2 ** (n - 1)``
    (2s, 4s, 8s with the defaults). Retry state lives inside one call only.

    ``transport`` and ``sleep`` exist so tests can swap in
    ``httpx.MockTransport`` and a fake clock.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: SleepFunc = asyncio.sleep,
    ):
        self.settings = settings or default_settings
        self.max_retries = self.settings.HTTP_MAX_RETRIES
        self.backoff_base = self.settings.HTTP_BACKOFF_BASE_SECONDS
        self._sleep = sleep
        self._client = httpx.AsyncClient(
            timeout=self.settings.HTTP_TIMEOUT_SECONDS,
            transport=transport,
            headers={
                "User-Agent": self.settings.HTTP_USER_AGENT,
                "Accept": "application/json",
            },
        )

    async def __aenter__(self) -> "ResilientHttpClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def backoff_delay(self, attempt: int) -> float:
        """Delay in seconds before retry number ``attempt`` (1-based)."""
        return self.backoff_base * (2 ** (attempt - 1))

    async def get(self, url: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return await self.request("GET", url, params=params)

    async def post(self, url: str, json: Optional[Dict[str, Any]] = None) -> Any:
        return await self.request("POST", url, json=json)

    async def request(
        self,
        method: str,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Send the request and return the decoded JSON body.

        Raises:
            NetworkError: once every attempt has failed.
        """
        total_attempts = self.max_retries + 1
        last_error: Optional[Exception] = None

        for attempt in range(1, total_attempts + 1):
            try:
                resp = await self._client.request(method, url, params=params, json=json)
                resp.raise_for_status()
                return resp.json()
            except (httpx.HTTPError, ValueError) as exc:
                last_error = exc

            if attempt < total_attempts:
                delay = self.backoff_delay(attempt)
                log.warning(
                    f"{method} {url} failed ({_describe(last_error)}); "
                    f"retry {attempt}/{self.max_retries} in {delay:g}s"
                )
                await self._sleep(delay)

        log.error(f"{method} {url} failed after {total_attempts} attempts: {_describe(last_error)}")
        raise NetworkError(
            f"Request to {url} failed after {total_attempts} attempts: {_describe(last_error)}",
            url=url,
            attempts=total_attempts,
            cause=last_error,
        )

    async def probe(self, url: str, timeout: Optional[float] = None) -> Dict[str, Any]:
        """Single unretried GET used by the network diagnostic."""
        timeout = timeout or self.settings.DIAGNOSTIC_TIMEOUT_SECONDS
        start = time.perf_counter()
        try:
            resp = await self._client.get(url, timeout=timeout)
        except httpx.HTTPError as exc:
            return {"url": url, "reachable": False, "error": _describe(exc)}
        latency_ms = int((time.perf_counter() - start) * 1000)
        return {"url": url, "reachable": True, "status_code": resp.status_code, "latency_ms": latency_ms}


def _describe(exc: Optional[BaseException]) -> str:
    if exc is None:
        return "unknown error"
    if isinstance(exc, httpx.HTTPStatusError):
        return f"HTTP {exc.response.status_code}"
    return f"{type(exc).__name__}: {exc}" if str(exc) else type(exc).__name__
