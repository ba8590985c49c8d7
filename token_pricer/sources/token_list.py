"""Jupiter token list source."""

from __future__ import annotations

from typing import List

from token_pricer.core.errors import NetworkError
from token_pricer.core.http_client import ResilientHttpClient
from token_pricer.core.logging import get_logger
from token_pricer.schemas.token import TokenMetadata
from token_pricer.schemas.upstream import parse_token_list
from .base import BaseSource

log = get_logger("sources.token_list")


class TokenListSource(BaseSource):
    """Fetches every token Jupiter knows about."""

    name = "token_list"

    def __init__(self, client: ResilientHttpClient, url: str):
        super().__init__(client)
        self.url = url

    def endpoints(self) -> List[str]:
        return [self.url]

    async def fetch(self) -> List[TokenMetadata]:
        """Return the parsed list.

        Raises:
            NetworkError: when the endpoint fails or answers with no usable tokens.
        """
        data = await self.client.get(self.url)
        tokens = parse_token_list(data)
        if not tokens:
            raise NetworkError(f"Token list at {self.url} contained no usable entries", url=self.url)
        log.info(f"Fetched {len(tokens)} tokens from {self.url}")
        return tokens
