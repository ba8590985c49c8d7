"""Abstract interface for upstream data sources."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List

from token_pricer.core.http_client import ResilientHttpClient


class BaseSource(ABC):
    """An upstream service reached through the shared resilient client."""

    name: str

    def __init__(self, client: ResilientHttpClient):
        self.client = client

    @abstractmethod
    def endpoints(self) -> List[str]:
        """URLs probed by the network diagnostic."""
