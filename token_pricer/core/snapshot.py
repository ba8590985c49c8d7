"""Durable JSON snapshot of token metadata and the token catalog"""

import json
import time
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as SchemaError

from token_pricer.core.logging import get_logger
from token_pricer.schemas.token import TokenMetadata

log = get_logger("snapshot")


class CacheSnapshot(BaseModel):
    """On-disk layout: ``{timestamp, tokenMetadata, allTokens}``."""

    model_config = ConfigDict(populate_by_name=True)

    timestamp: float
    token_metadata: Dict[str, TokenMetadata] = Field(default_factory=dict, alias="tokenMetadata")
    all_tokens: List[TokenMetadata] = Field(default_factory=list, alias="allTokens")

    def age_seconds(self, now: Optional[float] = None) -> float:
        return max(0.0, (now or time.time()) - self.timestamp)


class SnapshotStore:
    """Reads and writes the snapshot file. Absence or corruption means cold start."""

    def __init__(self, path: str = "token_cache.json"):
        self.path = Path(path)

    def save(
        self,
        token_metadata: Dict[str, TokenMetadata],
        all_tokens: List[TokenMetadata],
        timestamp: Optional[float] = None,
    ) -> None:
        """Write the snapshot via a temp file so readers never see a partial write."""
        snapshot = CacheSnapshot(
            timestamp=timestamp or time.time(),
            token_metadata=token_metadata,
            all_tokens=all_tokens,
        )
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(snapshot.model_dump(mode="json", by_alias=True), f)
            tmp_path.replace(self.path)
        except OSError as exc:
            log.warning(f"Failed to save snapshot to {self.path}: {exc}")
            return
        log.info(f"Saved snapshot with {len(all_tokens)} catalog tokens to {self.path}")

    def load(self) -> Optional[CacheSnapshot]:
        if not self.path.exists():
            log.info("No snapshot file found, starting fresh")
            return None

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
            snapshot = CacheSnapshot.model_validate(data)
        except (OSError, ValueError, SchemaError) as exc:
            log.warning(f"Ignoring unreadable snapshot {self.path}: {exc}")
            return None

        log.info(
            f"Loaded snapshot from {self.path} "
            f"(tokens={len(snapshot.all_tokens)}, age={snapshot.age_seconds():.0f}s)"
        )
        return snapshot

    def delete(self) -> None:
        if self.path.exists():
            self.path.unlink()
