"""Response schemas for the upstream services.

Every parser returns ``None`` for a body that does not match its schema, so
callers treat a malformed answer the same way as a failed call.
"""

from __future__ import annotations

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as SchemaError

from token_pricer.schemas.token import TokenMetadata, TokenSource


class QuoteResponse(BaseModel):
    """Subset of the Jupiter ``/quote`` body the pricing engine relies on."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    input_mint: Optional[str] = Field(default=None, alias="inputMint")
    output_mint: Optional[str] = Field(default=None, alias="outputMint")
    in_amount: Optional[int] = Field(default=None, alias="inAmount")
    out_amount: Optional[int] = Field(default=None, alias="outAmount")
    price_impact_pct: Optional[float] = Field(default=None, alias="priceImpactPct")
    route_plan: List[Any] = Field(default_factory=list, alias="routePlan")


class TokenListEntry(BaseModel):
    """One record of the Jupiter token list."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    address: str
    name: str
    symbol: str
    decimals: int = Field(ge=0)
    logo_uri: Optional[str] = Field(default=None, alias="logoURI")
    tags: List[str] = Field(default_factory=list)

    def to_metadata(self) -> TokenMetadata:
        return TokenMetadata(
            address=self.address,
            name=self.name,
            symbol=self.symbol,
            decimals=self.decimals,
            source=TokenSource.CATALOG,
            logo_uri=self.logo_uri,
            tags=self.tags,
        )


class _ParsedMintInfo(BaseModel):
    model_config = ConfigDict(extra="ignore")

    decimals: int = Field(ge=0)
    name: Optional[str] = None
    symbol: Optional[str] = None


class _ParsedData(BaseModel):
    model_config = ConfigDict(extra="ignore")

    info: _ParsedMintInfo
    type: Optional[str] = None


class _AccountData(BaseModel):
    model_config = ConfigDict(extra="ignore")

    parsed: _ParsedData


class _AccountValue(BaseModel):
    model_config = ConfigDict(extra="ignore")

    data: _AccountData


class _AccountInfoResult(BaseModel):
    model_config = ConfigDict(extra="ignore")

    value: _AccountValue


class AccountInfoResponse(BaseModel):
    """JSON-RPC ``getAccountInfo`` answer with ``jsonParsed`` encoding."""

    model_config = ConfigDict(extra="ignore")

    result: _AccountInfoResult

    @property
    def mint_info(self) -> _ParsedMintInfo:
        return self.result.value.data.parsed.info


def parse_quote(data: Any) -> Optional[QuoteResponse]:
    """Return the quote when it carries a positive ``outAmount``."""
    if not isinstance(data, dict):
        return None
    try:
        quote = QuoteResponse.model_validate(data)
    except SchemaError:
        return None
    if not quote.out_amount or quote.out_amount <= 0:
        return None
    return quote


def parse_token_list(data: Any) -> List[TokenMetadata]:
    """Parse the token list, dropping entries that do not fit the schema."""
    if not isinstance(data, list):
        return []
    tokens: List[TokenMetadata] = []
    for item in data:
        try:
            tokens.append(TokenListEntry.model_validate(item).to_metadata())
        except SchemaError:
            continue
    return tokens


def parse_account_info(address: str, data: Any) -> Optional[TokenMetadata]:
    """Build on-chain metadata from a parsed mint account, if the body is well-formed."""
    if not isinstance(data, dict) or data.get("result") is None:
        return None
    try:
        info = AccountInfoResponse.model_validate(data).mint_info
    except SchemaError:
        return None
    fields: dict = {"address": address, "decimals": info.decimals, "source": TokenSource.ON_CHAIN}
    if info.name:
        fields["name"] = info.name
    if info.symbol:
        fields["symbol"] = info.symbol
    return TokenMetadata(**fields)
