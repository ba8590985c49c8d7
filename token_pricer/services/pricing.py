"""Price resolution engine: an ordered cascade of quote strategies.

Each strategy takes a :class:`PricingContext` and returns a
:class:`StrategyResult` or ``None``. The engine walks the list and returns the
first success. Network failures never leave a strategy: the quote source
turns them into ``None``, which simply moves the cascade along.
"""

from __future__ import annotations

import math
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import ROUND_FLOOR, Decimal
from typing import Any, List, Optional, Sequence

from token_pricer.core.config import Settings, settings as default_settings
from token_pricer.core.errors import PricingError, ValidationError
from token_pricer.core.logging import get_logger
from token_pricer.schemas.pricing import Confidence, PriceQuote, PricingStrategy
from token_pricer.schemas.token import TokenMetadata
from token_pricer.services.cache import TokenCache
from token_pricer.services.metadata import TokenMetadataResolver
from token_pricer.sources.jupiter_quote import JupiterQuoteSource

log = get_logger("pricing")

BASE58_ADDRESS = re.compile(r"^[1-9A-HJ-NP-Za-km-z]{32,44}$")

NO_ROUTE_SUGGESTION = (
    "Try again in a few moments or verify that the token has sufficient liquidity"
)


def validate_price_request(token_address: Any, amount: Any) -> None:
    """Reject malformed input before anything touches the network."""
    if not isinstance(token_address, str) or not token_address:
        raise ValidationError("Invalid token mint address", suggestion="Provide a base58 mint address")
    if not BASE58_ADDRESS.match(token_address):
        raise ValidationError(
            f"Invalid token mint address: {token_address!r}",
            suggestion="Provide a valid Solana mint address (32-44 base58 characters)",
        )
    if isinstance(amount, bool) or not isinstance(amount, (int, float)):
        raise ValidationError("Amount must be a number", suggestion="Provide a positive amount")
    if not math.isfinite(amount) or amount <= 0:
        raise ValidationError("Amount must be greater than 0", suggestion="Provide a positive amount")


def to_smallest_unit(amount: float, decimals: int) -> int:
    """``floor(amount * 10**decimals)`` computed in decimal to avoid float drift."""
    scaled = Decimal(repr(amount)) * (Decimal(10) ** decimals)
    return int(scaled.to_integral_value(rounding=ROUND_FLOOR))


def confidence_for(strategy: PricingStrategy, slippage_bps: int, route_available: bool = True) -> Confidence:
    if strategy == PricingStrategy.DIRECT_QUOTE:
        return Confidence.HIGH if route_available else Confidence.MEDIUM
    if strategy == PricingStrategy.SOL_BRIDGE:
        return Confidence.MEDIUM
    return Confidence.MEDIUM if slippage_bps <= 100 else Confidence.LOW


@dataclass(frozen=True)
class PricingContext:
    token_address: str
    amount: float
    token: TokenMetadata


@dataclass(frozen=True)
class StrategyResult:
    strategy: PricingStrategy
    total_value: float
    slippage_bps: int
    confidence: Confidence
    conversion_path: str
    route_available: bool = True


@dataclass(frozen=True)
class LegQuote:
    value: float
    has_route: bool


class QuoteLeg:
    """One conversion through the quote source, in human units on both sides."""

    def __init__(self, source: JupiterQuoteSource):
        self.source = source

    async def convert(
        self,
        input_mint: str,
        output_mint: str,
        amount: float,
        input_decimals: int,
        output_decimals: int,
        slippage_bps: int,
        only_direct_routes: bool = False,
    ) -> Optional[LegQuote]:
        amount_in = to_smallest_unit(amount, input_decimals)
        if amount_in <= 0:
            log.debug(f"Amount {amount} is below the precision of {input_mint} ({input_decimals} decimals)")
            return None

        quote = await self.source.quote(
            input_mint,
            output_mint,
            amount_in,
            slippage_bps,
            only_direct_routes=only_direct_routes,
        )
        if quote is None:
            return None
        return LegQuote(value=quote.out_amount / (10 ** output_decimals), has_route=bool(quote.route_plan))


class QuoteStrategy(ABC):
    strategy: PricingStrategy

    def __init__(self, leg: QuoteLeg, settings: Settings):
        self.leg = leg
        self.settings = settings

    @abstractmethod
    async def __call__(self, ctx: PricingContext) -> Optional[StrategyResult]:
        """Price ``ctx`` or return ``None`` to hand over to the next strategy."""

    async def _to_quote_currency(
        self, ctx: PricingContext, slippage_bps: int, only_direct_routes: bool = False
    ) -> Optional[LegQuote]:
        return await self.leg.convert(
            ctx.token_address,
            self.settings.QUOTE_MINT,
            ctx.amount,
            ctx.token.decimals,
            self.settings.QUOTE_DECIMALS,
            slippage_bps,
            only_direct_routes=only_direct_routes,
        )


class DirectQuoteStrategy(QuoteStrategy):
    """Token straight into the quote currency, multi-hop routing allowed."""

    strategy = PricingStrategy.DIRECT_QUOTE

    def __init__(self, leg: QuoteLeg, settings: Settings, cache: TokenCache):
        super().__init__(leg, settings)
        self.cache = cache

    async def __call__(self, ctx: PricingContext) -> Optional[StrategyResult]:
        slippage = self.settings.DIRECT_SLIPPAGE_BPS
        quoted = await self._to_quote_currency(ctx, slippage)
        if quoted is None or not quoted.value:
            return None

        # Advisory only: never consulted before a live quote.
        self.cache.record_quote(ctx.token_address, self.strategy, quoted.value / ctx.amount, quoted.value, ctx.amount)
        return StrategyResult(
            strategy=self.strategy,
            total_value=quoted.value,
            slippage_bps=slippage,
            confidence=confidence_for(self.strategy, slippage, route_available=quoted.has_route),
            conversion_path="DIRECT",
            route_available=quoted.has_route,
        )


class SolBridgeStrategy(QuoteStrategy):
    """Token into the native asset, then the native asset into the quote currency."""

    strategy = PricingStrategy.SOL_BRIDGE

    async def __call__(self, ctx: PricingContext) -> Optional[StrategyResult]:
        s = self.settings
        native = await self.leg.convert(
            ctx.token_address,
            s.NATIVE_MINT,
            ctx.amount,
            ctx.token.decimals,
            s.NATIVE_DECIMALS,
            s.BRIDGE_SLIPPAGE_BPS,
        )
        if native is None or not native.value:
            return None

        quoted = await self.leg.convert(
            s.NATIVE_MINT,
            s.QUOTE_MINT,
            native.value,
            s.NATIVE_DECIMALS,
            s.QUOTE_DECIMALS,
            s.DIRECT_SLIPPAGE_BPS,
        )
        if quoted is None or not quoted.value:
            return None

        return StrategyResult(
            strategy=self.strategy,
            total_value=quoted.value,
            slippage_bps=s.BRIDGE_SLIPPAGE_BPS,
            confidence=confidence_for(self.strategy, s.BRIDGE_SLIPPAGE_BPS),
            conversion_path=f"TOKEN -> {s.NATIVE_SYMBOL} -> {s.QUOTE_SYMBOL}",
            route_available=native.has_route and quoted.has_route,
        )


class RelaxedSlippageStrategy(QuoteStrategy):
    """Single-hop direct quotes at increasing slippage tolerances."""

    strategy = PricingStrategy.RELAXED_SLIPPAGE

    async def __call__(self, ctx: PricingContext) -> Optional[StrategyResult]:
        for slippage in self.settings.RELAXED_SLIPPAGE_BPS:
            quoted = await self._to_quote_currency(ctx, slippage, only_direct_routes=True)
            if quoted is not None and quoted.value:
                return StrategyResult(
                    strategy=self.strategy,
                    total_value=quoted.value,
                    slippage_bps=slippage,
                    confidence=confidence_for(self.strategy, slippage),
                    conversion_path="DIRECT",
                    route_available=quoted.has_route,
                )
            log.debug(f"No single-hop route for {ctx.token_address} at {slippage} bps")
        return None


class PriceResolutionEngine:
    """Stateless apart from the shared cache the direct strategy writes to."""

    def __init__(
        self,
        resolver: TokenMetadataResolver,
        quote_source: JupiterQuoteSource,
        cache: TokenCache,
        settings: Optional[Settings] = None,
        strategies: Optional[Sequence[QuoteStrategy]] = None,
    ):
        self.resolver = resolver
        self.settings = settings or default_settings
        leg = QuoteLeg(quote_source)
        self.strategies: List[QuoteStrategy] = list(strategies) if strategies is not None else [
            DirectQuoteStrategy(leg, self.settings, cache),
            SolBridgeStrategy(leg, self.settings),
            RelaxedSlippageStrategy(leg, self.settings),
        ]

    async def get_price(self, token_address: str, amount: float = 1.0) -> PriceQuote:
        """Price ``amount`` units of ``token_address`` in the quote currency.

        Raises:
            ValidationError: malformed address or non-positive amount.
            PricingError: every strategy failed.
        """
        validate_price_request(token_address, amount)
        amount = float(amount)

        token = await self.resolver.resolve(token_address)
        log.info(f"Pricing {amount:g} {token.symbol} ({token_address}, decimals={token.decimals})")
        ctx = PricingContext(token_address=token_address, amount=amount, token=token)

        for strategy in self.strategies:
            result = await strategy(ctx)
            if result is None:
                log.info(f"Strategy {strategy.strategy.value} found no price for {token_address}")
                continue

            log.info(
                f"Priced {token_address} via {result.strategy.value}: "
                f"{result.total_value:.6f} {self.settings.QUOTE_SYMBOL} (confidence={result.confidence.value})"
            )
            return PriceQuote(
                token=token,
                token_address=token_address,
                amount_requested=amount,
                price_per_unit=result.total_value / amount,
                total_value=result.total_value,
                strategy=result.strategy,
                confidence=result.confidence,
                slippage_bps=result.slippage_bps,
                conversion_path=result.conversion_path,
                route_available=result.route_available,
                quote_currency=self.settings.QUOTE_SYMBOL,
                timestamp=datetime.now(timezone.utc),
            )

        raise PricingError(f"no route found for token {token_address}", suggestion=NO_ROUTE_SUGGESTION)
