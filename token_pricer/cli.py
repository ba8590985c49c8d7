"""Command-line entrypoint.

Usage:
    python -m token_pricer.cli price <address> [amount]   # Price a token (amount defaults to 1)
    python -m token_pricer.cli search <query>             # Search the token catalog
    python -m token_pricer.cli diagnose                   # Probe every upstream endpoint
    python -m token_pricer.cli clear-cache                # Delete the snapshot file
    python -m token_pricer.cli serve [port]               # Run the HTTP API
"""

import asyncio
import sys

from token_pricer.core.config import settings
from token_pricer.core.errors import ValidationError
from token_pricer.core.logging import get_logger
from token_pricer.schemas.pricing import PriceOutcome
from token_pricer.services.price_service import PriceService

logger = get_logger("cli")

USAGE = "Usage: python -m token_pricer.cli {price <address> [amount] | search <query> | diagnose | clear-cache | serve [port]}"


def _print_outcome(outcome: PriceOutcome) -> None:
    if outcome.success and outcome.quote:
        q = outcome.quote
        print(f"Token: {q.token.name} ({q.token.symbol})")
        print(f"Amount: {q.amount_requested:g} {q.token.symbol}")
        print(f"Total Value: ${q.total_value:.6f} {q.quote_currency}")
        print(f"Price per token: ${q.price_per_unit:.8f} {q.quote_currency}")
        print(f"Strategy: {q.strategy.value}")
        print(f"Confidence: {q.confidence.value}")
        print(f"Path: {q.conversion_path}")
        print(f"Slippage: {q.slippage_bps / 100:g}%")
        print(f"Timestamp: {q.timestamp.isoformat()}")
    else:
        print(f"ERROR: {outcome.error}")
        if outcome.suggestion:
            print(f"Suggestion: {outcome.suggestion}")


async def run_price(address: str, amount: float) -> PriceOutcome:
    service = PriceService.build(settings)
    try:
        await service.initialize()
        outcome = await service.price(address, amount)
    finally:
        await service.aclose()
    _print_outcome(outcome)
    return outcome


async def run_search(query: str) -> int:
    service = PriceService.build(settings)
    try:
        results = await service.search(query)
    finally:
        await service.aclose()
    for token in results:
        print(f"{token.symbol:<12} {token.name:<32} {token.address}")
    return len(results)


async def run_diagnose() -> bool:
    service = PriceService.build(settings)
    try:
        results = await service.diagnose()
    finally:
        await service.aclose()
    for result in results:
        if result["reachable"]:
            print(f"OK   {result['url']} - {result['latency_ms']}ms - status {result['status_code']}")
        else:
            print(f"FAIL {result['url']} - {result['error']}")
    return all(r["reachable"] for r in results)


def main():
    """Main entry point for the CLI."""
    if len(sys.argv) < 2:
        print(USAGE)
        sys.exit(2)

    command, args = sys.argv[1], sys.argv[2:]

    if command == "price" and args:
        try:
            amount = float(args[1]) if len(args) > 1 else 1.0
        except ValueError:
            logger.error(f"Invalid amount: {args[1]}")
            sys.exit(2)
        outcome = asyncio.run(run_price(args[0], amount))
        sys.exit(0 if outcome.success else 1)
    elif command == "search" and args:
        try:
            found = asyncio.run(run_search(args[0]))
        except ValidationError as exc:
            logger.error(exc.message)
            sys.exit(2)
        sys.exit(0 if found else 1)
    elif command == "diagnose":
        sys.exit(0 if asyncio.run(run_diagnose()) else 1)
    elif command == "clear-cache":
        from token_pricer.core.snapshot import SnapshotStore

        SnapshotStore(settings.SNAPSHOT_PATH).delete()
        logger.info(f"Removed snapshot {settings.SNAPSHOT_PATH}")
    elif command == "serve":
        from token_pricer.main import run

        run(port=int(args[0]) if args else 3000)
    else:
        print(USAGE)
        sys.exit(2)


if __name__ == "__main__":
    main()
