"""Price service facade: outcomes, batches, snapshots and health"""

import time

import pytest

from token_pricer.core.errors import ValidationError
from token_pricer.core.snapshot import SnapshotStore
from token_pricer.schemas.api import PriceRequest
from token_pricer.schemas.token import TokenMetadata
from token_pricer.services.price_service import PriceService
from token_pricer.tests.fakes import QUOTE_URL, RPC_URLS, TOKEN_LIST_URL, UNKNOWN, USDC, WIF


class TestPriceOutcome:
    """Single lookups never raise"""

    @pytest.mark.asyncio
    async def test_success_outcome(self, service, upstream):
        upstream.add_route(WIF, USDC, 2.0)

        outcome = await service.price(WIF, 10)

        assert outcome.success is True
        assert outcome.quote.total_value == pytest.approx(20.0)
        assert outcome.quote.token.symbol == "$WIF"
        assert outcome.quote.quote_currency == "USDC"
        await service.aclose()

    @pytest.mark.asyncio
    async def test_no_route_outcome(self, service):
        """Unpriceable token: structured failure with a suggestion"""
        outcome = await service.price(UNKNOWN, 1)

        assert outcome.success is False
        assert "no route found" in outcome.error
        assert outcome.error_type == "pricing_error"
        assert outcome.suggestion
        await service.aclose()

    @pytest.mark.asyncio
    async def test_validation_outcome(self, service, upstream):
        outcome = await service.price("bad!", 1)

        assert outcome.success is False
        assert outcome.error_type == "validation_error"
        assert upstream.calls == []
        await service.aclose()

    @pytest.mark.asyncio
    async def test_deadline_exceeded_outcome(self, upstream, fake_sleep, test_settings):
        """A lookup slower than REQUEST_DEADLINE_SECONDS becomes a timeout outcome"""
        config = test_settings.model_copy(update={"REQUEST_DEADLINE_SECONDS": 0.05})
        service = PriceService.build(
            config,
            transport=upstream.transport,
            sleep=fake_sleep,
            snapshot_store=SnapshotStore(config.SNAPSHOT_PATH),
        )
        upstream.add_route(WIF, USDC, 2.0)
        await service.initialize()
        upstream.latency = 0.3

        outcome = await service.price(WIF, 1)

        assert outcome.success is False
        assert outcome.error_type == "timeout"
        assert outcome.suggestion
        await service.aclose()

    @pytest.mark.asyncio
    async def test_unexpected_error_is_contained(self, service, monkeypatch):
        """Bugs surface as internal_error outcomes, not exceptions"""

        async def broken(address):
            raise RuntimeError("boom")

        monkeypatch.setattr(service.resolver, "resolve", broken)
        outcome = await service.price(WIF, 1)

        assert outcome.success is False
        assert outcome.error_type == "internal_error"
        await service.aclose()


class TestBatch:
    """Sequential batch pricing"""

    @pytest.mark.asyncio
    async def test_mixed_batch(self, service, upstream, fake_sleep):
        """One valid and one malformed item: two outcomes, the bad one never hits the network"""
        upstream.add_route(WIF, USDC, 2.0)

        result = await service.price_batch(
            [
                PriceRequest(contract_address=WIF, amount=5),
                PriceRequest(contract_address="xyz", amount=1),
            ]
        )

        assert [o.success for o in result.items] == [True, False]
        assert result.items[1].error_type == "validation_error"
        assert result.summary.total_tokens == 2
        assert result.summary.successful_prices == 1
        assert result.summary.failed_prices == 1
        assert result.summary.total_value == pytest.approx(10.0)
        assert all(p["inputMint"] != "xyz" for p in upstream.quote_calls())
        assert fake_sleep.delays == [0.2]
        await service.aclose()

    @pytest.mark.asyncio
    async def test_items_are_paced(self, service, upstream, fake_sleep):
        """Every priced item is followed by a short pause"""
        upstream.add_route(WIF, USDC, 2.0)

        result = await service.price_batch(
            [PriceRequest(contract_address=WIF, amount=1), PriceRequest(contract_address=USDC, amount=3)]
        )

        assert result.summary.successful_prices == 2
        assert result.summary.total_value == pytest.approx(5.0)
        assert fake_sleep.delays == [0.2, 0.2]
        await service.aclose()

    @pytest.mark.asyncio
    async def test_empty_batch_rejected(self, service):
        with pytest.raises(ValidationError):
            await service.price_batch([])
        await service.aclose()

    @pytest.mark.asyncio
    async def test_oversized_batch_rejected(self, service, upstream):
        """More than ten items is rejected before any lookup"""
        items = [PriceRequest(contract_address=USDC, amount=1) for _ in range(11)]

        with pytest.raises(ValidationError):
            await service.price_batch(items)
        assert upstream.calls == []
        await service.aclose()


class TestSnapshotStartup:
    """Warm start from the on-disk snapshot"""

    @pytest.fixture
    def store(self, test_settings):
        return SnapshotStore(test_settings.SNAPSHOT_PATH)

    @pytest.fixture
    def tokens(self):
        return [
            TokenMetadata(address=USDC, name="USD Coin", symbol="USDC", decimals=6),
            TokenMetadata(address=WIF, name="dogwifhat", symbol="$WIF", decimals=6),
        ]

    @pytest.mark.asyncio
    async def test_fresh_snapshot_skips_fetch(self, service, upstream, store, tokens):
        """A recent snapshot serves the catalog without calling the token list"""
        store.save({t.address: t for t in tokens}, tokens, timestamp=time.time())

        await service.initialize()

        assert upstream.count(TOKEN_LIST_URL) == 0
        assert service.catalog.size == 2
        assert service.cache.get_metadata(WIF).symbol == "$WIF"
        await service.aclose()

    @pytest.mark.asyncio
    async def test_stale_snapshot_is_refreshed(self, service, upstream, store, tokens, test_settings):
        """An old snapshot seeds the caches but the catalog is fetched again"""
        store.save({}, tokens, timestamp=time.time() - test_settings.SNAPSHOT_TTL_SECONDS - 10)

        await service.initialize()

        assert upstream.count(TOKEN_LIST_URL) == 1
        assert service.catalog.size == 4
        await service.aclose()

    @pytest.mark.asyncio
    async def test_corrupt_snapshot_means_cold_start(self, service, upstream, store):
        store.path.write_text("{not json", encoding="utf-8")

        await service.initialize()

        assert upstream.count(TOKEN_LIST_URL) == 1
        assert service.catalog.size == 4
        await service.aclose()

    @pytest.mark.asyncio
    async def test_initialize_survives_total_outage(self, service, upstream):
        """No snapshot and no token list still leaves a usable catalog"""
        upstream.token_list_status = 500

        await service.initialize()

        assert service.catalog.is_loaded
        await service.aclose()

    def test_snapshot_roundtrip_uses_wire_names(self, store, tokens):
        store.save({t.address: t for t in tokens}, tokens, timestamp=123.0)

        snapshot = store.load()

        assert snapshot.timestamp == 123.0
        assert list(snapshot.token_metadata) == [USDC, WIF]
        assert '"allTokens"' in store.path.read_text(encoding="utf-8")

    def test_missing_snapshot_loads_none(self, tmp_path):
        assert SnapshotStore(str(tmp_path / "absent.json")).load() is None


class TestHealth:
    """End-to-end status probe and network diagnostic"""

    @pytest.mark.asyncio
    async def test_status_working(self, service):
        status = await service.status()

        assert status.resolvable is True
        assert status.status == "working"
        assert status.probe_token == USDC
        assert status.sample_price == pytest.approx(1.0)
        assert status.catalog_size == 4
        await service.aclose()

    @pytest.mark.asyncio
    async def test_status_degraded_without_routes(self, service, upstream):
        upstream.routes.clear()

        status = await service.status()

        assert status.resolvable is False
        assert status.status == "degraded"
        assert status.error
        await service.aclose()

    @pytest.mark.asyncio
    async def test_diagnose_probes_every_endpoint_once(self, service, upstream):
        results = await service.diagnose()

        assert [r["url"] for r in results] == [TOKEN_LIST_URL, QUOTE_URL, *RPC_URLS]
        assert all(r["reachable"] for r in results)
        assert len(upstream.calls) == 4
        await service.aclose()

    @pytest.mark.asyncio
    async def test_clear_cache(self, service):
        await service.catalog.load()

        service.clear_cache()

        assert service.catalog.is_loaded is False
        assert service.cache.metadata_size == 0
        await service.aclose()
