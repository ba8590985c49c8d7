"""Token catalog loading, fallback, search and paging tests"""

import asyncio
import json

import pytest

from token_pricer.core.errors import ValidationError
from token_pricer.schemas.token import DEFAULT_TOKENS
from token_pricer.services.cache import TokenCache
from token_pricer.services.catalog import TokenCatalog
from token_pricer.tests.fakes import TOKEN_LIST_URL, USDC, WIF, FakeClock


class TestCatalogLoading:
    """Freshness window, single-flight refresh and fallback"""

    @pytest.mark.asyncio
    async def test_concurrent_loads_fetch_once(self, service, upstream):
        """Many callers on a cold catalog share a single fetch"""
        upstream.latency = 0.01

        results = await asyncio.gather(*(service.catalog.load() for _ in range(5)))

        assert upstream.count(TOKEN_LIST_URL) == 1
        assert all(len(tokens) == 4 for tokens in results)
        await service.aclose()

    @pytest.mark.asyncio
    async def test_fresh_catalog_is_reused(self, service, upstream):
        """A second load inside the freshness window does not refetch"""
        await service.catalog.load()
        await service.catalog.load()

        assert upstream.count(TOKEN_LIST_URL) == 1
        await service.aclose()

    @pytest.mark.asyncio
    async def test_expired_catalog_is_refetched(self, service, upstream, test_settings):
        """Past the TTL the next load fetches again"""
        clock = FakeClock()
        catalog = TokenCatalog(service.catalog.source, TokenCache(), settings=test_settings, clock=clock)

        await catalog.load()
        clock.now += test_settings.CATALOG_TTL_SECONDS + 1
        await catalog.load()

        assert upstream.count(TOKEN_LIST_URL) == 2
        await service.aclose()

    @pytest.mark.asyncio
    async def test_unreachable_list_uses_builtin_tokens(self, service, upstream):
        """No live list and nothing loaded before: the embedded list is served"""
        upstream.token_list_status = 500

        tokens = await service.catalog.load()

        assert [t.address for t in tokens] == [t.address for t in DEFAULT_TOKENS]
        assert upstream.count(TOKEN_LIST_URL) == 4
        assert service.cache.get_metadata(WIF) is not None
        await service.aclose()

    @pytest.mark.asyncio
    async def test_fallback_catalog_is_retried_sooner(self, service, upstream, test_settings):
        """A fallback catalog is re-fetched once the short retry window passes"""
        clock = FakeClock()
        catalog = TokenCatalog(service.catalog.source, TokenCache(), settings=test_settings, clock=clock)
        upstream.token_list_status = 500
        await catalog.load()

        upstream.token_list_status = 200
        clock.now += test_settings.CATALOG_RETRY_SECONDS + 1
        tokens = await catalog.load()

        assert len(tokens) == 4
        assert upstream.count(TOKEN_LIST_URL) == 5
        await service.aclose()

    @pytest.mark.asyncio
    async def test_failed_refresh_keeps_previous_catalog(self, service, upstream, test_settings):
        """An outage after a good load keeps serving the last good list"""
        clock = FakeClock()
        catalog = TokenCatalog(service.catalog.source, TokenCache(), settings=test_settings, clock=clock)
        await catalog.load()

        upstream.token_list_status = 503
        clock.now += test_settings.CATALOG_TTL_SECONDS + 1
        tokens = await catalog.load()

        assert len(tokens) == 4
        assert tokens[0].address == USDC
        await service.aclose()

    @pytest.mark.asyncio
    async def test_successful_fetch_is_persisted(self, service, test_settings):
        """A live fetch writes the snapshot file"""
        await service.catalog.load()

        with open(test_settings.SNAPSHOT_PATH, encoding="utf-8") as f:
            data = json.load(f)

        assert set(data) == {"timestamp", "tokenMetadata", "allTokens"}
        assert len(data["allTokens"]) == 4
        assert USDC in data["tokenMetadata"]
        await service.aclose()

    @pytest.mark.asyncio
    async def test_fallback_catalog_is_not_persisted(self, service, upstream, test_settings):
        """The embedded list never overwrites the snapshot"""
        upstream.token_list_status = 500
        await service.catalog.load()

        assert not service.snapshot_store.path.exists()
        await service.aclose()


class TestCatalogQueries:
    """Search and paging over the loaded catalog"""

    @pytest.fixture
    def many_tokens(self, upstream):
        upstream.tokens = [
            {"address": f"Addr{i:02d}", "name": f"Moon Token {i}", "symbol": f"MOON{i}", "decimals": 6}
            for i in range(15)
        ] + [{"address": "AddrX", "name": "Other", "symbol": "OTH", "decimals": 9}]
        return upstream

    @pytest.mark.asyncio
    async def test_search_caps_at_default_limit(self, service, many_tokens):
        """Fifteen matches for a two-letter query return the first ten in catalog order"""
        results = await service.search("mo")

        assert [t.address for t in results] == [f"Addr{i:02d}" for i in range(10)]
        await service.aclose()

    @pytest.mark.asyncio
    async def test_search_matches_name_case_insensitively(self, service):
        """Name matches count as well as symbol matches"""
        results = await service.search("DOGWIF")

        assert [t.address for t in results] == [WIF]
        await service.aclose()

    @pytest.mark.asyncio
    async def test_search_respects_explicit_limit(self, service, many_tokens):
        """Caller-provided limit overrides the default"""
        results = await service.search("moon", limit=3)
        assert len(results) == 3
        await service.aclose()

    @pytest.mark.asyncio
    async def test_short_query_rejected(self, service, upstream):
        """Queries under two characters fail before loading the catalog"""
        with pytest.raises(ValidationError):
            await service.search(" a ")
        assert upstream.calls == []
        await service.aclose()

    @pytest.mark.asyncio
    async def test_paging(self, service, many_tokens):
        """Pages slice the catalog and report navigation flags"""
        page = await service.list_tokens(page=2, page_size=5)

        assert [t.address for t in page.items] == [f"Addr{i:02d}" for i in range(5, 10)]
        assert page.pagination.total == 16
        assert page.pagination.total_pages == 4
        assert page.pagination.has_next is True
        assert page.pagination.has_prev is True
        await service.aclose()

    @pytest.mark.asyncio
    async def test_last_page_and_beyond(self, service, many_tokens):
        """Last page is partial; past the end is empty"""
        last = await service.list_tokens(page=4, page_size=5)
        beyond = await service.list_tokens(page=5, page_size=5)

        assert [t.address for t in last.items] == ["AddrX"]
        assert last.pagination.has_next is False
        assert beyond.items == []
        await service.aclose()

    @pytest.mark.asyncio
    async def test_invalid_page_rejected(self, service):
        """Page numbers start at 1"""
        with pytest.raises(ValidationError):
            await service.list_tokens(page=0, page_size=5)
        await service.aclose()

    @pytest.mark.asyncio
    async def test_zero_page_size_rejected(self, service):
        """An explicit page size of 0 is invalid, not a request for the default"""
        with pytest.raises(ValidationError):
            await service.list_tokens(page=1, page_size=0)
        await service.aclose()

    @pytest.mark.asyncio
    async def test_missing_page_size_uses_default(self, service, test_settings):
        page = await service.list_tokens(page=1)

        assert page.pagination.page_size == test_settings.PAGE_DEFAULT_SIZE
        await service.aclose()
