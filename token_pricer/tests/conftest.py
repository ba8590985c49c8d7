"""Shared fixtures: a fully wired service running against fake upstreams."""

import pytest

from token_pricer.core.config import Settings
from token_pricer.core.snapshot import SnapshotStore
from token_pricer.services.price_service import PriceService
from token_pricer.tests.fakes import QUOTE_API_URL, RPC_URLS, TOKEN_LIST_URL, USDC, FakeSleep, FakeUpstream


@pytest.fixture
def upstream():
    """Fake upstream with the quote currency quotable against itself."""
    fake = FakeUpstream()
    fake.add_route(USDC, USDC, 1.0)
    return fake


@pytest.fixture
def fake_sleep():
    return FakeSleep()


@pytest.fixture
def test_settings(tmp_path):
    return Settings(
        TOKEN_LIST_URL=TOKEN_LIST_URL,
        QUOTE_API_URL=QUOTE_API_URL,
        RPC_URLS=RPC_URLS,
        SNAPSHOT_PATH=str(tmp_path / "token_cache.json"),
        LOG_TO_FILE=False,
    )


@pytest.fixture
def service(upstream, fake_sleep, test_settings):
    """PriceService wired to the fake upstream, a fake sleep and a temp snapshot."""
    return PriceService.build(
        test_settings,
        transport=upstream.transport,
        sleep=fake_sleep,
        snapshot_store=SnapshotStore(test_settings.SNAPSHOT_PATH),
    )
