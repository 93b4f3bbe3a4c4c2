from __future__ import annotations

import pytest

from dashboard_api.api.routes import create_app
from dashboard_api.cache.ttl_cache import TTLCache
from dashboard_api.config.settings import Settings
from dashboard_api.providers.base import MarketDataAdapter, RateAdapter


class FakeClock:
    def __init__(self, now: float = 1_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class FakeMarketAdapter(MarketDataAdapter):
    def __init__(self, markets=None, coins_list=None, chart=None, error: Exception | None = None):
        self.markets = markets if markets is not None else []
        self.coins_list = coins_list if coins_list is not None else []
        self.chart = chart if chart is not None else {"prices": []}
        self.error = error
        self.calls: list[tuple] = []

    def _maybe_fail(self):
        if self.error is not None:
            raise self.error

    def fetch_markets(self, vs_currency, per_page, page):
        self.calls.append(("markets", vs_currency, per_page, page))
        self._maybe_fail()
        return self.markets

    def fetch_coins_list(self):
        self.calls.append(("list",))
        self._maybe_fail()
        return self.coins_list

    def fetch_market_chart(self, coin_id, vs_currency, days):
        self.calls.append(("chart", coin_id, vs_currency, days))
        self._maybe_fail()
        return self.chart


class FakeRateAdapter(RateAdapter):
    """Returns queued results in order, repeating the last one."""

    def __init__(self, *results):
        self.results = list(results) or [{"rates": {}}]
        self.calls: list[tuple[str, float | None]] = []

    def fetch_latest(self, base, timeout=None):
        self.calls.append((base, timeout))
        index = min(len(self.calls) - 1, len(self.results) - 1)
        result = self.results[index]
        if isinstance(result, Exception):
            raise result
        return result


def coin_record(coin_id: str = "bitcoin", **extra) -> dict:
    record = {
        "id": coin_id,
        "symbol": coin_id[:3],
        "name": coin_id.title(),
        "image": f"https://img.example/{coin_id}.png",
        "current_price": 64000.5,
        "market_cap": 1.2e12,
        "market_cap_rank": 1,
        "total_volume": 3.1e10,
        "price_change_percentage_24h": -1.25,
        "ath": 73000.0,
        "atl": 67.81,
    }
    record.update(extra)
    return record


@pytest.fixture
def test_settings():
    return Settings(environment="production", history_request_pause_seconds=0)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return TTLCache(clock=clock)


@pytest.fixture
def market_adapter():
    return FakeMarketAdapter(markets=[coin_record("bitcoin"), coin_record("ethereum", market_cap_rank=2)])


@pytest.fixture
def rate_adapter():
    return FakeRateAdapter({"base": "USD", "rates": {"USD": 1, "EUR": 0.92, "KES": 129.4}})


@pytest.fixture
def make_client(test_settings, cache, market_adapter, rate_adapter):
    from fastapi.testclient import TestClient

    def _make(settings=None, markets=None, rates=None, raise_server_exceptions=True):
        app = create_app(
            settings or test_settings,
            cache=cache,
            market_adapter=markets or market_adapter,
            rate_adapter=rates or rate_adapter,
        )
        return TestClient(app, raise_server_exceptions=raise_server_exceptions)

    return _make


@pytest.fixture
def client(make_client):
    return make_client()
