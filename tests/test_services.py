from datetime import datetime, timezone

import pytest

from conftest import FakeMarketAdapter, FakeRateAdapter, coin_record
from dashboard_api.errors import InternalError, NotFoundError, UpstreamError, UpstreamTimeoutError
from dashboard_api.services.market_service import MarketService
from dashboard_api.services.rate_service import RateService
from dashboard_api.utils.currency import Currency

FIXED_NOW = datetime(2024, 3, 10, 12, 0, tzinfo=timezone.utc)


def make_rate_service(adapter, cache, settings, sleeps=None):
    return RateService(
        adapter,
        cache,
        settings,
        sleep=(sleeps.append if sleeps is not None else lambda _: None),
        now=lambda: FIXED_NOW,
    )


def test_markets_cached_for_configured_ttl(cache, clock, test_settings):
    adapter = FakeMarketAdapter(markets=[coin_record()])
    service = MarketService(adapter, cache, test_settings)

    _, hit = service.get_markets("usd", 50, 1)
    assert hit is False
    _, hit = service.get_markets("usd", 50, 1)
    assert hit is True
    clock.advance(test_settings.coins_ttl_seconds)
    _, hit = service.get_markets("usd", 50, 1)
    assert hit is False
    assert len(adapter.calls) == 2


def test_markets_keys_differ_by_parameters(cache, test_settings):
    adapter = FakeMarketAdapter(markets=[coin_record()])
    service = MarketService(adapter, cache, test_settings)
    service.get_markets("usd", 50, 1)
    service.get_markets("usd", 50, 2)
    service.get_markets("eur", 50, 1)
    assert len(adapter.calls) == 3


def test_unexpected_markets_payload(cache, test_settings):
    service = MarketService(FakeMarketAdapter(markets={"error": "nope"}), cache, test_settings)
    with pytest.raises(InternalError):
        service.get_markets("usd", 50, 1)


def test_coins_list_and_chart_passthrough(cache, test_settings):
    adapter = FakeMarketAdapter(coins_list=[{"id": "bitcoin", "symbol": "btc", "name": "Bitcoin"}], chart={"prices": [[1, 2.0]], "total_volumes": []})
    service = MarketService(adapter, cache, test_settings)
    assert service.get_coins_list() == ([{"id": "bitcoin", "symbol": "btc", "name": "Bitcoin"}], False)
    assert service.get_market_chart("bitcoin", "usd", "7") == ({"prices": [[1, 2.0]], "total_volumes": []}, False)
    assert service.get_market_chart("bitcoin", "usd", "7")[1] is True


def test_rate_lookup_and_cache(cache, test_settings):
    adapter = FakeRateAdapter({"rates": {"EUR": 0.92}})
    service = make_rate_service(adapter, cache, test_settings)

    first, hit = service.get_rate(Currency.USD, Currency.EUR)
    assert hit is False
    assert first == {"rate": 0.92, "timestamp": "2024-03-10T12:00:00Z"}
    second, hit = service.get_rate(Currency.USD, Currency.EUR)
    assert hit is True
    assert second == first
    assert adapter.calls == [("USD", None)]


@pytest.mark.parametrize("rates", [{}, {"EUR": 0}, {"EUR": "n/a"}])
def test_missing_target_rate_is_not_found(cache, test_settings, rates):
    service = make_rate_service(FakeRateAdapter({"rates": rates}), cache, test_settings)
    with pytest.raises(NotFoundError, match="EUR"):
        service.get_rate(Currency.USD, Currency.EUR)
    assert cache.get("rate_USD_EUR") is None


def test_history_samples_each_day_oldest_first(cache, test_settings):
    adapter = FakeRateAdapter({"rates": {"KES": 129.4}})
    sleeps = []
    service = make_rate_service(adapter, cache, test_settings, sleeps)

    rates, hit = service.get_history(Currency.USD, Currency.KES, 3)

    assert hit is False
    assert rates == [
        {"date": "2024-03-08", "rate": 129.4},
        {"date": "2024-03-09", "rate": 129.4},
        {"date": "2024-03-10", "rate": 129.4},
    ]
    assert adapter.calls == [("USD", test_settings.history_request_timeout_seconds)] * 3
    assert sleeps == [test_settings.history_request_pause_seconds] * 3


def test_history_skips_failed_days(cache, test_settings):
    adapter = FakeRateAdapter(
        {"rates": {"EUR": 0.91}},
        UpstreamTimeoutError("slow"),
        {"rates": {}},
        {"rates": {"EUR": 0.93}},
    )
    service = make_rate_service(adapter, cache, test_settings)

    rates, _ = service.get_history(Currency.USD, Currency.EUR, 4)

    assert [point["date"] for point in rates] == ["2024-03-07", "2024-03-10"]
    assert [point["rate"] for point in rates] == [0.91, 0.93]


def test_history_with_no_data_is_not_cached(cache, test_settings):
    adapter = FakeRateAdapter(UpstreamError("down", status_code=503))
    service = make_rate_service(adapter, cache, test_settings)
    with pytest.raises(UpstreamError) as exc_info:
        service.get_history(Currency.USD, Currency.EUR, 2)
    assert exc_info.value.status_code == 502
    assert cache.get("history_USD_EUR_2") is None


def test_history_cached_per_pair_and_days(cache, test_settings):
    adapter = FakeRateAdapter({"rates": {"EUR": 0.9, "GBP": 0.8}})
    service = make_rate_service(adapter, cache, test_settings)
    service.get_history(Currency.USD, Currency.EUR, 2)
    service.get_history(Currency.USD, Currency.EUR, 2)
    service.get_history(Currency.USD, Currency.EUR, 3)
    service.get_history(Currency.USD, Currency.GBP, 2)
    assert len(adapter.calls) == 2 + 3 + 2
