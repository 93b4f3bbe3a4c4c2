from __future__ import annotations

from typing import Any
from urllib.parse import quote

from dashboard_api.config.settings import Settings
from dashboard_api.providers.base import JsonHttpClient, MarketDataAdapter


class CoinGeckoAdapter(JsonHttpClient, MarketDataAdapter):
    provider_name = "CoinGecko"

    def __init__(self, base_url: str, timeout_seconds: float, api_key: str | None = None):
        super().__init__(base_url, timeout_seconds, api_key=api_key, api_key_header="x-cg-demo-api-key")

    @classmethod
    def from_settings(cls, settings: Settings) -> "CoinGeckoAdapter":
        return cls(settings.coingecko_base, settings.request_timeout_seconds, api_key=settings.cg_demo_key)

    def fetch_markets(self, vs_currency: str, per_page: int, page: int) -> list[dict[str, Any]]:
        return self.fetch_upstream(
            "/coins/markets",
            {
                "vs_currency": vs_currency,
                "order": "market_cap_desc",
                "per_page": str(per_page),
                "page": str(page),
                "sparkline": "false",
            },
        )

    def fetch_coins_list(self) -> list[dict[str, Any]]:
        return self.fetch_upstream("/coins/list")

    def fetch_market_chart(self, coin_id: str, vs_currency: str, days: str) -> dict[str, Any]:
        return self.fetch_upstream(
            f"/coins/{quote(coin_id, safe='')}/market_chart",
            {"vs_currency": vs_currency, "days": days},
        )
