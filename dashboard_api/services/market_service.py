from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError as SchemaError

from dashboard_api.cache.ttl_cache import TTLCache
from dashboard_api.config.settings import Settings
from dashboard_api.errors import InternalError
from dashboard_api.providers.base import MarketDataAdapter
from dashboard_api.schemas.coin import MarketSnapshot
from dashboard_api.utils.validators import sanitize_markets

logger = logging.getLogger(__name__)


def _servable(coins: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Keep only records that fit ``MarketSnapshot`` so nothing unservable is cached."""
    kept: list[dict[str, Any]] = []
    for coin in coins:
        try:
            kept.append(MarketSnapshot.model_validate(coin).model_dump())
        except SchemaError as exc:
            logger.warning("Dropping malformed market record %r: %s", coin.get("id"), exc.errors()[0].get("msg"))
    return kept


class MarketService:
    def __init__(self, adapter: MarketDataAdapter, cache: TTLCache, settings: Settings):
        self.adapter = adapter
        self.cache = cache
        self.settings = settings

    def get_markets(self, vs_currency: str, per_page: int, page: int) -> tuple[list[dict[str, Any]], bool]:
        key = f"coins:{vs_currency}:{per_page}:{page}"

        def _load():
            logger.info("Fetching coins from CoinGecko (%s)", key)
            payload = self.adapter.fetch_markets(vs_currency, per_page, page)
            if not isinstance(payload, list):
                raise InternalError(f"Unexpected markets payload type: {type(payload).__name__}")
            coins = _servable(sanitize_markets(payload))
            logger.info("Fetched %d coins", len(coins))
            return coins

        return self.cache.get_or_set(key, _load, self.settings.coins_ttl_seconds)

    def get_coins_list(self) -> tuple[list[dict[str, Any]], bool]:
        return self.cache.get_or_set("coins:list", self.adapter.fetch_coins_list, self.settings.coins_list_ttl_seconds)

    def get_market_chart(self, coin_id: str, vs_currency: str, days: str) -> tuple[dict[str, Any], bool]:
        key = f"chart:{coin_id}:{vs_currency}:{days}"
        return self.cache.get_or_set(
            key,
            lambda: self.adapter.fetch_market_chart(coin_id, vs_currency, days),
            self.settings.chart_ttl_seconds,
        )
