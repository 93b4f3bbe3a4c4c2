from __future__ import annotations

import logging
import time
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

from dashboard_api.cache.ttl_cache import TTLCache
from dashboard_api.config.settings import Settings
from dashboard_api.errors import NotFoundError, UpstreamError
from dashboard_api.providers.base import RateAdapter
from dashboard_api.utils.currency import Currency
from dashboard_api.utils.validators import to_native_float

logger = logging.getLogger(__name__)


def _extract_rate(payload: Any, to_code: str) -> float | None:
    rates = payload.get("rates") if isinstance(payload, dict) else None
    if not isinstance(rates, dict):
        return None
    rate = to_native_float(rates.get(to_code), default=0.0)
    return rate if rate > 0 else None


class RateService:
    def __init__(
        self,
        adapter: RateAdapter,
        cache: TTLCache,
        settings: Settings,
        sleep: Callable[[float], None] = time.sleep,
        now: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.adapter = adapter
        self.cache = cache
        self.settings = settings
        self._sleep = sleep
        self._now = now

    def get_rate(self, from_code: Currency, to_code: Currency) -> tuple[dict[str, Any], bool]:
        key = f"rate_{from_code.value}_{to_code.value}"

        def _load():
            payload = self.adapter.fetch_latest(from_code.value)
            rate = _extract_rate(payload, to_code.value)
            if rate is None:
                raise NotFoundError(f"Exchange rate not found for {to_code.value}")
            return {"rate": rate, "timestamp": self._now().isoformat().replace("+00:00", "Z")}

        return self.cache.get_or_set(key, _load, self.settings.cache_ttl)

    def get_history(self, from_code: Currency, to_code: Currency, days: int) -> tuple[list[dict[str, Any]], bool]:
        """Sample the latest-rate endpoint once per simulated day, oldest first.

        The upstream has no real history, so each day gets the current rate.
        Days whose sub-request fails are left out of the series.
        """
        key = f"history_{from_code.value}_{to_code.value}_{days}"

        def _load():
            today = self._now().date()
            rates: list[dict[str, Any]] = []
            for offset in range(days - 1, -1, -1):
                day = (today - timedelta(days=offset)).isoformat()
                try:
                    payload = self.adapter.fetch_latest(from_code.value, timeout=self.settings.history_request_timeout_seconds)
                except UpstreamError as exc:
                    logger.warning("Failed to fetch rate for %s: %s", day, exc.message)
                    continue
                rate = _extract_rate(payload, to_code.value)
                if rate is None:
                    logger.warning("No %s rate in payload for %s", to_code.value, day)
                    continue
                rates.append({"date": day, "rate": rate})
                self._sleep(self.settings.history_request_pause_seconds)
            if not rates:
                raise UpstreamError("No historical rates could be fetched", status_code=502)
            return rates

        return self.cache.get_or_set(key, _load, self.settings.history_ttl_seconds)
