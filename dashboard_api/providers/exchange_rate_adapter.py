from __future__ import annotations

from typing import Any
from urllib.parse import quote

from dashboard_api.config.settings import Settings
from dashboard_api.providers.base import JsonHttpClient, RateAdapter


class ExchangeRateAdapter(JsonHttpClient, RateAdapter):
    """Latest-rate lookups against exchangerate-api (``/v4/latest/{BASE}``)."""

    provider_name = "ExchangeRate-API"

    @classmethod
    def from_settings(cls, settings: Settings) -> "ExchangeRateAdapter":
        return cls(settings.currency_api_url, settings.request_timeout_seconds)

    def fetch_latest(self, base: str, timeout: float | None = None) -> dict[str, Any]:
        return self.fetch_upstream(f"/{quote(base, safe='')}", timeout=timeout)
