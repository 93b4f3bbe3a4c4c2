from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from http.client import HTTPException
from typing import Any
from urllib.error import HTTPError, URLError
from urllib.parse import urlencode
from urllib.request import Request, urlopen

from dashboard_api.errors import UpstreamError, UpstreamTimeoutError

logger = logging.getLogger(__name__)

ERROR_BODY_PREFIX = 100


class JsonHttpClient:
    """Single-attempt JSON GET against one upstream base URL.

    Non-success statuses become ``UpstreamError`` carrying the status and a
    bounded prefix of the body; deadline overruns become
    ``UpstreamTimeoutError``.
    """

    provider_name = "Upstream"
    user_agent = "crypto-dashboard-api/1.0"

    def __init__(self, base_url: str, timeout_seconds: float, api_key: str | None = None, api_key_header: str | None = None):
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.api_key = api_key
        self.api_key_header = api_key_header

    def _headers(self) -> dict[str, str]:
        headers = {"User-Agent": self.user_agent, "Accept": "application/json"}
        if self.api_key and self.api_key_header:
            headers[self.api_key_header] = self.api_key
        return headers

    def fetch_upstream(self, path: str, params: dict[str, Any] | None = None, timeout: float | None = None) -> Any:
        url = f"{self.base_url}{path}"
        if params:
            url = f"{url}?{urlencode(params)}"
        request = Request(url, headers=self._headers())
        try:
            with urlopen(request, timeout=timeout or self.timeout_seconds) as response:
                return json.loads(response.read().decode("utf-8"))
        except HTTPError as exc:
            body = exc.read().decode("utf-8", errors="replace")[:ERROR_BODY_PREFIX]
            logger.warning("%s call failed: %s %s", self.provider_name, exc.code, path)
            raise UpstreamError(f"{self.provider_name} API Error {exc.code}: {body}", status_code=exc.code) from exc
        except TimeoutError as exc:
            logger.warning("%s call timed out: %s", self.provider_name, path)
            raise UpstreamTimeoutError(f"{self.provider_name} did not respond in time") from exc
        except URLError as exc:
            if isinstance(exc.reason, TimeoutError):
                logger.warning("%s call timed out: %s", self.provider_name, path)
                raise UpstreamTimeoutError(f"{self.provider_name} did not respond in time") from exc
            logger.warning("%s unreachable: %s", self.provider_name, exc.reason)
            raise UpstreamError(f"{self.provider_name} unreachable: {exc.reason}") from exc
        except (OSError, HTTPException) as exc:
            logger.warning("%s connection failed: %s", self.provider_name, exc)
            raise UpstreamError(f"{self.provider_name} connection failed: {exc.__class__.__name__}") from exc
        except ValueError as exc:
            raise UpstreamError(f"{self.provider_name} returned invalid JSON", status_code=502) from exc


class MarketDataAdapter(ABC):
    @abstractmethod
    def fetch_markets(self, vs_currency: str, per_page: int, page: int) -> list[dict[str, Any]]:
        raise NotImplementedError

    @abstractmethod
    def fetch_coins_list(self) -> list[dict[str, Any]]:
        raise NotImplementedError

    @abstractmethod
    def fetch_market_chart(self, coin_id: str, vs_currency: str, days: str) -> dict[str, Any]:
        raise NotImplementedError


class RateAdapter(ABC):
    @abstractmethod
    def fetch_latest(self, base: str, timeout: float | None = None) -> dict[str, Any]:
        raise NotImplementedError
