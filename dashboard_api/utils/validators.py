from __future__ import annotations

import re
from typing import Any

from dashboard_api.errors import ValidationError

MAX_PER_PAGE = 250
DEFAULT_PER_PAGE = 50
DEFAULT_PAGE = 1
MAX_HISTORY_DAYS = 30
DEFAULT_HISTORY_DAYS = 7
DEFAULT_CHART_DAYS = "7"
DEFAULT_VS_CURRENCY = "usd"

MARKET_SNAPSHOT_FIELDS = (
    "id",
    "symbol",
    "name",
    "image",
    "current_price",
    "market_cap",
    "market_cap_rank",
    "total_volume",
    "price_change_percentage_24h",
    "ath",
    "atl",
)

_COIN_ID_PATTERN = re.compile(r"^[a-z0-9._-]{1,100}$")
_VS_CURRENCY_PATTERN = re.compile(r"^[a-z]{2,10}$")
_CHART_DAYS_PATTERN = re.compile(r"^(\d{1,5}|max)$")


def to_native_float(value: Any, default: float = 0.0) -> float:
    if value is None or isinstance(value, bool):
        return default
    try:
        casted = float(value)
        if casted != casted:
            return default
        return casted
    except (TypeError, ValueError):
        return default


def to_positive_int(value: Any, default: int) -> int:
    """Parse a lenient integer query value; anything unusable becomes ``default``."""
    if value is None:
        return default
    try:
        parsed = int(str(value).strip())
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def clamp_per_page(value: Any) -> int:
    return min(to_positive_int(value, DEFAULT_PER_PAGE), MAX_PER_PAGE)


def normalize_page(value: Any) -> int:
    return to_positive_int(value, DEFAULT_PAGE)


def clamp_history_days(value: Any) -> int:
    return min(to_positive_int(value, DEFAULT_HISTORY_DAYS), MAX_HISTORY_DAYS)


def normalize_vs_currency(value: str | None) -> str:
    cleaned = (value or DEFAULT_VS_CURRENCY).strip().lower()
    if not _VS_CURRENCY_PATTERN.match(cleaned):
        raise ValidationError(f"Invalid vs_currency: {value}")
    return cleaned


def normalize_coin_id(value: str) -> str:
    cleaned = value.strip().lower()
    if not _COIN_ID_PATTERN.match(cleaned):
        raise ValidationError(f"Invalid coin id: {value}")
    return cleaned


def normalize_chart_days(value: str | None) -> str:
    cleaned = (value or DEFAULT_CHART_DAYS).strip().lower()
    if not _CHART_DAYS_PATTERN.match(cleaned):
        raise ValidationError("days must be a number of days or 'max'")
    return cleaned


def sanitize_market_snapshot(coin: dict[str, Any]) -> dict[str, Any]:
    snapshot = {field: coin.get(field) for field in MARKET_SNAPSHOT_FIELDS}
    snapshot["symbol"] = str(snapshot["symbol"] or "").upper()
    return snapshot


def sanitize_markets(payload: Any) -> list[dict[str, Any]]:
    return [sanitize_market_snapshot(coin) for coin in payload if isinstance(coin, dict)]
