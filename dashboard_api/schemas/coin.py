from typing import Literal

from pydantic import BaseModel


class MarketSnapshot(BaseModel):
    id: str | None = None
    symbol: str = ""
    name: str | None = None
    image: str | None = None
    current_price: float | None = None
    market_cap: float | None = None
    market_cap_rank: int | None = None
    total_volume: float | None = None
    price_change_percentage_24h: float | None = None
    ath: float | None = None
    atl: float | None = None


class CoinsResponse(BaseModel):
    data: list[MarketSnapshot]
    source: Literal["cache", "live"] = "live"
