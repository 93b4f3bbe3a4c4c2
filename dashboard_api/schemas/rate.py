from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class RateResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    from_: str = Field(alias="from")
    to: str
    rate: float
    timestamp: str
    source: Literal["cache", "live"] = "live"


class HistoryPoint(BaseModel):
    date: str
    rate: float


class HistoryResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    from_: str = Field(alias="from")
    to: str
    days: int
    rates: list[HistoryPoint]
    source: Literal["cache", "live"] = "live"


class CurrenciesResponse(BaseModel):
    success: bool = True
    currencies: list[str]
