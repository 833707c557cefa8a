"""Pydantic models for the trade ledger and price history."""

import datetime as dt
from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from utils.symbols import normalize_symbol


class Trade(BaseModel):
    trade_id: str = ""
    portfolio_id: str = ""
    timestamp: datetime
    symbol: str
    side: Literal["BUY", "SELL"]
    quantity: float = Field(ge=0)
    price: float = Field(ge=0)
    fee: float = Field(default=0.0, ge=0)
    exchange: str = ""

    model_config = {"frozen": True}

    @field_validator("symbol", mode="before")
    @classmethod
    def _normalize_symbol(cls, v: str) -> str:
        return normalize_symbol(v)

    @field_validator("side", mode="before")
    @classmethod
    def _upper_side(cls, v: str) -> str:
        return v.upper() if isinstance(v, str) else v

    @field_validator("timestamp")
    @classmethod
    def _as_utc(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)

    @property
    def trade_date(self) -> dt.date:
        return self.timestamp.date()


class TradeInput(BaseModel):
    """Trade as submitted to the API, before ids are assigned."""

    timestamp: datetime
    symbol: str
    side: str  # BUY or SELL
    quantity: float = Field(ge=0)
    price: float = Field(ge=0)
    fee: float = Field(default=0.0, ge=0)
    exchange: str = ""


class PricePoint(BaseModel):
    symbol: str
    date: dt.date
    close: float = Field(ge=0)
    open: float | None = None
    high: float | None = None
    low: float | None = None
    volume: float | None = None
    timestamp: datetime | None = None  # intraday observation time, if any

    @field_validator("symbol", mode="before")
    @classmethod
    def _normalize_symbol(cls, v: str) -> str:
        return normalize_symbol(v)


class CreatePortfolioRequest(BaseModel):
    name: str
    user_id: str | None = None


class Portfolio(BaseModel):
    portfolio_id: str
    name: str
    user_id: str | None = None
    created_at_utc: datetime
