"""Pydantic models for derived portfolio analytics."""

import datetime as dt
from typing import Literal

from pydantic import BaseModel, Field


class CalculationWarning(BaseModel):
    kind: Literal["data_integrity", "missing_price", "range_clamped"]
    symbol: str
    date: dt.date | None = None
    message: str


class PnL(BaseModel):
    value: float = 0.0
    percent: float = 0.0


class Position(BaseModel):
    symbol: str
    quantity: float
    avg_cost: float
    cost_basis: float
    realized_pnl: float = 0.0
    trades_count: int = 0
    first_buy_date: dt.date | None = None
    exchanges: list[str] = Field(default_factory=list)


class PositionBook(BaseModel):
    positions: dict[str, Position] = Field(default_factory=dict)
    realized_pnl: float = 0.0
    warnings: list[CalculationWarning] = Field(default_factory=list)


class AllocationEntry(BaseModel):
    symbol: str
    holdings: float
    current_price: float
    position_value: float
    percent_of_portfolio: float
    pnl: PnL


class Allocation(BaseModel):
    entries: list[AllocationEntry] = Field(default_factory=list)
    total_value: float = 0.0
    cost_basis: float = 0.0
    pnl: PnL = Field(default_factory=PnL)
    warnings: list[CalculationWarning] = Field(default_factory=list)


class PositionRow(BaseModel):
    symbol: str
    holdings: float
    avg_cost: float
    entry_date: dt.date | None = None
    current_price: float
    position_value: float
    cost_value: float
    pnl: PnL
    percent_of_portfolio: float
    roi: float
    trades_count: int
    exchange_sources: list[str] = Field(default_factory=list)


class PositionsSummary(BaseModel):
    total_positions: int = 0
    winning_positions: int = 0
    losing_positions: int = 0
    total_pnl: float = 0.0
    total_roi: float = 0.0


class EquityCurvePoint(BaseModel):
    date: dt.date
    total_value: float
    timestamp: int  # epoch milliseconds, numeric x-axis for charting


class EquityCurve(BaseModel):
    points: list[EquityCurvePoint] = Field(default_factory=list)
    warnings: list[CalculationWarning] = Field(default_factory=list)


class RiskMetrics(BaseModel):
    volatility_percent: float = 0.0
    max_drawdown_percent: float = 0.0
    max_drawdown_from_date: dt.date | None = None
    max_drawdown_to_date: dt.date | None = None
    cagr_percent: float = 0.0
    sharpe_ratio: float = 0.0
    ytd_return_percent: float = 0.0
    benchmark_ytd_returns: dict[str, float] = Field(default_factory=dict)
    total_return: float = 0.0
    total_return_percent: float = 0.0


class CurrentState(BaseModel):
    total_value: float = 0.0
    cost_basis: float = 0.0
    pnl: PnL = Field(default_factory=PnL)
    last_updated: str = ""


class TradeStats(BaseModel):
    total_trades: int = 0
    buy_trades: int = 0
    sell_trades: int = 0
    first_trade_date: dt.date | None = None
    last_trade_date: dt.date | None = None
    exchanges: list[str] = Field(default_factory=list)


class PortfolioSummary(BaseModel):
    portfolio_id: str
    portfolio_name: str = ""
    current_state: CurrentState
    key_metrics: RiskMetrics
    allocation: list[AllocationEntry] = Field(default_factory=list)
    stats: TradeStats = Field(default_factory=TradeStats)
    warnings: list[CalculationWarning] = Field(default_factory=list)
