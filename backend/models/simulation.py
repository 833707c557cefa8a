"""Pydantic models for DCA and preset portfolio simulations."""

import datetime as dt

from pydantic import BaseModel, ConfigDict, Field

from models.portfolio import CalculationWarning, PnL


class DCARequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    start_date: dt.date = Field(alias="startDate")
    end_date: dt.date = Field(alias="endDate")
    amount: float
    interval: int
    asset: str
    pair: str | None = None  # "70/30": weights for asset / pair_asset
    pair_asset: str | None = Field(default=None, alias="pairAsset")  # ETH unless asset is ETH


class StrategyMetrics(BaseModel):
    total_value: float = 0.0
    total_invested: float = 0.0
    pnl: PnL = Field(default_factory=PnL)
    cagr: float = 0.0
    max_drawdown: float = 0.0
    volatility: float = 0.0


class DailyComparisonPoint(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    date: dt.date
    dca_value: float = Field(alias="dcaValue")
    hodl_value: float = Field(alias="hodlValue")
    invested: float = 0.0


class SimulationPeriod(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    start_date: dt.date = Field(alias="startDate")
    end_date: dt.date = Field(alias="endDate")


class DCAResult(BaseModel):
    asset: str
    period: SimulationPeriod
    amount: float
    interval: int
    purchase_count: int
    total_invested: float
    dca: StrategyMetrics
    hodl: StrategyMetrics
    daily_data: list[DailyComparisonPoint] = Field(default_factory=list)
    warnings: list[CalculationWarning] = Field(default_factory=list)


class PresetAsset(BaseModel):
    symbol: str
    percent: float


class PresetDefinition(BaseModel):
    preset_id: str
    name: str
    description: str
    assets: list[PresetAsset]
    rebalance: bool = False
