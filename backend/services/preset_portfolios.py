"""Canned allocation presets, simulated from a fixed starting capital."""

import logging
from datetime import date, datetime, timezone

from core.errors import MissingPriceDataError, PresetNotFoundError, ValidationError
from models.portfolio import EquityCurvePoint
from models.simulation import (
    DailyComparisonPoint,
    DCAResult,
    PresetAsset,
    PresetDefinition,
    SimulationPeriod,
)
from services.dca_simulator import strategy_metrics
from services.equity_curve import DEFAULT_MAX_RANGE_DAYS, check_range, date_range, epoch_millis
from services.price_index import PriceIndex

logger = logging.getLogger(__name__)

INITIAL_CAPITAL = 10_000.0

PRESETS: dict[str, PresetDefinition] = {
    "BTC_100": PresetDefinition(
        preset_id="BTC_100",
        name="BTC 100%",
        description="100% Bitcoin allocation",
        assets=[PresetAsset(symbol="BTC", percent=100)],
        rebalance=False,
    ),
    "BTC_70_ETH_30": PresetDefinition(
        preset_id="BTC_70_ETH_30",
        name="BTC/ETH 70/30",
        description="70% Bitcoin, 30% Ethereum with daily rebalancing",
        assets=[
            PresetAsset(symbol="BTC", percent=70),
            PresetAsset(symbol="ETH", percent=30),
        ],
        rebalance=True,
    ),
}


def get_preset(preset_id: str) -> PresetDefinition:
    preset = PRESETS.get(preset_id.upper())
    if preset is None:
        raise PresetNotFoundError(preset_id)
    return preset


def _run(
    preset: PresetDefinition,
    price_index: PriceIndex,
    start: date,
    end: date,
    initial_capital: float,
    rebalance: bool,
) -> list[EquityCurvePoint]:
    holdings = {}
    for asset in preset.assets:
        price = price_index.price_at(asset.symbol, start)
        if not price:
            raise MissingPriceDataError(
                asset.symbol, f"No price data available at start date for {asset.symbol}"
            )
        holdings[asset.symbol] = initial_capital * asset.percent / 100 / price

    curve = []
    for day in date_range(start, end):
        prices = {a.symbol: price_index.price_at(a.symbol, day) for a in preset.assets}
        total = sum(qty * (prices[sym] or 0.0) for sym, qty in holdings.items())
        if rebalance and total > 0:
            for asset in preset.assets:
                price = prices[asset.symbol]
                if price:
                    holdings[asset.symbol] = total * asset.percent / 100 / price
        curve.append(EquityCurvePoint(date=day, total_value=total, timestamp=epoch_millis(day)))
    return curve


def simulate_preset(
    preset_id: str,
    price_index: PriceIndex,
    start: date,
    end: date,
    today: date | None = None,
    initial_capital: float = INITIAL_CAPITAL,
    annualize: bool = False,
    max_range_days: int = DEFAULT_MAX_RANGE_DAYS,
) -> DCAResult:
    """Simulate a preset from ``initial_capital`` invested on ``start``.

    The preset as defined (with its rebalancing rule) is reported as ``dca``; the
    same weights bought once and never rebalanced are reported as ``hodl``.
    """
    preset = get_preset(preset_id)
    today = today or datetime.now(timezone.utc).date()
    check_range(start, end, max_range_days)
    if end > today:
        raise ValidationError("End date cannot be in the future")

    strategy = _run(preset, price_index, start, end, initial_capital, preset.rebalance)
    baseline = _run(preset, price_index, start, end, initial_capital, False)

    daily = [
        DailyComparisonPoint(
            date=s.date,
            dca_value=round(s.total_value, 2),
            hodl_value=round(b.total_value, 2),
            invested=initial_capital,
        )
        for s, b in zip(strategy, baseline)
    ]
    logger.info("Preset %s simulated %s..%s", preset.preset_id, start, end)

    return DCAResult(
        asset=preset.name,
        period=SimulationPeriod(start_date=start, end_date=end),
        amount=initial_capital,
        interval=0,
        purchase_count=1,
        total_invested=initial_capital,
        dca=strategy_metrics(strategy, initial_capital, annualize),
        hodl=strategy_metrics(baseline, initial_capital, annualize),
        daily_data=daily,
    )
