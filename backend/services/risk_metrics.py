"""Risk and performance statistics over an equity curve.

All functions are pure and deterministic: the same curve always yields the same
numbers. Every division has a guarded branch returning 0 so NaN or infinity never
reaches a caller.
"""

import logging
import math
from datetime import date
from typing import Sequence

import numpy as np

from models.portfolio import EquityCurvePoint, RiskMetrics
from services.equity_curve import epoch_millis
from services.price_index import PriceIndex

logger = logging.getLogger(__name__)

DAYS_PER_YEAR = 365
# Below this a return series is treated as constant.
MIN_STDEV = 1e-12
# exp() overflows a float past ~709.
MAX_EXPONENT = 700.0


def daily_returns(values: Sequence[float]) -> list[float]:
    """Simple period returns, skipping any step whose previous value is 0."""
    returns = []
    for prev, curr in zip(values, values[1:]):
        if prev == 0:
            continue
        returns.append((curr - prev) / prev)
    return returns


def volatility(returns: Sequence[float], annualize: bool = False) -> float:
    """Population stdev of returns as a percent; x sqrt(365) when annualized."""
    if len(returns) < 2:
        return 0.0
    std = float(np.std(np.asarray(returns, dtype=float)))
    if annualize:
        std *= math.sqrt(DAYS_PER_YEAR)
    return std * 100


def sharpe_ratio(returns: Sequence[float], risk_free_rate: float = 0.0) -> float:
    """Mean excess period return over its stdev. ``risk_free_rate`` is annual."""
    if len(returns) < 2:
        return 0.0
    arr = np.asarray(returns, dtype=float)
    std = float(np.std(arr))
    if std < MIN_STDEV:
        return 0.0
    excess = float(np.mean(arr)) - risk_free_rate / DAYS_PER_YEAR
    return excess / std


def max_drawdown(
    values: Sequence[float], dates: Sequence[date]
) -> tuple[float, date | None, date | None]:
    """Deepest peak-to-trough decline as a negative percent, with peak and trough dates.

    Returns ``(0.0, None, None)`` when the curve never falls below a prior peak.
    """
    if not values:
        return 0.0, None, None

    peak_value = values[0]
    peak_idx = 0
    worst = 0.0
    worst_peak_idx = worst_trough_idx = None

    for i, value in enumerate(values):
        if value > peak_value:
            peak_value = value
            peak_idx = i
            continue
        if peak_value <= 0:
            continue
        drawdown = (value - peak_value) / peak_value
        if drawdown < worst:
            worst = drawdown
            worst_peak_idx, worst_trough_idx = peak_idx, i

    if worst_trough_idx is None:
        return 0.0, None, None
    return worst * 100, dates[worst_peak_idx], dates[worst_trough_idx]


def cagr(start_value: float, end_value: float, days_elapsed: int) -> float:
    """Compound annual growth rate as a percent."""
    if start_value <= 0 or days_elapsed <= 0 or end_value < 0:
        return 0.0
    if end_value == 0:
        return -100.0
    exponent = (DAYS_PER_YEAR / days_elapsed) * math.log(end_value / start_value)
    if exponent > MAX_EXPONENT:
        logger.debug("CAGR exponent %.1f out of range; reporting 0", exponent)
        return 0.0
    return (math.exp(exponent) - 1) * 100


def ytd_return(points: Sequence[EquityCurvePoint], year: int | None = None) -> float:
    """Percent change from the first point on/after Jan 1 of ``year`` to the last point.

    ``year`` defaults to the year of the last point.
    """
    if not points:
        return 0.0
    year = year or points[-1].date.year
    jan_first = date(year, 1, 1)
    base = next((p for p in points if p.date >= jan_first), None)
    if base is None or base.total_value <= 0:
        return 0.0
    return (points[-1].total_value - base.total_value) / base.total_value * 100


def compute_metrics(
    curve: Sequence[EquityCurvePoint],
    benchmark_curves: dict[str, Sequence[EquityCurvePoint]] | None = None,
    annualize: bool = False,
    risk_free_rate: float = 0.0,
) -> RiskMetrics:
    """Derive the full RiskMetrics set from a full-resolution equity curve."""
    if not curve:
        return RiskMetrics(
            benchmark_ytd_returns={name: 0.0 for name in (benchmark_curves or {})}
        )

    values = [p.total_value for p in curve]
    dates = [p.date for p in curve]
    returns = daily_returns(values)
    dd_pct, dd_from, dd_to = max_drawdown(values, dates)

    start_value, end_value = values[0], values[-1]
    total_return = end_value - start_value
    total_return_pct = (total_return / start_value * 100) if start_value > 0 else 0.0

    year = dates[-1].year
    benchmarks = {
        name: ytd_return(bench, year=year) for name, bench in (benchmark_curves or {}).items()
    }

    return RiskMetrics(
        volatility_percent=volatility(returns, annualize=annualize),
        max_drawdown_percent=dd_pct,
        max_drawdown_from_date=dd_from,
        max_drawdown_to_date=dd_to,
        cagr_percent=cagr(start_value, end_value, (dates[-1] - dates[0]).days),
        sharpe_ratio=sharpe_ratio(returns, risk_free_rate=risk_free_rate),
        ytd_return_percent=ytd_return(curve, year=year),
        benchmark_ytd_returns=benchmarks,
        total_return=total_return,
        total_return_percent=total_return_pct,
    )


def price_curve(index: PriceIndex, symbol: str, days: Sequence[date]) -> list[EquityCurvePoint]:
    """Forward-filled closes of ``symbol`` over ``days``, shaped as a benchmark curve.

    Days before the first known close are left out.
    """
    points = []
    for day in days:
        price = index.price_at(symbol, day)
        if price is not None:
            points.append(EquityCurvePoint(date=day, total_value=price, timestamp=epoch_millis(day)))
    return points
