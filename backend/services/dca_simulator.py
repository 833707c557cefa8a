"""DCA (Dollar-Cost Averaging) simulator — periodic buying vs. a lump-sum HODL baseline."""

import logging
from datetime import date, datetime, timedelta, timezone

from core.errors import MissingPriceDataError, ValidationError
from models.portfolio import CalculationWarning, EquityCurvePoint
from models.simulation import (
    DailyComparisonPoint,
    DCARequest,
    DCAResult,
    SimulationPeriod,
    StrategyMetrics,
)
from services.allocation import pnl_for
from services.equity_curve import DEFAULT_MAX_RANGE_DAYS, date_range, epoch_millis
from services.price_index import PriceIndex
from services.risk_metrics import compute_metrics
from utils.symbols import SUPPORTED_ASSETS, is_supported_asset, normalize_symbol

logger = logging.getLogger(__name__)

MAX_AMOUNT = 1_000_000
DEFAULT_COMMISSION_RATE = 0.001  # 0.1% per purchase
DEFAULT_PAIR = ("BTC", "ETH")


def purchase_dates(start: date, end: date, interval: int) -> list[date]:
    """start, start+interval, ... up to and including end."""
    count = (end - start).days // interval + 1
    return [start + timedelta(days=i * interval) for i in range(count)]


def parse_pair(pair: str) -> tuple[float, float]:
    """Parse a weight pair such as '70/30' into (70.0, 30.0)."""
    parts = pair.split("/")
    if len(parts) != 2:
        raise ValidationError("Pair must look like '70/30'")
    try:
        w1, w2 = float(parts[0]), float(parts[1])
    except ValueError:
        raise ValidationError("Pair weights must be numbers")
    if w1 < 0 or w2 < 0:
        raise ValidationError("Pair weights must not be negative")
    if abs(w1 + w2 - 100) > 1e-9:
        raise ValidationError("Pair ratios must sum to 100")
    return w1, w2


def validate_request(
    req: DCARequest,
    today: date,
    max_range_days: int = DEFAULT_MAX_RANGE_DAYS,
) -> list[tuple[str, float]]:
    """Reject bad input before any price lookup. Returns [(asset, weight_fraction)]."""
    if req.amount <= 0:
        raise ValidationError("Amount must be greater than 0")
    if req.amount > MAX_AMOUNT:
        raise ValidationError(f"Amount cannot exceed {MAX_AMOUNT:,}")
    if req.interval < 1:
        raise ValidationError("Interval must be at least 1 day")
    if req.start_date > req.end_date:
        raise ValidationError("Start date must be before or equal to end date")
    if req.end_date > today:
        raise ValidationError("End date cannot be in the future")
    if (req.end_date - req.start_date).days + 1 > max_range_days:
        raise ValidationError(f"Date range exceeds the maximum of {max_range_days} days")

    asset = normalize_symbol(req.asset or "")
    if not is_supported_asset(asset):
        raise ValidationError(f"Invalid asset. Supported assets: {', '.join(SUPPORTED_ASSETS)}")
    if not req.pair:
        return [(asset, 1.0)]

    if req.pair_asset:
        second = normalize_symbol(req.pair_asset)
    elif asset == DEFAULT_PAIR[1]:
        # No explicit partner for ETH: run the default BTC/ETH pair.
        asset, second = DEFAULT_PAIR
    else:
        second = DEFAULT_PAIR[1]
    if not is_supported_asset(second):
        raise ValidationError(f"Invalid pair asset. Supported assets: {', '.join(SUPPORTED_ASSETS)}")
    if second == asset:
        raise ValidationError("Pair assets must differ")
    w1, w2 = parse_pair(req.pair)
    return [(asset, w1 / 100), (second, w2 / 100)]


def strategy_metrics(
    curve: list[EquityCurvePoint], invested: float, annualize: bool = False
) -> StrategyMetrics:
    metrics = compute_metrics(curve, annualize=annualize)
    total_value = curve[-1].total_value if curve else 0.0
    pnl = pnl_for(total_value, invested)
    pnl.value = round(pnl.value, 2)
    pnl.percent = round(pnl.percent, 2)
    return StrategyMetrics(
        total_value=round(total_value, 2),
        total_invested=round(invested, 2),
        pnl=pnl,
        cagr=round(metrics.cagr_percent, 2),
        max_drawdown=round(metrics.max_drawdown_percent, 2),
        volatility=round(metrics.volatility_percent, 2),
    )


def _value(units: dict[str, float], price_index: PriceIndex, day: date) -> float:
    total = 0.0
    for asset, qty in units.items():
        price = price_index.price_at(asset, day)
        if price is not None:
            total += qty * price
    return total


def simulate(
    req: DCARequest,
    price_index: PriceIndex,
    today: date | None = None,
    commission_rate: float = DEFAULT_COMMISSION_RATE,
    annualize: bool = False,
    max_range_days: int = DEFAULT_MAX_RANGE_DAYS,
) -> DCAResult:
    """Simulate buying ``amount`` every ``interval`` days against one lump purchase.

    The HODL baseline invests the total the DCA schedule would eventually put in,
    all on the start date. Both holdings are revalued daily through the end date.
    """
    today = today or datetime.now(timezone.utc).date()
    allocations = validate_request(req, today, max_range_days)
    start, end = req.start_date, req.end_date

    start_prices = {}
    for asset, _ in allocations:
        if not price_index.has_history(asset):
            raise MissingPriceDataError(asset, f"No historical price data for {asset}")
        price = price_index.price_at(asset, start)
        if not price:
            raise MissingPriceDataError(
                asset, f"No price data available at start date for {asset}"
            )
        start_prices[asset] = price

    schedule = purchase_dates(start, end, req.interval)
    schedule_set = set(schedule)
    hodl_total = req.amount * len(schedule)
    net = 1 - commission_rate

    hodl_units = {
        asset: hodl_total * weight * net / start_prices[asset] for asset, weight in allocations
    }
    dca_units = {asset: 0.0 for asset, _ in allocations}
    invested = 0.0
    warnings: list[CalculationWarning] = []

    dca_curve: list[EquityCurvePoint] = []
    hodl_curve: list[EquityCurvePoint] = []
    daily: list[DailyComparisonPoint] = []

    for day in date_range(start, end):
        if day in schedule_set:
            prices = {asset: price_index.price_at(asset, day) for asset, _ in allocations}
            stale = [asset for asset, price in prices.items() if not price]
            if stale:
                logger.warning("Skipping DCA purchase on %s: no price for %s", day, stale)
                for asset in stale:
                    warnings.append(
                        CalculationWarning(
                            kind="missing_price",
                            symbol=asset,
                            date=day,
                            message=f"No price for {asset} on {day.isoformat()}; purchase skipped",
                        )
                    )
            else:
                for asset, weight in allocations:
                    dca_units[asset] += req.amount * weight * net / prices[asset]
                invested += req.amount

        ts = epoch_millis(day)
        dca_value = _value(dca_units, price_index, day)
        hodl_value = _value(hodl_units, price_index, day)
        dca_curve.append(EquityCurvePoint(date=day, total_value=dca_value, timestamp=ts))
        hodl_curve.append(EquityCurvePoint(date=day, total_value=hodl_value, timestamp=ts))
        daily.append(
            DailyComparisonPoint(
                date=day,
                dca_value=round(dca_value, 2),
                hodl_value=round(hodl_value, 2),
                invested=round(invested, 2),
            )
        )

    if len(allocations) == 1:
        label = allocations[0][0]
    else:
        (a1, w1), (a2, w2) = allocations
        label = f"{a1}/{a2} {w1 * 100:g}/{w2 * 100:g}"

    logger.info(
        "DCA simulation %s %s..%s every %dd: %d purchases, invested %.2f",
        label, start, end, req.interval, len(schedule), invested,
    )

    return DCAResult(
        asset=label,
        period=SimulationPeriod(start_date=start, end_date=end),
        amount=req.amount,
        interval=req.interval,
        purchase_count=len(schedule),
        total_invested=round(invested, 2),
        dca=strategy_metrics(dca_curve, invested, annualize),
        hodl=strategy_metrics(hodl_curve, hodl_total, annualize),
        daily_data=daily,
        warnings=warnings,
    )
