"""Daily portfolio value series replayed from the trade ledger."""

import logging
from datetime import date, datetime, timedelta, timezone
from typing import Iterable

from core.errors import ValidationError
from models.portfolio import CalculationWarning, EquityCurve, EquityCurvePoint
from models.trade import Trade
from services.positions import (
    EMPTY_HOLDING,
    QUANTITY_EPSILON,
    Holding,
    apply_trade,
    oversell_warning,
    sort_trades,
)
from services.price_index import PriceIndex

logger = logging.getLogger(__name__)

DEFAULT_MAX_RANGE_DAYS = 3650


def date_range(start: date, end: date) -> list[date]:
    """Every calendar day in [start, end]."""
    return [start + timedelta(days=i) for i in range((end - start).days + 1)]


def epoch_millis(day: date) -> int:
    return int(datetime(day.year, day.month, day.day, tzinfo=timezone.utc).timestamp() * 1000)


def check_range(
    start: date,
    end: date,
    max_range_days: int = DEFAULT_MAX_RANGE_DAYS,
    allow_long_range: bool = False,
) -> None:
    if start > end:
        raise ValidationError("Start date must be before or equal to end date")
    if not allow_long_range and (end - start).days + 1 > max_range_days:
        raise ValidationError(f"Date range exceeds the maximum of {max_range_days} days")


def resolve_range(
    trades: list[Trade],
    start_date: date | None,
    end_date: date | None,
    today: date | None = None,
) -> tuple[date, date]:
    """Fill in default bounds: earliest trade for start (never after end), today for end."""
    today = today or datetime.now(timezone.utc).date()
    end = end_date or today
    if start_date is not None:
        start = start_date
    elif trades:
        start = min(min(t.trade_date for t in trades), end)
    else:
        start = end
    return start, end


def future_trade_warning(trade: Trade, end: date) -> CalculationWarning:
    return CalculationWarning(
        kind="data_integrity",
        symbol=trade.symbol,
        date=trade.trade_date,
        message=(
            f"{trade.side} of {trade.quantity:g} {trade.symbol} is dated after "
            f"{end.isoformat()}; not included"
        ),
    )


def build_curve(
    trades: Iterable[Trade],
    price_index: PriceIndex,
    start_date: date | None = None,
    end_date: date | None = None,
    today: date | None = None,
    max_range_days: int = DEFAULT_MAX_RANGE_DAYS,
    allow_long_range: bool = False,
) -> EquityCurve:
    """One point per calendar day in [start, end], valued at last known prices.

    Holdings for day d include every trade dated on or before d, so trades before
    ``start_date`` are already reflected in the first point. Symbols without a
    usable price on a day are excluded from that day's total and reported once.

    Only explicit ranges are rejected for length. A defaulted start is moved up to
    the last ``max_range_days`` days instead, with a ``range_clamped`` warning.
    """
    ordered = sort_trades(trades)
    start, end = resolve_range(ordered, start_date, end_date, today)
    warnings: list[CalculationWarning] = []

    if start_date is None and not allow_long_range and (end - start).days + 1 > max_range_days:
        clamped = end - timedelta(days=max_range_days - 1)
        logger.warning("Equity curve history from %s clamped to %s", start, clamped)
        warnings.append(
            CalculationWarning(
                kind="range_clamped",
                symbol="",
                date=clamped,
                message=(
                    f"History starts {start.isoformat()}; curve limited to the last "
                    f"{max_range_days} days from {clamped.isoformat()}"
                ),
            )
        )
        start = clamped
    check_range(start, end, max_range_days, allow_long_range)

    if end_date is None:
        for trade in ordered:
            if trade.trade_date > end:
                logger.warning("Trade %s dated after %s ignored", trade.trade_id, end)
                warnings.append(future_trade_warning(trade, end))

    holdings: dict[str, Holding] = {}
    missing: dict[str, list[date]] = {}
    points: list[EquityCurvePoint] = []
    idx = 0

    for day in date_range(start, end):
        while idx < len(ordered) and ordered[idx].trade_date <= day:
            trade = ordered[idx]
            held = holdings.get(trade.symbol, EMPTY_HOLDING)
            holdings[trade.symbol], _, oversold = apply_trade(held, trade)
            if oversold > QUANTITY_EPSILON:
                warnings.append(oversell_warning(trade, held[0]))
            idx += 1

        total = 0.0
        for symbol, (quantity, _) in holdings.items():
            if quantity <= QUANTITY_EPSILON:
                continue
            price = price_index.price_at(symbol, day)
            if price is None:
                missing.setdefault(symbol, []).append(day)
                continue
            total += quantity * price

        points.append(EquityCurvePoint(date=day, total_value=total, timestamp=epoch_millis(day)))

    for symbol, days in missing.items():
        logger.warning("No price data for %s on %d day(s) from %s", symbol, len(days), days[0])
        warnings.append(
            CalculationWarning(
                kind="missing_price",
                symbol=symbol,
                date=days[0],
                message=(
                    f"No price data for {symbol} on {len(days)} day(s) starting "
                    f"{days[0].isoformat()}; excluded from those totals"
                ),
            )
        )

    return EquityCurve(points=points, warnings=warnings)
