"""Value positions at market prices: allocation percentages, PnL and position rows."""

import logging
from datetime import date

from models.portfolio import (
    Allocation,
    AllocationEntry,
    CalculationWarning,
    PnL,
    Position,
    PositionRow,
    PositionsSummary,
)
from services.price_index import PriceIndex

logger = logging.getLogger(__name__)

SORT_FIELDS = ("value", "symbol", "percent", "pnl")


def pnl_for(value: float, cost: float) -> PnL:
    pnl_value = value - cost
    pnl_pct = (pnl_value / cost * 100) if cost > 0 else 0.0
    return PnL(value=pnl_value, percent=pnl_pct)


def missing_price_warning(symbol: str, on: date) -> CalculationWarning:
    return CalculationWarning(
        kind="missing_price",
        symbol=symbol,
        date=on,
        message=f"No price data for {symbol} on or before {on.isoformat()}; excluded from totals",
    )


def allocate(
    positions: dict[str, Position], price_index: PriceIndex, as_of: date
) -> Allocation:
    """Compute market value, share of portfolio and unrealized PnL per position.

    Entries are sorted by position value, largest first. Symbols without a usable
    price are left out of every total and reported as warnings.
    """
    priced: list[tuple[Position, float, float]] = []
    warnings: list[CalculationWarning] = []
    for symbol in sorted(positions):
        pos = positions[symbol]
        price = price_index.price_at(symbol, as_of)
        if price is None:
            logger.warning("Missing price for %s as of %s", symbol, as_of)
            warnings.append(missing_price_warning(symbol, as_of))
            continue
        priced.append((pos, price, pos.quantity * price))

    total_value = sum(value for _, _, value in priced)
    total_cost = sum(pos.cost_basis for pos, _, _ in priced)

    entries = [
        AllocationEntry(
            symbol=pos.symbol,
            holdings=pos.quantity,
            current_price=price,
            position_value=value,
            percent_of_portfolio=(value / total_value * 100) if total_value > 0 else 0.0,
            pnl=pnl_for(value, pos.cost_basis),
        )
        for pos, price, value in priced
    ]
    entries.sort(key=lambda e: e.position_value, reverse=True)

    return Allocation(
        entries=entries,
        total_value=total_value,
        cost_basis=total_cost,
        pnl=pnl_for(total_value, total_cost),
        warnings=warnings,
    )


def _sort_key(field: str):
    if field == "symbol":
        return lambda r: r.symbol
    if field == "percent":
        return lambda r: r.percent_of_portfolio
    if field == "pnl":
        return lambda r: r.pnl.value
    return lambda r: r.position_value


def build_position_rows(
    positions: dict[str, Position],
    allocation: Allocation,
    sort_by: str = "value",
    order: str = "desc",
) -> tuple[list[PositionRow], PositionsSummary]:
    """Detailed position table. Unknown sort fields fall back to value, unknown order to desc."""
    sort_field = sort_by if sort_by in SORT_FIELDS else "value"
    descending = order.lower() != "asc"

    rows = []
    for entry in allocation.entries:
        pos = positions[entry.symbol]
        rows.append(
            PositionRow(
                symbol=entry.symbol,
                holdings=entry.holdings,
                avg_cost=pos.avg_cost,
                entry_date=pos.first_buy_date,
                current_price=entry.current_price,
                position_value=entry.position_value,
                cost_value=pos.cost_basis,
                pnl=entry.pnl,
                percent_of_portfolio=entry.percent_of_portfolio,
                roi=entry.pnl.percent,
                trades_count=pos.trades_count,
                exchange_sources=pos.exchanges,
            )
        )
    rows.sort(key=_sort_key(sort_field), reverse=descending)

    total_pnl = sum(r.pnl.value for r in rows)
    total_cost = sum(r.cost_value for r in rows)
    summary = PositionsSummary(
        total_positions=len(rows),
        winning_positions=sum(1 for r in rows if r.pnl.value > 0),
        losing_positions=sum(1 for r in rows if r.pnl.value < 0),
        total_pnl=total_pnl,
        total_roi=(total_pnl / total_cost * 100) if total_cost > 0 else 0.0,
    )
    return rows, summary
