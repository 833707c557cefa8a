"""Fold an ordered trade ledger into per-symbol holdings and weighted-average cost."""

import logging
from collections import defaultdict
from datetime import date
from typing import Iterable

from models.portfolio import CalculationWarning, Position, PositionBook
from models.trade import Trade

logger = logging.getLogger(__name__)

# Holdings at or below this are floating-point dust and treated as closed.
QUANTITY_EPSILON = 1e-9

Holding = tuple[float, float]  # (quantity, avg_cost)
EMPTY_HOLDING: Holding = (0.0, 0.0)


def sort_trades(trades: Iterable[Trade]) -> list[Trade]:
    """Chronological order; ties keep ingestion order (sorted is stable)."""
    return sorted(trades, key=lambda t: t.timestamp)


def apply_trade(holding: Holding, trade: Trade) -> tuple[Holding, float, float]:
    """Apply one trade to a ``(quantity, avg_cost)`` holding.

    Returns ``(new_holding, realized_pnl, oversold_quantity)``. BUY recomputes the
    running weighted average; SELL leaves the average untouched and never drives
    quantity below zero, reporting the excess as ``oversold_quantity``.
    """
    quantity, avg_cost = holding
    if trade.side == "BUY":
        new_qty = quantity + trade.quantity
        if new_qty <= 0:
            return holding, 0.0, 0.0
        new_avg = (quantity * avg_cost + trade.quantity * trade.price) / new_qty
        return (new_qty, new_avg), 0.0, 0.0

    sold = min(trade.quantity, quantity)
    oversold = trade.quantity - sold
    realized = sold * (trade.price - avg_cost)
    remaining = quantity - sold
    if remaining <= QUANTITY_EPSILON:
        remaining = 0.0
    return (remaining, avg_cost), realized, oversold


def oversell_warning(trade: Trade, held: float) -> CalculationWarning:
    return CalculationWarning(
        kind="data_integrity",
        symbol=trade.symbol,
        date=trade.trade_date,
        message=(
            f"SELL of {trade.quantity:g} {trade.symbol} exceeds held quantity "
            f"{held:g}; holdings clamped to zero"
        ),
    )


def build_positions(trades: Iterable[Trade], as_of: date | None = None) -> PositionBook:
    """Build holdings as of ``as_of`` (inclusive; None means the whole ledger)."""
    holdings: dict[str, Holding] = {}
    realized: dict[str, float] = defaultdict(float)
    trades_count: dict[str, int] = defaultdict(int)
    first_buy: dict[str, date] = {}
    exchanges: dict[str, list[str]] = defaultdict(list)
    warnings: list[CalculationWarning] = []

    for trade in sort_trades(trades):
        if as_of is not None and trade.trade_date > as_of:
            break
        held = holdings.get(trade.symbol, EMPTY_HOLDING)
        holdings[trade.symbol], pnl, oversold = apply_trade(held, trade)
        realized[trade.symbol] += pnl
        trades_count[trade.symbol] += 1
        if trade.side == "BUY" and trade.symbol not in first_buy:
            first_buy[trade.symbol] = trade.trade_date
        if trade.exchange and trade.exchange not in exchanges[trade.symbol]:
            exchanges[trade.symbol].append(trade.exchange)
        if oversold > QUANTITY_EPSILON:
            logger.warning(
                "Oversold %s on %s: sell %.8f, held %.8f",
                trade.symbol, trade.trade_date, trade.quantity, held[0],
            )
            warnings.append(oversell_warning(trade, held[0]))

    positions = {}
    for symbol, (quantity, avg_cost) in holdings.items():
        if quantity <= QUANTITY_EPSILON:
            continue
        positions[symbol] = Position(
            symbol=symbol,
            quantity=quantity,
            avg_cost=avg_cost,
            cost_basis=quantity * avg_cost,
            realized_pnl=realized[symbol],
            trades_count=trades_count[symbol],
            first_buy_date=first_buy.get(symbol),
            exchanges=exchanges[symbol],
        )

    return PositionBook(
        positions=positions,
        realized_pnl=sum(realized.values()),
        warnings=warnings,
    )
