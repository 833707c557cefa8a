"""Portfolio analytics service — engine results over the stored ledger, with caching."""

import asyncio
import io
import logging
from datetime import date, datetime, timezone
from typing import Callable

import pandas as pd

import config
from core.cache import TTLCache
from core.errors import ValidationError
from models.portfolio import (
    AllocationEntry,
    CurrentState,
    EquityCurve,
    PortfolioSummary,
    RiskMetrics,
    TradeStats,
)
from models.trade import Trade, TradeInput
from services.allocation import allocate, build_position_rows
from services.equity_curve import build_curve
from services.ledger_service import LedgerService
from services.positions import build_positions
from services.price_index import PriceIndex
from services.risk_metrics import compute_metrics, price_curve
from utils.downsampling import downsample_config, downsample_decimate, downsample_lttb

logger = logging.getLogger(__name__)

EXPORT_FORMATS = ("csv", "xlsx")
DOWNSAMPLE_METHODS = {"lttb": downsample_lttb, "decimate": downsample_decimate}


def money(x: float) -> float:
    return round(x, 2)


def quantity(x: float) -> float:
    return round(x, 8)


def entry_json(e: AllocationEntry) -> dict:
    return {
        "symbol": e.symbol,
        "holdings": quantity(e.holdings),
        "current_price": money(e.current_price),
        "position_value": money(e.position_value),
        "percent_of_portfolio": money(e.percent_of_portfolio),
        "pnl": {"value": money(e.pnl.value), "percent": money(e.pnl.percent)},
    }


def metrics_json(m: RiskMetrics) -> dict:
    data = m.model_dump(mode="json")
    for key in (
        "volatility_percent",
        "max_drawdown_percent",
        "cagr_percent",
        "ytd_return_percent",
        "total_return",
        "total_return_percent",
    ):
        data[key] = money(data[key])
    data["sharpe_ratio"] = round(m.sharpe_ratio, 4)
    data["benchmark_ytd_returns"] = {k: money(v) for k, v in m.benchmark_ytd_returns.items()}
    return data


def trade_stats(trades: list[Trade]) -> TradeStats:
    if not trades:
        return TradeStats()
    exchanges = sorted({t.exchange for t in trades if t.exchange})
    return TradeStats(
        total_trades=len(trades),
        buy_trades=sum(1 for t in trades if t.side == "BUY"),
        sell_trades=sum(1 for t in trades if t.side == "SELL"),
        first_trade_date=trades[0].trade_date,
        last_trade_date=trades[-1].trade_date,
        exchanges=exchanges,
    )


class PortfolioService:
    def __init__(
        self,
        ledger: LedgerService,
        cache: TTLCache,
        today: Callable[[], date] | None = None,
        benchmarks: list[str] | None = None,
    ):
        self.ledger = ledger
        self.cache = cache
        self._today = today or (lambda: datetime.now(timezone.utc).date())
        self.benchmarks = benchmarks if benchmarks is not None else config.BENCHMARK_SYMBOLS

    # --- ledger writes -------------------------------------------------

    async def add_trades(self, portfolio_id: str, inputs: list[TradeInput]) -> list[Trade]:
        trades = await self.ledger.add_trades(portfolio_id, inputs)
        self.invalidate(portfolio_id)
        return trades

    def invalidate(self, portfolio_id: str) -> int:
        return self.cache.invalidate(f"portfolio:{portfolio_id}:")

    # --- loading -------------------------------------------------------

    async def _load(self, portfolio_id: str, end: date) -> tuple:
        """Fetch portfolio, trades and prices; portfolio and trades concurrently."""
        portfolio, trades = await asyncio.gather(
            self.ledger.require_portfolio(portfolio_id),
            self.ledger.get_trades(portfolio_id),
        )
        symbols = sorted({t.symbol for t in trades})
        index = await self.ledger.get_price_index(
            symbols, end=end, max_staleness_days=config.PRICE_MAX_STALENESS_DAYS
        )
        return portfolio, trades, index

    def _curve(
        self,
        portfolio_id: str,
        trades: list[Trade],
        index: PriceIndex,
        start: date | None,
        end: date | None,
        allow_long_range: bool = False,
    ) -> EquityCurve:
        full_history = start is None and end is None
        key = f"portfolio:{portfolio_id}:snapshot"
        if full_history:
            cached = self.cache.get(key)
            if cached is not None:
                return EquityCurve.model_validate(cached)

        curve = build_curve(
            trades,
            index,
            start_date=start,
            end_date=end,
            today=self._today(),
            max_range_days=config.MAX_RANGE_DAYS,
            allow_long_range=allow_long_range,
        )
        if full_history:
            self.cache.set(key, curve.model_dump(mode="json"), config.SNAPSHOT_CACHE_TTL_SECONDS)
        return curve

    def _metrics(self, curve: EquityCurve, benchmark_index: PriceIndex | None = None) -> RiskMetrics:
        benchmark_curves = None
        if benchmark_index is not None and curve.points:
            days = [p.date for p in curve.points]
            benchmark_curves = {
                sym: price_curve(benchmark_index, sym, days) for sym in self.benchmarks
            }
        return compute_metrics(
            curve.points,
            benchmark_curves=benchmark_curves,
            annualize=config.ANNUALIZE_VOLATILITY,
            risk_free_rate=config.RISK_FREE_RATE,
        )

    # --- queries -------------------------------------------------------

    async def get_allocation(self, portfolio_id: str) -> dict:
        key = f"portfolio:{portfolio_id}:allocation"
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        today = self._today()
        _, trades, index = await self._load(portfolio_id, today)
        book = build_positions(trades, as_of=today)
        alloc = allocate(book.positions, index, today)

        response = {
            "portfolio_id": portfolio_id,
            "total_value": money(alloc.total_value),
            "allocation": [entry_json(e) for e in alloc.entries],
            "last_updated": datetime.now(timezone.utc).isoformat(),
            "warnings": [w.model_dump(mode="json") for w in book.warnings + alloc.warnings],
        }
        self.cache.set(key, response, config.SUMMARY_CACHE_TTL_SECONDS)
        return response

    async def get_positions(self, portfolio_id: str, sort_by: str = "value", order: str = "desc") -> dict:
        key = f"portfolio:{portfolio_id}:positions:{sort_by}:{order}"
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        today = self._today()
        _, trades, index = await self._load(portfolio_id, today)
        book = build_positions(trades, as_of=today)
        alloc = allocate(book.positions, index, today)
        rows, summary = build_position_rows(book.positions, alloc, sort_by=sort_by, order=order)

        positions = []
        for row in rows:
            data = row.model_dump(mode="json")
            data["holdings"] = quantity(row.holdings)
            for field in ("avg_cost", "current_price", "position_value", "cost_value",
                          "percent_of_portfolio", "roi"):
                data[field] = money(data[field])
            data["pnl"] = {"value": money(row.pnl.value), "percent": money(row.pnl.percent)}
            positions.append(data)

        response = {
            "portfolio_id": portfolio_id,
            "total_value": money(alloc.total_value),
            "positions": positions,
            "summary": {
                **summary.model_dump(),
                "total_pnl": money(summary.total_pnl),
                "total_roi": money(summary.total_roi),
            },
            "realized_pnl": money(book.realized_pnl),
            "last_updated": datetime.now(timezone.utc).isoformat(),
            "warnings": [w.model_dump(mode="json") for w in book.warnings + alloc.warnings],
        }
        self.cache.set(key, response, config.SUMMARY_CACHE_TTL_SECONDS)
        return response

    async def get_equity_curve(
        self,
        portfolio_id: str,
        start_date: date | None = None,
        end_date: date | None = None,
        include_stats: bool = False,
        max_points: int | None = None,
        allow_long_range: bool = False,
        auto_downsample: bool = False,
        downsample_method: str = "lttb",
    ) -> dict:
        """Equity curve, optionally with stats. Stats always use the full-resolution
        curve; ``max_points`` (or ``auto_downsample``) only thins the returned chart data,
        by LTTB or by plain decimation."""
        if downsample_method not in DOWNSAMPLE_METHODS:
            raise ValidationError(f"Unsupported downsample method: {downsample_method}")
        end = end_date or self._today()
        _, trades, index = await self._load(portfolio_id, end)
        curve = self._curve(portfolio_id, trades, index, start_date, end_date, allow_long_range)

        stats = None
        if include_stats:
            benchmark_index = await self.ledger.get_price_index(self.benchmarks, end=end)
            stats = metrics_json(self._metrics(curve, benchmark_index))

        points = curve.points
        if max_points is None and auto_downsample:
            max_points = downsample_config(len(points))
        if max_points is not None:
            points = DOWNSAMPLE_METHODS[downsample_method](points, max_points)

        response = {
            "portfolio_id": portfolio_id,
            "data": [
                {"date": p.date.isoformat(), "total_value": money(p.total_value), "timestamp": p.timestamp}
                for p in points
            ],
            "metadata": {
                "first_trade_date": trades[0].trade_date.isoformat() if trades else None,
                "total_trades": len(trades),
                "symbols": sorted({t.symbol for t in trades}),
                "points": len(points),
                "full_resolution_points": len(curve.points),
                "last_updated": datetime.now(timezone.utc).isoformat(),
                "warnings": [w.model_dump(mode="json") for w in curve.warnings],
            },
        }
        if stats is not None:
            response["stats"] = stats
        return response

    async def export_equity_curve(
        self,
        portfolio_id: str,
        start_date: date | None = None,
        end_date: date | None = None,
        fmt: str = "csv",
    ) -> bytes:
        """Render the full-resolution curve as CSV or XLSX."""
        if fmt not in EXPORT_FORMATS:
            raise ValidationError(f"Unsupported export format: {fmt}")
        end = end_date or self._today()
        _, trades, index = await self._load(portfolio_id, end)
        curve = self._curve(portfolio_id, trades, index, start_date, end_date)

        df = pd.DataFrame(
            [{"date": p.date.isoformat(), "total_value": money(p.total_value)} for p in curve.points],
            columns=["date", "total_value"],
        )
        buf = io.BytesIO()
        if fmt == "xlsx":
            df.to_excel(buf, index=False, sheet_name="equity_curve", engine="openpyxl")
        else:
            buf.write(df.to_csv(index=False).encode("utf-8"))
        logger.info("Exported %d curve rows for %s as %s", len(df), portfolio_id, fmt)
        return buf.getvalue()

    async def get_summary(self, portfolio_id: str) -> dict:
        key = f"portfolio:{portfolio_id}:summary"
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        today = self._today()
        (portfolio, trades, index), benchmark_index = await asyncio.gather(
            self._load(portfolio_id, today),
            self.ledger.get_price_index(self.benchmarks, end=today),
        )
        book = build_positions(trades, as_of=today)
        alloc = allocate(book.positions, index, today)
        curve = self._curve(portfolio_id, trades, index, None, None)
        metrics = self._metrics(curve, benchmark_index)

        summary = PortfolioSummary(
            portfolio_id=portfolio_id,
            portfolio_name=portfolio.name,
            current_state=CurrentState(
                total_value=alloc.total_value,
                cost_basis=alloc.cost_basis,
                pnl=alloc.pnl,
                last_updated=datetime.now(timezone.utc).isoformat(),
            ),
            key_metrics=metrics,
            allocation=alloc.entries,
            stats=trade_stats(trades),
            warnings=book.warnings + alloc.warnings + curve.warnings,
        )
        response = summary.model_dump(mode="json")
        response["current_state"].update({
            "total_value": money(alloc.total_value),
            "cost_basis": money(alloc.cost_basis),
            "pnl": {"value": money(alloc.pnl.value), "percent": money(alloc.pnl.percent)},
        })
        response["key_metrics"] = metrics_json(metrics)
        response["allocation"] = [entry_json(e) for e in alloc.entries]
        response["realized_pnl"] = money(book.realized_pnl)

        self.cache.set(key, response, config.SUMMARY_CACHE_TTL_SECONDS)
        return response

    async def refresh_snapshots(self) -> dict:
        """Recompute and cache the full-history curve of every portfolio."""
        portfolios = await self.ledger.list_portfolios()
        refreshed = 0
        failed = 0
        today = self._today()
        for p in portfolios:
            self.invalidate(p.portfolio_id)
            try:
                _, trades, index = await self._load(p.portfolio_id, today)
                self._curve(p.portfolio_id, trades, index, None, None)
                refreshed += 1
            except ValidationError as e:
                failed += 1
                logger.warning("Snapshot refresh skipped for %s: %s", p.portfolio_id, e)
        logger.info("Refreshed %d portfolio snapshots (%d skipped)", refreshed, failed)
        return {"portfolios_processed": len(portfolios), "refreshed": refreshed, "skipped": failed}
