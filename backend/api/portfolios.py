"""Portfolio, trade ledger and analytics API endpoints."""

from datetime import date
from typing import Literal

from fastapi import APIRouter, HTTPException, Query, Request
from fastapi.responses import Response

from api.errors import http_error
from core.errors import AnalyticsError
from models.trade import CreatePortfolioRequest, TradeInput

router = APIRouter()

EXPORT_MEDIA_TYPES = {
    "csv": "text/csv",
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
}


@router.post("/portfolios")
async def create_portfolio(request: Request, body: CreatePortfolioRequest):
    ledger = request.app.state.ledger_service
    portfolio = await ledger.create_portfolio(body)
    return portfolio.model_dump(mode="json")


@router.get("/portfolios")
async def list_portfolios(request: Request):
    ledger = request.app.state.ledger_service
    portfolios = await ledger.list_portfolios()
    return [p.model_dump(mode="json") for p in portfolios]


@router.get("/portfolios/{portfolio_id}")
async def get_portfolio(request: Request, portfolio_id: str):
    ledger = request.app.state.ledger_service
    portfolio = await ledger.get_portfolio(portfolio_id)
    if not portfolio:
        raise HTTPException(404, "Portfolio not found")
    return portfolio.model_dump(mode="json")


@router.post("/portfolios/{portfolio_id}/trades")
async def add_trades(request: Request, portfolio_id: str, body: list[TradeInput]):
    svc = request.app.state.portfolio_service
    try:
        trades = await svc.add_trades(portfolio_id, body)
    except AnalyticsError as e:
        raise http_error(e)
    return {"stored": len(trades), "trades": [t.model_dump(mode="json") for t in trades]}


@router.get("/portfolios/{portfolio_id}/allocation")
async def get_allocation(request: Request, portfolio_id: str):
    svc = request.app.state.portfolio_service
    try:
        return await svc.get_allocation(portfolio_id)
    except AnalyticsError as e:
        raise http_error(e)


@router.get("/portfolios/{portfolio_id}/positions")
async def get_positions(
    request: Request,
    portfolio_id: str,
    sort_by: str = Query("value", description="value, symbol, percent or pnl"),
    order: str = Query("desc", description="asc or desc"),
):
    svc = request.app.state.portfolio_service
    try:
        return await svc.get_positions(portfolio_id, sort_by=sort_by, order=order)
    except AnalyticsError as e:
        raise http_error(e)


@router.get("/portfolios/{portfolio_id}/equity-curve")
async def get_equity_curve(
    request: Request,
    portfolio_id: str,
    start_date: date | None = None,
    end_date: date | None = None,
    include_stats: bool = False,
    max_points: int | None = Query(None, description="Downsample chart data to at most this many points"),
    allow_long_range: bool = False,
    auto_downsample: bool = False,
    downsample_method: Literal["lttb", "decimate"] = "lttb",
):
    svc = request.app.state.portfolio_service
    try:
        return await svc.get_equity_curve(
            portfolio_id,
            start_date=start_date,
            end_date=end_date,
            include_stats=include_stats,
            max_points=max_points,
            allow_long_range=allow_long_range,
            auto_downsample=auto_downsample,
            downsample_method=downsample_method,
        )
    except AnalyticsError as e:
        raise http_error(e)


@router.get("/portfolios/{portfolio_id}/equity-curve/export")
async def export_equity_curve(
    request: Request,
    portfolio_id: str,
    format: Literal["csv", "xlsx"] = "csv",
    start_date: date | None = None,
    end_date: date | None = None,
):
    svc = request.app.state.portfolio_service
    try:
        content = await svc.export_equity_curve(
            portfolio_id, start_date=start_date, end_date=end_date, fmt=format
        )
    except AnalyticsError as e:
        raise http_error(e)
    filename = f"equity_curve_{portfolio_id}.{format}"
    return Response(
        content,
        media_type=EXPORT_MEDIA_TYPES[format],
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


@router.get("/portfolios/{portfolio_id}/summary")
async def get_summary(request: Request, portfolio_id: str):
    svc = request.app.state.portfolio_service
    try:
        return await svc.get_summary(portfolio_id)
    except AnalyticsError as e:
        raise http_error(e)
