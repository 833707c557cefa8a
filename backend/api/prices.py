"""Price history ingestion endpoint."""

from fastapi import APIRouter, Request

from models.trade import PricePoint

router = APIRouter()


@router.post("/prices")
async def add_prices(request: Request, body: list[PricePoint]):
    ledger = request.app.state.ledger_service
    result = await ledger.add_prices(body)
    # New prices change every valuation.
    request.app.state.cache.invalidate("portfolio:")
    request.app.state.cache.invalidate("simulation:")
    return result
