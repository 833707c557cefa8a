"""DCA and preset portfolio simulation API endpoints."""

from datetime import date

from fastapi import APIRouter, Query, Request

from api.errors import http_error
from core.errors import AnalyticsError
from models.simulation import DCARequest

router = APIRouter()


@router.post("/simulations/dca")
async def simulate_dca(request: Request, body: DCARequest):
    svc = request.app.state.simulation_service
    try:
        return await svc.simulate_dca(body)
    except AnalyticsError as e:
        raise http_error(e)


@router.get("/simulations/presets")
async def list_presets(
    request: Request,
    start_date: date | None = Query(None, alias="startDate"),
    end_date: date | None = Query(None, alias="endDate"),
):
    """Preset definitions, or every preset simulated when both dates are given."""
    svc = request.app.state.simulation_service
    if start_date is None or end_date is None:
        return {"presets": svc.list_presets()}
    try:
        results = await svc.get_all_presets(start_date, end_date)
    except AnalyticsError as e:
        raise http_error(e)
    return {"startDate": start_date.isoformat(), "endDate": end_date.isoformat(), "presets": results}


@router.get("/simulations/presets/{preset_id}")
async def get_preset(
    request: Request,
    preset_id: str,
    start_date: date = Query(..., alias="startDate"),
    end_date: date = Query(..., alias="endDate"),
):
    svc = request.app.state.simulation_service
    try:
        return await svc.get_preset(preset_id, start_date, end_date)
    except AnalyticsError as e:
        raise http_error(e)
