"""Snapshot refresh job control API endpoints."""

from fastapi import APIRouter, Request

router = APIRouter()


@router.post("/jobs/refresh-snapshots")
async def refresh_snapshots(request: Request):
    scheduler = request.app.state.scheduler
    return await scheduler.run_refresh_now()


@router.get("/jobs/status")
async def get_job_status(request: Request):
    scheduler = request.app.state.scheduler
    return scheduler.get_status()
