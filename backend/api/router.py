"""Main API router — aggregates all sub-routers."""

from fastapi import APIRouter

from api.portfolios import router as portfolios_router
from api.prices import router as prices_router
from api.simulations import router as simulations_router
from api.jobs import router as jobs_router

api_router = APIRouter(prefix="/api")

api_router.include_router(portfolios_router, tags=["Portfolios"])
api_router.include_router(prices_router, tags=["Prices"])
api_router.include_router(simulations_router, tags=["Simulations"])
api_router.include_router(jobs_router, tags=["Jobs"])
