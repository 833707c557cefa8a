"""FastAPI application entry point with lifespan for ES, services and scheduler init."""

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

import config
from core.cache import TTLCache
from core.es_client import ESClient
from core.es_indices import ALL_INDICES
from core.scheduler import SchedulerManager
from services.ledger_service import LedgerService
from services.portfolio_service import PortfolioService
from services.simulation_service import SimulationService
from api.router import api_router

logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # --- Startup ---
    logger.info("Starting up — connecting to ES at %s", config.ES_HOST)
    es = ESClient(hosts=[config.ES_HOST])

    # Wait for ES
    for attempt in range(30):
        try:
            health = await es.health()
            logger.info("ES cluster status: %s", health.get("status"))
            break
        except Exception:
            if attempt == 29:
                raise
            await asyncio.sleep(2)

    for name, mapping in ALL_INDICES.items():
        await es.ensure_index(name, mapping)
    logger.info("All indices ensured")

    cache = TTLCache()
    ledger_svc = LedgerService(es)
    portfolio_svc = PortfolioService(ledger_svc, cache)
    simulation_svc = SimulationService(ledger_svc, cache)

    scheduler = SchedulerManager(portfolio_svc, refresh_hour=config.SNAPSHOT_REFRESH_HOUR)
    await scheduler.start()

    app.state.es = es
    app.state.cache = cache
    app.state.ledger_service = ledger_svc
    app.state.portfolio_service = portfolio_svc
    app.state.simulation_service = simulation_svc
    app.state.scheduler = scheduler

    logger.info("Backend ready")

    yield

    # --- Shutdown ---
    logger.info("Shutting down")
    await scheduler.shutdown()
    await es.close()


app = FastAPI(title="Portfolio Analytics Engine", version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Report malformed bodies and query params as 400."""
    return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})


app.include_router(api_router)


@app.get("/health")
async def health():
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host=config.API_HOST, port=config.API_PORT)
