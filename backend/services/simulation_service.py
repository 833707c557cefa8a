"""Simulation service — DCA and preset portfolio backtests over stored price history."""

import asyncio
import logging
from datetime import date, datetime, timezone
from typing import Callable

import config
from core.cache import TTLCache
from models.simulation import DCARequest, DCAResult
from services.dca_simulator import simulate, validate_request
from services.ledger_service import LedgerService
from services.preset_portfolios import PRESETS, get_preset, simulate_preset
from services.price_index import PriceIndex

logger = logging.getLogger(__name__)


def result_json(result: DCAResult) -> dict:
    return result.model_dump(mode="json", by_alias=True)


class SimulationService:
    def __init__(
        self,
        ledger: LedgerService,
        cache: TTLCache,
        today: Callable[[], date] | None = None,
    ):
        self.ledger = ledger
        self.cache = cache
        self._today = today or (lambda: datetime.now(timezone.utc).date())

    async def _price_index(self, symbols: list[str], end: date) -> PriceIndex:
        """Load each symbol's history concurrently and merge."""
        indexes = await asyncio.gather(
            *(
                self.ledger.get_price_index(
                    [sym], end=end, max_staleness_days=config.PRICE_MAX_STALENESS_DAYS
                )
                for sym in symbols
            )
        )
        return PriceIndex.merged(indexes, max_staleness_days=config.PRICE_MAX_STALENESS_DAYS)

    async def simulate_dca(self, req: DCARequest) -> dict:
        today = self._today()
        allocations = validate_request(req, today, config.MAX_RANGE_DAYS)

        key = (
            f"simulation:dca:{req.start_date}:{req.end_date}:{req.amount}:"
            f"{req.interval}:{':'.join(f'{a}={w}' for a, w in allocations)}"
        )
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        logger.info("Running DCA simulation %s", key)
        index = await self._price_index([a for a, _ in allocations], req.end_date)
        result = simulate(
            req,
            index,
            today=today,
            commission_rate=config.DCA_COMMISSION_RATE,
            annualize=config.ANNUALIZE_VOLATILITY,
            max_range_days=config.MAX_RANGE_DAYS,
        )
        response = result_json(result)
        self.cache.set(key, response, config.SIMULATION_CACHE_TTL_SECONDS)
        return response

    def list_presets(self) -> list[dict]:
        return [p.model_dump() for p in PRESETS.values()]

    async def get_preset(self, preset_id: str, start: date, end: date) -> dict:
        preset = get_preset(preset_id)
        key = f"simulation:preset:{preset.preset_id}:{start}:{end}"
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        logger.info("Running preset simulation %s", key)
        index = await self._price_index([a.symbol for a in preset.assets], end)
        result = simulate_preset(
            preset.preset_id,
            index,
            start,
            end,
            today=self._today(),
            annualize=config.ANNUALIZE_VOLATILITY,
            max_range_days=config.MAX_RANGE_DAYS,
        )
        response = {"preset_id": preset.preset_id, **result_json(result)}
        self.cache.set(key, response, config.SIMULATION_CACHE_TTL_SECONDS)
        return response

    async def get_all_presets(self, start: date, end: date) -> list[dict]:
        return list(
            await asyncio.gather(*(self.get_preset(pid, start, end) for pid in PRESETS))
        )
