"""Ledger service — portfolios, trades and daily prices in Elasticsearch."""

import logging
import time
import uuid
from datetime import date, datetime, timezone

import pydantic

from core.errors import PortfolioNotFoundError, ValidationError
from core.es_client import ESClient
from models.trade import CreatePortfolioRequest, Portfolio, PricePoint, Trade, TradeInput
from services.price_index import PriceIndex, reduce_to_daily_close
from utils.dedup import generate_price_doc_id

logger = logging.getLogger(__name__)

PORTFOLIOS_INDEX = "portfolios"
TRADES_INDEX = "trades"
PRICES_INDEX = "prices"


class LedgerService:
    def __init__(self, es: ESClient):
        self.es = es

    async def create_portfolio(self, req: CreatePortfolioRequest) -> Portfolio:
        portfolio = Portfolio(
            portfolio_id=str(uuid.uuid4()),
            name=req.name,
            user_id=req.user_id,
            created_at_utc=datetime.now(timezone.utc),
        )
        await self.es.index_doc(
            PORTFOLIOS_INDEX, portfolio.portfolio_id, portfolio.model_dump(mode="json")
        )
        logger.info("Created portfolio %s (%s)", portfolio.portfolio_id, req.name)
        return portfolio

    async def get_portfolio(self, portfolio_id: str) -> Portfolio | None:
        doc = await self.es.get(PORTFOLIOS_INDEX, portfolio_id)
        return Portfolio(**doc) if doc else None

    async def require_portfolio(self, portfolio_id: str) -> Portfolio:
        portfolio = await self.get_portfolio(portfolio_id)
        if portfolio is None:
            raise PortfolioNotFoundError(portfolio_id)
        return portfolio

    async def list_portfolios(self) -> list[Portfolio]:
        result = await self.es.search(
            PORTFOLIOS_INDEX,
            query={"match_all": {}},
            sort=[{"created_at_utc": {"order": "desc"}}],
            size=1000,
        )
        return [Portfolio(**h["_source"]) for h in result["hits"]["hits"]]

    async def add_trades(self, portfolio_id: str, inputs: list[TradeInput]) -> list[Trade]:
        """Validate and store trades. Ingestion order is kept as the tie-breaker."""
        await self.require_portfolio(portfolio_id)
        base_seq = time.time_ns()
        trades = []
        docs = []
        for i, item in enumerate(inputs):
            try:
                trade = Trade(
                    trade_id=str(uuid.uuid4()),
                    portfolio_id=portfolio_id,
                    **item.model_dump(),
                )
            except pydantic.ValidationError as e:
                raise ValidationError(f"Trade #{i + 1} is invalid: {e.errors()[0]['msg']}")
            trades.append(trade)
            doc = trade.model_dump(mode="json")
            doc["ingest_seq"] = base_seq + i
            docs.append(doc)

        if docs:
            await self.es.bulk_index(TRADES_INDEX, docs, id_field="trade_id")
        logger.info("Stored %d trades for portfolio %s", len(docs), portfolio_id)
        return trades

    async def get_trades(self, portfolio_id: str) -> list[Trade]:
        """All trades of a portfolio in ledger order (timestamp, then ingestion)."""
        docs = await self.es.scan(TRADES_INDEX, query={"term": {"portfolio_id": portfolio_id}})
        docs.sort(key=lambda d: d.get("ingest_seq", 0))
        trades = [Trade(**d) for d in docs]
        return sorted(trades, key=lambda t: t.timestamp)

    async def add_prices(self, points: list[PricePoint]) -> dict:
        """Upsert daily closes; one document per symbol per day."""
        docs = []
        for p in reduce_to_daily_close(points):
            doc = p.model_dump(mode="json")
            doc["doc_id"] = generate_price_doc_id(p.symbol, p.date)
            docs.append(doc)
        result = await self.es.bulk_upsert(PRICES_INDEX, docs, id_field="doc_id")
        logger.info("Upserted %d daily prices", result["success"])
        return result

    async def get_price_index(
        self,
        symbols: list[str],
        end: date | None = None,
        max_staleness_days: int | None = None,
    ) -> PriceIndex:
        """Price history for ``symbols`` up to ``end``, including all earlier rows
        so that last-known-price fallback works at the start of a range."""
        if not symbols:
            return PriceIndex(max_staleness_days=max_staleness_days)
        must: list[dict] = [{"terms": {"symbol": sorted(set(symbols))}}]
        if end is not None:
            must.append({"range": {"date": {"lte": end.isoformat()}}})
        docs = await self.es.scan(PRICES_INDEX, query={"bool": {"must": must}})
        points = [PricePoint(**d) for d in docs]
        return PriceIndex.from_points(points, max_staleness_days=max_staleness_days)
