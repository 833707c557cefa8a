"""Test helpers: trade/price builders and an in-memory stand-in for ESClient."""

import copy
from datetime import date, datetime, timedelta, timezone

from models.trade import Trade
from services.price_index import PriceIndex


def make_trade(
    day: date,
    symbol: str,
    side: str,
    quantity: float,
    price: float,
    fee: float = 0.0,
    exchange: str = "",
    hour: int = 12,
) -> Trade:
    return Trade(
        trade_id=f"{symbol}-{day.isoformat()}-{side}-{quantity}",
        portfolio_id="p1",
        timestamp=datetime(day.year, day.month, day.day, hour, tzinfo=timezone.utc),
        symbol=symbol,
        side=side,
        quantity=quantity,
        price=price,
        fee=fee,
        exchange=exchange,
    )


def daily_prices(symbol: str, start: date, closes: list[float]) -> dict[str, dict[date, float]]:
    return {symbol: {start + timedelta(days=i): c for i, c in enumerate(closes)}}


def make_index(*series: dict[str, dict[date, float]], max_staleness_days: int | None = None) -> PriceIndex:
    closes: dict[str, dict[date, float]] = {}
    for s in series:
        closes.update(s)
    return PriceIndex(closes, max_staleness_days=max_staleness_days)


def _matches(doc: dict, query: dict | None) -> bool:
    if not query or "match_all" in query:
        return True
    if "bool" in query:
        return all(_matches(doc, q) for q in query["bool"].get("must", []))
    if "term" in query:
        (field, value), = query["term"].items()
        return doc.get(field) == value
    if "terms" in query:
        (field, values), = query["terms"].items()
        return doc.get(field) in values
    if "range" in query:
        (field, bounds), = query["range"].items()
        value = doc.get(field)
        if value is None:
            return False
        if "lte" in bounds and value > bounds["lte"]:
            return False
        if "gte" in bounds and value < bounds["gte"]:
            return False
        return True
    raise AssertionError(f"FakeES does not understand query {query}")


class FakeES:
    """Just enough of ESClient for the ledger service."""

    def __init__(self):
        self.indices: dict[str, dict[str, dict]] = {}
        self._auto_id = 0

    def _index(self, name: str) -> dict[str, dict]:
        return self.indices.setdefault(name, {})

    async def health(self) -> dict:
        return {"status": "green"}

    async def ensure_index(self, name: str, body: dict) -> bool:
        created = name not in self.indices
        self._index(name)
        return created

    async def close(self):
        pass

    async def index_doc(self, index: str, doc_id: str, body: dict) -> dict:
        self._index(index)[doc_id] = copy.deepcopy(body)
        return {"result": "created"}

    async def get(self, index: str, doc_id: str) -> dict | None:
        doc = self._index(index).get(doc_id)
        return copy.deepcopy(doc) if doc is not None else None

    async def search(self, index, query=None, sort=None, size=100, from_=0) -> dict:
        docs = [d for d in self._index(index).values() if _matches(d, query)]
        if sort:
            (field, opts), = sort[0].items()
            docs.sort(key=lambda d: d.get(field) or "", reverse=opts.get("order") == "desc")
        hits = [{"_source": copy.deepcopy(d)} for d in docs[from_:from_ + size]]
        return {"hits": {"hits": hits, "total": {"value": len(docs)}}}

    async def scan(self, index: str, query: dict | None = None) -> list[dict]:
        return [copy.deepcopy(d) for d in self._index(index).values() if _matches(d, query)]

    async def bulk_index(self, index: str, documents: list[dict], id_field: str | None = None) -> dict:
        for doc in documents:
            if id_field and id_field in doc:
                doc_id = doc[id_field]
            else:
                self._auto_id += 1
                doc_id = str(self._auto_id)
            self._index(index)[doc_id] = copy.deepcopy(doc)
        return {"success": len(documents), "errors": 0}

    async def bulk_upsert(self, index: str, documents: list[dict], id_field: str) -> dict:
        stored = 0
        for doc in documents:
            doc_id = doc.get(id_field)
            if not doc_id:
                continue
            self._index(index)[doc_id] = copy.deepcopy(doc)
            stored += 1
        return {"success": stored, "errors": 0}


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now
