"""Read-only daily close lookup with last-known-price fallback."""

import bisect
import logging
from collections import OrderedDict, defaultdict
from datetime import date
from typing import Iterable

from models.trade import PricePoint
from utils.symbols import is_stablecoin

logger = logging.getLogger(__name__)


def reduce_to_daily_close(points: Iterable[PricePoint]) -> list[PricePoint]:
    """Collapse intraday observations to one row per symbol per day.

    The latest observation of the day (by timestamp, else input order) is the close.
    """
    daily: OrderedDict[tuple[str, date], PricePoint] = OrderedDict()
    for p in points:
        key = (p.symbol, p.date)
        current = daily.get(key)
        if current is None:
            daily[key] = p
            continue
        if current.timestamp and p.timestamp and p.timestamp < current.timestamp:
            continue
        daily[key] = p
    return list(daily.values())


class PriceIndex:
    """Historical daily closes keyed by symbol.

    ``max_staleness_days`` bounds how far back the last-known-price fallback may
    reach; ``None`` means any earlier price is acceptable.
    """

    def __init__(
        self,
        closes: dict[str, dict[date, float]] | None = None,
        max_staleness_days: int | None = None,
    ):
        self.max_staleness_days = max_staleness_days
        self._dates: dict[str, list[date]] = {}
        self._closes: dict[str, list[float]] = {}
        for symbol, by_day in (closes or {}).items():
            days = sorted(by_day)
            self._dates[symbol.upper()] = days
            self._closes[symbol.upper()] = [float(by_day[d]) for d in days]

    @classmethod
    def from_points(
        cls, points: Iterable[PricePoint], max_staleness_days: int | None = None
    ) -> "PriceIndex":
        closes: dict[str, dict[date, float]] = defaultdict(dict)
        for p in reduce_to_daily_close(points):
            closes[p.symbol][p.date] = p.close
        logger.debug("Loaded daily closes for %d symbols", len(closes))
        return cls(dict(closes), max_staleness_days=max_staleness_days)

    @classmethod
    def merged(
        cls, indexes: Iterable["PriceIndex"], max_staleness_days: int | None = None
    ) -> "PriceIndex":
        """Combine per-symbol indexes; a later index wins on overlapping symbols."""
        closes: dict[str, dict[date, float]] = {}
        for index in indexes:
            for symbol in index.symbols:
                closes[symbol] = dict(zip(index._dates[symbol], index._closes[symbol]))
        return cls(closes, max_staleness_days=max_staleness_days)

    @property
    def symbols(self) -> list[str]:
        return sorted(self._dates)

    def has_history(self, symbol: str) -> bool:
        return is_stablecoin(symbol) or bool(self._dates.get(symbol.upper()))

    def price_at(self, symbol: str, on: date) -> float | None:
        """Close at ``on``, or the nearest prior close. None if unavailable."""
        if is_stablecoin(symbol):
            return 1.0
        days = self._dates.get(symbol.upper())
        if not days:
            return None
        idx = bisect.bisect_right(days, on) - 1
        if idx < 0:
            return None
        if self.max_staleness_days is not None and (on - days[idx]).days > self.max_staleness_days:
            return None
        return self._closes[symbol.upper()][idx]

