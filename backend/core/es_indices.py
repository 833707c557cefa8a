"""Elasticsearch index mappings for portfolios, the trade ledger and price history."""

PORTFOLIOS_MAPPING = {
    "mappings": {
        "properties": {
            "portfolio_id": {"type": "keyword"},
            "name": {
                "type": "text",
                "fields": {"keyword": {"type": "keyword", "ignore_above": 256}},
            },
            "user_id": {"type": "keyword"},
            "created_at_utc": {"type": "date"},
        }
    },
}

TRADES_MAPPING = {
    "mappings": {
        "properties": {
            "trade_id": {"type": "keyword"},
            "portfolio_id": {"type": "keyword"},
            "timestamp": {"type": "date"},
            "symbol": {"type": "keyword"},
            "side": {"type": "keyword"},             # BUY or SELL
            "quantity": {"type": "double"},
            "price": {"type": "double"},
            "fee": {"type": "double"},
            "exchange": {"type": "keyword"},
            "ingest_seq": {"type": "long"},          # tie-breaker for equal timestamps
        }
    },
}

PRICES_MAPPING = {
    "mappings": {
        "properties": {
            "symbol": {"type": "keyword"},
            "date": {"type": "date", "format": "yyyy-MM-dd"},
            "close": {"type": "double"},
            "open": {"type": "double"},
            "high": {"type": "double"},
            "low": {"type": "double"},
            "volume": {"type": "double"},
            "timestamp": {"type": "date"},
        }
    },
}

ALL_INDICES = {
    "portfolios": PORTFOLIOS_MAPPING,
    "trades": TRADES_MAPPING,
    "prices": PRICES_MAPPING,
}
