"""Deterministic document ID generation for daily price deduplication."""

from datetime import date


def generate_price_doc_id(symbol: str, day: date) -> str:
    """Generate deterministic doc_id: '{SYMBOL}|{YYYY-MM-DD}'.

    The same symbol+day always produces the same doc_id, so re-ingesting a
    price overwrites the existing row instead of adding a second one.
    """
    return f"{symbol.upper()}|{day.isoformat()}"
