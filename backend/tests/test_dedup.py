"""Tests for price document ID generation and deduplication."""

from datetime import date

from utils.dedup import generate_price_doc_id


class TestGeneratePriceDocId:
    """Price rows are keyed by symbol and day so re-ingesting a close overwrites it."""

    def test_basic_generation(self):
        assert generate_price_doc_id("BTC", date(2025, 2, 9)) == "BTC|2025-02-09"

    def test_deterministic(self):
        d = date(2025, 6, 15)
        assert generate_price_doc_id("ETH", d) == generate_price_doc_id("ETH", d)

    def test_different_days_differ(self):
        assert generate_price_doc_id("BTC", date(2025, 1, 1)) != generate_price_doc_id(
            "BTC", date(2025, 1, 2)
        )

    def test_different_symbols_differ(self):
        d = date(2025, 1, 1)
        assert generate_price_doc_id("BTC", d) != generate_price_doc_id("ETH", d)

    def test_symbol_uppercased(self):
        """Lowercase input maps onto the same row as the uppercase symbol."""
        assert generate_price_doc_id("sol", date(2025, 3, 1)) == "SOL|2025-03-01"
