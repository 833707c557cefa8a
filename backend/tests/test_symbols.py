"""Tests for asset symbol normalization."""

from utils.symbols import is_stablecoin, is_supported_asset, normalize_symbol


class TestNormalizeSymbol:
    def test_uppercases(self):
        assert normalize_symbol("btc") == "BTC"

    def test_strips_quote_currency(self):
        """Trading-pair notation keeps only the base asset."""
        assert normalize_symbol("btc/usdt") == "BTC"
        assert normalize_symbol("ETH-USDC") == "ETH"

    def test_aliases(self):
        assert normalize_symbol("bitcoin") == "BTC"
        assert normalize_symbol("Ethereum") == "ETH"
        assert normalize_symbol("xbt") == "BTC"

    def test_unknown_symbol_kept(self):
        assert normalize_symbol("pepe") == "PEPE"

    def test_empty(self):
        assert normalize_symbol("") == ""


class TestStablecoins:
    def test_known_stablecoins(self):
        for sym in ("USDT", "usdc", "DAI", "USD"):
            assert is_stablecoin(sym)

    def test_volatile_asset(self):
        assert not is_stablecoin("BTC")


class TestSupportedAssets:
    """Assets the DCA simulator accepts, after normalization."""

    def test_supported(self):
        assert is_supported_asset("BTC")
        assert is_supported_asset("dogecoin")

    def test_unsupported(self):
        assert not is_supported_asset("PEPE")
