"""Asset symbol normalization and stablecoin detection."""

SYMBOL_ALIASES = {
    "bitcoin": "BTC",
    "btc": "BTC",
    "xbt": "BTC",
    "ethereum": "ETH",
    "eth": "ETH",
    "ether": "ETH",
    "solana": "SOL",
    "cardano": "ADA",
    "polkadot": "DOT",
    "polygon": "MATIC",
    "chainlink": "LINK",
    "avalanche": "AVAX",
    "ripple": "XRP",
    "litecoin": "LTC",
    "dogecoin": "DOGE",
    "binance coin": "BNB",
    "tether": "USDT",
    "usd coin": "USDC",
}

STABLECOINS = frozenset({"USD", "USDT", "USDC", "DAI", "BUSD", "TUSD", "USDD", "FRAX"})

# Assets accepted by the DCA simulator.
SUPPORTED_ASSETS = ("BTC", "ETH", "USDT", "USDC", "BNB", "SOL", "ADA", "XRP", "DOT", "DOGE")


def normalize_symbol(symbol: str) -> str:
    """Normalize an asset code: strip quote currency from pairs, map aliases, uppercase.

    'btc/usdt' -> 'BTC', 'ETH-USDC' -> 'ETH', 'bitcoin' -> 'BTC'.
    """
    if not symbol:
        return symbol
    normalized = symbol.strip()
    for sep in ("/", "-"):
        if sep in normalized:
            normalized = normalized.split(sep)[0].strip()
    return SYMBOL_ALIASES.get(normalized.lower(), normalized.upper())


def is_stablecoin(symbol: str) -> bool:
    return symbol.upper() in STABLECOINS


def is_supported_asset(symbol: str) -> bool:
    return normalize_symbol(symbol) in SUPPORTED_ASSETS
