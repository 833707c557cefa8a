import os
from dotenv import load_dotenv

load_dotenv()

ES_HOST = os.getenv("ES_HOST", "http://localhost:9200")
API_HOST = os.getenv("API_HOST", "0.0.0.0")
API_PORT = int(os.getenv("API_PORT", "8000"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

MAX_RANGE_DAYS = int(os.getenv("MAX_RANGE_DAYS", "3650"))
_staleness = os.getenv("PRICE_MAX_STALENESS_DAYS")
PRICE_MAX_STALENESS_DAYS = int(_staleness) if _staleness else None
ANNUALIZE_VOLATILITY = os.getenv("ANNUALIZE_VOLATILITY", "false").lower() in ("1", "true", "yes")
RISK_FREE_RATE = float(os.getenv("RISK_FREE_RATE", "0.0"))
DCA_COMMISSION_RATE = float(os.getenv("DCA_COMMISSION_RATE", "0.001"))

SUMMARY_CACHE_TTL_SECONDS = int(os.getenv("SUMMARY_CACHE_TTL_SECONDS", "300"))
SNAPSHOT_CACHE_TTL_SECONDS = int(os.getenv("SNAPSHOT_CACHE_TTL_SECONDS", "86400"))
SIMULATION_CACHE_TTL_SECONDS = int(os.getenv("SIMULATION_CACHE_TTL_SECONDS", "3600"))
SNAPSHOT_REFRESH_HOUR = int(os.getenv("SNAPSHOT_REFRESH_HOUR", "0"))

BENCHMARK_SYMBOLS = [
    s.strip().upper() for s in os.getenv("BENCHMARK_SYMBOLS", "BTC,ETH").split(",") if s.strip()
]
