"""Gateway configuration.

Typed constants with environment overrides and safe defaults so the service
starts without extra configuration. Provider secrets are read at call time by
`load_provider_keys()` and never stored on module import.
"""

from __future__ import annotations

import os

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

APP_VERSION: str = "1.0.0"

# --- API ---
API_HOST: str = os.getenv("FIELD_EXPLORER_HOST", "0.0.0.0")
API_PORT: int = int(os.getenv("FIELD_EXPLORER_PORT", "8000"))

# --- Rate Limiting ---
RATE_LIMIT_WINDOW_SECONDS: float = float(os.getenv("FIELD_EXPLORER_RATE_WINDOW", "60"))
RATE_LIMIT_MAX_REQUESTS: int = int(os.getenv("FIELD_EXPLORER_RATE_MAX", "30"))
RATE_LIMIT_MAX_CLIENTS: int = 10000

# --- Response Cache ---
CACHE_TTL_SECONDS: float = float(os.getenv("FIELD_EXPLORER_CACHE_TTL", "10"))
CACHE_MAX_ENTRIES: int = int(os.getenv("FIELD_EXPLORER_CACHE_MAX", "1000"))

# --- Upstream ---
UPSTREAM_TIMEOUT_SECONDS: float = float(os.getenv("FIELD_EXPLORER_UPSTREAM_TIMEOUT", "15"))
UPSTREAM_MAX_WORKERS: int = int(os.getenv("FIELD_EXPLORER_UPSTREAM_WORKERS", "32"))
USER_AGENT: str = "FinanceDashboard/1.0"

# Finance and market-data providers the gateway may contact. Subdomains of an
# entry are allowed too.
ALLOWED_DOMAINS: tuple[str, ...] = (
    "alphavantage.co",
    "www.alphavantage.co",
    "finnhub.io",
    "api.finnhub.io",
    "api.coinbase.com",
    "coinbase.com",
    "api.coingecko.com",
    "coingecko.com",
    "api.binance.com",
    "binance.com",
    "query1.finance.yahoo.com",
    "query2.finance.yahoo.com",
    "finance.yahoo.com",
    "api.polygon.io",
    "polygon.io",
    "cloud.iexapis.com",
    "iexcloud.io",
    "indianapi.in",
    "stock.indianapi.in",
    "api.exchangerate-api.com",
    "openexchangerates.org",
    "data.fixer.io",
    "api.fixer.io",
    "min-api.cryptocompare.com",
    "api.messari.io",
    "api.nomics.com",
    "api.kraken.com",
    "api.gemini.com",
    "api.pro.coinbase.com",
    "api.kucoin.com",
    "api.huobi.pro",
    "api.bybit.com",
    "api.bitfinex.com",
    "api.bitstamp.net",
    "rest.coinapi.io",
    "api.exchangeratesapi.io",
    "v6.exchangerate-api.com",
    "api.frankfurter.app",
    "cdn.jsdelivr.net",
)

# Environment variable holding each provider's secret.
PROVIDER_KEY_ENV = {
    "indianapi": "INDIAN_STOCK_API_KEY",
    "finnhub": "FINNHUB_API_KEY",
    "alphavantage": "ALPHA_VANTAGE_API_KEY",
}


def load_provider_keys() -> dict[str, str]:
    """Return configured provider secrets, skipping unset or empty ones."""
    keys = {}
    for provider, env_name in PROVIDER_KEY_ENV.items():
        value = os.getenv(env_name, "")
        if value:
            keys[provider] = value
    return keys
