from __future__ import annotations

from typing import Any, Iterable
from urllib.parse import SplitResult, urlsplit

from .config import ALLOWED_DOMAINS
from .errors import DomainNotAllowed, InvalidInput

SUPPORTED_PROVIDERS = "Alpha Vantage, Finnhub, Coinbase, CoinGecko, Binance, Yahoo Finance, Polygon, IEX Cloud, and more"


def require_url(url: Any) -> str:
    if not url or not isinstance(url, str):
        raise InvalidInput("URL is required and must be a string")
    return url


def parse_url(url: str) -> SplitResult:
    try:
        parts = urlsplit(url.strip())
        _ = parts.port  # raises ValueError for a malformed port
    except ValueError:
        raise InvalidInput("Invalid URL format") from None
    if not parts.scheme or not parts.hostname:
        raise InvalidInput("Invalid URL format")
    return parts


def is_allowed_host(hostname: str, allowed: Iterable[str] = ALLOWED_DOMAINS) -> bool:
    hostname = hostname.lower().rstrip(".")
    return any(hostname == domain or hostname.endswith("." + domain) for domain in allowed)


def validate_url(url: Any, allowed: Iterable[str] = ALLOWED_DOMAINS) -> SplitResult:
    """Check that `url` is an https URL on an allowlisted domain.

    Raises InvalidInput or DomainNotAllowed; returns the parsed URL otherwise.
    """
    parts = parse_url(require_url(url))

    if parts.scheme.lower() != "https":
        raise InvalidInput("Only HTTPS protocol is allowed for security")

    hostname = parts.hostname.lower()
    if not is_allowed_host(hostname, allowed):
        raise DomainNotAllowed(
            hostname,
            f'Domain "{hostname}" is not in the allowed list. Supported APIs include: {SUPPORTED_PROVIDERS}.',
        )
    return parts
