"""Upstream API gateway.

Every widget fetch passes through `Gateway.proxy`:

    rate limit -> URL validation -> cache lookup -> upstream GET -> cache write

Failures at any step come back as a `GatewayResult` with `success=False`;
nothing raises past this module.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

from .allowlist import validate_url
from .cache import ResponseCache, make_cache_key
from .errors import DomainNotAllowed, GatewayError, InternalError, RateLimited
from .logging import get_logger, log_event
from .ratelimit import RateLimiter, RateLimitStatus
from .schema_utils import flatten
from .upstream import UpstreamClient

logger = get_logger(__name__)


@dataclass
class GatewayResult:
    success: bool
    status_code: int
    data: Any = None
    error: str | None = None
    cached: bool | None = None
    field_count: int | None = None
    rate_limit: RateLimitStatus | None = None

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"success": self.success}
        if self.success:
            payload["data"] = self.data
        else:
            payload["error"] = self.error
        if self.cached is not None:
            payload["cached"] = self.cached
        if self.field_count is not None:
            payload["fieldCount"] = self.field_count
        return payload

    def rate_limit_headers(self) -> dict[str, str]:
        if self.rate_limit is None:
            return {}
        reset = max(0, math.ceil(self.rate_limit.reset_in))
        return {
            "X-RateLimit-Limit": str(self.rate_limit.limit),
            "X-RateLimit-Remaining": str(self.rate_limit.remaining),
            "X-RateLimit-Reset": str(reset),
        }


def normalize_headers(custom_headers: Any) -> list[dict[str, str]]:
    """Accept [{key, value}] dicts or objects with key/value attributes."""
    normalized = []
    for header in custom_headers or []:
        if isinstance(header, dict):
            key, value = header.get("key"), header.get("value")
        else:
            key, value = getattr(header, "key", None), getattr(header, "value", None)
        normalized.append({"key": "" if key is None else str(key), "value": "" if value is None else str(value)})
    return normalized


class Gateway:
    def __init__(
        self,
        rate_limiter: RateLimiter | None = None,
        cache: ResponseCache | None = None,
        upstream: UpstreamClient | None = None,
    ) -> None:
        self.rate_limiter = rate_limiter or RateLimiter()
        self.cache = cache or ResponseCache()
        self.upstream = upstream or UpstreamClient()

    def _failure(self, exc: GatewayError, rate_limit: RateLimitStatus | None = None, **extra: Any) -> GatewayResult:
        return GatewayResult(
            success=False, status_code=exc.status_code, error=exc.message, rate_limit=rate_limit, **extra
        )

    def proxy(self, url: Any, custom_headers: Any = None, client_id: str = "unknown") -> GatewayResult:
        """Fetch `url` for a widget, subject to rate limiting and caching."""
        status = None
        dispatched = False
        try:
            status = self.rate_limiter.check(client_id)
            if not status.allowed:
                log_event("gateway.rate_limited", client=client_id, reset_in=round(status.reset_in, 3))
                raise RateLimited(status.reset_in)

            validate_url(url)
            headers = normalize_headers(custom_headers)
            cache_key = make_cache_key(url, headers)

            cached = self.cache.get(cache_key)
            if cached is not None:
                log_event("gateway.cache_hit", client=client_id)
                return GatewayResult(success=True, status_code=200, data=cached, cached=True, rate_limit=status)

            dispatched = True
            data = self.upstream.fetch(url, headers)
            if data is not None:
                self.cache.set(cache_key, data)
            return GatewayResult(success=True, status_code=200, data=data, cached=False, rate_limit=status)
        except DomainNotAllowed as exc:
            log_event("gateway.domain_rejected", client=client_id, host=exc.hostname)
            return self._failure(exc, status)
        except GatewayError as exc:
            return self._failure(exc, status, cached=False if dispatched else None)
        except Exception:
            logger.exception("Proxy error")
            return self._failure(InternalError())

    def test(self, url: Any, custom_headers: Any = None) -> GatewayResult:
        """Validate and fetch once, bypassing rate limiting and the cache.

        Used when a user first points a widget at an endpoint; a successful
        result reports how many selectable fields the response offers.
        """
        try:
            validate_url(url)
            data = self.upstream.fetch(url, normalize_headers(custom_headers))
            return GatewayResult(success=True, status_code=200, data=data, field_count=len(flatten(data)))
        except DomainNotAllowed as exc:
            log_event("gateway.domain_rejected", host=exc.hostname)
            return self._failure(exc)
        except GatewayError as exc:
            return self._failure(exc)
        except Exception:
            logger.exception("Test API error")
            return self._failure(InternalError())
