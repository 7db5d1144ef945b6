"""Gateway error taxonomy.

Validators and the upstream client raise these; `Gateway` catches them at its
boundary and turns them into `{"success": false, "error": ...}` results, so
none of them reach the HTTP layer.
"""

from __future__ import annotations

import math


class GatewayError(Exception):
    """Base class. `message` is safe to show to the caller."""

    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidInput(GatewayError):
    pass


class DomainNotAllowed(GatewayError):
    def __init__(self, hostname: str, message: str) -> None:
        super().__init__(message)
        self.hostname = hostname


class RateLimited(GatewayError):
    status_code = 429

    def __init__(self, reset_in: float) -> None:
        self.reset_seconds = max(0, math.ceil(reset_in))
        super().__init__(f"Rate limit exceeded. Please try again in {self.reset_seconds} seconds.")


class UpstreamRateLimited(GatewayError):
    def __init__(self) -> None:
        super().__init__("API rate limit exceeded. Please try again later.")


class UpstreamTimeout(GatewayError):
    def __init__(self, timeout: float) -> None:
        super().__init__(f"Request timed out after {timeout:g} seconds")


class UpstreamHttpError(GatewayError):
    def __init__(self, status: int, reason: str = "") -> None:
        super().__init__(f"HTTP {status}: {reason}" if reason else f"HTTP {status}")
        self.status = status


class NonJsonResponse(GatewayError):
    def __init__(self) -> None:
        super().__init__("Response is not valid JSON")


class UpstreamTransportError(GatewayError):
    pass


class InternalError(GatewayError):
    status_code = 500

    def __init__(self) -> None:
        super().__init__("Internal server error")
