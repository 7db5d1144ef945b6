"""FastAPI surface for the gateway.

POST /api/proxy  rate-limited, cached fetch used by widget refreshes
POST /api/test   one-off fetch used while configuring a widget
GET  /health     liveness probe
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from .config import API_HOST, API_PORT, APP_VERSION
from .gateway import Gateway, GatewayResult
from .logging import get_logger, log_event
from .ratelimit import client_identity

logger = get_logger(__name__)


class CustomHeader(BaseModel):
    key: str = ""
    value: str = ""


class ProxyRequest(BaseModel):
    """Body of /api/proxy and /api/test.

    `url` is loosely typed so a missing or non-string value reaches the
    gateway and gets its own error message instead of a generic 422.
    """

    model_config = ConfigDict(populate_by_name=True)

    url: Any = None
    custom_headers: list[CustomHeader] | None = Field(default=None, alias="customHeaders")


def _respond(result: GatewayResult) -> JSONResponse:
    return JSONResponse(
        status_code=result.status_code,
        content=result.to_payload(),
        headers=result.rate_limit_headers(),
    )


def create_app(gateway: Gateway | None = None) -> FastAPI:
    gateway = gateway or Gateway()
    app = FastAPI(title="Field Explorer Gateway", version=APP_VERSION)
    app.state.gateway = gateway

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.warning("Validation error on %s: %s", request.url.path, exc.errors())
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"success": False, "error": "Invalid request body"},
        )

    @app.post("/api/proxy")
    def proxy(body: ProxyRequest, request: Request) -> JSONResponse:
        client_id = client_identity(request.headers.get("x-forwarded-for"))
        return _respond(gateway.proxy(body.url, body.custom_headers, client_id=client_id))

    @app.post("/api/test")
    def test_api(body: ProxyRequest) -> JSONResponse:
        return _respond(gateway.test(body.url, body.custom_headers))

    @app.get("/health")
    def health_check() -> dict[str, Any]:
        return {
            "status": "healthy",
            "service": "Field Explorer Gateway",
            "version": APP_VERSION,
            "timestamp": datetime.now(UTC).isoformat(),
        }

    log_event("api.startup", service="field-explorer-gateway", version=APP_VERSION)
    return app


def main() -> None:
    import uvicorn

    uvicorn.run(create_app(), host=API_HOST, port=API_PORT)


if __name__ == "__main__":
    main()
