"""Custom exceptions and centralized FastAPI error handlers."""

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

GENERIC_UPSTREAM_MESSAGE = "Internal Server Error"


class ProxyError(Exception):
    """Base exception with HTTP status code.

    ``detail`` is what ends up under the ``error`` key of the JSON body.
    """

    def __init__(self, message: str, status_code: int = 500, detail: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.detail = message if detail is None else detail


class ValidationError(ProxyError):
    def __init__(self, message: str):
        super().__init__(message, status_code=400)


class ConfigurationError(ProxyError):
    def __init__(self, message: str = "API key is not configured on the server."):
        super().__init__(message, status_code=500)


class UpstreamError(ProxyError):
    """Upstream answered with a non-2xx status. Status and body are passed through."""

    def __init__(self, status_code: int, body: Any = None):
        super().__init__(
            f"Upstream request failed with status {status_code}",
            status_code=status_code,
            detail=body if body not in (None, "") else GENERIC_UPSTREAM_MESSAGE,
        )
        self.body = body


class NetworkError(ProxyError):
    def __init__(self, message: str = "Upstream request failed due to network error."):
        super().__init__(message, status_code=500, detail=GENERIC_UPSTREAM_MESSAGE)


class ParseError(ProxyError):
    def __init__(self, message: str = "Upstream returned a malformed JSON body."):
        super().__init__(message, status_code=500)


class CoinDataError(ProxyError):
    """Upstream payload is missing the fields the dashboard needs."""

    def __init__(self, message: str, status_code: int = 404):
        super().__init__(message, status_code=status_code)


def error_body(exc: ProxyError) -> dict:
    return {"error": exc.detail}


def register_error_handlers(app: FastAPI) -> None:
    """Register centralized exception handlers on the FastAPI app."""

    @app.exception_handler(ProxyError)
    async def handle_proxy_error(_request: Request, exc: ProxyError):
        return JSONResponse(error_body(exc), status_code=exc.status_code)

    @app.exception_handler(ValueError)
    async def handle_value_error(_request: Request, exc: ValueError):
        return JSONResponse({"error": str(exc)}, status_code=400)

    @app.exception_handler(Exception)
    async def handle_unexpected(_request: Request, exc: Exception):
        logger.exception("Unhandled error: %s", exc)
        return JSONResponse(
            {"error": "Internal server error"},
            status_code=500,
        )
