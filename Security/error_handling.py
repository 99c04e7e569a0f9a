"""
ERROR HANDLING SECURITY
=======================
Gatekeeper exceptions and generic error responses.
"""

# FLOW:
# - Register handlers to mask error details in responses.
# - Raise ConfigurationError for unusable startup settings.
# WHY:
# - Avoids leaking stack traces and internal data.
# HOW:
# - Returns {"error": ...} bodies for 4xx/5xx and logs the traceback.

from __future__ import annotations

import logging

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException


logger = logging.getLogger("security.errors")


class GatekeeperError(Exception):
    """Base class for gatekeeper failures that are not policy rejections."""


class ConfigurationError(GatekeeperError, ValueError):
    pass


class RouteNotFoundError(GatekeeperError):
    code = "ROUTE_NOT_FOUND"
    message = "Not found."
    status_code = 404

    def __init__(self, path: str = ""):
        super().__init__(self.message)
        self.path = path

    def to_envelope(self) -> dict:
        return {
            "errors": [
                {
                    "message": self.message,
                    "extensions": {"code": self.code, "path": self.path},
                }
            ]
        }


def register_error_handlers(app):
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        detail = exc.detail if isinstance(exc.detail, str) and exc.detail else "Request failed"
        if exc.status_code >= 500:
            detail = "An error occurred"
        return JSONResponse({"error": detail}, status_code=exc.status_code, headers=exc.headers)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse({"error": "An error occurred"}, status_code=500)
