"""
STATUS REWRITE
==============
Turns 403 responses into indistinguishable 404s.
"""

# FLOW:
# - Downstream response with status 403 is replaced before it is sent.
# WHY:
# - A forbidden route must look exactly like a missing one.
# HOW:
# - Swaps in a ROUTE_NOT_FOUND envelope carrying the original URL.

from __future__ import annotations

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from Security.decision import original_url
from Security.error_handling import RouteNotFoundError


def not_found_envelope(path: str) -> dict:
    return RouteNotFoundError(path).to_envelope()


class StatusRewriteMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request, call_next):
        response = await call_next(request)
        if response.status_code != 403:
            return response

        # Drain the original body so the downstream task can finish.
        async for _ in response.body_iterator:
            pass
        return JSONResponse(not_found_envelope(original_url(request)), status_code=RouteNotFoundError.status_code)
