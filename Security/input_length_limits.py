"""
INPUT LENGTH LIMITS & BODY PARSING
==================================
Middleware that bounds and parses JSON request bodies.
"""

# FLOW:
# - Reject requests exceeding max_bytes.
# - Decode JSON objects into request.state.parsed_body.
# WHY:
# - Property validation needs a parsed body and must not parse it itself.
# HOW:
# - Checks Content-Length, reads the body once, stores the decoded mapping.

from __future__ import annotations

import json

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from Security.activity_logging import get_security_logger


BODYLESS_METHODS = {"GET", "HEAD", "OPTIONS"}

logger = get_security_logger("body")


def _too_large() -> JSONResponse:
    return JSONResponse({"error": "Request entity too large."}, status_code=413)


class BodyParserMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, max_bytes: int = 1024 * 1024):
        super().__init__(app)
        self.max_bytes = max_bytes

    async def dispatch(self, request, call_next):
        if request.method in BODYLESS_METHODS:
            return await call_next(request)

        content_length = request.headers.get("content-length")
        if content_length and content_length.isdigit() and int(content_length) > self.max_bytes:
            return _too_large()

        content_type = (request.headers.get("content-type") or "").lower()
        if "application/json" not in content_type:
            return await call_next(request)

        raw = await request.body()
        if len(raw) > self.max_bytes:
            return _too_large()
        if raw.strip():
            try:
                payload = json.loads(raw)
            except (UnicodeDecodeError, ValueError):
                logger.warning("Rejected %s %s with malformed JSON body", request.method, request.url.path)
                return JSONResponse({"error": "Invalid JSON body."}, status_code=400)
        else:
            payload = {}

        # Only objects have properties to validate; arrays and scalars stay unparsed.
        if isinstance(payload, dict):
            request.state.parsed_body = payload
        return await call_next(request)
