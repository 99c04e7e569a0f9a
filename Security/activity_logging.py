"""
ACTIVITY TRACKING
=================
Request logging for the gatekeeper.

FLOW:
- get_security_logger() attaches one rotating file handler to "security".
- ActivityLoggingMiddleware logs every request with its final status.

WHY:
- Blocked requests need to be traceable after the fact.

HOW:
- Writes log lines to <LOG_DIR>/security.log.
"""

from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler

from starlette.middleware.base import BaseHTTPMiddleware

from Security.decision import original_url


def _configure_root() -> logging.Logger:
    root = logging.getLogger("security")
    if root.handlers:
        return root

    log_dir = os.getenv("LOG_DIR", "logs")
    os.makedirs(log_dir, exist_ok=True)
    handler = RotatingFileHandler(
        os.path.join(log_dir, "security.log"), maxBytes=2_000_000, backupCount=3
    )
    formatter = logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")
    handler.setFormatter(formatter)

    root.setLevel(logging.INFO)
    root.addHandler(handler)
    return root


def get_security_logger(name: str) -> logging.Logger:
    _configure_root()
    return logging.getLogger(f"security.{name}")


def client_ip(request) -> str:
    xff = (request.headers.get("x-forwarded-for") or "").strip()
    if xff:
        return xff.split(",")[0].strip()
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


class ActivityLoggingMiddleware(BaseHTTPMiddleware):
    def __init__(self, app):
        super().__init__(app)
        self.logger = get_security_logger("activity")

    async def dispatch(self, request, call_next):
        response = await call_next(request)
        self.logger.info(
            "method=%s path=%s status=%s ip=%s",
            request.method,
            original_url(request),
            response.status_code,
            client_ip(request),
        )
        return response
