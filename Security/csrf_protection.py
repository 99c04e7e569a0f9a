"""
CSRF PROTECTION
===============
Origin validation and CSRF protection for state-changing requests.

FLOW:
- Safe methods always pass.
- With ALLOWED_ORIGINS set, Origin (else Referer) hostname must be allowlisted.
- Without it, cross-site form submissions are refused.

WHY:
- Browsers send form posts cross-origin without preflight.

HOW:
- Compares Origin/Referer against the allowlist or the public URL.
"""

from __future__ import annotations

from typing import Iterable, Optional
from urllib.parse import urlparse

from starlette.middleware.base import BaseHTTPMiddleware

from Security.activity_logging import get_security_logger
from Security.decision import Decision, RequestDescriptor
from Security.metrics import record_decision
from Security.security_config import GatekeeperConfig


# https://developer.mozilla.org/en-US/docs/Web/API/HTMLFormElement/enctype
FORM_CONTENT_TYPES = (
    "application/x-www-form-urlencoded",
    "multipart/form-data",
    "text/plain",
)

SAFE_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})

# Browsers treat a backslash as "/" in these schemes.
SPECIAL_SCHEMES = frozenset({"http", "https", "ws", "wss", "ftp", "file"})

UNAUTHORIZED_ORIGIN = "Access denied: unauthorized origin."

logger = get_security_logger("origin")


def has_form_like_header(content_type: Optional[str]) -> bool:
    if not content_type:
        return False
    lowered = content_type.lower()
    return any(form_type in lowered for form_type in FORM_CONTENT_TYPES)


def _normalise_separators(url: str) -> str:
    scheme, sep, rest = url.partition(":")
    if sep and scheme.lower() in SPECIAL_SCHEMES:
        return scheme + ":" + rest.replace("\\", "/")
    return url


def extract_hostname(url: str) -> Optional[str]:
    """Hostname of an absolute URL, or None when it does not parse as one."""
    try:
        parsed = urlparse(_normalise_separators(url.strip()))
        # Raises ValueError for an out-of-range or non-numeric port.
        parsed.port
    except ValueError:
        return None
    if not parsed.scheme or not parsed.netloc or not parsed.hostname:
        return None
    return parsed.hostname


def is_allowed_origin(hostname: str, allowed_origins: Iterable[str]) -> bool:
    for allowed in allowed_origins:
        allowed_host = extract_hostname(allowed)
        if allowed_host is not None:
            if hostname == allowed_host:
                return True
        elif hostname == allowed:
            # Bare hostname entry without a scheme.
            return True
    return False


def cross_site_error(method: str) -> str:
    return f"Cross-site {method} form submissions are forbidden"


def _check_allowlist(request: RequestDescriptor, config: GatekeeperConfig) -> Decision:
    source_url = request.header("origin") or request.header("referer")
    if not source_url:
        # Direct API call or server-to-server.
        return Decision.allow()

    source_host = extract_hostname(source_url)
    if source_host is None:
        logger.warning("[Security] Blocked request with invalid URL format")
        return Decision.reject(403, UNAUTHORIZED_ORIGIN)

    if not is_allowed_origin(source_host, config.allowed_origins):
        logger.warning("[Security] Blocked request from unauthorized origin/referer: %s", source_url)
        return Decision.reject(403, UNAUTHORIZED_ORIGIN)
    return Decision.allow()


def _check_csrf(request: RequestDescriptor, config: GatekeeperConfig) -> Decision:
    origin = request.header("origin")
    if not origin:
        return Decision.allow()

    if origin == config.public_url:
        return Decision.allow()

    content_type = request.header("content-type")
    if content_type is None:
        logger.warning(
            "[CSRF] Blocked cross-site %s request without content-type from: %s",
            request.method,
            origin,
        )
        return Decision.reject(403, cross_site_error(request.method))
    if has_form_like_header(content_type):
        logger.warning("[CSRF] Blocked cross-site %s form submission from: %s", request.method, origin)
        return Decision.reject(403, cross_site_error(request.method))
    return Decision.allow()


def check_origin(request: RequestDescriptor, config: GatekeeperConfig) -> Decision:
    if request.method in SAFE_METHODS:
        return Decision.allow()
    if config.allowlist_mode:
        return _check_allowlist(request, config)
    return _check_csrf(request, config)


class OriginCheckMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, config: GatekeeperConfig):
        super().__init__(app)
        self.config = config

    async def dispatch(self, request, call_next):
        decision = check_origin(RequestDescriptor.from_request(request), self.config)
        record_decision("origin-check", decision)
        if not decision.allowed:
            return decision.to_response()
        return await call_next(request)
