"""
GATEKEEPER DECISIONS
====================
Per-request values shared by every check.
"""

# FLOW:
# - Middleware builds a RequestDescriptor from the Starlette request.
# - Checks return a Decision; middleware renders rejections as JSON.
# WHY:
# - Keeps each check a pure function of plain values.
# HOW:
# - Frozen dataclasses with a JSONResponse renderer.

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Optional

from starlette.responses import JSONResponse


@dataclass(frozen=True)
class RequestDescriptor:
    method: str
    path: str
    headers: Mapping[str, str] = field(default_factory=dict)
    body: Optional[Mapping[str, Any]] = None

    def __post_init__(self):
        object.__setattr__(self, "method", self.method.upper())
        lowered = {name.lower(): value for name, value in (self.headers or {}).items()}
        object.__setattr__(self, "headers", MappingProxyType(lowered))

    def header(self, name: str) -> Optional[str]:
        """Header value, or None when absent or empty."""
        return self.headers.get(name.lower()) or None

    @classmethod
    def from_request(cls, request) -> "RequestDescriptor":
        """Body is whatever an upstream parser left on request.state.parsed_body."""
        # Starlette keeps the first value for repeated headers.
        headers = {name: request.headers[name] for name in request.headers.keys()}
        body = getattr(request.state, "parsed_body", None)
        return cls(method=request.method, path=request.url.path, headers=headers, body=body)


@dataclass(frozen=True)
class Decision:
    allowed: bool
    status_code: int = 200
    error: str = ""

    @classmethod
    def allow(cls) -> "Decision":
        return _ALLOW

    @classmethod
    def reject(cls, status_code: int, error: str) -> "Decision":
        return cls(allowed=False, status_code=status_code, error=error)

    @property
    def body(self) -> dict:
        return {"error": self.error}

    def to_response(self) -> JSONResponse:
        return JSONResponse(self.body, status_code=self.status_code)


_ALLOW = Decision(allowed=True)


def original_url(request) -> str:
    """Path plus query string, as the client sent it."""
    query = request.url.query
    return f"{request.url.path}?{query}" if query else request.url.path
