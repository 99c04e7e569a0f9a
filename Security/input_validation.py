"""
INPUT VALIDATION
================
Request-body property allowlists for sensitive routes.
"""

# FLOW:
# - PropertyValidationMiddleware is mounted on one path prefix.
# - check_properties() rejects bodies carrying unknown keys.
# WHY:
# - Blocks mass-assignment style payloads on login and GraphQL.
# HOW:
# - Set membership over the keys of the already-parsed body.
#
# PRECONDITION:
# - The body must already be parsed into request.state.parsed_body
#   (see Security.input_length_limits.BodyParserMiddleware). If it is
#   not, the check does nothing; it never reads the body itself.

from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional

from starlette.middleware.base import BaseHTTPMiddleware

from Security.activity_logging import get_security_logger
from Security.decision import Decision, RequestDescriptor
from Security.metrics import record_decision


GRAPHQL_ALLOWED_PROPERTIES = frozenset({"query", "variables", "operationName"})
AUTH_LOGIN_ALLOWED_PROPERTIES = frozenset({"email", "password", "mode"})

INVALID_PROPERTIES = "Request contains invalid properties."

logger = get_security_logger("properties")


def check_properties(body: Optional[Mapping[str, Any]], allowed: Iterable[str]) -> Decision:
    allowed = frozenset(allowed)
    if not body:
        return Decision.allow()
    if all(key in allowed for key in body):
        return Decision.allow()
    return Decision.reject(400, INVALID_PROPERTIES)


def path_matches_mount(path: str, mount: str) -> bool:
    mount = mount.rstrip("/")
    return path == mount or path.startswith(mount + "/")


class PropertyValidationMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, mount: str, allowed: Iterable[str], name: str = "property-validation"):
        super().__init__(app)
        self.mount = mount
        self.allowed = frozenset(allowed)
        self.name = name

    async def dispatch(self, request, call_next):
        if not path_matches_mount(request.url.path, self.mount):
            return await call_next(request)

        descriptor = RequestDescriptor.from_request(request)
        if descriptor.body is None:
            logger.debug("%s skipped for %s: body not parsed", self.name, descriptor.path)
            return await call_next(request)

        decision = check_properties(descriptor.body, self.allowed)
        record_decision(self.name, decision)
        if not decision.allowed:
            unknown = sorted(key for key in descriptor.body if key not in self.allowed)
            logger.warning("Rejected %s %s with properties: %s", descriptor.method, descriptor.path, ", ".join(unknown))
            return decision.to_response()
        return await call_next(request)


def graphql_property_validation(app):
    return PropertyValidationMiddleware(app, "/graphql", GRAPHQL_ALLOWED_PROPERTIES, name="graphql-properties")


def auth_login_property_validation(app):
    return PropertyValidationMiddleware(app, "/auth/login", AUTH_LOGIN_ALLOWED_PROPERTIES, name="login-properties")
