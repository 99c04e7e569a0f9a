"""
ENDPOINT VALIDATION
===================
Blocks GraphQL sub-paths other than /graphql/system.
"""

# FLOW:
# - Every request URL (path plus query string) is matched against one regex.
# WHY:
# - Only /graphql and /graphql/system are meant to be reachable.
# HOW:
# - Negative lookahead for the "system" segment.

from __future__ import annotations

import re

from starlette.middleware.base import BaseHTTPMiddleware

from Security.decision import Decision, original_url
from Security.metrics import record_decision


INVALID_GRAPHQL_ENDPOINT = re.compile(r"^/graphql/(?!system(?:/|$)).*")

INVALID_ENDPOINT = "Invalid endpoint."


def check_endpoint(url: str) -> Decision:
    if INVALID_GRAPHQL_ENDPOINT.match(url):
        return Decision.reject(400, INVALID_ENDPOINT)
    return Decision.allow()


class EndpointValidationMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request, call_next):
        decision = check_endpoint(original_url(request))
        record_decision("endpoint-validation", decision)
        if not decision.allowed:
            return decision.to_response()
        return await call_next(request)
