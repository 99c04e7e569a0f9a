"""
SECURITY INTEGRATION MODULE
============================
Wires the request gatekeeper into a FastAPI/Starlette application.

Request order, outermost first:
1. activity_logging - request log line with final status
2. csrf_protection - origin allowlist / CSRF check
3. input_length_limits - JSON body parsing (precondition for 4 and 5)
4. input_validation - /graphql body properties
5. input_validation - /auth/login body properties
6. endpoint_validation - /graphql/* sub-path allowlist
7. status_rewrite - 403 -> 404 for route responses

The status rewriter is innermost so the gatekeeper's own 403 bodies reach
the client unchanged.
"""

from __future__ import annotations

import logging
from typing import Optional

from Security.activity_logging import ActivityLoggingMiddleware
from Security.csrf_protection import OriginCheckMiddleware
from Security.endpoint_validation import EndpointValidationMiddleware
from Security.input_length_limits import BodyParserMiddleware
from Security.input_validation import auth_login_property_validation, graphql_property_validation
from Security.metrics import configure_metrics, set_feature_enabled
from Security.security_config import GatekeeperConfig, load_gatekeeper_config
from Security.status_rewrite import StatusRewriteMiddleware


class GatekeeperIntegration:
    """Installs the gatekeeper middleware stack for one config."""

    def __init__(self, config: Optional[GatekeeperConfig] = None):
        self.config = config or load_gatekeeper_config()
        self.logger = logging.getLogger("security")

    def feature_flags(self) -> dict[str, bool]:
        return {
            "origin-check": self.config.origin_check_enabled,
            "body-parser": self.config.body_parser_enabled,
            "property-validation": self.config.property_validation_enabled,
            "endpoint-validation": self.config.endpoint_validation_enabled,
            "status-rewrite": self.config.status_rewrite_enabled,
        }

    def apply_middlewares(self, app) -> None:
        """Add middleware innermost first; Starlette wraps each new one around the last."""
        config = self.config

        if config.status_rewrite_enabled:
            app.add_middleware(StatusRewriteMiddleware)

        if config.endpoint_validation_enabled:
            app.add_middleware(EndpointValidationMiddleware)

        if config.property_validation_enabled:
            app.add_middleware(auth_login_property_validation)
            app.add_middleware(graphql_property_validation)
            if not config.body_parser_enabled:
                self.logger.warning("Property validation is enabled without the body parser; it will not run")

        if config.body_parser_enabled:
            app.add_middleware(BodyParserMiddleware, max_bytes=config.max_body_bytes)

        if config.origin_check_enabled:
            app.add_middleware(OriginCheckMiddleware, config=config)

        app.add_middleware(ActivityLoggingMiddleware)

        configure_metrics(config.metrics_enabled)
        for feature, enabled in self.feature_flags().items():
            set_feature_enabled(feature, enabled)

        self.logger.info(
            "Gatekeeper mode=%s public_url=%s features=%s",
            "allowlist" if config.allowlist_mode else "csrf",
            config.public_url,
            ",".join(name for name, enabled in self.feature_flags().items() if enabled) or "-",
        )
        self.logger.info("--- [init:routes.before] Request gatekeeper middleware installed ---")


def apply_gatekeeper_to_app(app, config: Optional[GatekeeperConfig] = None) -> GatekeeperIntegration:
    """
    Apply the request gatekeeper to a FastAPI app instance.

    Usage:
        from fastapi import FastAPI
        from security_integration import apply_gatekeeper_to_app

        app = FastAPI()
        apply_gatekeeper_to_app(app)
    """
    integration = GatekeeperIntegration(config)
    integration.apply_middlewares(app)
    return integration


__all__ = ["GatekeeperIntegration", "apply_gatekeeper_to_app"]
