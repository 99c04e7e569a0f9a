from __future__ import annotations

from typing import Optional

from fastapi import FastAPI
from fastapi.responses import PlainTextResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from Security.error_handling import register_error_handlers
from Security.security_config import GatekeeperConfig
from security_integration import apply_gatekeeper_to_app


def create_app(config: Optional[GatekeeperConfig] = None) -> FastAPI:
    app = FastAPI()
    integration = apply_gatekeeper_to_app(app, config)
    app.state.gatekeeper = integration.config
    register_error_handlers(app)

    @app.get("/server/ping", response_class=PlainTextResponse)
    def ping():
        return "pong"

    if integration.config.metrics_enabled:
        @app.get("/metrics")
        def metrics():
            return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

    return app


app = create_app()
