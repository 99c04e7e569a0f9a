# Shared fixtures: gatekeeper configs and small FastAPI apps wired with the
# full middleware stack, exercised through TestClient.

import os
import tempfile

os.environ.setdefault("LOG_DIR", os.path.join(tempfile.gettempdir(), "gatekeeper-test-logs"))
os.environ.setdefault("GATEKEEPER_ENV_FILE", ".env.test-missing")

import pytest
from fastapi import FastAPI, HTTPException, Request
from fastapi.testclient import TestClient

from Security.error_handling import register_error_handlers
from Security.security_config import GatekeeperConfig
from security_integration import apply_gatekeeper_to_app

PUBLIC_URL = "http://localhost:8055"
VALID_ORIGIN = "https://press-cms.example.dev"
INVALID_ORIGIN = "https://malicious-site.com"


def build_app(config: GatekeeperConfig) -> FastAPI:
    app = FastAPI()
    apply_gatekeeper_to_app(app, config)
    register_error_handlers(app)

    @app.post("/auth/login")
    async def login(request: Request):
        return {"ok": True, "body": await request.json()}

    @app.post("/graphql")
    async def graphql(request: Request):
        return {"data": {"__typename": "Query"}}

    @app.post("/graphql/system")
    async def graphql_system():
        return {"data": {"__typename": "Query"}}

    @app.post("/graphql/system/{rest:path}")
    async def graphql_system_sub(rest: str):
        return {"data": {"rest": rest}}

    @app.post("/graphql/{rest:path}")
    async def graphql_other(rest: str):
        return {"data": {"rest": rest}}

    @app.get("/server/ping")
    async def ping():
        return "pong"

    @app.api_route("/items", methods=["GET", "HEAD", "OPTIONS", "POST", "PUT", "PATCH", "DELETE"])
    async def items():
        return {"ok": True}

    @app.get("/admin/secret")
    async def forbidden():
        raise HTTPException(status_code=403, detail="Forbidden")

    @app.post("/admin/secret")
    async def forbidden_post():
        raise HTTPException(status_code=403, detail="Forbidden")

    @app.get("/boom")
    async def boom():
        raise RuntimeError("database password leaked in message")

    @app.get("/teapot")
    async def teapot():
        raise HTTPException(status_code=418, detail="I'm a teapot")

    return app


@pytest.fixture
def allowlist_config():
    return GatekeeperConfig(
        allowed_origins=("press-cms.example.dev", "https://admin.example.dev:8443"),
        public_url=PUBLIC_URL,
    )


@pytest.fixture
def csrf_config():
    return GatekeeperConfig(allowed_origins=(), public_url=PUBLIC_URL)


@pytest.fixture
def allowlist_client(allowlist_config):
    return TestClient(build_app(allowlist_config), raise_server_exceptions=False)


@pytest.fixture
def csrf_client(csrf_config):
    return TestClient(build_app(csrf_config), raise_server_exceptions=False)
