"""
Runner for the reference gatekeeper app.

Usage:
  HOST=0.0.0.0 PORT=8055 press-gatekeeper
"""

from __future__ import annotations

import os

import uvicorn


def _get_env(name: str, default: str | None = None) -> str | None:
    value = os.getenv(name, default)
    return value if value not in (None, "") else None


def build_server_config() -> uvicorn.Config:
    return uvicorn.Config(
        "app.main:app",
        host=_get_env("HOST", "0.0.0.0"),
        port=int(_get_env("PORT", "8055")),
        proxy_headers=True,
        forwarded_allow_ips=_get_env("FORWARDED_ALLOW_IPS", "127.0.0.1"),
    )


def main() -> None:
    server = uvicorn.Server(build_server_config())
    server.run()


if __name__ == "__main__":
    main()
