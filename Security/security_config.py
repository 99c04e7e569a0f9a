"""
SECURITY CONFIG
===============
Gatekeeper settings loaded from environment.
"""

# FLOW:
# - Load .env once, then build an immutable GatekeeperConfig.
# WHY:
# - Middleware receives its settings explicitly at startup.
# HOW:
# - Reads env vars with typed helpers and freezes the result.

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from urllib.parse import urlparse

import dotenv

from Security.error_handling import ConfigurationError


DEFAULT_PUBLIC_URL = "http://localhost:8055"
DEFAULT_MAX_BODY_BYTES = 1024 * 1024


def get_bool(name: str, default: bool = False) -> bool:
    return os.getenv(name, str(default)).strip().lower() == "true"


def get_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return default


def get_list(name: str, default: list[str]) -> list[str]:
    raw = os.getenv(name)
    if not raw:
        return default
    return [item.strip() for item in raw.split(",") if item.strip()]


def feature_enabled(feature: str, default: bool = True) -> bool:
    """Toggle lookup: 'status-rewrite' reads STATUS_REWRITE_ENABLED."""
    env_name = feature.upper().replace("-", "_") + "_ENABLED"
    return get_bool(env_name, default)


def _env_path() -> str:
    root = os.path.dirname(os.path.dirname(__file__))
    return os.path.join(root, os.getenv("GATEKEEPER_ENV_FILE", ".env"))


@dataclass(frozen=True)
class GatekeeperConfig:
    allowed_origins: tuple[str, ...] = ()
    public_url: str = DEFAULT_PUBLIC_URL
    origin_check_enabled: bool = True
    property_validation_enabled: bool = True
    endpoint_validation_enabled: bool = True
    status_rewrite_enabled: bool = True
    body_parser_enabled: bool = True
    max_body_bytes: int = DEFAULT_MAX_BODY_BYTES
    metrics_enabled: bool = True

    def __post_init__(self):
        # Accept any iterable but always store a tuple.
        object.__setattr__(self, "allowed_origins", tuple(self.allowed_origins))
        parsed = urlparse(self.public_url)
        if parsed.scheme not in {"http", "https"} or not parsed.netloc:
            raise ConfigurationError(f"PUBLIC_URL must be an absolute http(s) URL, got {self.public_url!r}")

    @property
    def allowlist_mode(self) -> bool:
        return bool(self.allowed_origins)


def load_gatekeeper_config() -> GatekeeperConfig:
    """Read the environment once and return the frozen gatekeeper settings."""
    dotenv.load_dotenv(_env_path())
    config = GatekeeperConfig(
        allowed_origins=tuple(get_list("ALLOWED_ORIGINS", [])),
        public_url=os.getenv("PUBLIC_URL") or DEFAULT_PUBLIC_URL,
        origin_check_enabled=feature_enabled("origin-check"),
        property_validation_enabled=feature_enabled("property-validation"),
        endpoint_validation_enabled=feature_enabled("endpoint-validation"),
        status_rewrite_enabled=feature_enabled("status-rewrite"),
        body_parser_enabled=feature_enabled("body-parser"),
        max_body_bytes=get_int("MAX_BODY_BYTES", DEFAULT_MAX_BODY_BYTES),
        metrics_enabled=get_bool("PROMETHEUS_ENABLED", True),
    )

    if get_bool("APP_ENV_LOG", False):
        logger = logging.getLogger("security.env")
        logger.info(
            "Gatekeeper config: mode=%s origins=%s public_url=%s",
            "allowlist" if config.allowlist_mode else "csrf",
            ",".join(config.allowed_origins) or "-",
            config.public_url,
        )
    return config
