from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_POKEAPI_BASE_URL = "https://pokeapi.co/api/v2"
DEFAULT_CATALOG_LIMIT = 2000
DEFAULT_TIMEOUT_SECONDS = 8.0


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    host: str = "0.0.0.0"
    port: int = 3000
    api_key: str = ""
    pokeapi_base_url: str = DEFAULT_POKEAPI_BASE_URL
    catalog_limit: int = DEFAULT_CATALOG_LIMIT
    upstream_timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    slack_signing_secret: str = ""
    api_base_url: str = ""
    version: str = "dev"
    commit: str = "unknown"

    @property
    def self_base_url(self) -> str:
        """Base URL the Slack relay uses to reach this service's own API."""
        if self.api_base_url:
            return self.api_base_url.rstrip("/")
        return f"http://localhost:{self.port}"

    @classmethod
    def from_env(cls) -> "Settings":
        port = _env_int("PORT", 3000)
        return cls(
            host=os.getenv("HOST", "0.0.0.0"),
            port=port,
            api_key=os.getenv("MY_API_KEY", ""),
            pokeapi_base_url=(
                os.getenv("POKEAPI_BASE_URL", "").strip() or DEFAULT_POKEAPI_BASE_URL
            ).rstrip("/"),
            catalog_limit=max(1, _env_int("CATALOG_LIMIT", DEFAULT_CATALOG_LIMIT)),
            upstream_timeout_seconds=max(
                1.0, _env_float("UPSTREAM_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS)
            ),
            slack_signing_secret=os.getenv("SLACK_SIGNING_SECRET", ""),
            api_base_url=os.getenv("API_BASE_URL", "").strip(),
            version=os.getenv("APP_VERSION", "dev"),
            commit=os.getenv("COMMIT_SHA", "unknown"),
        )
