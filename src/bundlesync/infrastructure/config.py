"""Runtime settings, read from the environment (and a ``.env`` file).

Settings are resolved once at the composition root and passed down
explicitly; nothing below the bootstrap reads the environment.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from bundlesync.domain.exceptions import ConfigurationError

DEFAULT_API_VERSION = "2025-07"


@dataclass(frozen=True)
class ShopConnection:
    """Everything needed to talk to one shop's Admin API."""

    shop: str
    access_token: str
    api_version: str = DEFAULT_API_VERSION


@dataclass(frozen=True)
class Settings:
    connection: ShopConnection
    location_id: str
    http_timeout: float = 10.0
    max_attempts: int = 5
    backoff_base: float = 0.5
    workers: int = 4
    data_dir: Path = Path("data")
    log_format: str = "console"

    @classmethod
    def from_env(cls, env_file: str | None = None) -> Settings:
        load_dotenv(env_file)

        shop = _required("SHOPIFY_SHOP")
        return cls(
            connection=ShopConnection(
                shop=shop,
                access_token=_required("SHOPIFY_ACCESS_TOKEN"),
                api_version=os.getenv("SHOPIFY_API_VERSION", DEFAULT_API_VERSION),
            ),
            location_id=_required("SHOPIFY_LOCATION_ID"),
            http_timeout=_number("BUNDLESYNC_HTTP_TIMEOUT", 10.0, float),
            max_attempts=_number("BUNDLESYNC_MAX_ATTEMPTS", 5, int),
            backoff_base=_number("BUNDLESYNC_BACKOFF_BASE", 0.5, float),
            workers=_number("BUNDLESYNC_WORKERS", 4, int),
            data_dir=Path(os.getenv("BUNDLESYNC_DATA_DIR", "data")),
            log_format=os.getenv("BUNDLESYNC_LOG_FORMAT", "console"),
        )


def _required(name: str) -> str:
    value = os.getenv(name, "").strip()
    if not value:
        raise ConfigurationError(f"{name} is not set")
    return value


def _number(name: str, default, cast):
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = cast(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from exc
    if value <= 0:
        raise ConfigurationError(f"{name} must be positive, got {raw!r}")
    return value
