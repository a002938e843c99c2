"""Configuration loaded from environment variables."""
from __future__ import annotations

import os
from dataclasses import dataclass

from .exceptions import InitError

DEFAULT_API_URL = "https://api.netbird.io/api/peers"
DEFAULT_REFRESH_INTERVAL = 300  # 5 min
DEFAULT_REQUEST_TIMEOUT = 10
DEFAULT_RECORD_TTL = 60


def _env_bool(name: str, default: str) -> bool:
    return os.environ.get(name, default).lower() in ("true", "1", "yes")


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise InitError(f"{name} must be an integer, got {raw!r}")


def normalize_zone(zone: str) -> str:
    """Lowercase a zone name and drop at most one trailing dot."""
    if zone.endswith("."):
        zone = zone[:-1]
    return zone.lower()


def zones_match(left: str, right: str) -> bool:
    """Compare two zone names ignoring case and a single trailing dot on either side.

    ``"example.com"`` and ``"Example.COM."`` match; ``"example.com"`` and
    ``"other.com"`` do not.
    """
    if left is None or right is None:
        return False
    return normalize_zone(left) == normalize_zone(right)


@dataclass(frozen=True)
class ZoneConfig:
    """Settings for one cache instance.

    zone_name and api_key are required; everything else has a default
    matching the public NetBird peers API. The instance is frozen so a
    running refresh thread can never observe a config change.
    """

    zone_name: str
    api_key: str
    api_endpoint: str = DEFAULT_API_URL
    refresh_interval: float = DEFAULT_REFRESH_INTERVAL
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    record_ttl: int = DEFAULT_RECORD_TTL
    verify_ssl: bool = True

    def __post_init__(self) -> None:
        if not self.zone_name:
            raise InitError("A zone name is required (PEERDNS_ZONE).")
        if not self.api_key:
            raise InitError("An API key is required (PEERDNS_API_KEY).")
        if not self.api_endpoint:
            # frozen=True means we must use object.__setattr__ here
            object.__setattr__(self, "api_endpoint", DEFAULT_API_URL)
        if self.refresh_interval <= 0:
            raise InitError("refresh_interval must be positive.")
        if self.request_timeout <= 0:
            raise InitError("request_timeout must be positive.")
        if self.record_ttl < 0:
            raise InitError("record_ttl must not be negative.")

    @classmethod
    def from_env(cls) -> "ZoneConfig":
        """Build a config from PEERDNS_* environment variables."""
        return cls(
            zone_name=os.environ.get("PEERDNS_ZONE", ""),
            api_key=os.environ.get("PEERDNS_API_KEY", ""),
            api_endpoint=os.environ.get("PEERDNS_API_URL", DEFAULT_API_URL).strip(),
            refresh_interval=_env_int("PEERDNS_REFRESH_INTERVAL", DEFAULT_REFRESH_INTERVAL),
            request_timeout=_env_int("PEERDNS_TIMEOUT", DEFAULT_REQUEST_TIMEOUT),
            record_ttl=_env_int("PEERDNS_RECORD_TTL", DEFAULT_RECORD_TTL),
            verify_ssl=_env_bool("PEERDNS_VERIFY_SSL", "true"),
        )

    def matches(self, zone: str) -> bool:
        return zones_match(self.zone_name, zone)

    def __repr__(self) -> str:
        # never print the API key
        return (
            f"<ZoneConfig zone='{self.zone_name}', endpoint='{self.api_endpoint}', "
            f"interval={self.refresh_interval}s, timeout={self.request_timeout}s, ttl={self.record_ttl}>"
        )


class Config:
    """Flask application settings (loaded with ``app.config.from_object``)."""

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    APP_VERSION = os.environ.get("VERSION", "dev")

    PORT = int(os.environ.get("PORT", "8000"))

    # Optional shared secret for POST /refresh, sent as X-API-Key
    API_TOKEN = os.environ.get("API_TOKEN", "")

    # Set to false to build the app without a background refresh thread
    REFRESH_ENABLED = os.environ.get("PEERDNS_REFRESH_ENABLED", "true").lower() == "true"
