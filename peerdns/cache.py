"""
Directory cache instances and the functions a host process calls.

A DirectoryCache bundles one zone's config, its directory store and its
refresh scheduler. Instances are independent: a process can run several
zones side by side and shut each one down on its own.
"""
from __future__ import annotations

import logging
import time
from typing import Optional

from . import metrics
from .client import PeerClient
from .config import ZoneConfig
from .directory import DirectorySnapshot, DirectoryStore
from .exceptions import InitError
from .lookup import Answer, resolve_with_outcome
from .scheduler import RefreshScheduler

logger = logging.getLogger(__name__)


class DirectoryCache:
    """One zone's peer directory, kept fresh by a background thread."""

    def __init__(self, config: ZoneConfig, client=None) -> None:
        self._config = config
        self._client = client if client is not None else PeerClient(config)
        self._store = DirectoryStore()
        self._scheduler = RefreshScheduler(
            self._client, self._store, config.refresh_interval, zone=config.zone_name
        )
        self._closed = False

    @property
    def config(self) -> ZoneConfig:
        return self._config

    @property
    def scheduler(self) -> RefreshScheduler:
        return self._scheduler

    @property
    def closed(self) -> bool:
        return self._closed

    def start(self) -> "DirectoryCache":
        """Start background refreshing. Raises InitError if the thread cannot start."""
        try:
            self._scheduler.start()
        except RuntimeError as exc:
            self._close_client()
            raise InitError(f"Could not start refresh thread for zone '{self._config.zone_name}': {exc}") from exc
        return self

    def shutdown(self) -> None:
        """Stop the refresh thread, wait for it, then drop the directory.

        Safe to call more than once.
        """
        if self._closed:
            return
        self._closed = True
        self._scheduler.stop()
        self._store.clear()
        self._close_client()
        logger.info(f"Cache for zone '{self._config.zone_name}' shut down")

    def _close_client(self) -> None:
        close = getattr(self._client, "close", None)
        if close is not None:
            close()

    def snapshot(self) -> DirectorySnapshot:
        return self._store.read()

    def refresh(self) -> str:
        """Run one refresh cycle now, on the calling thread."""
        return self._scheduler.run_cycle()

    def matches_zone(self, zone: str) -> bool:
        return self._config.matches(zone)

    def lookup(self, zone: str, name: str) -> Optional[Answer]:
        """Resolve ``name`` in ``zone``; None means not found."""
        answer, outcome = resolve_with_outcome(
            self._store.read(), self._config.zone_name, zone, name, self._config.record_ttl
        )
        metrics.record_lookup(self._config.zone_name, outcome)
        return answer

    def get_stats(self) -> dict:
        snapshot = self._store.read()
        return {
            "zone": self._config.zone_name,
            "endpoint": self._config.api_endpoint,
            "entries": len(snapshot),
            "skipped": snapshot.skipped,
            "generation": snapshot.generation,
            "snapshot_age_seconds": round(time.time() - snapshot.built_at, 1) if snapshot.generation else None,
            "refresh": self._scheduler.get_stats(),
        }

    def __repr__(self) -> str:
        return f"<DirectoryCache {self._config!r}>"


def initialize(zone_name: str, api_key: str, api_endpoint: Optional[str] = None,
               client=None, **tunables) -> DirectoryCache:
    """Create a cache for ``zone_name`` and start refreshing it.

    ``tunables`` are passed through to ZoneConfig (refresh_interval,
    request_timeout, record_ttl, verify_ssl).

    Raises:
        InitError: missing zone name or API key, or the refresh thread
            could not be started.
    """
    config = ZoneConfig(
        zone_name=zone_name,
        api_key=api_key,
        api_endpoint=api_endpoint or "",
        **tunables,
    )
    return DirectoryCache(config, client=client).start()


def shutdown(cache: DirectoryCache) -> None:
    cache.shutdown()


def lookup(cache: DirectoryCache, zone: str, name: str) -> Optional[Answer]:
    return cache.lookup(zone, name)


def matches_zone(cache: DirectoryCache, zone: str) -> bool:
    return cache.matches_zone(zone)
