"""
Shared fixtures.

The peer-list API is replaced by FakePeerClient, which hands out queued
bodies or raises queued exceptions, so no test touches the network.
"""
from __future__ import annotations

import json
import threading
from collections import deque

import pytest

from peerdns.config import Config, ZoneConfig
from peerdns.cache import DirectoryCache


class FakePeerClient:
    """Stand-in for PeerClient.fetch().

    Each queued item is either bytes/str (returned) or an exception
    (raised). When the queue is empty the last item repeats.
    """

    def __init__(self, *responses):
        self._responses = deque(responses)
        self._last = responses[-1] if responses else b"[]"
        self.calls = 0
        self.fetched = threading.Event()
        self.closed = False

    def push(self, response) -> None:
        self._responses.append(response)

    def fetch(self):
        self.calls += 1
        self.fetched.set()
        item = self._responses.popleft() if self._responses else self._last
        self._last = item
        if isinstance(item, BaseException):
            raise item
        return item

    def close(self) -> None:
        self.closed = True


def peers_body(*peers) -> bytes:
    return json.dumps(list(peers)).encode("utf-8")


@pytest.fixture
def zone_config() -> ZoneConfig:
    return ZoneConfig(zone_name="vpn.internal", api_key="test-key", api_endpoint="http://peers.test/api/peers")


@pytest.fixture
def fake_client() -> FakePeerClient:
    return FakePeerClient(peers_body({"hostname": "nas.vpn.internal", "ip": "100.64.0.5"}))


@pytest.fixture
def cache(zone_config, fake_client):
    """A cache whose refresh thread is never started; call refresh() by hand."""
    c = DirectoryCache(zone_config, client=fake_client)
    yield c
    c.shutdown()


class _TestConfig(Config):
    TESTING = True
    APP_VERSION = "test"
    API_TOKEN = "secret"


@pytest.fixture
def app(cache):
    from peerdns import create_app
    return create_app(_TestConfig, cache=cache)


@pytest.fixture
def client(app):
    return app.test_client()
