"""HTTP surface: resolve, zone delegation, status, manual refresh and metrics."""
from __future__ import annotations

from prometheus_client import REGISTRY


def test_health(client) -> None:
    r = client.get("/health")
    assert r.status_code == 200
    assert r.get_json()["version"] == "test"


def test_resolve_before_and_after_refresh(client, cache) -> None:
    assert client.get("/resolve/nas").status_code == 404

    cache.refresh()
    r = client.get("/resolve/nas?zone=vpn.internal.")
    assert r.status_code == 200
    assert r.get_json() == {
        "name": "nas",
        "address": "100.64.0.5",
        "ttl": 60,
        "type": "A",
        "zone": "vpn.internal.",
    }


def test_resolve_foreign_zone_is_not_found(client, cache) -> None:
    cache.refresh()
    assert client.get("/resolve/nas?zone=other.zone").status_code == 404


def test_zone_delegation(client) -> None:
    assert client.get("/zone?zone=VPN.internal.").get_json()["authoritative"] is True
    assert client.get("/zone?zone=other.zone").get_json()["authoritative"] is False
    assert client.get("/zone").status_code == 400


def test_refresh_requires_token(client) -> None:
    assert client.post("/refresh").status_code == 401
    assert client.post("/refresh", headers={"X-API-Key": "wrong"}).status_code == 401


def test_refresh_publishes(client) -> None:
    r = client.post("/refresh", headers={"X-API-Key": "secret"})
    assert r.status_code == 200
    assert r.get_json() == {"outcome": "published", "entries": 1, "generation": 1}


def test_refresh_failure_reports_bad_gateway(client, cache, fake_client) -> None:
    cache.refresh()
    fake_client.push(b"not json")
    r = client.post("/refresh", headers={"X-API-Key": "secret"})
    assert r.status_code == 502
    assert r.get_json()["outcome"] == "parse_error"


def test_status(client, cache) -> None:
    cache.refresh()
    body = client.get("/status").get_json()
    assert body["zone"] == "vpn.internal"
    assert body["entries"] == 1
    assert body["refresh"]["last_outcome"] == "published"


def _sample(name: str, **labels) -> float:
    return REGISTRY.get_sample_value(name, labels) or 0.0


def test_metrics(client, cache) -> None:
    hits = _sample("peerdns_lookups_total", zone="vpn.internal", result="hit")
    misses = _sample("peerdns_lookups_total", zone="vpn.internal", result="miss")
    published = _sample("peerdns_refresh_total", zone="vpn.internal", outcome="published")

    cache.refresh()
    client.get("/resolve/nas")
    client.get("/resolve/missing")

    r = client.get("/metrics")
    assert r.status_code == 200
    assert "peerdns_directory_entries" in r.get_data(as_text=True)

    assert _sample("peerdns_directory_entries", zone="vpn.internal") == 1.0
    assert _sample("peerdns_lookups_total", zone="vpn.internal", result="hit") == hits + 1
    assert _sample("peerdns_lookups_total", zone="vpn.internal", result="miss") == misses + 1
    assert _sample("peerdns_refresh_total", zone="vpn.internal", outcome="published") == published + 1


def test_refresh_reports_unexpected_client_error(client, cache, fake_client) -> None:
    cache.refresh()
    fake_client.push(ValueError("bad url"))
    r = client.post("/refresh", headers={"X-API-Key": "secret"})
    assert r.status_code == 502
    assert r.get_json() == {"outcome": "failed", "entries": 1, "generation": 1}


def test_refresh_after_shutdown_is_unavailable(client, cache) -> None:
    cache.refresh()
    cache.shutdown()
    r = client.post("/refresh", headers={"X-API-Key": "secret"})
    assert r.status_code == 503
    assert r.get_json() == {"outcome": "stopped", "entries": 0, "generation": 0}
