"""Refresh cycles, the stale-but-available policy and thread lifecycle."""
from __future__ import annotations

import time

import pytest

from peerdns.directory import EMPTY_SNAPSHOT, DirectoryStore
from peerdns.exceptions import TransportError
from peerdns.scheduler import RefreshOutcome, RefreshScheduler

from .conftest import FakePeerClient, peers_body

GOOD = peers_body({"hostname": "nas", "ip": "100.64.0.5"}, {"name": "web box", "ip": "100.64.0.6"})


def test_cycle_publishes_parsed_snapshot() -> None:
    store = DirectoryStore()
    sched = RefreshScheduler(FakePeerClient(GOOD), store, interval=300, zone="vpn.internal")

    assert sched.run_cycle() == RefreshOutcome.PUBLISHED

    snap = store.read()
    assert snap.generation == 1
    assert [(e.hostname, e.address) for e in snap] == [("nas", "100.64.0.5"), ("web-box", "100.64.0.6")]


@pytest.mark.parametrize(
    "failure, outcome",
    [
        (TransportError("connection refused"), RefreshOutcome.TRANSPORT_ERROR),
        (b"<html>502 Bad Gateway</html>", RefreshOutcome.PARSE_ERROR),
        (b'{"error": "unauthorized"}', RefreshOutcome.PARSE_ERROR),
    ],
)
def test_failed_cycle_keeps_previous_snapshot(failure, outcome) -> None:
    store = DirectoryStore()
    sched = RefreshScheduler(FakePeerClient(GOOD, failure), store, interval=300)

    sched.run_cycle()
    before = store.read()

    assert sched.run_cycle() == outcome
    after = store.read()
    assert after is before
    assert list(after) == list(before)

    stats = sched.get_stats()
    assert stats["published"] == 1
    assert stats["failures"] == 1
    assert stats["consecutive_failures"] == 1
    assert stats["last_outcome"] == outcome
    assert stats["last_error"]


def test_failure_before_first_success_leaves_store_empty() -> None:
    store = DirectoryStore()
    sched = RefreshScheduler(FakePeerClient(TransportError("timeout")), store, interval=300)

    assert sched.run_cycle() == RefreshOutcome.TRANSPORT_ERROR
    assert store.read() is EMPTY_SNAPSHOT


def test_recovery_resets_consecutive_failures() -> None:
    store = DirectoryStore()
    sched = RefreshScheduler(FakePeerClient(TransportError("down"), TransportError("down"), GOOD), store, interval=300)

    sched.run_cycle()
    sched.run_cycle()
    assert sched.get_stats()["consecutive_failures"] == 2
    assert sched.run_cycle() == RefreshOutcome.PUBLISHED
    assert sched.get_stats()["consecutive_failures"] == 0
    assert len(store.read()) == 2


def test_empty_peer_list_replaces_directory() -> None:
    store = DirectoryStore()
    sched = RefreshScheduler(FakePeerClient(GOOD, b"[]"), store, interval=300)

    sched.run_cycle()
    assert sched.run_cycle() == RefreshOutcome.PUBLISHED
    assert len(store.read()) == 0
    assert store.read().generation == 2


# ════════════════════════════════════════════════════════════════════════════
# Thread lifecycle
# ════════════════════════════════════════════════════════════════════════════
def test_thread_refreshes_immediately_and_stops_promptly() -> None:
    client = FakePeerClient(GOOD)
    store = DirectoryStore()
    sched = RefreshScheduler(client, store, interval=300)

    sched.start()
    assert client.fetched.wait(5.0)

    started = time.monotonic()
    assert sched.stop(timeout=5.0)
    assert time.monotonic() - started < 5.0
    assert not sched.is_running
    assert client.calls == 1


def test_thread_repeats_on_interval() -> None:
    client = FakePeerClient(GOOD)
    sched = RefreshScheduler(client, DirectoryStore(), interval=0.05)

    sched.start()
    deadline = time.monotonic() + 5.0
    while client.calls < 3 and time.monotonic() < deadline:
        time.sleep(0.01)
    sched.stop(timeout=5.0)

    assert client.calls >= 3


def test_stopped_scheduler_cannot_restart() -> None:
    sched = RefreshScheduler(FakePeerClient(GOOD), DirectoryStore(), interval=300)
    assert sched.stop()
    with pytest.raises(RuntimeError):
        sched.start()


def test_loop_survives_unexpected_errors() -> None:
    client = FakePeerClient(RuntimeError("boom"), GOOD)
    store = DirectoryStore()
    sched = RefreshScheduler(client, store, interval=0.05)

    sched.start()
    deadline = time.monotonic() + 5.0
    while len(store.read()) == 0 and time.monotonic() < deadline:
        time.sleep(0.01)
    sched.stop(timeout=5.0)

    assert len(store.read()) == 2


# ════════════════════════════════════════════════════════════════════════════
# Unexpected client errors and stopped schedulers
# ════════════════════════════════════════════════════════════════════════════
def test_unexpected_fetch_error_is_counted_as_failed_cycle() -> None:
    store = DirectoryStore()
    sched = RefreshScheduler(FakePeerClient(ValueError("bad url")), store, interval=300)

    assert sched.run_cycle() == RefreshOutcome.FAILED

    stats = sched.get_stats()
    assert stats["cycles"] == 1
    assert stats["failures"] == 1
    assert stats["last_outcome"] == RefreshOutcome.FAILED
    assert stats["last_error"] == "bad url"
    assert store.read() is EMPTY_SNAPSHOT


def test_cycle_after_stop_does_nothing() -> None:
    client = FakePeerClient(GOOD)
    store = DirectoryStore()
    sched = RefreshScheduler(client, store, interval=300)

    assert sched.stop()
    assert sched.is_stopped
    assert sched.run_cycle() == RefreshOutcome.STOPPED
    assert client.calls == 0
    assert store.read() is EMPTY_SNAPSHOT
    assert sched.get_stats()["cycles"] == 0
