"""
Background scheduler that keeps the peer directory fresh.

Runs one refresh immediately so a cold cache gets data without waiting a
full interval, then one refresh per interval until stopped. A failed
refresh leaves the published snapshot alone: the last good directory
keeps answering until the API comes back.
"""

import logging
import threading
import time
from typing import Optional

from . import metrics
from .directory import DirectoryStore
from .exceptions import ParseError, TransportError
from .parser import parse_peers

logger = logging.getLogger(__name__)


class RefreshOutcome:
    PUBLISHED = "published"
    TRANSPORT_ERROR = "transport_error"
    PARSE_ERROR = "parse_error"
    FAILED = "failed"
    STOPPED = "stopped"


class RefreshScheduler:
    """
    Owns the refresh thread for one directory store.

    The wait between cycles is a threading.Event, so stop() wakes the
    thread at once. A request already in flight is not interrupted; it
    finishes (or times out) before the thread exits.
    """

    def __init__(self, client, store: DirectoryStore, interval: float, zone: str = ""):
        self._client = client
        self._store = store
        self.refresh_interval = interval
        self._zone = zone
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self._cycle_lock = threading.Lock()
        self._stats_lock = threading.Lock()
        self._stats = {
            "cycles": 0,
            "published": 0,
            "failures": 0,
            "consecutive_failures": 0,
            "last_attempt": None,
            "last_success": None,
            "last_error": None,
            "last_outcome": None,
        }

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def is_stopped(self) -> bool:
        return self._stop_event.is_set()

    def start(self):
        """Start the refresh thread. Raises RuntimeError if it cannot be started."""
        if self.is_stopped:
            raise RuntimeError("Scheduler was stopped and cannot be restarted")
        if self._thread is not None:
            return

        logger.info(f"Starting refresh scheduler for zone '{self._zone}' (interval: {self.refresh_interval}s)")
        thread = threading.Thread(target=self._refresh_loop, daemon=True, name=f"peerdns-refresh-{self._zone}")
        thread.start()
        self._thread = thread

    def stop(self, timeout: Optional[float] = None) -> bool:
        """Signal the thread to stop and wait for it.

        Also waits for a run_cycle() in progress on another thread, so
        nothing is published once this returns True. Returns True once the
        thread has exited (or was never started).
        """
        self._stop_event.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
            stopped = not thread.is_alive()
        else:
            stopped = True
        if self._cycle_lock.acquire(timeout=-1 if timeout is None else timeout):
            self._cycle_lock.release()
        else:
            stopped = False
        if stopped:
            logger.info(f"Refresh scheduler for zone '{self._zone}' stopped")
        else:
            logger.warning(f"Refresh scheduler for zone '{self._zone}' still running after {timeout}s")
        return stopped

    def _refresh_loop(self):
        """Background loop: refresh now, then once per interval."""
        while not self._stop_event.is_set():
            try:
                self.run_cycle()
            except Exception:
                logger.exception("Unexpected error in refresh loop")

            # Wait for next interval
            self._stop_event.wait(self.refresh_interval)

    def run_cycle(self) -> str:
        """Fetch, parse and publish once. Returns a RefreshOutcome value.

        Once the scheduler is stopped this does nothing and returns
        RefreshOutcome.STOPPED; a cycle that was already fetching when
        stop() was called discards its result.
        """
        with self._cycle_lock:
            if self.is_stopped:
                return RefreshOutcome.STOPPED
            started = time.time()
            try:
                raw = self._client.fetch()
            except TransportError as e:
                logger.error(f"Peer list fetch failed, keeping current directory: {e}")
                return self._finish(RefreshOutcome.TRANSPORT_ERROR, started, str(e))
            except Exception as e:
                logger.exception("Unexpected error while fetching peer list")
                return self._finish(RefreshOutcome.FAILED, started, str(e))

            try:
                snapshot = parse_peers(raw, generation=self._store.next_generation())
            except ParseError as e:
                logger.error(f"Peer list parse failed, keeping current directory: {e}")
                return self._finish(RefreshOutcome.PARSE_ERROR, started, str(e))
            except Exception as e:
                logger.exception("Unexpected error while parsing peer list")
                return self._finish(RefreshOutcome.FAILED, started, str(e))

            if self.is_stopped:
                logger.info(f"Scheduler for zone '{self._zone}' stopped during refresh, discarding result")
                return RefreshOutcome.STOPPED

            self._store.publish(snapshot)
            metrics.record_publish(self._zone, len(snapshot), snapshot.skipped, snapshot.built_at)
            logger.info(f"Directory for zone '{self._zone}' updated: {len(snapshot)} entries (generation {snapshot.generation})")
            return self._finish(RefreshOutcome.PUBLISHED, started, None)

    def _finish(self, outcome: str, started: float, error: Optional[str]) -> str:
        with self._stats_lock:
            self._stats["cycles"] += 1
            self._stats["last_attempt"] = started
            self._stats["last_outcome"] = outcome
            if outcome == RefreshOutcome.PUBLISHED:
                self._stats["published"] += 1
                self._stats["consecutive_failures"] = 0
                self._stats["last_success"] = started
            else:
                self._stats["failures"] += 1
                self._stats["consecutive_failures"] += 1
                self._stats["last_error"] = error
        metrics.record_refresh(self._zone, outcome)
        return outcome

    def get_stats(self) -> dict:
        """Return a copy of the refresh counters."""
        with self._stats_lock:
            stats = dict(self._stats)
        stats["running"] = self.is_running
        stats["interval_seconds"] = self.refresh_interval
        return stats
