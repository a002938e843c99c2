"""
In-memory peer directory.

A DirectorySnapshot is built once per refresh and never changed after
that. DirectoryStore holds the current snapshot and swaps it under a
reader/writer lock that protects only the reference, so lookups wait at
most for a single assignment while a refresh publishes.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, Optional, Tuple

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DirectoryEntry:
    """One hostname -> IPv4 mapping."""
    hostname: str
    address: str


class DirectorySnapshot:
    """Immutable, ordered collection of directory entries.

    Duplicate hostnames are kept in source order; find() returns the
    first one. Matching is case-insensitive.
    """

    __slots__ = ("_entries", "_index", "_generation", "_built_at", "_skipped")

    def __init__(self, entries: Iterable[DirectoryEntry] = (), generation: int = 0,
                 built_at: Optional[float] = None, skipped: int = 0):
        self._entries: Tuple[DirectoryEntry, ...] = tuple(entries)
        index: Dict[str, DirectoryEntry] = {}
        for entry in self._entries:
            index.setdefault(entry.hostname.lower(), entry)
        self._index = index
        self._generation = generation
        self._built_at = time.time() if built_at is None else built_at
        self._skipped = skipped

    @property
    def entries(self) -> Tuple[DirectoryEntry, ...]:
        return self._entries

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def built_at(self) -> float:
        return self._built_at

    @property
    def skipped(self) -> int:
        """Source records dropped while building this snapshot."""
        return self._skipped

    def find(self, hostname: str) -> Optional[DirectoryEntry]:
        """Return the first entry whose hostname matches, ignoring case."""
        if not hostname:
            return None
        return self._index.get(hostname.lower())

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[DirectoryEntry]:
        return iter(self._entries)

    def __contains__(self, hostname: str) -> bool:
        return self.find(hostname) is not None

    def __repr__(self) -> str:
        return f"<DirectorySnapshot generation={self._generation} entries={len(self._entries)}>"


# Published before the first successful refresh
EMPTY_SNAPSHOT = DirectorySnapshot((), generation=0, built_at=0.0)


class ReadWriteLock:
    """Many concurrent readers or one writer.

    Writers are preferred: once a writer is waiting, new readers queue
    behind it, so a steady lookup load cannot starve a publish.
    """

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    def acquire_read(self) -> None:
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1

    def release_read(self) -> None:
        with self._cond:
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def acquire_write(self) -> None:
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True

    def release_write(self) -> None:
        with self._cond:
            self._writer = False
            self._cond.notify_all()

    def reading(self) -> "_Guard":
        return _Guard(self.acquire_read, self.release_read)

    def writing(self) -> "_Guard":
        return _Guard(self.acquire_write, self.release_write)


class _Guard:
    __slots__ = ("_enter", "_exit")

    def __init__(self, enter, exit_):
        self._enter = enter
        self._exit = exit_

    def __enter__(self):
        self._enter()
        return self

    def __exit__(self, exc_type, exc, tb):
        self._exit()
        return False


class DirectoryStore:
    """Holds the currently published snapshot."""

    def __init__(self, initial: DirectorySnapshot = EMPTY_SNAPSHOT):
        self._lock = ReadWriteLock()
        self._current = initial
        self._generation = initial.generation

    def read(self) -> DirectorySnapshot:
        """Return the current snapshot. Readers never block each other."""
        with self._lock.reading():
            return self._current

    def next_generation(self) -> int:
        """Generation number to stamp on the next snapshot built for this store."""
        with self._lock.reading():
            return self._generation + 1

    def publish(self, snapshot: DirectorySnapshot) -> DirectorySnapshot:
        """Make ``snapshot`` current and return the one it replaced.

        The snapshot must already be fully built; nothing proportional to
        its size happens while the write lock is held.
        """
        with self._lock.writing():
            previous = self._current
            self._current = snapshot
            self._generation = max(self._generation, snapshot.generation)
        logger.debug(f"Published {snapshot!r}, replaced {previous!r}")
        return previous

    def clear(self) -> None:
        """Drop the current snapshot (used on shutdown)."""
        with self._lock.writing():
            self._current = EMPTY_SNAPSHOT
