"""Hot-path lookups against the current directory snapshot."""
from __future__ import annotations

from typing import NamedTuple, Optional, Tuple

from .config import zones_match
from .directory import DirectorySnapshot

APEX_NAME = "@"
RECORD_TYPE = "A"

OUTCOME_HIT = "hit"
OUTCOME_MISS = "miss"
OUTCOME_FOREIGN_ZONE = "foreign_zone"
OUTCOME_APEX = "apex"


class Answer(NamedTuple):
    """A resolved address record."""
    name: str
    address: str
    ttl: int
    rtype: str = RECORD_TYPE

    def as_dict(self) -> dict:
        return {"name": self.name, "address": self.address, "ttl": self.ttl, "type": self.rtype}


def is_apex(zone_name: str, query_name: str) -> bool:
    """True for ``@`` or for the zone's own name; those records belong to the DNS server."""
    return query_name == APEX_NAME or zones_match(zone_name, query_name)


def resolve_with_outcome(
    snapshot: DirectorySnapshot,
    zone_name: str,
    query_zone: str,
    query_name: str,
    ttl: int,
) -> Tuple[Optional[Answer], str]:
    """Like resolve(), also returning why: hit, miss, foreign_zone or apex."""
    if not zones_match(zone_name, query_zone):
        return None, OUTCOME_FOREIGN_ZONE
    if not query_name or is_apex(zone_name, query_name):
        return None, OUTCOME_APEX

    entry = snapshot.find(query_name)
    if entry is None:
        return None, OUTCOME_MISS
    return Answer(name=entry.hostname, address=entry.address, ttl=ttl), OUTCOME_HIT


def resolve(
    snapshot: DirectorySnapshot,
    zone_name: str,
    query_zone: str,
    query_name: str,
    ttl: int,
) -> Optional[Answer]:
    """Resolve ``query_name`` in ``query_zone``.

    Returns None when the zone is not ours, when the name is the zone
    apex, or when no entry matches. None is the normal not-found outcome.
    """
    answer, _ = resolve_with_outcome(snapshot, zone_name, query_zone, query_name, ttl)
    return answer
