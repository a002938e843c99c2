"""
Peer-list parser.

Turns the raw JSON body returned by the peer-list API into a
DirectorySnapshot. The upstream schema is not fixed, so hostnames are
pulled through an ordered chain of extractors:

1. direct lookup of "hostname", then "name", string values only
2. iteration over every key looking for the same names; a non-string
   scalar is rendered as JSON text with its quotes stripped

Addresses come from "ip" and must be IPv4-looking strings. A peer that
yields no hostname or no address is skipped; the rest of the batch is
still used. Only a body that is not JSON, or not a JSON array, fails the
whole parse.
"""

import json
import logging
from typing import Any, Callable, Iterable, Iterator, List, Optional, Tuple

from .directory import DirectoryEntry, DirectorySnapshot
from .exceptions import ParseError

logger = logging.getLogger(__name__)

HOSTNAME_KEYS = ("hostname", "name")
ADDRESS_KEY = "ip"


def normalize_label(display_name: str) -> str:
    """Reduce a display name to a single DNS label.

    Cuts at the first dot and turns spaces into hyphens:
    ``"host.example.com" -> "host"``, ``"My Host" -> "My-Host"``.
    """
    return display_name.split(".", 1)[0].replace(" ", "-")


def _direct_hostname(peer: dict) -> Iterator[str]:
    for key in HOSTNAME_KEYS:
        value = peer.get(key)
        if isinstance(value, str):
            yield value


def _render_scalar(value: Any) -> Optional[str]:
    if isinstance(value, str):
        return value
    if isinstance(value, (bool, int, float)):
        return json.dumps(value).strip('"')
    return None


def _iterated_hostname(peer: dict) -> Iterator[str]:
    found = {}
    for key, value in peer.items():
        if key in HOSTNAME_KEYS and key not in found:
            rendered = _render_scalar(value)
            if rendered is not None:
                found[key] = rendered
    for key in HOSTNAME_KEYS:
        if key in found:
            yield found[key]


HOSTNAME_EXTRACTORS: Tuple[Callable[[dict], Iterator[str]], ...] = (
    _direct_hostname,
    _iterated_hostname,
)


def extract_hostname(peer: dict) -> Optional[str]:
    """Run the extractor chain and return the first non-empty label, or None.

    A candidate that normalizes to an empty label ('' or '.lan') falls
    through to the next key instead of dropping the peer.
    """
    for extractor in HOSTNAME_EXTRACTORS:
        for raw in extractor(peer):
            label = normalize_label(raw)
            if label:
                return label
    return None


def extract_address(peer: dict) -> Optional[str]:
    """Return the peer's IPv4 address string, or None.

    Values containing a colon are treated as IPv6 and ignored since only A
    records are served.
    """
    value = peer.get(ADDRESS_KEY)
    if not isinstance(value, str) or not value:
        return None
    if ":" in value:
        return None
    return value


def extract_entries(peers: Iterable[Any]) -> Tuple[List[DirectoryEntry], int]:
    """Build entries from decoded peer objects.

    Returns:
        (entries in source order, number of skipped elements)
    """
    entries: List[DirectoryEntry] = []
    skipped = 0
    for index, peer in enumerate(peers):
        if not isinstance(peer, dict):
            logger.debug(f"Skipping peer #{index}: not an object ({type(peer).__name__})")
            skipped += 1
            continue

        hostname = extract_hostname(peer)
        address = extract_address(peer)
        if hostname is None or address is None:
            logger.debug(f"Skipping peer #{index}: hostname={hostname!r} address={address!r}")
            skipped += 1
            continue

        entries.append(DirectoryEntry(hostname=hostname, address=address))
    return entries, skipped


def decode_peers(raw) -> list:
    """Decode a response body and check that it is a JSON array.

    Raises:
        ParseError: invalid JSON or a top-level value that is not an array.
    """
    if isinstance(raw, (bytes, bytearray)):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ParseError(f"Response body is not UTF-8: {exc}") from exc
    try:
        root = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ParseError(f"JSON parse error on line {exc.lineno}: {exc.msg}") from exc

    if not isinstance(root, list):
        raise ParseError(f"JSON root is not an array (got {type(root).__name__})")
    return root


def parse_peers(raw, generation: int = 0) -> DirectorySnapshot:
    """Parse a peer-list body into a new snapshot.

    An array with no usable peers gives an empty snapshot, which is a
    successful result and distinct from ParseError.
    """
    peers = decode_peers(raw)
    entries, skipped = extract_entries(peers)
    if skipped:
        logger.info(f"Parsed {len(entries)} peers, skipped {skipped} incomplete records")
    return DirectorySnapshot(entries, generation=generation, skipped=skipped)
