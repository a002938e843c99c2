"""Error taxonomy for the peer directory cache."""


class PeerDNSError(Exception):
    """Base class for every error raised by peerdns."""


class TransportError(PeerDNSError):
    """Raised when the peer-list API cannot be reached or answers with an error status."""


class ParseError(PeerDNSError):
    """Raised when a peer-list response is not valid JSON or is not a JSON array."""


class InitError(PeerDNSError):
    """Raised when a cache instance cannot be created.

    Missing zone name or API key, or a refresh thread that refuses to
    start. No background work is left running when this is raised.
    """
