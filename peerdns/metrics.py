"""
Prometheus metrics for peerdns.

Refresh and lookup counters are updated as events happen; the /metrics
blueprint only renders the registry.
"""

import logging
from prometheus_client import Gauge, Counter, Info, generate_latest, CONTENT_TYPE_LATEST
from flask import Blueprint, Response

logger = logging.getLogger(__name__)

metrics_bp = Blueprint('metrics', __name__)

# Refresh metrics
REFRESH_TOTAL = Counter(
    'peerdns_refresh_total',
    'Refresh cycles by outcome',
    ['zone', 'outcome']
)
DIRECTORY_ENTRIES = Gauge(
    'peerdns_directory_entries',
    'Entries in the currently published snapshot',
    ['zone']
)
PEERS_SKIPPED = Gauge(
    'peerdns_peers_skipped',
    'Peer records dropped as incomplete in the last successful refresh',
    ['zone']
)
LAST_SUCCESS = Gauge(
    'peerdns_last_success_timestamp_seconds',
    'Unix time of the last published snapshot',
    ['zone']
)

# Lookup metrics
LOOKUPS_TOTAL = Counter(
    'peerdns_lookups_total',
    'Lookups by result (hit, miss, foreign_zone, apex)',
    ['zone', 'result']
)

# App info
APP_INFO = Info(
    'peerdns',
    'peerdns application information'
)


def record_refresh(zone: str, outcome: str) -> None:
    REFRESH_TOTAL.labels(zone=zone, outcome=outcome).inc()


def record_publish(zone: str, entries: int, skipped: int, timestamp: float) -> None:
    DIRECTORY_ENTRIES.labels(zone=zone).set(entries)
    PEERS_SKIPPED.labels(zone=zone).set(skipped)
    LAST_SUCCESS.labels(zone=zone).set(timestamp)


def record_lookup(zone: str, result: str) -> None:
    LOOKUPS_TOTAL.labels(zone=zone, result=result).inc()


def init_app_info(version: str):
    """Initialize application info metric."""
    APP_INFO.info({
        'version': version,
        'name': 'peerdns'
    })


@metrics_bp.route('/metrics')
def metrics():
    """
    Prometheus metrics endpoint.

    Returns metrics in Prometheus text format.
    No authentication required for metrics scraping.
    """
    return Response(generate_latest(), mimetype=CONTENT_TYPE_LATEST)
