import atexit
import logging
from flask import Flask

from .config import Config, ZoneConfig, zones_match
from .exceptions import PeerDNSError, TransportError, ParseError, InitError
from .directory import DirectoryEntry, DirectorySnapshot, DirectoryStore
from .lookup import Answer
from .cache import DirectoryCache, initialize, shutdown, lookup, matches_zone

__all__ = [
    "create_app",
    "Config",
    "ZoneConfig",
    "zones_match",
    "PeerDNSError",
    "TransportError",
    "ParseError",
    "InitError",
    "DirectoryEntry",
    "DirectorySnapshot",
    "DirectoryStore",
    "Answer",
    "DirectoryCache",
    "initialize",
    "shutdown",
    "lookup",
    "matches_zone",
]


def create_app(config_class=Config, cache=None):
    """Build the Flask app around one DirectoryCache.

    Without ``cache`` the zone is read from PEERDNS_* environment
    variables and refreshing starts right away (unless REFRESH_ENABLED
    is false).
    """
    log_level = getattr(logging, config_class.LOG_LEVEL.upper(), logging.INFO)
    logging.basicConfig(
        level=log_level,
        format='[%(levelname)s] - %(message)s'
    )

    if log_level > logging.DEBUG:
        logging.getLogger('werkzeug').setLevel(logging.WARNING)
        logging.getLogger('gunicorn').setLevel(logging.WARNING)
        logging.getLogger('gunicorn.access').setLevel(logging.WARNING)
        logging.getLogger('gunicorn.error').setLevel(logging.ERROR)
        logging.getLogger('urllib3').setLevel(logging.WARNING)

    app = Flask(__name__)
    app.config.from_object(config_class)

    if cache is None:
        cache = DirectoryCache(ZoneConfig.from_env())
        if app.config.get('REFRESH_ENABLED', True):
            cache.start()
        else:
            logging.info("Background refresh disabled")
        atexit.register(cache.shutdown)
    logging.info(f"Serving zone '{cache.config.zone_name}' from {cache.config.api_endpoint}")

    app.extensions['peerdns'] = cache

    from . import main
    app.register_blueprint(main.main_bp)

    from .metrics import metrics_bp, init_app_info
    app.register_blueprint(metrics_bp)
    init_app_info(app.config['APP_VERSION'])

    return app
