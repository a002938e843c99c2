from datetime import datetime
from functools import wraps

from flask import Blueprint, jsonify, request, current_app

main_bp = Blueprint('main', __name__)


def get_cache():
    """Return the DirectoryCache attached to the running app."""
    return current_app.extensions['peerdns']


def token_required(f):
    """Require the X-API-Key header to match API_TOKEN, when one is configured."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = current_app.config.get('API_TOKEN')
        if token and request.headers.get('X-API-Key') != token:
            return jsonify({"error": "Invalid or missing API key"}), 401
        return f(*args, **kwargs)
    return decorated_function


@main_bp.route("/health")
def health():
    return jsonify({
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "version": current_app.config['APP_VERSION']
    }), 200


@main_bp.route("/resolve/<name>")
def resolve(name):
    """Answer an A-record lookup. The zone defaults to the configured one."""
    cache = get_cache()
    zone = request.args.get('zone', cache.config.zone_name)
    answer = cache.lookup(zone, name)
    if answer is None:
        return jsonify({"name": name, "zone": zone, "error": "not found"}), 404
    return jsonify({**answer.as_dict(), "zone": zone}), 200


@main_bp.route("/zone")
def zone():
    """Tell the host whether a zone is served by this cache."""
    queried = request.args.get('zone')
    if not queried:
        return jsonify({"error": "Missing zone parameter"}), 400
    return jsonify({
        "zone": queried,
        "authoritative": get_cache().matches_zone(queried)
    }), 200


@main_bp.route("/status")
def status():
    return jsonify(get_cache().get_stats()), 200


@main_bp.route("/refresh", methods=["POST"])
@token_required
def refresh():
    """Run one refresh cycle immediately."""
    cache = get_cache()
    outcome = cache.refresh()
    snapshot = cache.snapshot()
    if outcome == "published":
        code = 200
    elif outcome == "stopped":
        code = 503
    else:
        code = 502
    return jsonify({
        "outcome": outcome,
        "entries": len(snapshot),
        "generation": snapshot.generation
    }), code
