import os

# Each worker keeps its own in-memory directory and refresh thread
workers = int(os.environ.get('WORKERS', '1'))

worker_class = 'gevent'
worker_connections = 1024
port = int(os.environ.get('PORT', '8000'))
bind = f'0.0.0.0:{port}'

wsgi_app = 'run:app'

# Timeouts
timeout = 30
graceful_timeout = 15
keepalive = 30

# Logging
accesslog = '-'
errorlog = '-'
loglevel = 'warning'

# Performance
sendfile = False
backlog = 2048

# Security
limit_request_line = 4094
limit_request_fields = 100
limit_request_field_size = 8190


def get_banner():
    version = os.environ.get('VERSION', 'dev')
    return f"""
══ Gunicorn Configuration:
-- Workers: {workers} ({worker_class})
-- Bind: {bind}
-- Timeout: {timeout}s | Graceful: {graceful_timeout}s | Keepalive: {keepalive}s
-- Zone: {os.environ.get('PEERDNS_ZONE', '<unset>')}
══ peerdns {version}
"""

# --- Server Hooks ---
def when_ready(server):
    print(get_banner())
    server.log.info("Gunicorn server is ready. Spawning workers...")


def worker_exit(server, worker):
    server.log.info(f"Worker {worker.pid} exited")

def worker_abort(worker):
    worker.log.warning(f"Worker {worker.pid} aborted")

def on_exit(server):
    server.log.warning("Shutting down Gunicorn")
