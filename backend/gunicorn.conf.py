import os

# Bind & workers
bind = os.getenv("GUNICORN_BIND", "0.0.0.0:8000")
workers = int(os.getenv("GUNICORN_WORKERS", "2"))
threads = int(os.getenv("GUNICORN_THREADS", "4"))
timeout = 60
graceful_timeout = 30
keepalive = 5

# Logs to stdout/stderr
accesslog = "-"
errorlog = "-"
loglevel = os.getenv("LOG_LEVEL", "info").lower()

# Proxy headers are trusted; ProxyFix in the app handles one hop
forwarded_allow_ips = "*"
proxy_protocol = False

wsgi_app = "credcycle.wsgi:app"


def worker_exit(server, worker):
    # Gunicorn owns worker signals; close the store from its exit hook instead.
    from credcycle.core.lifecycle import close_store
    from credcycle.wsgi import app

    close_store(app)
