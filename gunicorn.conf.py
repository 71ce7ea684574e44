"""Gunicorn config for the listing analytics API (gunicorn app.main:app)."""
import os

bind = f"0.0.0.0:{os.environ.get('PORT', '8000')}"

# Each uvicorn worker loads its own copy of the listing DataFrame at startup,
# so /api/reload only refreshes the worker that handled it.
worker_class = "uvicorn.workers.UvicornWorker"
workers = int(os.environ.get("WEB_CONCURRENCY", "1"))

# Excel exports of large models can take a while
timeout = 90
graceful_timeout = 30
keepalive = 65

# Logging
accesslog = "-"
errorlog = "-"
loglevel = os.environ.get("LOG_LEVEL", "info")
