"""
Gunicorn configuration for the Timey API.

Run with: gunicorn -c gunicorn.conf.py timey.main:app

Env vars:
  PORT     — TCP port to bind (default: 8000)
  WORKERS  — worker processes (default: 2). Every worker opens its own
             database engine; with the default SQLite file keep this at 1-2.
"""
import os

bind = f"0.0.0.0:{os.environ.get('PORT', '8000')}"
workers = int(os.environ.get("WORKERS", "2"))
worker_class = "uvicorn.workers.UvicornWorker"

keepalive = 5
timeout = 60
graceful_timeout = 30

# Gunicorn's own access/error lines go to stdout; application logs go through loguru.
loglevel = os.environ.get("GUNICORN_LOG_LEVEL", "info")
accesslog = "-"
errorlog = "-"
access_log_format = '%(h)s "%(r)s" %(s)s %(b)sB %(L)ss'
