"""Gunicorn configuration for production deployment.

Derived from the application Settings, so HOST, PORT, WORKERS, DEBUG,
LOG_LEVEL, RPC_TIMEOUT and CACHE_LOCK_WAIT apply to both.

Usage:
    gunicorn main:app -c gunicorn.conf.py
"""
import math
import os

from core.config import Settings

settings = Settings()

bind = f"{settings.host}:{settings.port}"

# Workers share the Redis cache; the in-flight marker keeps concurrent
# misses across workers down to one upstream call per key.
workers = 1 if settings.debug else settings.workers
worker_class = "uvicorn.workers.UvicornWorker"

# Slowest request: wait out a peer's refresh, then make the RPC call itself.
request_budget = settings.cache_lock_wait + 2 * settings.rpc_timeout
timeout = int(os.getenv("GUNICORN_TIMEOUT", math.ceil(request_budget) + 10))
graceful_timeout = math.ceil(settings.rpc_timeout) + 5
keepalive = int(os.getenv("GUNICORN_KEEPALIVE", "5"))

max_requests = int(os.getenv("GUNICORN_MAX_REQUESTS", "10000"))
max_requests_jitter = int(os.getenv("GUNICORN_MAX_REQUESTS_JITTER", "1000"))

accesslog = None if settings.debug else "-"
errorlog = "-"
loglevel = settings.log_level.lower()

proc_name = "account-api"

# Connection pools open in each worker's lifespan, not in the master
preload_app = not settings.debug
