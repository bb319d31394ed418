"""Gunicorn production configuration."""
import multiprocessing
import os

bind = os.getenv("BIND", "0.0.0.0:4000")
workers = int(os.getenv("WEB_CONCURRENCY", multiprocessing.cpu_count() * 2 + 1))
worker_class = "uvicorn.workers.UvicornWorker"
worker_connections = 1000
timeout = 300  # bulk imports and video uploads
keepalive = 5
max_requests = 1000
max_requests_jitter = 100
preload_app = True
chdir = "backend"
accesslog = "-"
errorlog = "-"
loglevel = "info"
