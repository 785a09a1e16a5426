import multiprocessing
import os

# Gunicorn configuration file
# For FastAPI/Uvicorn, we use the UvicornWorker
#   gunicorn -c gunicorn_conf.py taskflow.main:app

# Bind to all interfaces on port 8000
bind = os.getenv("BIND", "0.0.0.0:8000")

# Worker configuration
# Standard formula: (2 x num_cores) + 1
# With STORAGE_MODE=memory every worker has its own store, so run a single one
if os.getenv("STORAGE_MODE", "sqlite").lower() == "memory":
    workers = 1
else:
    workers = int(os.getenv("WEB_CONCURRENCY", multiprocessing.cpu_count() * 2 + 1))
worker_class = "uvicorn.workers.UvicornWorker"

# Timeout and Keepalive
timeout = 120
keepalive = 5

# Logging
accesslog = "-" # Log to stdout
errorlog = "-"  # Log to stderr
loglevel = os.getenv("LOG_LEVEL", "info").lower()

# Process management
name = "taskflow_api"
reload = False  # Set to True for development only
