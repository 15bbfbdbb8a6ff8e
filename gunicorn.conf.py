import os

# Holds are only shared across workers with HOLD_STORE_BACKEND=postgres;
# the memory backend is per process.
workers = int(os.environ.get("WEB_CONCURRENCY", "1"))

# Bind
bind = f"0.0.0.0:{os.environ.get('PORT', '8080')}"

# Logging
accesslog = "-"
errorlog = "-"
loglevel = "info"

# Timeout
timeout = 30
