import logging
import json
import uuid
from flask import request, has_request_context, g
from datetime import datetime, timezone
import sys

# Structured fields services may pass through `extra=`
CONTEXT_FIELDS = ("tenant_id", "hold_id", "session_id")


class JSONFormatter(logging.Formatter):
    """
    Formatter to output logs in JSON format.
    Includes request_id if available in Flask context, plus any tenant/hold
    identifiers passed via `extra`.
    """
    def format(self, record):
        log_record = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
            "module": record.module,
            "lineno": record.lineno,
        }

        for key in CONTEXT_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                log_record[key] = value

        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)

        # Add Request ID if in request context
        if has_request_context():
            log_record["method"] = request.method
            log_record["path"] = request.path
            log_record["remote_ip"] = request.remote_addr
            if hasattr(g, "request_id"):
                log_record["request_id"] = g.request_id

        return json.dumps(log_record, default=str)


def setup_logger(app):
    """
    Configures the application logger to use JSON formatting
    and output to stdout (for container logging).
    """
    # Remove default handlers
    app.logger.handlers.clear()

    # Create stdout handler
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter())

    app.logger.addHandler(handler)
    app.logger.setLevel(logging.INFO)
    app.logger.propagate = False

    # Service modules log through module loggers; route them to the same sink
    for name in ("services", "routes", "database"):
        module_logger = logging.getLogger(name)
        module_logger.handlers = [handler]
        module_logger.setLevel(logging.INFO)
        module_logger.propagate = False

    # Also attach to werkzeug logger to capture request logs
    logging.getLogger('werkzeug').handlers = [handler]

    # Setup Gunicorn logger binding if running under Gunicorn
    gunicorn_logger = logging.getLogger('gunicorn.error')
    if gunicorn_logger.handlers:
        app.logger.handlers = gunicorn_logger.handlers
        app.logger.setLevel(gunicorn_logger.level)

    # Add Request ID Middleware
    @app.before_request
    def add_request_id():
        g.request_id = request.headers.get("X-Request-Id", str(uuid.uuid4()))

    app.logger.info("Logger setup complete. JSON formatted logs enabled.")
