import logging

from flask import Flask, jsonify

from config import (
    SECRET_KEY, MAX_CONTENT_LENGTH, HOLD_STORE_BACKEND, RATELIMIT_STORAGE_URI,
    RATELIMIT_ENABLED, TRUST_PROXY_HEADERS, PROXY_FIX_NUM_PROXIES,
)
from database import close_connection
from extensions import limiter

# Blueprints
from routes.booking import booking_bp
from routes.holds import holds_bp
from routes.cron import cron_bp

logger = logging.getLogger(__name__)


def create_app(test_config=None):
    app = Flask(__name__)

    app.config['SECRET_KEY'] = SECRET_KEY
    app.config['MAX_CONTENT_LENGTH'] = MAX_CONTENT_LENGTH
    app.config['RATELIMIT_STORAGE_URI'] = RATELIMIT_STORAGE_URI
    app.config['RATELIMIT_ENABLED'] = RATELIMIT_ENABLED
    app.config['HOLD_STORE_BACKEND'] = HOLD_STORE_BACKEND

    # Apply Test Config Overrides
    if test_config:
        app.config.update(test_config)

    # Setup Structured Logging
    from utils.logger import setup_logger
    setup_logger(app)

    # ProxyFix
    if TRUST_PROXY_HEADERS:
        from werkzeug.middleware.proxy_fix import ProxyFix
        n = PROXY_FIX_NUM_PROXIES
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=n, x_proto=n, x_host=n, x_port=n)
        logger.info(f"[Security] ProxyFix enabled for {n} proxies")

    # Extensions
    limiter.init_app(app)

    # Health Check (Validates DB connectivity when holds live in Postgres)
    @app.route("/healthz")
    def healthz():
        if app.config['HOLD_STORE_BACKEND'] != "postgres":
            return {"status": "ok", "backend": app.config['HOLD_STORE_BACKEND']}, 200
        try:
            from database import get_db
            db = get_db()
            db.execute("SELECT 1").fetchone()
            return {"status": "ok", "backend": "postgres", "db": "connected"}, 200
        except Exception as e:
            logger.error(f"[Health] Database check failed: {type(e).__name__}")
            return {"status": "error", "db": "unavailable"}, 503

    # Simple ping endpoint for Docker health checks
    @app.route("/ping")
    def ping():
        return {"status": "ok"}, 200

    @app.errorhandler(413)
    def payload_too_large(e):
        return jsonify({"success": False, "error": "Request body too large"}), 413

    @app.errorhandler(429)
    def rate_limited(e):
        return jsonify({"success": False, "error": "Too many requests"}), 429

    # Database Teardown
    app.teardown_appcontext(close_connection)

    # Blueprints
    app.register_blueprint(booking_bp)
    app.register_blueprint(holds_bp)
    app.register_blueprint(cron_bp)

    # CLI Commands
    @app.cli.command("cleanup-expired-holds")
    def cleanup_expired_holds_cmd():
        """Delete active holds whose expiry has passed."""
        from services.booking import get_ledger
        count = get_ledger().cleanup_expired_holds()
        print(f"Deleted {count} expired holds.")

    return app


# WSGI Entry Point
app = create_app()

if __name__ == "__main__":
    app.run(host='0.0.0.0', debug=True)
