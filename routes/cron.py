import logging
from datetime import datetime, timezone

from flask import Blueprint, current_app, request, jsonify

import config
from services import booking

logger = logging.getLogger(__name__)

cron_bp = Blueprint("cron", __name__, url_prefix="/cron")


@cron_bp.route("/clear-expired-holds", methods=["POST"])
def clear_expired_holds():
    expected_token = current_app.config.get("CRON_TOKEN") or config.CRON_TOKEN
    if not expected_token:
        # If env var not set, we can't verify, so deny.
        return jsonify({"success": False, "error": "unauthorized"}), 401

    incoming_token = request.headers.get("X-CRON-TOKEN")
    if incoming_token != expected_token:
        return jsonify({"success": False, "error": "unauthorized"}), 401

    try:
        count = booking.get_ledger().cleanup_expired_holds()
    except Exception as e:
        logger.exception("[Cron] Expired hold cleanup failed")
        return jsonify({"success": False, "error": str(e)}), 500

    logger.info(f"[Cron] Cleaned up {count} expired holds")
    return jsonify({
        "success": True,
        "cleaned_count": count,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    })
