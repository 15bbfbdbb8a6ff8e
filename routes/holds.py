from flask import Blueprint, request, jsonify

import config
from extensions import limiter
from models import AllocationError, SignAllocation
from services import booking

holds_bp = Blueprint("holds", __name__, url_prefix="/api")


def _hold_rate_limit():
    return config.HOLD_RATE_LIMIT


@holds_bp.route("/<tenant_id>/holds", methods=["POST"])
@limiter.limit(_hold_rate_limit)
def create_hold(tenant_id):
    """
    Soft-hold a list of sign allocations for a booking session.

    Body: {"allocations": [{"sign_id", "quantity"?, "hold_type"?}],
           "session_id", "customer_id"?}
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"success": False, "error": "Invalid JSON"}), 400

    raw_allocations = data.get("allocations")
    if not isinstance(raw_allocations, list) or not raw_allocations:
        return jsonify({"success": False, "error": "allocations must be a non-empty list"}), 400

    session_id = data.get("session_id")
    if not isinstance(session_id, str) or not session_id.strip():
        return jsonify({"success": False, "error": "session_id is required"}), 400

    try:
        allocations = [SignAllocation.from_dict(a) for a in raw_allocations]
    except AllocationError as e:
        return jsonify({"success": False, "error": str(e)}), 400

    result = booking.get_ledger().create_soft_hold(
        allocations, tenant_id, session_id, customer_id=data.get("customer_id"),
    )
    if result.success:
        return jsonify(result.to_dict()), 201
    if result.error == "Failed to create inventory hold":
        return jsonify(result.to_dict()), 500
    return jsonify(result.to_dict()), 409


@holds_bp.route("/holds/<hold_id>", methods=["GET"])
def get_hold(hold_id):
    hold = booking.get_ledger().get_hold(hold_id)
    if hold is None:
        return jsonify({"success": False, "error": "Hold not found"}), 404
    return jsonify({"success": True, "hold": hold.to_dict()})


@holds_bp.route("/holds/<hold_id>/release", methods=["POST"])
def release_hold(hold_id):
    data = request.get_json(silent=True) or {}
    convert = data.get("convert_to_order", False)
    if not isinstance(convert, bool):
        return jsonify({"success": False, "error": "convert_to_order must be a boolean"}), 400

    if not booking.get_ledger().release_hold(hold_id, convert_to_order=convert):
        return jsonify({"success": False, "error": "Hold could not be released"}), 409
    return jsonify({"success": True, "hold_id": hold_id, "converted": convert})


@holds_bp.route("/holds/<hold_id>/extend", methods=["POST"])
def extend_hold(hold_id):
    data = request.get_json(silent=True) or {}
    hours = data.get("additional_hours", 1)
    if isinstance(hours, bool) or not isinstance(hours, (int, float)) or hours <= 0:
        return jsonify({"success": False, "error": "additional_hours must be a positive number"}), 400

    ledger = booking.get_ledger()
    if ledger.get_hold(hold_id) is None:
        return jsonify({"success": False, "error": "Hold not found"}), 404
    if not ledger.extend_hold(hold_id, additional_hours=hours):
        return jsonify({"success": False, "error": "Hold is no longer active"}), 409
    hold = ledger.get_hold(hold_id)
    return jsonify({"success": True, "hold": hold.to_dict() if hold else None})
