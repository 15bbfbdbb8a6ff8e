"""
Booking API: layout preview, sign selection, catalog and availability.

All endpoints are scoped to a tenant (agency) and speak JSON.
"""
import logging

from flask import Blueprint, request, jsonify

from models import BookingInputError, LayoutInput, SignSelectionCriteria
from services import booking
from services.sign_selection import SignSelectionEngine

logger = logging.getLogger(__name__)

booking_bp = Blueprint("booking", __name__, url_prefix="/api/<tenant_id>")


def _json_body():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return None
    return data


def _bad_request(error):
    return jsonify({"success": False, "error": error}), 400


@booking_bp.route("/layout", methods=["POST"])
def calculate_layout(tenant_id):
    data = _json_body()
    if data is None:
        return _bad_request("Invalid JSON")

    try:
        layout_input = LayoutInput.from_dict(data, tenant_id)
    except BookingInputError as e:
        return _bad_request(str(e))

    layout = booking.get_calculator().calculate_layout(layout_input)
    return jsonify({"success": True, "layout": layout.to_dict()})


@booking_bp.route("/layout/hold", methods=["POST"])
def layout_and_hold(tenant_id):
    data = _json_body()
    if data is None:
        return _bad_request("Invalid JSON")

    session_id = data.get("session_id")
    if not isinstance(session_id, str) or not session_id.strip():
        return _bad_request("session_id is required")

    try:
        layout_input = LayoutInput.from_dict(data, tenant_id)
    except BookingInputError as e:
        return _bad_request(str(e))

    result = booking.preview_and_hold(layout_input, session_id, customer_id=data.get("customer_id"))
    if result["success"]:
        return jsonify(result), 201
    if result.get("error"):
        return jsonify(result), 409
    # Layout computed but below minimum fill: nothing was held
    return jsonify(result), 200


@booking_bp.route("/signs/select", methods=["POST"])
def select_signs(tenant_id):
    data = _json_body()
    if data is None:
        return _bad_request("Invalid JSON")

    try:
        criteria = SignSelectionCriteria.from_dict(data, tenant_id)
    except BookingInputError as e:
        return _bad_request(str(e))

    result = SignSelectionEngine(booking.get_catalog()).select_signs_for_message(criteria)
    return jsonify(result.to_dict())


@booking_bp.route("/signs", methods=["GET"])
def list_signs(tenant_id):
    signs = booking.get_ledger().get_available_signs(tenant_id)
    return jsonify({"success": True, "signs": [s.to_dict() for s in signs]})


@booking_bp.route("/messages/suggested", methods=["GET"])
def suggested_messages(tenant_id):
    messages = SignSelectionEngine(booking.get_catalog()).get_suggested_messages(tenant_id)
    return jsonify({"success": True, "messages": messages})


@booking_bp.route("/availability", methods=["POST"])
def check_availability(tenant_id):
    data = _json_body()
    if data is None:
        return _bad_request("Invalid JSON")

    sign_ids = data.get("sign_ids")
    if not isinstance(sign_ids, list) or not sign_ids or not all(isinstance(s, str) and s for s in sign_ids):
        return _bad_request("sign_ids must be a non-empty list of strings")

    quantities = data.get("quantities")
    if quantities is not None:
        if not isinstance(quantities, dict) or not all(
            isinstance(q, int) and not isinstance(q, bool) and q > 0 for q in quantities.values()
        ):
            return _bad_request("quantities must map sign ids to positive integers")

    result = booking.get_ledger().check_bulk_availability(sign_ids, tenant_id, quantities=quantities)
    status = 500 if result.error else 200
    return jsonify(result.to_dict()), status
