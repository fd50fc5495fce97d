from __future__ import annotations

from flask import Blueprint, jsonify, request

from pickapp.errors import NotFound, ValidationError
from pickapp.schemas import (
    CreateOrderRequest,
    RecordPickRequest,
    parse_area_ids,
    parse_employee_id,
)
from pickapp.services.registry import services

bp = Blueprint("orders", __name__, url_prefix="/orders")


def _json_body() -> dict:
    payload = request.get_json(silent=True)
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object.")
    return payload


@bp.post("")
def create_order():
    payload = CreateOrderRequest.from_payload(request.get_json(silent=True))
    return jsonify(services().fulfillment.create_order(payload)), 201


@bp.get("")
def list_orders():
    return jsonify(services().orders.list_orders())


@bp.get("/by-locations")
def order_by_locations():
    """Hand the caller the next pending order that can be picked in their areas."""

    area_ids = parse_area_ids(request.args.get("locations"))
    order_id = services().fulfillment.select_for_areas(area_ids)
    return jsonify({"order_id": order_id})


@bp.get("/<int:order_id>/items")
def order_items(order_id: int):
    return jsonify(services().orders.order_lines(order_id))


@bp.put("/<int:order_id>/items/<barcode_id>")
def record_pick(order_id: int, barcode_id: str):
    payload = RecordPickRequest.from_payload(request.get_json(silent=True))
    return jsonify(services().fulfillment.record_pick(order_id, barcode_id, payload))


@bp.post("/<int:order_id>/items/<barcode_id>/claim")
def claim_line(order_id: int, barcode_id: str):
    picked_by = parse_employee_id(_json_body().get("picked_by"), "picked_by")
    return jsonify(services().fulfillment.claim_line(order_id, barcode_id, picked_by))


@bp.put("/<int:order_id>/reset")
def reset_order(order_id: int):
    return jsonify(services().fulfillment.reset_to_pending(order_id))


@bp.post("/cleanup-user-progress")
def cleanup_user_progress():
    employee_id = parse_employee_id(_json_body().get("employee_id"))
    return jsonify(services().fulfillment.cleanup_user_progress(employee_id))


@bp.post("/areas/lookup")
def lookup_areas():
    area_ids = _json_body().get("area_ids")
    if not isinstance(area_ids, list) or not area_ids:
        raise ValidationError("area_ids must be a non-empty array")
    names = services().areas.names_for(parse_area_ids(area_ids))
    return jsonify({str(area_id): name for area_id, name in names.items()})


@bp.get("/employee-logs/<employee_id>")
def employee_logs(employee_id: str):
    account_id = parse_employee_id(employee_id)
    logs = services().fulfillment.employee_log(account_id)
    if not logs:
        raise NotFound(
            "No picking history found for this employee",
            details={"employee_id": account_id},
        )
    return jsonify(logs)
