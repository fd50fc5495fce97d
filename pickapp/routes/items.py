from __future__ import annotations

from flask import Blueprint, jsonify, request

from pickapp.errors import NotFound, ValidationError
from pickapp.schemas import ReceiveItemRequest, UpdateItemRequest
from pickapp.services.registry import services

bp = Blueprint("items", __name__, url_prefix="/items")


@bp.get("")
def get_item():
    """Fetch one item with its ledger; area ids are expanded to names."""

    barcode_id = (request.args.get("barcode_id") or "").strip()
    if not barcode_id:
        raise ValidationError("barcode_id is required")

    try:
        item = services().items.get(barcode_id)
    except NotFound:
        # The handheld app treats an empty 204 as "unknown barcode, offer to create it".
        return "", 204
    return jsonify({"item": item})


@bp.post("")
def receive_item():
    payload = ReceiveItemRequest.from_payload(request.get_json(silent=True))
    item, created = services().items.upsert_receive(payload)
    return jsonify(item), 201 if created else 200


@bp.put("")
def update_item():
    payload = UpdateItemRequest.from_payload(request.get_json(silent=True))
    return jsonify(services().items.update(payload))


@bp.get("/areas")
def list_areas():
    return jsonify(services().areas.list())
