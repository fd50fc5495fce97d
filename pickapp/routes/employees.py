from __future__ import annotations

from flask import Blueprint, jsonify

from pickapp.services.registry import services

bp = Blueprint("employees", __name__, url_prefix="/employees")


@bp.get("")
def list_employees():
    return jsonify(services().employees.list())
