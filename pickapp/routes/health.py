from __future__ import annotations

from flask import Blueprint, current_app, jsonify


bp = Blueprint("health", __name__, url_prefix="/health")


@bp.get("")
def health():
    database_online = current_app.config.get("DATABASE_AVAILABLE", True)
    payload = {
        "status": "ok" if database_online else "degraded",
        "database": database_online,
    }
    error = current_app.config.get("DATABASE_ERROR")
    if error:
        payload["error"] = error
    return jsonify(payload)
