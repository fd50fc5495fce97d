from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request
from werkzeug.exceptions import HTTPException

from pickapp.errors import PickError, StorageError
from pickapp.extensions import db

bp = Blueprint("errors", __name__)


@bp.app_errorhandler(PickError)
def handle_pick_error(error: PickError):
    if isinstance(error, StorageError):
        current_app.logger.error(
            "%s %s failed: %s (%s)", request.method, request.path, error.message, error.details
        )
    else:
        current_app.logger.info(
            "%s %s rejected with %s: %s",
            request.method,
            request.path,
            error.status_code,
            error.message,
        )
    return jsonify(error.to_payload()), error.status_code


@bp.app_errorhandler(HTTPException)
def handle_http_exception(error: HTTPException):
    payload = {"error": error.description or error.name}
    return jsonify(payload), error.code or 500


@bp.app_errorhandler(Exception)
def handle_exception(error: Exception):
    current_app.logger.exception("Unhandled exception", exc_info=error)
    db.session.rollback()
    return jsonify({"error": "Internal Server Error", "details": str(error) or None}), 500
