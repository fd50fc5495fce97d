from __future__ import annotations

import logging
import sys
import uuid
from logging.handlers import RotatingFileHandler
from pathlib import Path

from flask import Flask, g, has_request_context, request

REQUEST_ID_HEADER = "X-Request-ID"
LOG_FILENAME = "pick_console.log"
LOG_FORMAT = "%(asctime)s [%(levelname)s] [req=%(request_id)s] %(name)s: %(message)s"

# Server loggers stay at INFO even when the app runs at DEBUG.
_SERVER_LOGGERS = ("werkzeug", "gunicorn.error", "gunicorn.access")


class RequestIdFilter(logging.Filter):
    """Stamp each record with the id of the request being served, or ``-``."""

    def filter(self, record: logging.LogRecord) -> bool:
        request_id = getattr(g, "request_id", None) if has_request_context() else None
        record.request_id = request_id or "-"
        return True


def _resolve_level(raw_level) -> int:
    if isinstance(raw_level, int):
        return raw_level
    level = logging.getLevelName(str(raw_level or "INFO").upper())
    return level if isinstance(level, int) else logging.INFO


def _attach(root: logging.Logger, handler: logging.Handler, level: int, request_filter) -> None:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.addFilter(request_filter)
    root.addHandler(handler)


def _log_path(app: Flask) -> Path:
    logs_dir = Path(app.config.get("LOG_DIR") or Path(app.root_path).parent / "logs")
    logs_dir.mkdir(parents=True, exist_ok=True)
    return logs_dir / LOG_FILENAME


def configure_logging(app: Flask) -> Path | None:
    """Send application logs to stdout and, outside tests, to a rotating file.

    Handlers already on the root logger are reused, so building several apps
    in one process (as the test suite does) never duplicates output.
    """

    level = _resolve_level(app.config.get("LOG_LEVEL", "INFO"))
    request_filter = RequestIdFilter()
    root = logging.getLogger()
    root.setLevel(level)

    if not any(isinstance(handler, logging.StreamHandler) for handler in root.handlers):
        _attach(root, logging.StreamHandler(sys.stdout), level, request_filter)

    log_path = None
    if not app.config.get("TESTING"):
        log_path = _log_path(app)
        file_attached = any(
            isinstance(handler, RotatingFileHandler)
            and getattr(handler, "baseFilename", "") == str(log_path)
            for handler in root.handlers
        )
        if not file_attached:
            _attach(
                root,
                RotatingFileHandler(log_path, maxBytes=5 * 1024 * 1024, backupCount=5),
                level,
                request_filter,
            )

    for handler in app.logger.handlers:
        if not any(isinstance(existing, RequestIdFilter) for existing in handler.filters):
            handler.addFilter(request_filter)
    app.logger.setLevel(level)

    for name in _SERVER_LOGGERS:
        logging.getLogger(name).setLevel(logging.INFO)

    return log_path


def register_request_id(app: Flask) -> None:
    """Tag every request with an id, reusing the one a handheld sent if present."""

    @app.before_request
    def _assign_request_id():
        incoming = (request.headers.get(REQUEST_ID_HEADER) or "").strip()
        g.request_id = incoming[:64] or uuid.uuid4().hex

    @app.after_request
    def _echo_request_id(response):
        request_id = getattr(g, "request_id", None)
        if request_id:
            response.headers[REQUEST_ID_HEADER] = request_id
        return response
