"""Exception taxonomy shared by the stores, the fulfillment engine and the API."""

from __future__ import annotations

from typing import Any


class PickError(Exception):
    """Base class for failures that map onto an HTTP response."""

    status_code = 500

    def __init__(self, message: str, *, details: Any = None, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.details = details
        if status_code is not None:
            self.status_code = status_code

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"error": self.message}
        if self.details is not None:
            payload["details"] = self.details
        return payload


class ValidationError(PickError):
    """Malformed or missing input."""

    status_code = 400


class NotFound(PickError):
    status_code = 404


class Conflict(PickError):
    """The target is held by someone else."""

    status_code = 409


class OrderStateError(Conflict):
    """The order is not in the state the requested transition starts from."""

    status_code = 400


class StorageError(PickError):
    status_code = 500
