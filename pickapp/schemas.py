"""Request schemas parsed at the HTTP boundary before reaching the stores."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping

from pickapp.errors import ValidationError

# Largest value the INTEGER columns hold.
MAX_INT = 2**31 - 1


def _normalize_text(value) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _optional_text(value) -> str | None:
    text = _normalize_text(value)
    return text or None


def _parse_positive_int(raw_value, field_label: str) -> int:
    if raw_value is None or isinstance(raw_value, bool):
        raise ValidationError(f"{field_label} must be a positive whole number.")
    if isinstance(raw_value, float):
        if not raw_value.is_integer():
            raise ValidationError(f"{field_label} must be a positive whole number.")
        raw_value = int(raw_value)
    try:
        value = int(str(raw_value).strip())
    except (TypeError, ValueError):
        raise ValidationError(f"{field_label} must be a positive whole number.")

    if value <= 0:
        raise ValidationError(f"{field_label} must be a positive whole number.")
    if value > MAX_INT:
        raise ValidationError(f"{field_label} cannot exceed {MAX_INT}.")
    return value


def _coerce_quantity(raw_value, field_label: str) -> int:
    """Blank quantities count as zero; decimals are truncated like the handhelds do."""

    if raw_value is None or isinstance(raw_value, bool):
        return 0
    text = str(raw_value).strip()
    if not text:
        return 0
    try:
        number = Decimal(text)
        if number.is_finite() and abs(number) > MAX_INT:
            raise ValidationError(f"{field_label} cannot exceed {MAX_INT}.")
        return int(number)
    except (InvalidOperation, ValueError, OverflowError):
        raise ValidationError(f"{field_label} must be a whole number.")


def _optional_int(raw_value, field_label: str) -> int | None:
    if raw_value is None or (isinstance(raw_value, str) and not raw_value.strip()):
        return None
    return _coerce_quantity(raw_value, field_label)


def _require_mapping(payload, label: str = "Request body") -> Mapping[str, Any]:
    if not isinstance(payload, Mapping):
        raise ValidationError(f"{label} must be a JSON object.")
    return payload


@dataclass(frozen=True)
class LocationEntry:
    bin: str
    quantity: int
    type: str
    area_id: int

    @classmethod
    def from_payload(cls, raw, index: int) -> "LocationEntry":
        label = f"locations[{index}]"
        raw = _require_mapping(raw, label)

        location_type = raw.get("type")
        if not isinstance(location_type, str) or not location_type.strip():
            raise ValidationError(
                "Each location must have a type.", details={"field": f"{label}.type"}
            )

        area_raw = raw.get("area_id")
        try:
            if area_raw is None or isinstance(area_raw, bool) or str(area_raw).strip() == "":
                raise ValueError
            area_id = int(str(area_raw).strip())
            if not 0 < area_id <= MAX_INT:
                raise ValueError
        except (TypeError, ValueError):
            raise ValidationError(
                "Each location must have a valid area selected.",
                details={"field": f"{label}.area_id"},
            )

        bin_name = _normalize_text(raw.get("bin"))
        if not bin_name:
            raise ValidationError(
                "Each location must have a bin.", details={"field": f"{label}.bin"}
            )

        quantity = _coerce_quantity(raw.get("quantity"), f"{label}.quantity")
        return cls(
            bin=bin_name,
            quantity=quantity,
            type=location_type.strip(),
            area_id=area_id,
        )


def parse_locations(raw) -> tuple[LocationEntry, ...] | None:
    """Return ``None`` when the client omitted the ledger entirely."""

    if raw is None:
        return None
    if not isinstance(raw, list):
        raise ValidationError("locations must be a list.", details={"field": "locations"})
    return tuple(LocationEntry.from_payload(entry, index) for index, entry in enumerate(raw))


def _require_barcode(payload: Mapping[str, Any]) -> str:
    barcode_id = _normalize_text(payload.get("barcode_id"))
    if not barcode_id:
        raise ValidationError("barcode_id is required")
    return barcode_id


@dataclass(frozen=True)
class ReceiveItemRequest:
    barcode_id: str
    barcode_type: str | None
    name: str | None
    description: str | None
    locations: tuple[LocationEntry, ...]
    quantity: int | None

    @classmethod
    def from_payload(cls, payload) -> "ReceiveItemRequest":
        payload = _require_mapping(payload)
        return cls(
            barcode_id=_require_barcode(payload),
            barcode_type=_optional_text(payload.get("barcode_type")),
            name=_optional_text(payload.get("name")),
            description=_optional_text(payload.get("description")),
            locations=parse_locations(payload.get("locations")) or (),
            quantity=_optional_int(payload.get("total_quantity"), "total_quantity"),
        )


@dataclass(frozen=True)
class UpdateItemRequest:
    barcode_id: str
    name: str | None
    description: str | None
    locations: tuple[LocationEntry, ...]
    total_quantity: int | None

    @classmethod
    def from_payload(cls, payload) -> "UpdateItemRequest":
        payload = _require_mapping(payload)
        return cls(
            barcode_id=_require_barcode(payload),
            name=_optional_text(payload.get("name")),
            description=_optional_text(payload.get("description")),
            locations=parse_locations(payload.get("locations")) or (),
            total_quantity=_optional_int(payload.get("total_quantity"), "total_quantity"),
        )


@dataclass(frozen=True)
class OrderLineRequest:
    barcode_id: str
    quantity: int


@dataclass(frozen=True)
class CreateOrderRequest:
    lines: tuple[OrderLineRequest, ...]

    @classmethod
    def from_payload(cls, payload) -> "CreateOrderRequest":
        payload = _require_mapping(payload)
        raw_items = payload.get("items")
        if not isinstance(raw_items, list) or not raw_items:
            raise ValidationError("Order must contain at least one item.")

        lines = []
        seen: set[str] = set()
        for index, raw in enumerate(raw_items):
            raw = _require_mapping(raw, f"items[{index}]")
            barcode_id = _normalize_text(raw.get("barcode_id"))
            if not barcode_id:
                raise ValidationError(
                    "Each order item needs a barcode_id.",
                    details={"field": f"items[{index}].barcode_id"},
                )
            if barcode_id in seen:
                raise ValidationError(
                    f"Item {barcode_id} appears more than once in the order.",
                    details={"field": f"items[{index}].barcode_id"},
                )
            seen.add(barcode_id)
            quantity = _parse_positive_int(raw.get("quantity"), f"items[{index}].quantity")
            lines.append(OrderLineRequest(barcode_id=barcode_id, quantity=quantity))
        return cls(lines=tuple(lines))


@dataclass(frozen=True)
class RecordPickRequest:
    picked_quantity: int
    picked_location: str
    picked_by: int

    @classmethod
    def from_payload(cls, payload) -> "RecordPickRequest":
        payload = _require_mapping(payload)
        picked_quantity = _parse_positive_int(payload.get("picked_quantity"), "picked_quantity")

        location = payload.get("picked_location")
        if not isinstance(location, str) or not location.strip():
            raise ValidationError("picked_location is required and must be a string")

        return cls(
            picked_quantity=picked_quantity,
            picked_location=location.strip(),
            picked_by=parse_employee_id(payload.get("picked_by"), "picked_by"),
        )


def parse_employee_id(raw_value, field_label: str = "employee_id") -> int:
    if raw_value is None or (isinstance(raw_value, str) and not raw_value.strip()):
        raise ValidationError(f"{field_label} is required")
    return _parse_positive_int(raw_value, field_label)


def parse_area_ids(raw) -> tuple[int, ...]:
    """Accept ``"1,2"`` from a query string or a JSON list of ids."""

    if raw is None:
        raise ValidationError("At least one area must be selected.")
    if isinstance(raw, str):
        parts = [part.strip() for part in raw.split(",")]
    elif isinstance(raw, (list, tuple)):
        parts = list(raw)
    else:
        raise ValidationError("Area ids must be a list.")

    area_ids: list[int] = []
    for part in parts:
        if part is None or isinstance(part, bool) or str(part).strip() == "":
            continue
        try:
            area_id = int(str(part).strip())
        except ValueError:
            continue
        if 0 < area_id <= MAX_INT and area_id not in area_ids:
            area_ids.append(area_id)

    if not area_ids:
        raise ValidationError("At least one area must be selected.")
    return tuple(area_ids)
