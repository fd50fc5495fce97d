"""Per-item bin ledger: validation, wholesale replacement and pick decrements."""

from __future__ import annotations

from typing import Iterable

from sqlalchemy import func

from pickapp.errors import ValidationError
from pickapp.models import Area, Item, ItemLocation
from pickapp.schemas import LocationEntry


def normalize_bin(value: str | None) -> str:
    return (value or "").strip().lower()


class LocationLedger:
    def __init__(self, session):
        self.session = session

    def validate(self, entries: Iterable[LocationEntry]) -> list[LocationEntry]:
        entries = list(entries)
        seen_bins: dict[str, int] = {}
        for index, entry in enumerate(entries):
            if not entry.type or not entry.type.strip():
                raise ValidationError(
                    "Each location must have a type.",
                    details={"field": f"locations[{index}].type"},
                )
            if entry.quantity < 0:
                raise ValidationError(
                    "Location quantities cannot be negative.",
                    details={"field": f"locations[{index}].quantity"},
                )
            key = normalize_bin(entry.bin)
            if not key:
                raise ValidationError(
                    "Each location must have a bin.",
                    details={"field": f"locations[{index}].bin"},
                )
            if key in seen_bins:
                raise ValidationError(
                    f"Bin {entry.bin} is listed more than once.",
                    details={"field": f"locations[{index}].bin"},
                )
            seen_bins[key] = index

        area_ids = {entry.area_id for entry in entries}
        if area_ids:
            known = {
                area_id
                for (area_id,) in self.session.query(Area.id).filter(Area.id.in_(area_ids))
            }
            for index, entry in enumerate(entries):
                if entry.area_id not in known:
                    raise ValidationError(
                        "Each location must have a valid area selected.",
                        details={"field": f"locations[{index}].area_id"},
                    )
        return entries

    def set_ledger(self, item: Item, entries: Iterable[LocationEntry]) -> None:
        """Replace the whole ledger. Nothing changes unless every entry is valid."""

        entries = self.validate(entries)

        # Old rows must be gone before the replacements hit the (item, bin) constraint.
        item.locations.clear()
        self.session.flush()
        for position, entry in enumerate(entries):
            item.locations.append(
                ItemLocation(
                    position=position,
                    bin=entry.bin,
                    quantity=entry.quantity,
                    type=entry.type,
                    area_id=entry.area_id,
                )
            )

    def receive(self, item: Item, amount: int, entries: Iterable[LocationEntry] | None = None) -> None:
        item.total_quantity = Item.total_quantity + amount
        entries = list(entries or ())
        if entries:
            self.set_ledger(item, entries)

    def find_bin(self, item: Item, bin_name: str) -> ItemLocation | None:
        wanted = normalize_bin(bin_name)
        for location in item.locations:
            if normalize_bin(location.bin) == wanted:
                return location
        return None

    def decrement_bin(self, location: ItemLocation, amount: int) -> None:
        """Take ``amount`` out of one bin and out of the item's cached total.

        ``location`` is the row :meth:`find_bin` matched. Must run inside the
        caller's transaction. The bin update only applies while the bin still
        holds at least ``amount``.
        """

        item_id = location.item_id
        updated = (
            self.session.query(ItemLocation)
            .filter(ItemLocation.id == location.id, ItemLocation.quantity >= amount)
            .update(
                {ItemLocation.quantity: ItemLocation.quantity - amount},
                synchronize_session=False,
            )
        )
        if updated == 0:
            raise ValidationError(
                f"Bin {location.bin} does not hold {amount} of item {item_id}.",
                details={"field": "picked_quantity"},
            )

        self.session.query(Item).filter(Item.barcode_id == item_id).update(
            {Item.total_quantity: Item.total_quantity - amount},
            synchronize_session=False,
        )

    def discrepancies(self) -> list[dict[str, object]]:
        ledger_total = func.coalesce(func.sum(ItemLocation.quantity), 0)
        rows = (
            self.session.query(Item.barcode_id, Item.total_quantity, ledger_total)
            .outerjoin(ItemLocation, ItemLocation.item_id == Item.barcode_id)
            .group_by(Item.barcode_id, Item.total_quantity)
            .having(Item.total_quantity != ledger_total)
            .order_by(Item.barcode_id)
            .all()
        )
        return [
            {
                "barcode_id": barcode_id,
                "total_quantity": int(total or 0),
                "ledger_quantity": int(ledger or 0),
            }
            for barcode_id, total, ledger in rows
        ]
