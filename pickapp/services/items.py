from __future__ import annotations

import logging

from pickapp.errors import NotFound
from pickapp.models import Item
from pickapp.schemas import ReceiveItemRequest, UpdateItemRequest
from pickapp.services.areas import AreaDirectory
from pickapp.services.ledger import LocationLedger
from pickapp.services.transactions import transaction

logger = logging.getLogger(__name__)


def serialize_location(location, area_names: dict[int, str]) -> dict[str, object]:
    return {
        "bin": location.bin,
        "quantity": location.quantity,
        "type": location.type,
        "area_id": location.area_id,
        "area_name": area_names.get(location.area_id, ""),
    }


class ItemStore:
    """Items keyed by barcode, each carrying its bin ledger."""

    def __init__(self, session, ledger: LocationLedger, areas: AreaDirectory):
        self.session = session
        self.ledger = ledger
        self.areas = areas

    def _load(self, barcode_id: str) -> Item:
        item = self.session.get(Item, barcode_id)
        if item is None:
            raise NotFound("Item not found", details={"barcode_id": barcode_id})
        return item

    def serialize(self, item: Item) -> dict[str, object]:
        area_names = self.areas.names_for(location.area_id for location in item.locations)
        return {
            "barcode_id": item.barcode_id,
            "barcode_type": item.barcode_type,
            "name": item.name,
            "description": item.description,
            "total_quantity": item.total_quantity,
            "locations": [serialize_location(location, area_names) for location in item.locations],
        }

    def get(self, barcode_id: str) -> dict[str, object]:
        return self.serialize(self._load(barcode_id))

    def upsert_receive(self, request: ReceiveItemRequest) -> tuple[dict[str, object], bool]:
        """Create the item, or add received stock to an existing one.

        On an existing item the quantity accumulates while a supplied ledger
        replaces the old one wholesale.
        """

        with transaction(self.session, "insert/update item"):
            item = self.session.get(Item, request.barcode_id)
            created = item is None
            if created:
                item = Item(
                    barcode_id=request.barcode_id,
                    barcode_type=request.barcode_type,
                    name=request.name,
                    description=request.description,
                    total_quantity=0,
                )
                self.session.add(item)
                self.ledger.set_ledger(item, request.locations)
                if request.quantity is None:
                    item.total_quantity = sum(entry.quantity for entry in request.locations)
                else:
                    item.total_quantity = request.quantity
            else:
                self.ledger.receive(item, request.quantity or 0, request.locations)

        logger.info(
            "%s item %s (received %s)",
            "Created" if created else "Updated",
            request.barcode_id,
            request.quantity,
        )
        return self.get(request.barcode_id), created

    def update(self, request: UpdateItemRequest) -> dict[str, object]:
        with transaction(self.session, "update item"):
            item = self._load(request.barcode_id)
            item.name = request.name
            item.description = request.description
            self.ledger.set_ledger(item, request.locations)
            if request.total_quantity is None:
                item.total_quantity = sum(entry.quantity for entry in request.locations)
            else:
                item.total_quantity = request.total_quantity

        logger.info("Item %s overwritten", request.barcode_id)
        return self.get(request.barcode_id)

    def ledger_discrepancies(self) -> list[dict[str, object]]:
        return self.ledger.discrepancies()
