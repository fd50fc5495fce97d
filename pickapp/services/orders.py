from __future__ import annotations

from datetime import datetime

from sqlalchemy.orm import contains_eager, selectinload

from pickapp.models import Item, Order, OrderLine
from pickapp.services.areas import AreaDirectory
from pickapp.services.employees import EmployeeDirectory
from pickapp.services.items import serialize_location


def _isoformat(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def serialize_line(line: OrderLine, picker_names: dict[int, str] | None = None) -> dict[str, object]:
    picker_names = picker_names or {}
    return {
        "order_id": line.order_id,
        "barcode_id": line.barcode_id,
        "quantity": line.quantity,
        "picked_quantity": line.picked_quantity,
        "picked_by": line.picked_by,
        "picked_by_name": picker_names.get(line.picked_by),
        "completed_at": _isoformat(line.completed_at),
    }


class OrderStore:
    """Read models over orders and their lines."""

    def __init__(self, session, areas: AreaDirectory, employees: EmployeeDirectory):
        self.session = session
        self.areas = areas
        self.employees = employees

    def list_orders(self) -> list[dict[str, object]]:
        orders = (
            self.session.query(Order)
            .options(selectinload(Order.lines))
            .order_by(Order.id.desc())
            .all()
        )
        picker_names = self.employees.names_for(
            line.picked_by for order in orders for line in order.lines
        )
        return [
            {
                "order_id": order.id,
                "order_date": _isoformat(order.order_date),
                "status": order.status,
                "status_label": order.status_label,
                "items": [serialize_line(line, picker_names) for line in order.lines],
            }
            for order in orders
        ]

    def order_lines(self, order_id: int) -> list[dict[str, object]]:
        lines = (
            self.session.query(OrderLine)
            .join(Item, Item.barcode_id == OrderLine.barcode_id)
            .options(contains_eager(OrderLine.item).selectinload(Item.locations))
            .filter(OrderLine.order_id == order_id)
            .order_by(Item.name, OrderLine.barcode_id)
            .all()
        )
        picker_names = self.employees.names_for(line.picked_by for line in lines)
        area_names = self.areas.names_for(
            location.area_id for line in lines for location in line.item.locations
        )

        rows = []
        for line in lines:
            item = line.item
            row = serialize_line(line, picker_names)
            row.update(
                {
                    "name": item.name,
                    "description": item.description,
                    "total_quantity": item.total_quantity,
                    "locations": [
                        serialize_location(location, area_names) for location in item.locations
                    ],
                }
            )
            rows.append(row)
        return rows
