from __future__ import annotations

from dataclasses import dataclass

from flask import current_app

from pickapp.services.areas import AreaDirectory
from pickapp.services.employees import EmployeeDirectory
from pickapp.services.fulfillment import FulfillmentEngine
from pickapp.services.items import ItemStore
from pickapp.services.ledger import LocationLedger
from pickapp.services.orders import OrderStore

EXTENSION_KEY = "pickapp"


@dataclass(frozen=True)
class ServiceRegistry:
    areas: AreaDirectory
    employees: EmployeeDirectory
    ledger: LocationLedger
    items: ItemStore
    orders: OrderStore
    fulfillment: FulfillmentEngine

    @classmethod
    def build(cls, session) -> "ServiceRegistry":
        """Wire every store to the one session the application hands out."""

        areas = AreaDirectory(session)
        employees = EmployeeDirectory(session)
        ledger = LocationLedger(session)
        return cls(
            areas=areas,
            employees=employees,
            ledger=ledger,
            items=ItemStore(session, ledger, areas),
            orders=OrderStore(session, areas, employees),
            fulfillment=FulfillmentEngine(session, ledger, employees),
        )


def services() -> ServiceRegistry:
    return current_app.extensions[EXTENSION_KEY]
