"""Order fulfillment: reserving orders, claiming lines and recording picks.

Every state change here is a conditional ``UPDATE`` whose row count decides
the outcome, so concurrent pickers racing for the same order, line or bin are
serialized by the database rather than by a read-then-write in Python.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable

from sqlalchemy import case, exists, func, or_

from pickapp.errors import Conflict, NotFound, OrderStateError, ValidationError
from pickapp.models import Employee, Item, ItemLocation, Order, OrderLine, OrderStatus
from pickapp.schemas import CreateOrderRequest, RecordPickRequest
from pickapp.services.employees import EmployeeDirectory, display_name_expression
from pickapp.services.ledger import LocationLedger
from pickapp.services.orders import serialize_line
from pickapp.services.transactions import transaction

logger = logging.getLogger(__name__)


class FulfillmentEngine:
    def __init__(self, session, ledger: LocationLedger, employees: EmployeeDirectory):
        self.session = session
        self.ledger = ledger
        self.employees = employees

    def _line_query(self, order_id: int, barcode_id: str):
        return self.session.query(OrderLine).filter(
            OrderLine.order_id == order_id,
            OrderLine.barcode_id == barcode_id,
        )

    def _serialize_line(self, line: OrderLine) -> dict[str, object]:
        return serialize_line(line, self.employees.names_for([line.picked_by]))

    def create_order(self, request: CreateOrderRequest) -> dict[str, object]:
        barcodes = [line.barcode_id for line in request.lines]
        with transaction(self.session, "create order"):
            known = {
                barcode_id
                for (barcode_id,) in self.session.query(Item.barcode_id).filter(
                    Item.barcode_id.in_(barcodes)
                )
            }
            missing = [barcode_id for barcode_id in barcodes if barcode_id not in known]
            if missing:
                raise ValidationError(
                    "Order references unknown items.", details={"barcode_ids": missing}
                )

            order = Order(status=OrderStatus.PENDING)
            for line in request.lines:
                order.lines.append(
                    OrderLine(barcode_id=line.barcode_id, quantity=line.quantity, picked_quantity=0)
                )
            self.session.add(order)
            self.session.flush()
            order_id = order.id
            order_date = order.order_date

        logger.info("Order %s created with %s line(s)", order_id, len(barcodes))
        return {"order_id": order_id, "order_date": order_date.isoformat()}

    def _eligible_order_ids(self, area_ids: tuple[int, ...]) -> list[int]:
        has_lines = exists().where(OrderLine.order_id == Order.id)
        unlocated_line = exists().where(
            OrderLine.order_id == Order.id,
            ~exists().where(ItemLocation.item_id == OrderLine.barcode_id),
        )
        located_elsewhere = exists().where(
            OrderLine.order_id == Order.id,
            ItemLocation.item_id == OrderLine.barcode_id,
            ~ItemLocation.area_id.in_(area_ids),
        )
        rows = (
            self.session.query(Order.id)
            .filter(
                Order.status == OrderStatus.PENDING,
                has_lines,
                ~unlocated_line,
                ~located_elsewhere,
            )
            .order_by(Order.order_date, Order.id)
            .all()
        )
        return [order_id for (order_id,) in rows]

    def select_for_areas(self, area_ids: Iterable[int]) -> int:
        """Reserve the oldest pending order whose stock sits entirely in ``area_ids``.

        An order qualifies only when every line's item has at least one bin and
        every one of those bins lies in the selected areas.
        """

        area_ids = tuple(area_ids)
        if not area_ids:
            raise ValidationError("At least one area must be selected.")

        with transaction(self.session, "get order by locations"):
            for order_id in self._eligible_order_ids(area_ids):
                reserved = (
                    self.session.query(Order)
                    .filter(Order.id == order_id, Order.status == OrderStatus.PENDING)
                    .update({Order.status: OrderStatus.IN_PROGRESS}, synchronize_session=False)
                )
                if reserved:
                    logger.info("Order %s reserved for areas %s", order_id, list(area_ids))
                    return order_id
                logger.info("Order %s was reserved by another picker, trying the next one", order_id)

            raise NotFound(
                "No pending orders found for selected locations",
                details={"area_ids": list(area_ids)},
            )

    def claim_line(self, order_id: int, barcode_id: str, picked_by: int) -> dict[str, object]:
        with transaction(self.session, "claim line item"):
            line = self._line_query(order_id, barcode_id).first()
            if line is None:
                raise NotFound(
                    "Order item not found",
                    details={"order_id": order_id, "barcode_id": barcode_id},
                )

            claimed = (
                self._line_query(order_id, barcode_id)
                .filter(or_(OrderLine.picked_by.is_(None), OrderLine.picked_by == picked_by))
                .update({OrderLine.picked_by: picked_by}, synchronize_session=False)
            )
            if not claimed:
                raise Conflict(
                    "Line item already claimed by another user",
                    details={"picked_by": line.picked_by},
                )

            promoted = (
                self.session.query(Order)
                .filter(Order.id == order_id, Order.status == OrderStatus.PENDING)
                .update({Order.status: OrderStatus.IN_PROGRESS}, synchronize_session=False)
            )

        if promoted:
            logger.info("Order %s moved to in_progress by a line claim", order_id)
        logger.info("Line %s/%s claimed by employee %s", order_id, barcode_id, picked_by)
        self.session.refresh(line)
        return self._serialize_line(line)

    def record_pick(self, order_id: int, barcode_id: str, request: RecordPickRequest) -> dict[str, object]:
        amount = request.picked_quantity
        with transaction(self.session, "update picked quantity"):
            item = self.session.get(Item, barcode_id)
            if item is None:
                raise NotFound("Item not found", details={"barcode_id": barcode_id})

            location = self.ledger.find_bin(item, request.picked_location)
            if location is None:
                raise ValidationError(
                    "Invalid location: this item does not have the specified location.",
                    details={"field": "picked_location", "picked_location": request.picked_location},
                )

            line = self._line_query(order_id, barcode_id).first()
            if line is None:
                raise NotFound(
                    "Order item not found",
                    details={"order_id": order_id, "barcode_id": barcode_id},
                )

            updated = (
                self._line_query(order_id, barcode_id)
                .filter(
                    OrderLine.picked_quantity + amount <= OrderLine.quantity,
                    or_(
                        OrderLine.picked_by.is_(None),
                        OrderLine.picked_by == request.picked_by,
                    ),
                )
                .update(
                    {
                        OrderLine.picked_quantity: OrderLine.picked_quantity + amount,
                        OrderLine.picked_by: request.picked_by,
                    },
                    synchronize_session=False,
                )
            )
            if not updated:
                self.session.refresh(line)
                if line.picked_by is not None and line.picked_by != request.picked_by:
                    raise Conflict(
                        "Line item already claimed by another user",
                        details={"picked_by": line.picked_by},
                    )
                raise ValidationError(
                    "picked_quantity cannot exceed the requested quantity",
                    details={
                        "field": "picked_quantity",
                        "quantity": line.quantity,
                        "picked_quantity": line.picked_quantity,
                    },
                )

            self.session.refresh(line)
            if line.is_complete and line.completed_at is None:
                line.completed_at = datetime.utcnow()

            self.ledger.decrement_bin(location, amount)
            order_completed = self._complete_if_done(order_id)

        logger.info(
            "Employee %s picked %s of %s from %s for order %s",
            request.picked_by,
            amount,
            barcode_id,
            request.picked_location,
            order_id,
        )
        if order_completed:
            logger.info("Order %s completed", order_id)
        self.session.refresh(line)
        return self._serialize_line(line)

    def _complete_if_done(self, order_id: int) -> bool:
        total_lines, completed_lines = (
            self.session.query(
                func.count(OrderLine.barcode_id),
                func.coalesce(
                    func.sum(case((OrderLine.picked_quantity >= OrderLine.quantity, 1), else_=0)),
                    0,
                ),
            )
            .filter(OrderLine.order_id == order_id)
            .one()
        )
        if not total_lines or total_lines != completed_lines:
            return False

        completed = (
            self.session.query(Order)
            .filter(Order.id == order_id, Order.status != OrderStatus.COMPLETED)
            .update({Order.status: OrderStatus.COMPLETED}, synchronize_session=False)
        )
        return bool(completed)

    def reset_to_pending(self, order_id: int) -> dict[str, object]:
        """Return an ``in_progress`` order to ``pending``.

        Any other order, including one that does not exist, is refused with
        :class:`OrderStateError`.
        """

        with transaction(self.session, "reset order"):
            reset = (
                self.session.query(Order)
                .filter(Order.id == order_id, Order.status == OrderStatus.IN_PROGRESS)
                .update({Order.status: OrderStatus.PENDING}, synchronize_session=False)
            )
            if not reset:
                status = (
                    self.session.query(Order.status).filter(Order.id == order_id).scalar()
                )
                raise OrderStateError(
                    "Order not in progress or already completed",
                    details={"order_id": order_id, "status": status},
                )

        logger.info("Order %s reset to pending", order_id)
        return {"message": "Order reset to pending", "order_id": order_id}

    def cleanup_user_progress(self, employee_id: int) -> dict[str, object]:
        """Release an employee's unfinished claims without undoing recorded picks.

        Orders they were working return to ``pending`` unless someone else
        still holds an unfinished line on them.
        """

        unfinished = (
            OrderLine.picked_by == employee_id,
            OrderLine.picked_quantity < OrderLine.quantity,
        )
        with transaction(self.session, "cleanup user progress"):
            order_ids = sorted(
                {
                    order_id
                    for (order_id,) in self.session.query(OrderLine.order_id).filter(*unfinished)
                }
            )
            if not order_ids:
                return {
                    "message": "No incomplete work found for this user",
                    "cleaned_items": 0,
                    "reset_orders": [],
                }

            released = (
                self.session.query(OrderLine)
                .filter(*unfinished)
                .update({OrderLine.picked_by: None}, synchronize_session=False)
            )

            held_by_others = exists().where(
                OrderLine.order_id == Order.id,
                OrderLine.picked_by.isnot(None),
                OrderLine.picked_quantity < OrderLine.quantity,
            )
            reset_orders = [
                order_id
                for (order_id,) in self.session.query(Order.id)
                .filter(
                    Order.id.in_(order_ids),
                    Order.status == OrderStatus.IN_PROGRESS,
                    ~held_by_others,
                )
                .order_by(Order.id)
            ]
            if reset_orders:
                self.session.query(Order).filter(
                    Order.id.in_(reset_orders),
                    Order.status == OrderStatus.IN_PROGRESS,
                ).update({Order.status: OrderStatus.PENDING}, synchronize_session=False)

        logger.info(
            "Released %s line(s) held by employee %s; orders back to pending: %s",
            released,
            employee_id,
            reset_orders,
        )
        return {
            "message": f"Cleaned up {released} incomplete line items for employee {employee_id}",
            "cleaned_items": released,
            "reset_orders": reset_orders,
        }

    def employee_log(self, employee_id: int) -> list[dict[str, object]]:
        rows = (
            self.session.query(
                OrderLine.order_id,
                OrderLine.barcode_id,
                Item.name,
                OrderLine.quantity,
                OrderLine.picked_quantity,
                OrderLine.completed_at,
                display_name_expression(),
            )
            .join(Item, Item.barcode_id == OrderLine.barcode_id)
            .outerjoin(Employee, Employee.account_id == OrderLine.picked_by)
            .filter(
                OrderLine.picked_by == employee_id,
                OrderLine.picked_quantity >= OrderLine.quantity,
            )
            .order_by(OrderLine.completed_at.desc().nullslast(), OrderLine.order_id.desc())
            .all()
        )
        return [
            {
                "order_id": order_id,
                "barcode_id": barcode_id,
                "item_name": item_name,
                "quantity": quantity,
                "picked_quantity": picked_quantity,
                "completion_time": completed_at.isoformat() if completed_at else None,
                "employee_name": employee_name,
            }
            for (
                order_id,
                barcode_id,
                item_name,
                quantity,
                picked_quantity,
                completed_at,
                employee_name,
            ) in rows
        ]
