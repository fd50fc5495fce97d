from __future__ import annotations

from typing import Iterable

from sqlalchemy import func

from pickapp.models import Account, Employee


def display_name_expression():
    return func.trim(Employee.first_name + " " + Employee.last_name)


class EmployeeDirectory:
    """Read-only view of the people who can claim and pick order lines."""

    def __init__(self, session):
        self.session = session

    def list(self) -> list[dict[str, object]]:
        rows = (
            self.session.query(Employee, Account.account_type)
            .outerjoin(Account, Account.email == Employee.email)
            .order_by(Employee.account_id)
            .all()
        )
        return [
            {
                "account_id": employee.account_id,
                "first_name": employee.first_name,
                "last_name": employee.last_name,
                "email": employee.email,
                "phone_number": employee.phone_number,
                "position": employee.position,
                "account_type": account_type,
            }
            for employee, account_type in rows
        ]

    def names_for(self, account_ids: Iterable[int | None]) -> dict[int, str]:
        ids = {account_id for account_id in account_ids if account_id is not None}
        if not ids:
            return {}
        employees = self.session.query(Employee).filter(Employee.account_id.in_(ids)).all()
        return {employee.account_id: employee.display_name for employee in employees}
