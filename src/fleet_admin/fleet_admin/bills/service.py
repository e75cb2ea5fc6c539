from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Sequence

from ..common.datetime_utils import end_of_day, now_local, parse_datetime
from ..common.validators import optional_id, require_amount, require_choice, require_non_empty, require_paid_within_total
from ..core.constants import MAX_BILL_NAME_LENGTH
from ..core.enums import BillType
from ..core.exceptions import NotFoundError
from ..employees.repository import EmployeeRepository
from .model import Bill, BillFields
from .repository import BillRepository

logger = logging.getLogger(__name__)

TYPE_MESSAGE = "Type must be either income or expense"


def _paid(value: Any) -> float:
    if value is None or value == "":
        return 0.0
    return require_amount(value, "Paid amount")


class BillService:
    """Use case: income/expense bills; paid never exceeds total."""

    def __init__(self, bills: BillRepository, employees: EmployeeRepository):
        self._bills = bills
        self._employees = employees

    def _check_employee(self, employee_id: Optional[int]) -> None:
        if employee_id is not None and not self._employees.get_by_id(employee_id):
            raise NotFoundError("Employee not found")

    def list_bills(
        self,
        *,
        type: Optional[str] = None,
        employee_id: Optional[int] = None,
        start_date: Any = None,
        end_date: Any = None,
        include_deleted: bool = False,
    ) -> Sequence[Bill]:
        bill_type = None
        if type:
            try:
                bill_type = BillType(type.strip().lower())
            except ValueError:
                bill_type = None
        return self._bills.find(
            type=bill_type,
            employee_id=employee_id,
            date_from=parse_datetime(start_date, "Start date"),
            date_to=end_of_day(parse_datetime(end_date, "End date")),
            include_deleted=include_deleted,
        )

    def get(self, bill_id: int, *, include_deleted: bool = False) -> Bill:
        bill = self._bills.get_by_id(bill_id, include_deleted=include_deleted)
        if not bill:
            raise NotFoundError("Bill not found")
        return bill

    def create(self, payload: Mapping[str, Any]) -> Bill:
        fields = BillFields(
            type=require_choice(payload.get("type"), BillType, TYPE_MESSAGE),
            name=require_non_empty(payload.get("name"), "Name", max_len=MAX_BILL_NAME_LENGTH),
            total_amount=require_amount(payload.get("totalAmount"), "Total amount"),
            paid_amount=_paid(payload.get("paidAmount")),
            date=parse_datetime(payload.get("date")) or now_local(),
            employee_id=optional_id(payload.get("employeeId"), "employee ID"),
        )
        require_paid_within_total(round(fields.paid_amount, 2), round(fields.total_amount, 2))
        self._check_employee(fields.employee_id)

        bill_id = self._bills.create(fields)
        logger.info("Bill %s created (%s, total=%s)", bill_id, fields.type.value, fields.total_amount)
        return self.get(bill_id)

    def update(self, bill_id: int, payload: Mapping[str, Any]) -> Bill:
        current = self.get(bill_id)

        changes: dict[str, Any] = {}
        if "type" in payload:
            changes["type"] = require_choice(payload.get("type"), BillType, TYPE_MESSAGE)
        if "name" in payload:
            changes["name"] = require_non_empty(payload.get("name"), "Name", max_len=MAX_BILL_NAME_LENGTH)
        if "totalAmount" in payload:
            changes["total_amount"] = require_amount(payload.get("totalAmount"), "Total amount")
        if "paidAmount" in payload:
            changes["paid_amount"] = _paid(payload.get("paidAmount"))
        if "date" in payload:
            changes["date"] = parse_datetime(payload.get("date")) or current.date
        if "employeeId" in payload:
            changes["employee_id"] = optional_id(payload.get("employeeId"), "employee ID")
            self._check_employee(changes["employee_id"])

        # check the merged record, not just the submitted fields
        total = changes.get("total_amount", current.total_amount)
        paid = changes.get("paid_amount", current.paid_amount)
        require_paid_within_total(round(paid, 2), round(total, 2))

        if not self._bills.update(bill_id, changes):
            raise NotFoundError("Bill not found")
        return self.get(bill_id)

    def delete(self, bill_id: int) -> None:
        if not self._bills.delete(bill_id):
            raise NotFoundError("Bill not found")
        logger.info("Bill %s deleted", bill_id)
