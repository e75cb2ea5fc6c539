from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..common.datetime_utils import to_iso
from ..core.enums import BillType
from ..employees.model import EmployeeRef


@dataclass(frozen=True)
class Bill:
    """Thực thể miền (domain): Bill (thu/chi), có thể gắn với một agent."""

    bill_id: int
    type: BillType
    name: str
    total_amount: float
    paid_amount: float
    date: datetime
    employee_id: Optional[int] = None
    employee: Optional[EmployeeRef] = None
    is_deleted: bool = False
    deleted_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def dues(self) -> float:
        return round(self.total_amount - self.paid_amount, 2)

    def to_dict(self) -> dict:
        return {
            "id": self.bill_id,
            "type": self.type.value,
            "name": self.name,
            "totalAmount": self.total_amount,
            "paidAmount": self.paid_amount,
            "dues": self.dues,
            "date": to_iso(self.date),
            "employeeId": self.employee_id,
            "employee": self.employee.to_dict() if self.employee else None,
            "isDeleted": self.is_deleted,
            "deletedAt": to_iso(self.deleted_at),
            "createdAt": to_iso(self.created_at),
            "updatedAt": to_iso(self.updated_at),
        }


@dataclass(frozen=True)
class BillFields:
    type: BillType
    name: str
    total_amount: float
    paid_amount: float
    date: datetime
    employee_id: Optional[int] = None
