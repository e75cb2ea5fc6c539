from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..common.datetime_utils import to_iso
from ..employees.model import EmployeeRef


@dataclass(frozen=True)
class VehicleRef:
    """Populated vehicle shown next to a payment."""

    vehicle_id: int
    number: str
    name: str
    employee: Optional[EmployeeRef] = None

    def to_dict(self) -> dict:
        return {
            "id": self.vehicle_id,
            "number": self.number,
            "name": self.name,
            "employee": self.employee.to_dict() if self.employee else None,
        }


@dataclass(frozen=True)
class Installment:
    """Thực thể miền (domain): một lần trả góp của Payment."""

    installment_id: int
    payment_id: int
    amount: float
    date: datetime
    remarks: Optional[str] = None
    is_deleted: bool = False
    deleted_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "id": self.installment_id,
            "paymentId": self.payment_id,
            "amount": self.amount,
            "date": to_iso(self.date),
            "remarks": self.remarks,
            "isDeleted": self.is_deleted,
            "deletedAt": to_iso(self.deleted_at),
            "createdAt": to_iso(self.created_at),
            "updatedAt": to_iso(self.updated_at),
        }


@dataclass(frozen=True)
class Payment:
    """Thực thể miền (domain): Payment.

    Lưu ý: paid_amount không được lưu, nó là tổng các installment còn hiệu lực.
    """

    payment_id: int
    vehicle_id: Optional[int]
    total_amount: float
    paid_amount: float
    date: datetime
    remarks: Optional[str] = None
    vehicle: Optional[VehicleRef] = None
    installments: tuple[Installment, ...] = ()
    is_deleted: bool = False
    deleted_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def dues(self) -> float:
        return round(self.total_amount - self.paid_amount, 2)

    def to_dict(self, *, with_installments: bool = False) -> dict:
        out = {
            "id": self.payment_id,
            "vehicleId": self.vehicle_id,
            "vehicle": self.vehicle.to_dict() if self.vehicle else None,
            "totalAmount": self.total_amount,
            "paidAmount": self.paid_amount,
            "dues": self.dues,
            "date": to_iso(self.date),
            "remarks": self.remarks,
            "isDeleted": self.is_deleted,
            "deletedAt": to_iso(self.deleted_at),
            "createdAt": to_iso(self.created_at),
            "updatedAt": to_iso(self.updated_at),
        }
        if with_installments:
            out["installments"] = [i.to_dict() for i in self.installments]
        return out


@dataclass(frozen=True)
class PaymentFields:
    vehicle_id: int
    total_amount: float
    date: datetime
    remarks: Optional[str] = None


@dataclass(frozen=True)
class InstallmentFields:
    payment_id: int
    amount: float
    date: datetime
    remarks: Optional[str] = None
