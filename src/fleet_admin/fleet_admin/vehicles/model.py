from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..common.datetime_utils import to_iso
from ..core.enums import VehicleType
from ..employees.model import EmployeeRef


@dataclass(frozen=True)
class Vehicle:
    """Thực thể miền (domain): Vehicle, kèm nhân viên được giao (nếu có)."""

    vehicle_id: int
    number: str
    name: str
    type: VehicleType
    serial_number: Optional[str] = None
    model: Optional[str] = None
    vehicle_amount: Optional[float] = None
    start_date: Optional[date] = None
    contract_expiry: Optional[date] = None
    description: Optional[str] = None
    employee_id: Optional[int] = None
    employee: Optional[EmployeeRef] = None
    is_deleted: bool = False
    deleted_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_dict(self, *, employee_contact: bool = False) -> dict:
        return {
            "id": self.vehicle_id,
            "number": self.number,
            "name": self.name,
            "serialNumber": self.serial_number,
            "type": self.type.value,
            "model": self.model,
            "vehicleAmount": self.vehicle_amount,
            "startDate": to_iso(self.start_date),
            "contractExpiry": to_iso(self.contract_expiry),
            "description": self.description,
            "employeeId": self.employee_id,
            "employee": self.employee.to_dict(with_contact=employee_contact) if self.employee else None,
            "isDeleted": self.is_deleted,
            "deletedAt": to_iso(self.deleted_at),
            "createdAt": to_iso(self.created_at),
            "updatedAt": to_iso(self.updated_at),
        }


@dataclass(frozen=True)
class VehicleFields:
    number: str
    name: str
    type: VehicleType = VehicleType.PRIVATE
    serial_number: Optional[str] = None
    model: Optional[str] = None
    vehicle_amount: Optional[float] = None
    start_date: Optional[date] = None
    contract_expiry: Optional[date] = None
    description: Optional[str] = None
    employee_id: Optional[int] = None


@dataclass(frozen=True)
class InitialPayment:
    """Companion payment written together with a new vehicle."""

    total_amount: float
    date: datetime
    remarks: str
