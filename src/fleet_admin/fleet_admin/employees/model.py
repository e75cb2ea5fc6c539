from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from ..common.datetime_utils import to_iso
from ..core.enums import EmployeeType


@dataclass(frozen=True)
class Employee:
    """Thực thể miền (domain): Employee.

    Lưu ý: Đây là đối tượng dữ liệu thuần (không chứa code truy cập DB).
    """

    employee_id: int
    name: str
    iqama_id: str
    phone: Optional[str]
    type: EmployeeType
    join_date: Optional[date] = None
    image_urls: tuple[str, ...] = ()
    termination_date: Optional[date] = None
    termination_reason: Optional[str] = None
    is_deleted: bool = False
    deleted_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "id": self.employee_id,
            "name": self.name,
            "iqamaId": self.iqama_id,
            "phone": self.phone,
            "type": self.type.value,
            "joinDate": to_iso(self.join_date),
            "imageUrls": list(self.image_urls),
            "terminationDate": to_iso(self.termination_date),
            "terminationReason": self.termination_reason,
            "isDeleted": self.is_deleted,
            "deletedAt": to_iso(self.deleted_at),
            "createdAt": to_iso(self.created_at),
            "updatedAt": to_iso(self.updated_at),
        }


@dataclass(frozen=True)
class EmployeeFields:
    """Validated write model for create/update."""

    name: str
    iqama_id: str
    phone: Optional[str]
    type: EmployeeType
    join_date: Optional[date] = None
    image_urls: tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class EmployeeRef:
    """Populated employee shown next to vehicles, bills and reports."""

    employee_id: int
    name: str
    type: EmployeeType
    iqama_id: Optional[str] = None
    phone: Optional[str] = None

    def to_dict(self, *, with_contact: bool = False) -> dict:
        out = {"id": self.employee_id, "name": self.name, "type": self.type.value}
        if with_contact:
            out["iqamaId"] = self.iqama_id
            out["phone"] = self.phone
        return out
