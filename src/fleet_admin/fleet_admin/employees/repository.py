from __future__ import annotations

from datetime import date, datetime
from typing import Any, Mapping, Optional, Protocol, Sequence

from ..core.enums import EmployeeType
from .model import Employee, EmployeeFields


class EmployeeRepository(Protocol):
    """Giao diện repository cho Employee.

    Lưu ý (DIP): tầng service phụ thuộc vào interface này, không phụ thuộc trực tiếp DB cụ thể.
    """

    def get_by_id(self, employee_id: int, *, include_deleted: bool = False) -> Optional[Employee]:
        raise NotImplementedError

    def get_by_iqama_id(self, iqama_id: str) -> Optional[Employee]:
        """Lookup across deleted rows too: the iqama id stays reserved."""
        raise NotImplementedError

    def find(
        self,
        *,
        search: Optional[str] = None,
        type: Optional[EmployeeType] = None,
        include_deleted: bool = False,
        strip_spaces: bool = False,
        created_from: Optional[datetime] = None,
        created_to: Optional[datetime] = None,
    ) -> Sequence[Employee]:
        raise NotImplementedError

    def create(self, fields: EmployeeFields) -> int:
        raise NotImplementedError

    def update(self, employee_id: int, changes: Mapping[str, Any]) -> bool:
        raise NotImplementedError

    def delete(self, employee_id: int) -> bool:
        raise NotImplementedError

    def terminate(self, employee_id: int, *, termination_date: date, reason: str) -> int:
        """Record the termination and unassign the employee's vehicles; returns vehicles unassigned."""
        raise NotImplementedError
