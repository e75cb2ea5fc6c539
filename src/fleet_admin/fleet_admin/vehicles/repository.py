from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping, Optional, Protocol, Sequence

from ..core.enums import VehicleType
from .model import InitialPayment, Vehicle, VehicleFields


class VehicleRepository(Protocol):
    def get_by_id(self, vehicle_id: int, *, include_deleted: bool = False) -> Optional[Vehicle]:
        raise NotImplementedError

    def get_by_number(self, number: str) -> Optional[Vehicle]:
        raise NotImplementedError

    def find(
        self,
        *,
        search: Optional[str] = None,
        employee_id: Optional[int] = None,
        type: Optional[VehicleType] = None,
        include_deleted: bool = False,
        strip_spaces: bool = False,
        created_from: Optional[datetime] = None,
        created_to: Optional[datetime] = None,
    ) -> Sequence[Vehicle]:
        raise NotImplementedError

    def create(self, fields: VehicleFields, *, initial_payment: Optional[InitialPayment] = None) -> int:
        """Insert the vehicle and, when given, its initial payment in the same transaction."""
        raise NotImplementedError

    def update(self, vehicle_id: int, changes: Mapping[str, Any]) -> bool:
        raise NotImplementedError

    def delete(self, vehicle_id: int) -> bool:
        raise NotImplementedError

    def count_by_employee(self) -> Mapping[int, int]:
        """Active vehicle count per assigned employee id."""
        raise NotImplementedError
