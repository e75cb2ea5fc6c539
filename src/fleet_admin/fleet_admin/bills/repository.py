from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping, Optional, Protocol, Sequence

from ..core.enums import BillType
from .model import Bill, BillFields


class BillRepository(Protocol):
    def get_by_id(self, bill_id: int, *, include_deleted: bool = False) -> Optional[Bill]:
        raise NotImplementedError

    def find(
        self,
        *,
        type: Optional[BillType] = None,
        employee_id: Optional[int] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
        include_deleted: bool = False,
    ) -> Sequence[Bill]:
        raise NotImplementedError

    def create(self, fields: BillFields) -> int:
        raise NotImplementedError

    def update(self, bill_id: int, changes: Mapping[str, Any]) -> bool:
        raise NotImplementedError

    def delete(self, bill_id: int) -> bool:
        raise NotImplementedError
