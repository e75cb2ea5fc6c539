from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping, Optional, Sequence

from ..common.datetime_utils import now_local
from ..core.enums import BillType, DeletionPolicy, EmployeeType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, deleted_clause, fetchall, fetchone, remove_row, to_bool, to_float
from ..employees.model import EmployeeRef
from .model import Bill, BillFields
from .repository import BillRepository

_SELECT = """
    SELECT b.id, b.type, b.name, b.total_amount, b.paid_amount, b.date, b.employee_id,
           b.is_deleted, b.deleted_at, b.created_at, b.updated_at,
           e.name AS employee_name, e.type AS employee_type
    FROM bills b
    LEFT JOIN employees e ON e.id = b.employee_id
"""

_WRITABLE = {"type", "name", "total_amount", "paid_amount", "date", "employee_id"}


def row_to_bill(row: dict) -> Bill:
    employee = None
    if row.get("employee_id") is not None and row.get("employee_name") is not None:
        employee = EmployeeRef(
            employee_id=int(row["employee_id"]),
            name=row["employee_name"],
            type=EmployeeType(row["employee_type"]),
        )
    return Bill(
        bill_id=int(row["id"]),
        type=BillType(row["type"]),
        name=row["name"],
        total_amount=to_float(row.get("total_amount")),
        paid_amount=to_float(row.get("paid_amount")),
        date=row["date"],
        employee_id=row.get("employee_id"),
        employee=employee,
        is_deleted=to_bool(row.get("is_deleted")),
        deleted_at=row.get("deleted_at"),
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )


class MySQLBillRepository(BillRepository):
    def __init__(self, conn_factory: DatabaseConnection, *, policy: DeletionPolicy = DeletionPolicy.HARD):
        self._conn_factory = conn_factory
        self._policy = policy

    def get_by_id(self, bill_id: int, *, include_deleted: bool = False) -> Optional[Bill]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"{_SELECT} WHERE b.id=%s AND {deleted_clause('b', include_deleted)}",
                (int(bill_id),),
            )
            row = fetchone(cur)
            return row_to_bill(row) if row else None

    def find(
        self,
        *,
        type: Optional[BillType] = None,
        employee_id: Optional[int] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
        include_deleted: bool = False,
    ) -> Sequence[Bill]:
        where = [deleted_clause("b", include_deleted)]
        params: list = []
        if type is not None:
            where.append("b.type=%s")
            params.append(type.value)
        if employee_id is not None:
            where.append("b.employee_id=%s")
            params.append(int(employee_id))
        if date_from is not None:
            where.append("b.date >= %s")
            params.append(date_from)
        if date_to is not None:
            where.append("b.date <= %s")
            params.append(date_to)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"{_SELECT} WHERE {' AND '.join(where)} ORDER BY b.date DESC, b.id DESC",
                tuple(params),
            )
            return [row_to_bill(r) for r in fetchall(cur)]

    def create(self, fields: BillFields) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO bills(type, name, total_amount, paid_amount, date, employee_id)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (
                    fields.type.value,
                    fields.name,
                    fields.total_amount,
                    fields.paid_amount,
                    fields.date,
                    fields.employee_id,
                ),
            )
            return int(cur.lastrowid)

    def update(self, bill_id: int, changes: Mapping[str, Any]) -> bool:
        columns = [c for c in changes if c in _WRITABLE]
        if not columns:
            return self.get_by_id(bill_id) is not None

        params = []
        for c in columns:
            value = changes[c]
            params.append(value.value if isinstance(value, BillType) else value)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE bills SET {', '.join(f'{c}=%s' for c in columns)} WHERE id=%s AND is_deleted=0",
                (*params, int(bill_id)),
            )
            if cur.rowcount > 0:
                return True
            cur.execute("SELECT id FROM bills WHERE id=%s AND is_deleted=0", (int(bill_id),))
            return fetchone(cur) is not None

    def delete(self, bill_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            return remove_row(cur, table="bills", row_id=bill_id, policy=self._policy, now=now_local())
