from __future__ import annotations

import json
from datetime import date, datetime
from typing import Any, Mapping, Optional, Sequence

from ..common.datetime_utils import now_local
from ..core.enums import DeletionPolicy, EmployeeType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import (
    db_cursor,
    deleted_clause,
    fetchall,
    fetchone,
    load_json_list,
    remove_row,
    search_clause,
    to_bool,
    translate_duplicate,
)
from .model import Employee, EmployeeFields
from .repository import EmployeeRepository

DUPLICATE_IQAMA = "Employee with this Iqama ID already exists"

_COLUMNS = """
    e.id, e.name, e.iqama_id, e.phone, e.type, e.join_date, e.image_urls,
    e.termination_date, e.termination_reason, e.is_deleted, e.deleted_at, e.created_at, e.updated_at
"""

_WRITABLE = {"name", "iqama_id", "phone", "type", "join_date", "image_urls"}


def row_to_employee(row: dict) -> Employee:
    return Employee(
        employee_id=int(row["id"]),
        name=row["name"],
        iqama_id=row["iqama_id"],
        phone=row.get("phone"),
        type=EmployeeType(row["type"]),
        join_date=row.get("join_date"),
        image_urls=tuple(load_json_list(row.get("image_urls"))),
        termination_date=row.get("termination_date"),
        termination_reason=row.get("termination_reason"),
        is_deleted=to_bool(row.get("is_deleted")),
        deleted_at=row.get("deleted_at"),
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )


def _to_db(column: str, value: Any) -> Any:
    if column == "type" and isinstance(value, EmployeeType):
        return value.value
    if column == "image_urls":
        return json.dumps(list(value or []))
    return value


class MySQLEmployeeRepository(EmployeeRepository):
    def __init__(self, conn_factory: DatabaseConnection, *, policy: DeletionPolicy = DeletionPolicy.SOFT):
        self._conn_factory = conn_factory
        self._policy = policy

    def get_by_id(self, employee_id: int, *, include_deleted: bool = False) -> Optional[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM employees e WHERE e.id=%s AND {deleted_clause('e', include_deleted)}",
                (int(employee_id),),
            )
            row = fetchone(cur)
            return row_to_employee(row) if row else None

    def get_by_iqama_id(self, iqama_id: str) -> Optional[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM employees e WHERE e.iqama_id=%s", (iqama_id,))
            row = fetchone(cur)
            return row_to_employee(row) if row else None

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
        where = [deleted_clause("e", include_deleted)]
        params: list = []
        if search:
            clause, values = search_clause(["e.name", "e.iqama_id", "e.phone"], search, strip_spaces=strip_spaces)
            where.append(clause)
            params.extend(values)
        if type is not None:
            where.append("e.type=%s")
            params.append(type.value)
        if created_from is not None:
            where.append("e.created_at >= %s")
            params.append(created_from)
        if created_to is not None:
            where.append("e.created_at <= %s")
            params.append(created_to)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM employees e WHERE {' AND '.join(where)} ORDER BY e.created_at DESC, e.id DESC",
                tuple(params),
            )
            return [row_to_employee(r) for r in fetchall(cur)]

    def create(self, fields: EmployeeFields) -> int:
        with translate_duplicate(DUPLICATE_IQAMA), db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO employees(name, iqama_id, phone, type, join_date, image_urls)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (
                    fields.name,
                    fields.iqama_id,
                    fields.phone,
                    fields.type.value,
                    fields.join_date,
                    json.dumps(list(fields.image_urls)),
                ),
            )
            return int(cur.lastrowid)

    def update(self, employee_id: int, changes: Mapping[str, Any]) -> bool:
        columns = [c for c in changes if c in _WRITABLE]
        if not columns:
            return self.get_by_id(employee_id) is not None

        assignments = ", ".join(f"{c}=%s" for c in columns)
        params = [_to_db(c, changes[c]) for c in columns]
        with translate_duplicate(DUPLICATE_IQAMA), db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE employees SET {assignments} WHERE id=%s AND is_deleted=0",
                (*params, int(employee_id)),
            )
            if cur.rowcount > 0:
                return True
            # MySQL reports 0 affected rows when values are unchanged.
            cur.execute("SELECT id FROM employees WHERE id=%s AND is_deleted=0", (int(employee_id),))
            return fetchone(cur) is not None

    def delete(self, employee_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            return remove_row(cur, table="employees", row_id=employee_id, policy=self._policy, now=now_local())

    def terminate(self, employee_id: int, *, termination_date: date, reason: str) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE vehicles SET employee_id=NULL WHERE employee_id=%s AND is_deleted=0",
                (int(employee_id),),
            )
            unassigned = int(cur.rowcount)
            cur.execute(
                "UPDATE employees SET termination_date=%s, termination_reason=%s WHERE id=%s AND is_deleted=0",
                (termination_date, reason, int(employee_id)),
            )
            return unassigned
