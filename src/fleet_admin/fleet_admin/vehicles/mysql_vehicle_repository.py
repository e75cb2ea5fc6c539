from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping, Optional, Sequence

from ..common.datetime_utils import now_local
from ..core.enums import DeletionPolicy, EmployeeType, VehicleType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import (
    db_cursor,
    deleted_clause,
    fetchall,
    fetchone,
    remove_row,
    search_clause,
    to_bool,
    translate_duplicate,
)
from ..employees.model import EmployeeRef
from .model import InitialPayment, Vehicle, VehicleFields
from .repository import VehicleRepository

DUPLICATE_NUMBER = "Vehicle with this number already exists"

_SELECT = """
    SELECT v.id, v.number, v.name, v.serial_number, v.type, v.model, v.vehicle_amount,
           v.start_date, v.contract_expiry, v.description, v.employee_id,
           v.is_deleted, v.deleted_at, v.created_at, v.updated_at,
           e.name AS employee_name, e.type AS employee_type,
           e.iqama_id AS employee_iqama_id, e.phone AS employee_phone
    FROM vehicles v
    LEFT JOIN employees e ON e.id = v.employee_id
"""

_WRITABLE = {
    "number",
    "name",
    "serial_number",
    "type",
    "model",
    "vehicle_amount",
    "start_date",
    "contract_expiry",
    "description",
    "employee_id",
}


def row_to_vehicle(row: dict) -> Vehicle:
    employee = None
    if row.get("employee_id") is not None and row.get("employee_name") is not None:
        employee = EmployeeRef(
            employee_id=int(row["employee_id"]),
            name=row["employee_name"],
            type=EmployeeType(row["employee_type"]),
            iqama_id=row.get("employee_iqama_id"),
            phone=row.get("employee_phone"),
        )
    amount = row.get("vehicle_amount")
    return Vehicle(
        vehicle_id=int(row["id"]),
        number=row["number"],
        name=row["name"],
        type=VehicleType(row["type"]),
        serial_number=row.get("serial_number"),
        model=row.get("model"),
        vehicle_amount=float(amount) if amount is not None else None,
        start_date=row.get("start_date"),
        contract_expiry=row.get("contract_expiry"),
        description=row.get("description"),
        employee_id=row.get("employee_id"),
        employee=employee,
        is_deleted=to_bool(row.get("is_deleted")),
        deleted_at=row.get("deleted_at"),
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )


class MySQLVehicleRepository(VehicleRepository):
    def __init__(self, conn_factory: DatabaseConnection, *, policy: DeletionPolicy = DeletionPolicy.HARD):
        self._conn_factory = conn_factory
        self._policy = policy

    def get_by_id(self, vehicle_id: int, *, include_deleted: bool = False) -> Optional[Vehicle]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"{_SELECT} WHERE v.id=%s AND {deleted_clause('v', include_deleted)}",
                (int(vehicle_id),),
            )
            row = fetchone(cur)
            return row_to_vehicle(row) if row else None

    def get_by_number(self, number: str) -> Optional[Vehicle]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE v.number=%s", (number,))
            row = fetchone(cur)
            return row_to_vehicle(row) if row else None

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
        where = [deleted_clause("v", include_deleted)]
        params: list = []
        if search:
            clause, values = search_clause(["v.number", "v.name", "v.serial_number"], search, strip_spaces=strip_spaces)
            where.append(clause)
            params.extend(values)
        if employee_id is not None:
            where.append("v.employee_id=%s")
            params.append(int(employee_id))
        if type is not None:
            where.append("v.type=%s")
            params.append(type.value)
        if created_from is not None:
            where.append("v.created_at >= %s")
            params.append(created_from)
        if created_to is not None:
            where.append("v.created_at <= %s")
            params.append(created_to)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"{_SELECT} WHERE {' AND '.join(where)} ORDER BY v.created_at DESC, v.id DESC",
                tuple(params),
            )
            return [row_to_vehicle(r) for r in fetchall(cur)]

    def create(self, fields: VehicleFields, *, initial_payment: Optional[InitialPayment] = None) -> int:
        with translate_duplicate(DUPLICATE_NUMBER), db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO vehicles(
                    number, name, serial_number, type, model, vehicle_amount,
                    start_date, contract_expiry, description, employee_id
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    fields.number,
                    fields.name,
                    fields.serial_number,
                    fields.type.value,
                    fields.model,
                    fields.vehicle_amount,
                    fields.start_date,
                    fields.contract_expiry,
                    fields.description,
                    fields.employee_id,
                ),
            )
            vehicle_id = int(cur.lastrowid)

            if initial_payment is not None:
                cur.execute(
                    "INSERT INTO payments(vehicle_id, total_amount, date, remarks) VALUES(%s,%s,%s,%s)",
                    (vehicle_id, initial_payment.total_amount, initial_payment.date, initial_payment.remarks),
                )
            return vehicle_id

    def update(self, vehicle_id: int, changes: Mapping[str, Any]) -> bool:
        columns = [c for c in changes if c in _WRITABLE]
        if not columns:
            return self.get_by_id(vehicle_id) is not None

        params = []
        for c in columns:
            value = changes[c]
            params.append(value.value if isinstance(value, VehicleType) else value)

        with translate_duplicate(DUPLICATE_NUMBER), db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE vehicles SET {', '.join(f'{c}=%s' for c in columns)} WHERE id=%s AND is_deleted=0",
                (*params, int(vehicle_id)),
            )
            if cur.rowcount > 0:
                return True
            cur.execute("SELECT id FROM vehicles WHERE id=%s AND is_deleted=0", (int(vehicle_id),))
            return fetchone(cur) is not None

    def delete(self, vehicle_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            return remove_row(cur, table="vehicles", row_id=vehicle_id, policy=self._policy, now=now_local())

    def count_by_employee(self) -> Mapping[int, int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT employee_id, COUNT(*) AS vehicle_count
                FROM vehicles
                WHERE employee_id IS NOT NULL AND is_deleted=0
                GROUP BY employee_id
                """
            )
            return {int(r["employee_id"]): int(r["vehicle_count"]) for r in fetchall(cur)}
