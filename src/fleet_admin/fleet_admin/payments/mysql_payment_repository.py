from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping, Optional, Sequence

from ..common.datetime_utils import now_local
from ..core.constants import OPENING_PAYMENT_REMARKS, TOTAL_BELOW_PAID_MESSAGE
from ..core.enums import DeletionPolicy, EmployeeType
from ..core.exceptions import NotFoundError, ValidationError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, deleted_clause, fetchall, fetchone, remove_row, to_bool, to_float
from ..employees.model import EmployeeRef
from .model import Payment, PaymentFields, VehicleRef
from .repository import PaymentRepository

# paid_amount = sum of the payment's active installments. For a removed payment the
# installments removed together with it (same deleted_at) still count.
_SELECT = """
    SELECT p.id, p.vehicle_id, p.total_amount, p.date, p.remarks,
           p.is_deleted, p.deleted_at, p.created_at, p.updated_at,
           (SELECT COALESCE(SUM(i.amount), 0) FROM installments i
             WHERE i.payment_id = p.id
               AND (i.is_deleted = 0 OR (p.is_deleted = 1 AND i.deleted_at = p.deleted_at))) AS paid_amount,
           v.number AS vehicle_number, v.name AS vehicle_name,
           e.id AS employee_id, e.name AS employee_name, e.type AS employee_type
    FROM payments p
    LEFT JOIN vehicles v ON v.id = p.vehicle_id
    LEFT JOIN employees e ON e.id = v.employee_id
"""

_WRITABLE = {"vehicle_id", "total_amount", "date", "remarks"}


def lock_payment_total(cur, payment_id: int) -> float:
    """Lock the active payment row for the rest of the transaction and return its total."""
    cur.execute("SELECT total_amount FROM payments WHERE id=%s AND is_deleted=0 FOR UPDATE", (int(payment_id),))
    row = fetchone(cur)
    if not row:
        raise NotFoundError("Payment not found")
    return to_float(row["total_amount"])


def active_paid_sum(cur, payment_id: int, *, exclude_installment_id: Optional[int] = None) -> float:
    sql = "SELECT COALESCE(SUM(amount), 0) AS paid FROM installments WHERE payment_id=%s AND is_deleted=0"
    params: list = [int(payment_id)]
    if exclude_installment_id is not None:
        sql += " AND id<>%s"
        params.append(int(exclude_installment_id))
    cur.execute(sql, tuple(params))
    return to_float(fetchone(cur)["paid"])


def row_to_payment(row: dict) -> Payment:
    vehicle = None
    if row.get("vehicle_id") is not None and row.get("vehicle_number") is not None:
        employee = None
        if row.get("employee_id") is not None:
            employee = EmployeeRef(
                employee_id=int(row["employee_id"]),
                name=row["employee_name"],
                type=EmployeeType(row["employee_type"]),
            )
        vehicle = VehicleRef(
            vehicle_id=int(row["vehicle_id"]),
            number=row["vehicle_number"],
            name=row["vehicle_name"],
            employee=employee,
        )
    return Payment(
        payment_id=int(row["id"]),
        vehicle_id=row.get("vehicle_id"),
        total_amount=to_float(row.get("total_amount")),
        paid_amount=to_float(row.get("paid_amount")),
        date=row["date"],
        remarks=row.get("remarks"),
        vehicle=vehicle,
        is_deleted=to_bool(row.get("is_deleted")),
        deleted_at=row.get("deleted_at"),
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )


class MySQLPaymentRepository(PaymentRepository):
    def __init__(
        self,
        conn_factory: DatabaseConnection,
        *,
        policy: DeletionPolicy = DeletionPolicy.SOFT,
        installment_policy: DeletionPolicy = DeletionPolicy.SOFT,
    ):
        self._conn_factory = conn_factory
        self._policy = policy
        self._installment_policy = installment_policy

    def get_by_id(self, payment_id: int, *, include_deleted: bool = False) -> Optional[Payment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"{_SELECT} WHERE p.id=%s AND {deleted_clause('p', include_deleted)}",
                (int(payment_id),),
            )
            row = fetchone(cur)
            return row_to_payment(row) if row else None

    def find(
        self,
        *,
        vehicle_id: Optional[int] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
        include_deleted: bool = False,
    ) -> Sequence[Payment]:
        where = [deleted_clause("p", include_deleted)]
        params: list = []
        if vehicle_id is not None:
            where.append("p.vehicle_id=%s")
            params.append(int(vehicle_id))
        if date_from is not None:
            where.append("p.date >= %s")
            params.append(date_from)
        if date_to is not None:
            where.append("p.date <= %s")
            params.append(date_to)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"{_SELECT} WHERE {' AND '.join(where)} ORDER BY p.date DESC, p.id DESC",
                tuple(params),
            )
            return [row_to_payment(r) for r in fetchall(cur)]

    def create(self, fields: PaymentFields, *, opening_amount: Optional[float] = None) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO payments(vehicle_id, total_amount, date, remarks) VALUES(%s,%s,%s,%s)",
                (int(fields.vehicle_id), fields.total_amount, fields.date, fields.remarks),
            )
            payment_id = int(cur.lastrowid)

            if opening_amount and opening_amount > 0:
                cur.execute(
                    "INSERT INTO installments(payment_id, amount, date, remarks) VALUES(%s,%s,%s,%s)",
                    (payment_id, opening_amount, fields.date, OPENING_PAYMENT_REMARKS),
                )
            return payment_id

    def update(self, payment_id: int, changes: Mapping[str, Any]) -> bool:
        columns = [c for c in changes if c in _WRITABLE]
        if not columns:
            return self.get_by_id(payment_id) is not None

        with db_cursor(self._conn_factory) as (_, cur):
            try:
                lock_payment_total(cur, payment_id)
            except NotFoundError:
                return False
            # Installment writes lock the same row, so the sum cannot move under us.
            if "total_amount" in changes:
                paid = active_paid_sum(cur, payment_id)
                if round(float(changes["total_amount"]), 2) < round(paid, 2):
                    raise ValidationError(TOTAL_BELOW_PAID_MESSAGE)
            cur.execute(
                f"UPDATE payments SET {', '.join(f'{c}=%s' for c in columns)} WHERE id=%s AND is_deleted=0",
                (*[changes[c] for c in columns], int(payment_id)),
            )
            return True

    def delete(self, payment_id: int) -> bool:
        now = now_local()
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT id FROM payments WHERE id=%s AND is_deleted=0 FOR UPDATE", (int(payment_id),))
            if not fetchone(cur):
                return False

            # Only installments of this payment; the payment row goes last.
            if self._installment_policy == DeletionPolicy.SOFT:
                cur.execute(
                    "UPDATE installments SET is_deleted=1, deleted_at=%s WHERE payment_id=%s AND is_deleted=0",
                    (now, int(payment_id)),
                )
            else:
                cur.execute("DELETE FROM installments WHERE payment_id=%s", (int(payment_id),))

            return remove_row(cur, table="payments", row_id=payment_id, policy=self._policy, now=now)
