from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence

from ..common.datetime_utils import now_local
from ..core.constants import REMAINING_DUES_MESSAGE
from ..core.enums import DeletionPolicy
from ..core.exceptions import ValidationError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, deleted_clause, fetchall, fetchone, remove_row, to_bool, to_float
from .model import Installment, InstallmentFields
from .mysql_payment_repository import active_paid_sum, lock_payment_total
from .repository import InstallmentRepository

_COLUMNS = """
    i.id, i.payment_id, i.amount, i.date, i.remarks,
    i.is_deleted, i.deleted_at, i.created_at, i.updated_at
"""

_WRITABLE = {"amount", "date", "remarks"}


def _check_within_dues(amount: float, total: float, paid: float) -> None:
    if round(float(amount), 2) > round(total - paid, 2):
        raise ValidationError(REMAINING_DUES_MESSAGE)


def row_to_installment(row: dict) -> Installment:
    return Installment(
        installment_id=int(row["id"]),
        payment_id=int(row["payment_id"]),
        amount=to_float(row.get("amount")),
        date=row["date"],
        remarks=row.get("remarks"),
        is_deleted=to_bool(row.get("is_deleted")),
        deleted_at=row.get("deleted_at"),
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )


class MySQLInstallmentRepository(InstallmentRepository):
    def __init__(self, conn_factory: DatabaseConnection, *, policy: DeletionPolicy = DeletionPolicy.SOFT):
        self._conn_factory = conn_factory
        self._policy = policy

    def get_by_id(self, installment_id: int, *, include_deleted: bool = False) -> Optional[Installment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM installments i WHERE i.id=%s AND {deleted_clause('i', include_deleted)}",
                (int(installment_id),),
            )
            row = fetchone(cur)
            return row_to_installment(row) if row else None

    def find(self, *, payment_id: Optional[int] = None, include_deleted: bool = False) -> Sequence[Installment]:
        where = [deleted_clause("i", include_deleted)]
        params: list = []
        if payment_id is not None:
            where.append("i.payment_id=%s")
            params.append(int(payment_id))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM installments i WHERE {' AND '.join(where)} ORDER BY i.date DESC, i.id DESC",
                tuple(params),
            )
            return [row_to_installment(r) for r in fetchall(cur)]

    def create_within_dues(self, fields: InstallmentFields) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            total = lock_payment_total(cur, fields.payment_id)
            paid = active_paid_sum(cur, fields.payment_id)
            _check_within_dues(fields.amount, total, paid)
            cur.execute(
                "INSERT INTO installments(payment_id, amount, date, remarks) VALUES(%s,%s,%s,%s)",
                (int(fields.payment_id), fields.amount, fields.date, fields.remarks),
            )
            return int(cur.lastrowid)

    def update(self, installment_id: int, changes: Mapping[str, Any]) -> bool:
        columns = [c for c in changes if c in _WRITABLE]
        if not columns:
            return self.get_by_id(installment_id) is not None

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT payment_id FROM installments WHERE id=%s AND is_deleted=0", (int(installment_id),))
            row = fetchone(cur)
            if not row:
                return False
            if "amount" in changes:
                total = lock_payment_total(cur, row["payment_id"])
                paid = active_paid_sum(cur, row["payment_id"], exclude_installment_id=installment_id)
                _check_within_dues(changes["amount"], total, paid)
            cur.execute(
                f"UPDATE installments SET {', '.join(f'{c}=%s' for c in columns)} WHERE id=%s AND is_deleted=0",
                (*[changes[c] for c in columns], int(installment_id)),
            )
            return True

    def delete(self, installment_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            return remove_row(cur, table="installments", row_id=installment_id, policy=self._policy, now=now_local())
