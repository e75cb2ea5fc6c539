from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence

from ..common.datetime_utils import now_local
from ..core.enums import AdminRole, DeletionPolicy
from ..core.exceptions import NotFoundError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, remove_row, to_bool, translate_duplicate
from .model import Admin
from .repository import AdminRepository

DUPLICATE_USERNAME = "Username already exists"

_COLUMNS = "a.id, a.username, a.password_hash, a.role, a.is_deleted, a.deleted_at, a.created_at, a.updated_at"

_WRITABLE = {"username", "password_hash", "role"}


def row_to_admin(row: dict) -> Admin:
    return Admin(
        admin_id=int(row["id"]),
        username=row["username"],
        password_hash=row["password_hash"],
        role=AdminRole(row["role"]),
        is_deleted=to_bool(row.get("is_deleted")),
        deleted_at=row.get("deleted_at"),
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )


class MySQLAdminRepository(AdminRepository):
    def __init__(self, conn_factory: DatabaseConnection, *, policy: DeletionPolicy = DeletionPolicy.HARD):
        self._conn_factory = conn_factory
        self._policy = policy

    def get_by_id(self, admin_id: int) -> Optional[Admin]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM admins a WHERE a.id=%s AND a.is_deleted=0", (int(admin_id),))
            row = fetchone(cur)
            return row_to_admin(row) if row else None

    def get_by_username(self, username: str) -> Optional[Admin]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM admins a WHERE a.username=%s AND a.is_deleted=0", (username,))
            row = fetchone(cur)
            return row_to_admin(row) if row else None

    def list_admins(self) -> Sequence[Admin]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM admins a WHERE a.is_deleted=0 ORDER BY a.created_at DESC, a.id DESC")
            return [row_to_admin(r) for r in fetchall(cur)]

    def count(self) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COUNT(*) AS n FROM admins WHERE is_deleted=0")
            row = fetchone(cur)
            return int(row["n"]) if row else 0

    def create(self, *, username: str, password_hash: str, role: AdminRole) -> int:
        with translate_duplicate(DUPLICATE_USERNAME), db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO admins(username, password_hash, role) VALUES(%s,%s,%s)",
                (username, password_hash, role.value),
            )
            return int(cur.lastrowid)

    def update(self, admin_id: int, changes: Mapping[str, Any]) -> bool:
        columns = [c for c in changes if c in _WRITABLE]
        if not columns:
            return self.get_by_id(admin_id) is not None

        params = []
        for c in columns:
            value = changes[c]
            params.append(value.value if isinstance(value, AdminRole) else value)

        with translate_duplicate(DUPLICATE_USERNAME), db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE admins SET {', '.join(f'{c}=%s' for c in columns)} WHERE id=%s AND is_deleted=0",
                (*params, int(admin_id)),
            )
            if cur.rowcount > 0:
                return True
            cur.execute("SELECT id FROM admins WHERE id=%s AND is_deleted=0", (int(admin_id),))
            return fetchone(cur) is not None

    def delete_unless_last(self, admin_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            # Lock the active admin rows so two concurrent deletes cannot both pass the count.
            cur.execute("SELECT id FROM admins WHERE is_deleted=0 FOR UPDATE")
            active_ids = {int(r["id"]) for r in fetchall(cur)}
            if int(admin_id) not in active_ids:
                raise NotFoundError("Admin not found")
            if len(active_ids) <= 1:
                return False
            return remove_row(cur, table="admins", row_id=admin_id, policy=self._policy, now=now_local())
