from __future__ import annotations

import json
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple

import mysql.connector
from mysql.connector import errorcode

from ..core.enums import DeletionPolicy
from ..core.exceptions import DuplicateError
from .connection import DatabaseConnection


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    """One connection, one transaction: commit on success, rollback on any error."""
    conn = conn_factory.connect()
    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def is_duplicate_key(err: Exception) -> bool:
    return isinstance(err, mysql.connector.IntegrityError) and getattr(err, "errno", None) == errorcode.ER_DUP_ENTRY


@contextmanager
def translate_duplicate(message: str):
    """Re-raise MySQL duplicate-key errors as DuplicateError(message)."""
    try:
        yield
    except mysql.connector.IntegrityError as e:
        if is_duplicate_key(e):
            raise DuplicateError(message) from e
        raise


def to_float(value: Any) -> float:
    if value is None:
        return 0.0
    return float(value)


def to_bool(value: Any) -> bool:
    return bool(int(value)) if value is not None else False


def load_json_list(value: Any) -> list:
    if not value:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    try:
        parsed = json.loads(value)
    except (TypeError, ValueError):
        return []
    return parsed if isinstance(parsed, list) else []


def deleted_clause(alias: str, include_deleted: bool) -> str:
    if include_deleted:
        return "1=1"
    return f"{alias}.is_deleted=0"


def like_pattern(term: str) -> str:
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def search_clause(columns: Sequence[str], term: str, *, strip_spaces: bool = False) -> Tuple[str, list]:
    """OR'ed LIKE filter over columns. With strip_spaces, spaces are removed on both sides."""
    if strip_spaces:
        term = "".join(term.split())
        parts = [f"REPLACE({c}, ' ', '') LIKE %s" for c in columns]
    else:
        parts = [f"{c} LIKE %s" for c in columns]
    pattern = like_pattern(term)
    return "(" + " OR ".join(parts) + ")", [pattern] * len(columns)


def remove_row(cur, *, table: str, row_id: int, policy: DeletionPolicy, now: datetime) -> bool:
    """Delete a row according to the entity's deletion policy. Returns False when nothing matched."""
    if policy == DeletionPolicy.SOFT:
        cur.execute(
            f"UPDATE {table} SET is_deleted=1, deleted_at=%s WHERE id=%s AND is_deleted=0",
            (now, int(row_id)),
        )
    else:
        cur.execute(f"DELETE FROM {table} WHERE id=%s", (int(row_id),))
    return cur.rowcount > 0
