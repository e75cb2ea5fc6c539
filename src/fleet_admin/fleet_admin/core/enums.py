from __future__ import annotations

from enum import Enum


class EmployeeType(str, Enum):
    """Loại nhân sự: nhân viên lái xe hoặc đại lý."""

    EMPLOYEE = "employee"
    AGENT = "agent"


class VehicleType(str, Enum):
    PRIVATE = "private"
    PUBLIC = "public"


class BillType(str, Enum):
    """Hoá đơn thu (income) hoặc chi (expense)."""

    INCOME = "income"
    EXPENSE = "expense"


class AdminRole(str, Enum):
    """Vai trò tài khoản quản trị."""

    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"


class DeletionPolicy(str, Enum):
    """How a repository removes a record.

    SOFT keeps the row and flags it (is_deleted/deleted_at), HARD deletes it.
    """

    SOFT = "soft"
    HARD = "hard"
