from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..common.datetime_utils import to_iso
from ..core.enums import AdminRole


@dataclass(frozen=True)
class Admin:
    """Thực thể miền (domain): tài khoản quản trị.

    Lưu ý: password_hash không bao giờ được trả ra ngoài API.
    """

    admin_id: int
    username: str
    password_hash: str
    role: AdminRole
    is_deleted: bool = False
    deleted_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "id": self.admin_id,
            "username": self.username,
            "role": self.role.value,
            "createdAt": to_iso(self.created_at),
            "updatedAt": to_iso(self.updated_at),
        }


@dataclass(frozen=True)
class SessionAdmin:
    """What we store into Flask session after login."""

    admin_id: int
    username: str
    role: AdminRole

    def to_dict(self) -> dict:
        return {"id": self.admin_id, "username": self.username, "role": self.role.value}
