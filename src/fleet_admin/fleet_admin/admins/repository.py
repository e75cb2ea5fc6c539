from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol, Sequence

from ..core.enums import AdminRole
from .model import Admin


class AdminRepository(Protocol):
    """Giao diện repository cho Admin."""

    def get_by_id(self, admin_id: int) -> Optional[Admin]:
        raise NotImplementedError

    def get_by_username(self, username: str) -> Optional[Admin]:
        raise NotImplementedError

    def list_admins(self) -> Sequence[Admin]:
        raise NotImplementedError

    def count(self) -> int:
        raise NotImplementedError

    def create(self, *, username: str, password_hash: str, role: AdminRole) -> int:
        raise NotImplementedError

    def update(self, admin_id: int, changes: Mapping[str, Any]) -> bool:
        raise NotImplementedError

    def delete_unless_last(self, admin_id: int) -> bool:
        """Remove the admin only while another admin remains.

        False when it is the last one; NotFoundError when it no longer exists.
        """
        raise NotImplementedError
