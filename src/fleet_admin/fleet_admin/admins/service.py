from __future__ import annotations

import logging
from typing import Any, Mapping, Sequence

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.validators import require_choice, require_min_length, require_non_empty
from ..core.constants import DEFAULT_ADMIN_PASSWORD, MAX_USERNAME_LENGTH, MIN_PASSWORD_LENGTH
from ..core.enums import AdminRole
from ..core.exceptions import AuthenticationError, DuplicateError, NotFoundError, ValidationError
from .model import Admin, SessionAdmin
from .repository import AdminRepository

logger = logging.getLogger(__name__)

ROLE_MESSAGE = "Role must be either admin or super_admin"
DUPLICATE_MESSAGE = "Username already exists"
INVALID_CREDENTIALS = "Invalid username or password"

DEFAULT_ACCOUNTS = (
    ("admin", AdminRole.ADMIN),
    ("superadmin", AdminRole.SUPER_ADMIN),
)


def _username(value: Any) -> str:
    return require_non_empty(value, "Username", max_len=MAX_USERNAME_LENGTH).lower()


def _password(value: Any) -> str:
    if value is not None and not isinstance(value, str):
        value = str(value)
    return require_min_length(value, "Password", MIN_PASSWORD_LENGTH)


class AuthService:
    """Use case: authenticate admin (login)."""

    def __init__(self, admins: AdminRepository):
        self._admins = admins

    def authenticate(self, username: Any, password: Any) -> SessionAdmin:
        if not username or not password:
            raise ValidationError("Username and password are required")

        admin = self._admins.get_by_username(str(username).strip().lower())
        if not admin:
            raise AuthenticationError(INVALID_CREDENTIALS)

        try:
            matched = check_password_hash(admin.password_hash, str(password))
        except ValueError:
            # unknown hash method, e.g. a placeholder value
            matched = False

        if not matched:
            logger.warning("Failed login for %s", admin.username)
            raise AuthenticationError(INVALID_CREDENTIALS)

        logger.info("Admin %s logged in", admin.username)
        return SessionAdmin(admin_id=admin.admin_id, username=admin.username, role=admin.role)


class AdminService:
    """Use case: manage admin accounts."""

    def __init__(self, admins: AdminRepository):
        self._admins = admins

    def list_admins(self) -> Sequence[Admin]:
        return self._admins.list_admins()

    def get(self, admin_id: int) -> Admin:
        admin = self._admins.get_by_id(admin_id)
        if not admin:
            raise NotFoundError("Admin not found")
        return admin

    def create(self, payload: Mapping[str, Any]) -> Admin:
        username = _username(payload.get("username"))
        password = _password(payload.get("password"))
        role = require_choice(payload.get("role") or AdminRole.ADMIN.value, AdminRole, ROLE_MESSAGE)

        if self._admins.get_by_username(username):
            raise DuplicateError(DUPLICATE_MESSAGE)

        admin_id = self._admins.create(
            username=username,
            password_hash=generate_password_hash(password),
            role=role,
        )
        logger.info("Admin %s created (%s)", username, role.value)
        return self.get(admin_id)

    def update(self, admin_id: int, payload: Mapping[str, Any]) -> Admin:
        current = self.get(admin_id)

        changes: dict[str, Any] = {}
        if "username" in payload:
            changes["username"] = _username(payload.get("username"))
            if changes["username"] != current.username:
                other = self._admins.get_by_username(changes["username"])
                if other and other.admin_id != current.admin_id:
                    raise DuplicateError(DUPLICATE_MESSAGE)
        if "role" in payload:
            changes["role"] = require_choice(payload.get("role"), AdminRole, ROLE_MESSAGE)
        # password only changes when a new one is provided
        if payload.get("password"):
            changes["password_hash"] = generate_password_hash(_password(payload.get("password")))

        if not self._admins.update(admin_id, changes):
            raise NotFoundError("Admin not found")
        logger.info("Admin %s updated (%s)", admin_id, ", ".join(sorted(changes)) or "no changes")
        return self.get(admin_id)

    def delete(self, admin_id: int) -> None:
        admin = self.get(admin_id)
        if not self._admins.delete_unless_last(admin.admin_id):
            raise ValidationError("Cannot delete the last admin account")
        logger.info("Admin %s deleted", admin.username)

    def initialize_defaults(self) -> Sequence[Admin]:
        """Create the default `admin` / `superadmin` accounts on an empty admins table."""
        if self._admins.count() > 0:
            raise ValidationError("Admin accounts already initialized")

        created = []
        for username, role in DEFAULT_ACCOUNTS:
            admin_id = self._admins.create(
                username=username,
                password_hash=generate_password_hash(DEFAULT_ADMIN_PASSWORD),
                role=role,
            )
            created.append(self.get(admin_id))
        logger.info("Default admin accounts created: %s", ", ".join(a.username for a in created))
        return created
