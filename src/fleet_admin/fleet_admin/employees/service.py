from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Sequence

import mysql.connector

from ..common.datetime_utils import parse_date
from ..common.validators import optional_text, require_choice, require_non_empty, require_pattern
from ..core.constants import IQAMA_ID_PATTERN, MAX_NAME_LENGTH, MAX_REMARKS_LENGTH, PHONE_PATTERN
from ..core.enums import EmployeeType
from ..core.exceptions import DomainError, DuplicateError, NotFoundError, ValidationError
from ..vehicles.repository import VehicleRepository
from .model import Employee, EmployeeFields
from .repository import EmployeeRepository

logger = logging.getLogger(__name__)

TYPE_MESSAGE = "Type must be either employee or agent"
IQAMA_MESSAGE = "Iqama ID must be exactly 10 digits"
PHONE_MESSAGE = "Phone number must be in format +966XXXXXXXXX"
DUPLICATE_MESSAGE = "Employee with this Iqama ID already exists"


@dataclass
class BulkResult:
    created: list = field(default_factory=list)
    errors: list = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"created": self.created, "errors": self.errors}


def normalize_phone(value: Any) -> Optional[str]:
    """Loose spreadsheet input: drop spaces/dashes, '966XXXXXXXXX' gets its '+'."""
    phone = optional_text(value)
    if not phone:
        return None
    phone = re.sub(r"[\s-]", "", phone)
    if re.fullmatch(r"966\d{9}", phone):
        phone = "+" + phone
    return phone


def _iqama(value: Any) -> str:
    iqama_id = require_non_empty(value, "Iqama ID")
    return require_pattern(iqama_id, IQAMA_ID_PATTERN, IQAMA_MESSAGE)


def _phone(value: Any) -> Optional[str]:
    phone = optional_text(value)
    if phone is None:
        return None
    return require_pattern(phone, PHONE_PATTERN, PHONE_MESSAGE)


def _image_urls(value: Any) -> tuple[str, ...]:
    if value is None:
        return ()
    if not isinstance(value, (list, tuple)):
        raise ValidationError("Image URLs must be a list")
    return tuple(str(u).strip() for u in value if str(u).strip())


class EmployeeService:
    """Use case: manage employees (list/create/update/soft-delete/terminate/bulk upload)."""

    def __init__(self, employees: EmployeeRepository, vehicles: VehicleRepository):
        self._employees = employees
        self._vehicles = vehicles

    def parse_fields(self, payload: Mapping[str, Any]) -> EmployeeFields:
        return EmployeeFields(
            name=require_non_empty(payload.get("name"), "Name", max_len=MAX_NAME_LENGTH),
            iqama_id=_iqama(payload.get("iqamaId")),
            phone=_phone(payload.get("phone")),
            type=require_choice(payload.get("type") or EmployeeType.EMPLOYEE.value, EmployeeType, TYPE_MESSAGE),
            join_date=parse_date(payload.get("joinDate"), "Join date"),
            image_urls=_image_urls(payload.get("imageUrls")),
        )

    def list_employees(
        self,
        *,
        search: Optional[str] = None,
        type: Optional[str] = None,
        include_deleted: bool = False,
    ) -> Sequence[Employee]:
        search = (search or "").strip() or None
        emp_type = None
        if type:
            # Unknown type values are ignored, like the list screen expects.
            try:
                emp_type = EmployeeType(type.strip().lower())
            except ValueError:
                emp_type = None

        found = self._employees.find(search=search, type=emp_type, include_deleted=include_deleted)
        if not found and search and re.search(r"\s", search):
            found = self._employees.find(
                search=search, type=emp_type, include_deleted=include_deleted, strip_spaces=True
            )
        return found

    def get(self, employee_id: int, *, include_deleted: bool = False) -> Employee:
        employee = self._employees.get_by_id(employee_id, include_deleted=include_deleted)
        if not employee:
            raise NotFoundError("Employee not found")
        return employee

    def create(self, payload: Mapping[str, Any]) -> Employee:
        fields = self.parse_fields(payload)
        if self._employees.get_by_iqama_id(fields.iqama_id):
            raise DuplicateError(DUPLICATE_MESSAGE)

        employee_id = self._employees.create(fields)
        logger.info("Employee %s created (iqama=%s)", employee_id, fields.iqama_id)
        return self.get(employee_id)

    def update(self, employee_id: int, payload: Mapping[str, Any]) -> Employee:
        current = self.get(employee_id)

        changes: dict[str, Any] = {}
        if "name" in payload:
            changes["name"] = require_non_empty(payload.get("name"), "Name", max_len=MAX_NAME_LENGTH)
        if "iqamaId" in payload:
            changes["iqama_id"] = _iqama(payload.get("iqamaId"))
        if "phone" in payload:
            changes["phone"] = _phone(payload.get("phone"))
        if "type" in payload:
            changes["type"] = require_choice(payload.get("type"), EmployeeType, TYPE_MESSAGE)
        if "joinDate" in payload:
            changes["join_date"] = parse_date(payload.get("joinDate"), "Join date")
        if "imageUrls" in payload:
            changes["image_urls"] = _image_urls(payload.get("imageUrls"))

        new_iqama = changes.get("iqama_id")
        if new_iqama and new_iqama != current.iqama_id:
            other = self._employees.get_by_iqama_id(new_iqama)
            if other and other.employee_id != current.employee_id:
                raise DuplicateError(DUPLICATE_MESSAGE)

        if not self._employees.update(employee_id, changes):
            raise NotFoundError("Employee not found")
        return self.get(employee_id)

    def delete(self, employee_id: int) -> None:
        # Soft delete: assigned vehicles are left untouched.
        if not self._employees.delete(employee_id):
            raise NotFoundError("Employee not found")
        logger.info("Employee %s deleted", employee_id)

    def terminate(self, employee_id: int, payload: Mapping[str, Any]) -> dict:
        self.get(employee_id)
        termination_date = parse_date(payload.get("terminationDate"), "Termination date")
        reason = optional_text(payload.get("terminationReason"), "Termination reason", max_len=MAX_REMARKS_LENGTH)
        if not termination_date or not reason:
            raise ValidationError("Please provide both termination date and reason")

        unassigned = self._employees.terminate(employee_id, termination_date=termination_date, reason=reason)
        logger.info("Employee %s terminated, %s vehicle(s) unassigned", employee_id, unassigned)
        return {"employee": self.get(employee_id).to_dict(), "vehiclesUnassigned": unassigned}

    def bulk_create(self, rows: Any) -> BulkResult:
        """Best-effort batch insert: a failing row is reported and the rest still go in."""
        if not isinstance(rows, list):
            raise ValidationError("employees must be a list")

        result = BulkResult()
        for index, row in enumerate(rows, start=1):
            name = row.get("name") if isinstance(row, dict) else None
            try:
                if not isinstance(row, dict):
                    raise ValidationError("Row must be an object")
                payload = dict(row)
                payload["phone"] = normalize_phone(row.get("phone"))
                payload["iqamaId"] = optional_text(row.get("iqamaId"))

                vehicle = None
                vehicle_number = optional_text(row.get("vehicleNumber"))
                if vehicle_number:
                    vehicle = self._vehicles.get_by_number(vehicle_number)
                    if not vehicle:
                        raise NotFoundError(f"Vehicle {vehicle_number} not found")

                employee = self.create(payload)
                if vehicle:
                    self._vehicles.update(vehicle.vehicle_id, {"employee_id": employee.employee_id})

                result.created.append(employee.to_dict())
            except DomainError as e:
                logger.warning("Bulk employee row %s rejected: %s", index, e)
                result.errors.append({"row": index, "name": name, "error": str(e)})
            except mysql.connector.Error as e:
                logger.warning("Bulk employee row %s failed in the database: %s", index, e)
                result.errors.append({"row": index, "name": name, "error": f"Could not save row: {e.msg}"})

        logger.info("Bulk employee upload: %s created, %s failed", len(result.created), len(result.errors))
        return result
