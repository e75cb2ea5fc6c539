from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import Any, Mapping, Optional, Sequence

import mysql.connector

from ..common.datetime_utils import now_local, parse_date
from ..common.validators import optional_id, optional_text, require_amount, require_choice, require_non_empty
from ..core.constants import (
    MAX_NAME_LENGTH,
    MAX_SHORT_TEXT_LENGTH,
    MAX_VEHICLE_NUMBER_LENGTH,
    VEHICLE_AMOUNT_REMARKS,
)
from ..core.enums import VehicleType
from ..core.exceptions import DomainError, DuplicateError, NotFoundError, ValidationError
from ..employees.repository import EmployeeRepository
from ..employees.service import BulkResult
from .model import InitialPayment, Vehicle, VehicleFields
from .repository import VehicleRepository

logger = logging.getLogger(__name__)

TYPE_MESSAGE = "Type must be either private or public"
DUPLICATE_MESSAGE = "Vehicle with this number already exists"


def _vehicle_amount(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    return require_amount(value, "Vehicle amount")


class VehicleService:
    """Use case: manage vehicles and their assignment to employees."""

    def __init__(self, vehicles: VehicleRepository, employees: EmployeeRepository):
        self._vehicles = vehicles
        self._employees = employees

    def _check_employee(self, employee_id: Optional[int]) -> None:
        if employee_id is not None and not self._employees.get_by_id(employee_id):
            raise NotFoundError("Employee not found")

    def parse_fields(self, payload: Mapping[str, Any]) -> VehicleFields:
        return VehicleFields(
            number=require_non_empty(payload.get("number"), "Vehicle number", max_len=MAX_VEHICLE_NUMBER_LENGTH),
            name=require_non_empty(payload.get("name"), "Vehicle name", max_len=MAX_NAME_LENGTH),
            type=require_choice(payload.get("type") or VehicleType.PRIVATE.value, VehicleType, TYPE_MESSAGE),
            serial_number=optional_text(payload.get("serialNumber"), "Serial number", max_len=MAX_SHORT_TEXT_LENGTH),
            model=optional_text(payload.get("model"), "Model", max_len=MAX_SHORT_TEXT_LENGTH),
            vehicle_amount=_vehicle_amount(payload.get("vehicleAmount")),
            start_date=parse_date(payload.get("startDate"), "Start date"),
            contract_expiry=parse_date(payload.get("contractExpiry"), "Contract expiry"),
            description=optional_text(payload.get("description")),
            employee_id=optional_id(payload.get("employeeId"), "employee ID"),
        )

    def list_vehicles(
        self,
        *,
        search: Optional[str] = None,
        employee_id: Optional[int] = None,
        type: Optional[str] = None,
        include_deleted: bool = False,
    ) -> Sequence[Vehicle]:
        search = (search or "").strip() or None
        vehicle_type = None
        if type:
            try:
                vehicle_type = VehicleType(type.strip().lower())
            except ValueError:
                vehicle_type = None

        kwargs = dict(employee_id=employee_id, type=vehicle_type, include_deleted=include_deleted)
        found = self._vehicles.find(search=search, **kwargs)
        if not found and search and re.search(r"\s", search):
            found = self._vehicles.find(search=search, strip_spaces=True, **kwargs)
        return found

    def get(self, vehicle_id: int, *, include_deleted: bool = False) -> Vehicle:
        vehicle = self._vehicles.get_by_id(vehicle_id, include_deleted=include_deleted)
        if not vehicle:
            raise NotFoundError("Vehicle not found")
        return vehicle

    def create(self, payload: Mapping[str, Any]) -> Vehicle:
        fields = self.parse_fields(payload)
        if self._vehicles.get_by_number(fields.number):
            raise DuplicateError(DUPLICATE_MESSAGE)
        self._check_employee(fields.employee_id)

        initial_payment = None
        if fields.vehicle_amount and fields.vehicle_amount > 0:
            start = fields.start_date
            initial_payment = InitialPayment(
                total_amount=fields.vehicle_amount,
                date=datetime(start.year, start.month, start.day) if start else now_local(),
                remarks=VEHICLE_AMOUNT_REMARKS,
            )

        vehicle_id = self._vehicles.create(fields, initial_payment=initial_payment)
        logger.info(
            "Vehicle %s created (number=%s, companion payment=%s)",
            vehicle_id,
            fields.number,
            initial_payment is not None,
        )
        return self.get(vehicle_id)

    def update(self, vehicle_id: int, payload: Mapping[str, Any]) -> Vehicle:
        current = self.get(vehicle_id)

        changes: dict[str, Any] = {}
        if "number" in payload:
            changes["number"] = require_non_empty(
                payload.get("number"), "Vehicle number", max_len=MAX_VEHICLE_NUMBER_LENGTH
            )
        if "name" in payload:
            changes["name"] = require_non_empty(payload.get("name"), "Vehicle name", max_len=MAX_NAME_LENGTH)
        if "type" in payload:
            changes["type"] = require_choice(payload.get("type"), VehicleType, TYPE_MESSAGE)
        if "serialNumber" in payload:
            changes["serial_number"] = optional_text(
                payload.get("serialNumber"), "Serial number", max_len=MAX_SHORT_TEXT_LENGTH
            )
        if "model" in payload:
            changes["model"] = optional_text(payload.get("model"), "Model", max_len=MAX_SHORT_TEXT_LENGTH)
        if "vehicleAmount" in payload:
            changes["vehicle_amount"] = _vehicle_amount(payload.get("vehicleAmount"))
        if "startDate" in payload:
            changes["start_date"] = parse_date(payload.get("startDate"), "Start date")
        if "contractExpiry" in payload:
            changes["contract_expiry"] = parse_date(payload.get("contractExpiry"), "Contract expiry")
        if "description" in payload:
            changes["description"] = optional_text(payload.get("description"))
        if "employeeId" in payload:
            # null unassigns
            changes["employee_id"] = optional_id(payload.get("employeeId"), "employee ID")
            self._check_employee(changes["employee_id"])

        new_number = changes.get("number")
        if new_number and new_number != current.number:
            other = self._vehicles.get_by_number(new_number)
            if other and other.vehicle_id != current.vehicle_id:
                raise DuplicateError(DUPLICATE_MESSAGE)

        if not self._vehicles.update(vehicle_id, changes):
            raise NotFoundError("Vehicle not found")
        return self.get(vehicle_id)

    def delete(self, vehicle_id: int) -> None:
        if not self._vehicles.delete(vehicle_id):
            raise NotFoundError("Vehicle not found")
        logger.info("Vehicle %s deleted", vehicle_id)

    def bulk_create(self, rows: Any) -> BulkResult:
        if not isinstance(rows, list):
            raise ValidationError("vehicles must be a list")

        result = BulkResult()
        for index, row in enumerate(rows, start=1):
            number = row.get("number") if isinstance(row, dict) else None
            try:
                if not isinstance(row, dict):
                    raise ValidationError("Row must be an object")
                payload = dict(row)
                iqama_id = optional_text(row.get("employeeIqamaId"))
                if iqama_id:
                    employee = self._employees.get_by_iqama_id(iqama_id)
                    if not employee or employee.is_deleted:
                        raise NotFoundError(f"Employee with Iqama ID {iqama_id} not found")
                    payload["employeeId"] = employee.employee_id

                vehicle = self.create(payload)
                result.created.append(vehicle.to_dict())
            except DomainError as e:
                logger.warning("Bulk vehicle row %s rejected: %s", index, e)
                result.errors.append({"row": index, "number": number, "error": str(e)})
            except mysql.connector.Error as e:
                logger.warning("Bulk vehicle row %s failed in the database: %s", index, e)
                result.errors.append({"row": index, "number": number, "error": f"Could not save row: {e.msg}"})

        logger.info("Bulk vehicle upload: %s created, %s failed", len(result.created), len(result.errors))
        return result
