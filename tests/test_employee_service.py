from __future__ import annotations

from datetime import date

import mysql.connector
import pytest

from src.fleet_admin.fleet_admin.core.enums import EmployeeType
from src.fleet_admin.fleet_admin.core.exceptions import DuplicateError, NotFoundError, ValidationError
from src.fleet_admin.fleet_admin.employees.service import normalize_phone


def _payload(**overrides):
    data = {"name": "Ahmed Ali", "iqamaId": "1234567890", "phone": "+966512345678", "type": "employee"}
    data.update(overrides)
    return data


def test_create_and_get_employee(container):
    svc = container.employee_service
    emp = svc.create(_payload(joinDate="2026-01-15"))

    assert emp.employee_id == 1
    assert emp.type == EmployeeType.EMPLOYEE
    assert emp.join_date == date(2026, 1, 15)
    assert svc.get(emp.employee_id).name == "Ahmed Ali"


@pytest.mark.parametrize(
    "overrides, message",
    [
        ({"iqamaId": "12345"}, "Iqama ID must be exactly 10 digits"),
        ({"phone": "0512345678"}, "Phone number must be in format +966XXXXXXXXX"),
        ({"type": "contractor"}, "Type must be either employee or agent"),
        ({"name": "   "}, "Name is required"),
    ],
)
def test_create_rejects_invalid_fields(container, overrides, message):
    with pytest.raises(ValidationError) as e:
        container.employee_service.create(_payload(**overrides))
    assert str(e.value) == message


def test_duplicate_iqama_rejected(container):
    svc = container.employee_service
    svc.create(_payload())

    with pytest.raises(DuplicateError) as e:
        svc.create(_payload(name="Other"))
    assert str(e.value) == "Employee with this Iqama ID already exists"


def test_update_only_touches_present_fields(container):
    svc = container.employee_service
    emp = svc.create(_payload(joinDate="2026-01-15", imageUrls=["https://img/1.png"]))

    updated = svc.update(emp.employee_id, {"name": "Ahmed A.", "type": "agent"})

    assert updated.name == "Ahmed A."
    assert updated.type == EmployeeType.AGENT
    assert updated.join_date == date(2026, 1, 15)
    assert updated.image_urls == ("https://img/1.png",)


def test_update_to_taken_iqama_rejected(container):
    svc = container.employee_service
    svc.create(_payload())
    other = svc.create(_payload(iqamaId="9999999999"))

    with pytest.raises(DuplicateError):
        svc.update(other.employee_id, {"iqamaId": "1234567890"})


def test_soft_delete_hides_employee_but_keeps_vehicle_assignment(container):
    emp = container.employee_service.create(_payload())
    vehicle = container.vehicle_service.create({"number": "ABC 123", "name": "Hilux", "employeeId": emp.employee_id})

    container.employee_service.delete(emp.employee_id)

    with pytest.raises(NotFoundError):
        container.employee_service.get(emp.employee_id)
    assert container.employee_service.get(emp.employee_id, include_deleted=True).is_deleted
    assert container.employee_service.list_employees() == []
    assert [e.employee_id for e in container.employee_service.list_employees(include_deleted=True)] == [emp.employee_id]
    assert container.vehicle_service.get(vehicle.vehicle_id).employee_id == emp.employee_id


def test_delete_missing_employee_is_not_found(container):
    with pytest.raises(NotFoundError):
        container.employee_service.delete(42)


def test_list_newest_first_with_type_filter_and_search(container):
    svc = container.employee_service
    svc.create(_payload(name="Old Agent", iqamaId="1000000001", type="agent"))
    svc.create(_payload(name="New Employee", iqamaId="1000000002"))
    svc.create(_payload(name="New Agent", iqamaId="1000000003", type="agent"))

    assert [e.name for e in svc.list_employees()] == ["New Agent", "New Employee", "Old Agent"]
    assert [e.name for e in svc.list_employees(type="agent")] == ["New Agent", "Old Agent"]
    assert [e.name for e in svc.list_employees(search="employee")] == ["New Employee"]
    # unknown type values are ignored
    assert len(svc.list_employees(type="robot")) == 3


def test_search_falls_back_to_space_stripped_match(container):
    svc = container.employee_service
    svc.create(_payload(name="Mohammed Khan"))

    assert [e.name for e in svc.list_employees(search="mohammedk han")] == ["Mohammed Khan"]


def test_terminate_requires_date_and_reason(container):
    emp = container.employee_service.create(_payload())

    with pytest.raises(ValidationError) as e:
        container.employee_service.terminate(emp.employee_id, {"terminationDate": "2026-03-01"})
    assert str(e.value) == "Please provide both termination date and reason"


def test_terminate_unassigns_vehicles(container):
    emp = container.employee_service.create(_payload())
    for n in ("A 1", "A 2"):
        container.vehicle_service.create({"number": n, "name": "Car", "employeeId": emp.employee_id})

    out = container.employee_service.terminate(
        emp.employee_id, {"terminationDate": "2026-03-01", "terminationReason": "Contract ended"}
    )

    assert out["vehiclesUnassigned"] == 2
    assert out["employee"]["terminationReason"] == "Contract ended"
    assert all(v.employee_id is None for v in container.vehicle_service.list_vehicles())


def test_bulk_create_collects_row_errors(container):
    container.vehicle_service.create({"number": "XYZ 1", "name": "Van"})

    result = container.employee_service.bulk_create(
        [
            {"name": "One", "iqamaId": "1111111111", "phone": "966 5123-45678", "type": "Agent"},
            {"name": "Two", "iqamaId": "bad"},
            {"name": "Three", "iqamaId": "3333333333", "vehicleNumber": "XYZ 1"},
            {"name": "Four", "iqamaId": "4444444444", "vehicleNumber": "NOPE"},
        ]
    )

    assert [c["name"] for c in result.created] == ["One", "Three"]
    assert result.created[0]["phone"] == "+966512345678"
    assert result.created[0]["type"] == "agent"
    assert [(e["row"], e["name"]) for e in result.errors] == [(2, "Two"), (4, "Four")]
    assert result.errors[0]["error"] == "Iqama ID must be exactly 10 digits"
    # the failing vehicle lookup happens before insert
    assert container.employees_repo.get_by_iqama_id("4444444444") is None

    vehicle = container.vehicles_repo.get_by_number("XYZ 1")
    assert vehicle.employee.name == "Three"


def test_bulk_create_requires_list(container):
    with pytest.raises(ValidationError):
        container.employee_service.bulk_create({"name": "x"})


def test_normalize_phone():
    assert normalize_phone("966512345678") == "+966512345678"
    assert normalize_phone(" +966 51 234 5678 ") == "+966512345678"
    assert normalize_phone("") is None


def test_name_longer_than_column_rejected(container):
    with pytest.raises(ValidationError) as e:
        container.employee_service.create(_payload(name="n" * 151))
    assert str(e.value) == "Name cannot exceed 150 characters"


def test_bulk_create_keeps_going_after_database_error(container, monkeypatch):
    repo = container.employees_repo
    real_create = repo.create

    def create(fields):
        if fields.name == "B":
            raise mysql.connector.DataError(msg="Data too long for column 'name' at row 1", errno=1406)
        return real_create(fields)

    monkeypatch.setattr(repo, "create", create)

    result = container.employee_service.bulk_create(
        [
            {"name": "A", "iqamaId": "1111111111"},
            {"name": "B", "iqamaId": "2222222222"},
            {"name": "C", "iqamaId": "3333333333"},
        ]
    )

    assert [c["name"] for c in result.created] == ["A", "C"]
    assert result.errors == [
        {"row": 2, "name": "B", "error": "Could not save row: Data too long for column 'name' at row 1"}
    ]
