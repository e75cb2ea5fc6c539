from __future__ import annotations

import pytest

from src.fleet_admin.fleet_admin.core.enums import BillType
from src.fleet_admin.fleet_admin.core.exceptions import NotFoundError, ValidationError


def test_bill_paid_cannot_exceed_total(container):
    with pytest.raises(ValidationError) as e:
        container.bill_service.create({"type": "income", "name": "Rent", "totalAmount": 1000, "paidAmount": 1200})
    assert str(e.value) == "Paid amount cannot exceed total amount"


def test_create_bill_with_agent(container):
    agent = container.employee_service.create({"name": "Agent A", "iqamaId": "2222222222", "type": "agent"})
    bill = container.bill_service.create(
        {"type": "Expense", "name": "Fuel", "totalAmount": 500, "paidAmount": 200, "employeeId": agent.employee_id}
    )

    assert bill.type == BillType.EXPENSE
    assert bill.dues == 300
    assert bill.to_dict()["employee"] == {"id": agent.employee_id, "name": "Agent A", "type": "agent"}


def test_bill_type_required(container):
    with pytest.raises(ValidationError) as e:
        container.bill_service.create({"name": "X", "totalAmount": 1})
    assert str(e.value) == "Type must be either income or expense"


def test_update_checks_merged_record(container):
    bill = container.bill_service.create({"type": "income", "name": "Rent", "totalAmount": 1000, "paidAmount": 800})

    with pytest.raises(ValidationError):
        container.bill_service.update(bill.bill_id, {"totalAmount": 700})
    with pytest.raises(ValidationError):
        container.bill_service.update(bill.bill_id, {"paidAmount": 1001})

    updated = container.bill_service.update(bill.bill_id, {"paidAmount": 1000})
    assert updated.dues == 0


def test_hard_delete_bill(container):
    bill = container.bill_service.create({"type": "income", "name": "Rent", "totalAmount": 10})
    container.bill_service.delete(bill.bill_id)

    with pytest.raises(NotFoundError):
        container.bill_service.get(bill.bill_id, include_deleted=True)
    with pytest.raises(NotFoundError):
        container.bill_service.delete(bill.bill_id)


def test_list_bills_filters_by_type(container):
    container.bill_service.create({"type": "income", "name": "A", "totalAmount": 10, "date": "2026-01-01"})
    container.bill_service.create({"type": "expense", "name": "B", "totalAmount": 10, "date": "2026-01-02"})
    container.bill_service.create({"type": "income", "name": "C", "totalAmount": 10, "date": "2026-01-03"})

    assert [b.name for b in container.bill_service.list_bills(type="income")] == ["C", "A"]
    assert [b.name for b in container.bill_service.list_bills(start_date="2026-01-02")] == ["C", "B"]


@pytest.mark.parametrize("total", ["NaN", float("nan"), "Infinity"])
def test_non_finite_total_rejected(container, total):
    with pytest.raises(ValidationError) as e:
        container.bill_service.create({"type": "expense", "name": "Fuel", "totalAmount": total, "paidAmount": 500})
    assert str(e.value) == "Total amount must be a number"
    assert container.bill_service.list_bills() == []


def test_oversized_amount_and_long_name_rejected(container):
    with pytest.raises(ValidationError):
        container.bill_service.create({"type": "income", "name": "Rent", "totalAmount": 1e12})
    with pytest.raises(ValidationError) as e:
        container.bill_service.create({"type": "income", "name": "x" * 201, "totalAmount": 10})
    assert str(e.value) == "Name cannot exceed 200 characters"
