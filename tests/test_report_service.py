from __future__ import annotations

from src.fleet_admin.fleet_admin.reports.service import ReportService


class CountingVehicles:
    """Wraps the fake vehicle repo to count grouped-count calls."""

    def __init__(self, inner):
        self._inner = inner
        self.count_calls = 0

    def count_by_employee(self):
        self.count_calls += 1
        return self._inner.count_by_employee()

    def __getattr__(self, name):
        return getattr(self._inner, name)


def _employee(container, iqama, name):
    return container.employee_service.create({"name": name, "iqamaId": iqama})


def test_employees_report_counts_vehicles_with_one_grouped_query(container):
    e1 = _employee(container, "1000000001", "Busy")
    _employee(container, "1000000002", "Idle")
    for n in ("V 1", "V 2", "V 3"):
        container.vehicle_service.create({"number": n, "name": "Car", "employeeId": e1.employee_id})

    vehicles = CountingVehicles(container.vehicles_repo)
    svc = ReportService(
        employees=container.employees_repo,
        vehicles=vehicles,
        payments=container.payments_repo,
        bills=container.bills_repo,
    )
    report = svc.employees_report()

    counts = {row["name"]: row["vehicleCount"] for row in report.data}
    assert counts == {"Busy": 3, "Idle": 0}
    assert vehicles.count_calls == 1
    assert {r["name"]: r["vehicle_count"] for r in report.rows} == {"Busy": 3, "Idle": 0}


def test_employees_report_excludes_deleted(container):
    e = _employee(container, "1000000001", "Gone")
    _employee(container, "1000000002", "Here")
    container.employee_service.delete(e.employee_id)

    report = container.report_service.employees_report()
    assert [row["name"] for row in report.data] == ["Here"]


def test_vehicles_report_buckets_payments_by_month(container):
    emp = container.employee_service.create({"name": "Driver", "iqamaId": "1234567890", "phone": "+966500000000"})
    vehicle = container.vehicle_service.create({"number": "M 1", "name": "Car", "employeeId": emp.employee_id})
    pay = container.payment_service
    pay.create({"vehicleId": vehicle.vehicle_id, "totalAmount": 300, "date": "2026-02-20", "paidAmount": 100})
    pay.create({"vehicleId": vehicle.vehicle_id, "totalAmount": 200, "date": "2026-01-05"})
    pay.create({"vehicleId": vehicle.vehicle_id, "totalAmount": 50, "date": "2026-02-01", "paidAmount": 50})

    report = container.report_service.vehicles_report()

    row = report.data[0]
    assert row["employee"] == {"id": emp.employee_id, "name": "Driver", "type": "employee", "iqamaId": "1234567890", "phone": "+966500000000"}
    assert row["monthly"] == [
        {"month": "2026-01", "totalAmount": 200.0, "paidAmount": 0.0, "dues": 200.0},
        {"month": "2026-02", "totalAmount": 350.0, "paidAmount": 150.0, "dues": 200.0},
    ]
    assert row["totals"] == {"totalAmount": 550.0, "paidAmount": 150.0, "dues": 400.0}
    assert [r["month"] for r in report.rows] == ["2026-01", "2026-02"]


def test_payments_report_summary(container):
    vehicle = container.vehicle_service.create({"number": "S 1", "name": "Car"})
    pay = container.payment_service
    pay.create({"vehicleId": vehicle.vehicle_id, "totalAmount": 1000, "paidAmount": 250})
    pay.create({"vehicleId": vehicle.vehicle_id, "totalAmount": 500, "paidAmount": 500})

    report = container.report_service.payments_report(vehicle_id=vehicle.vehicle_id)

    assert report.data["summary"] == {"totalAmount": 1500.0, "totalPaid": 750.0, "totalDues": 750.0}
    assert len(report.data["payments"]) == 2


def test_bills_report_net_is_income_minus_expense(container):
    bills = container.bill_service
    bills.create({"type": "income", "name": "Rent", "totalAmount": 1000, "paidAmount": 600})
    bills.create({"type": "income", "name": "Fees", "totalAmount": 500, "paidAmount": 500})
    bills.create({"type": "expense", "name": "Fuel", "totalAmount": 400, "paidAmount": 100})

    summary = container.report_service.bills_report().data["summary"]

    assert summary == {
        "totalIncome": 1500.0,
        "paidIncome": 1100.0,
        "duesIncome": 400.0,
        "totalExpense": 400.0,
        "paidExpense": 100.0,
        "duesExpense": 300.0,
        "netTotal": 1100.0,
        "netPaid": 1000.0,
        "netDues": 100.0,
    }


def test_bills_report_type_filter(container):
    container.bill_service.create({"type": "income", "name": "Rent", "totalAmount": 10})
    container.bill_service.create({"type": "expense", "name": "Fuel", "totalAmount": 4})

    report = container.report_service.bills_report(type="expense")
    assert [b["name"] for b in report.data["bills"]] == ["Fuel"]
    assert report.data["summary"]["netTotal"] == -4.0
