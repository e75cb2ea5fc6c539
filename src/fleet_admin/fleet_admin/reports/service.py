from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Optional

from ..bills.repository import BillRepository
from ..common.datetime_utils import end_of_day, month_key, parse_datetime
from ..core.enums import BillType
from ..employees.repository import EmployeeRepository
from ..payments.repository import PaymentRepository
from ..vehicles.repository import VehicleRepository


@dataclass(frozen=True)
class ReportData:
    """JSON payload of a report plus the flat rows used for the CSV export."""

    data: Any
    fieldnames: list[str]
    rows: list[dict] = field(default_factory=list)


def _money(value: float) -> float:
    return round(value, 2)


def _range(start_date: Any, end_date: Any):
    return parse_datetime(start_date, "Start date"), end_of_day(parse_datetime(end_date, "End date"))


class ReportService:
    """Aggregations for the report screens (paid / dues / net)."""

    def __init__(
        self,
        *,
        employees: EmployeeRepository,
        vehicles: VehicleRepository,
        payments: PaymentRepository,
        bills: BillRepository,
    ):
        self._employees = employees
        self._vehicles = vehicles
        self._payments = payments
        self._bills = bills

    def employees_report(self, *, start_date: Any = None, end_date: Any = None) -> ReportData:
        created_from, created_to = _range(start_date, end_date)
        employees = self._employees.find(created_from=created_from, created_to=created_to)
        # one grouped query for every employee's vehicle count
        counts = self._vehicles.count_by_employee()

        data = []
        rows = []
        for e in employees:
            vehicle_count = int(counts.get(e.employee_id, 0))
            data.append({**e.to_dict(), "vehicleCount": vehicle_count})
            rows.append(
                {
                    "name": e.name,
                    "iqama_id": e.iqama_id,
                    "phone": e.phone or "",
                    "type": e.type.value,
                    "join_date": e.join_date.strftime("%Y-%m-%d") if e.join_date else "",
                    "vehicle_count": vehicle_count,
                }
            )
        return ReportData(
            data=data,
            fieldnames=["name", "iqama_id", "phone", "type", "join_date", "vehicle_count"],
            rows=rows,
        )

    def vehicles_report(self, *, start_date: Any = None, end_date: Any = None) -> ReportData:
        created_from, created_to = _range(start_date, end_date)
        vehicles = self._vehicles.find(created_from=created_from, created_to=created_to)

        buckets: dict[int, dict[str, dict]] = defaultdict(dict)
        for p in self._payments.find():
            if p.vehicle_id is None:
                continue
            key = month_key(p.date)
            bucket = buckets[int(p.vehicle_id)].setdefault(key, {"month": key, "totalAmount": 0.0, "paidAmount": 0.0})
            bucket["totalAmount"] += p.total_amount
            bucket["paidAmount"] += p.paid_amount

        data = []
        rows = []
        for v in vehicles:
            monthly = []
            for key in sorted(buckets.get(v.vehicle_id, {})):
                b = buckets[v.vehicle_id][key]
                monthly.append(
                    {
                        "month": key,
                        "totalAmount": _money(b["totalAmount"]),
                        "paidAmount": _money(b["paidAmount"]),
                        "dues": _money(b["totalAmount"] - b["paidAmount"]),
                    }
                )
            total = sum(m["totalAmount"] for m in monthly)
            paid = sum(m["paidAmount"] for m in monthly)
            data.append(
                {
                    **v.to_dict(employee_contact=True),
                    "monthly": monthly,
                    "totals": {"totalAmount": _money(total), "paidAmount": _money(paid), "dues": _money(total - paid)},
                }
            )

            base = {
                "number": v.number,
                "name": v.name,
                "type": v.type.value,
                "employee": v.employee.name if v.employee else "",
                "employee_iqama_id": (v.employee.iqama_id or "") if v.employee else "",
            }
            if not monthly:
                rows.append({**base, "month": "", "total_amount": 0.0, "paid_amount": 0.0, "dues": 0.0})
            for m in monthly:
                rows.append(
                    {
                        **base,
                        "month": m["month"],
                        "total_amount": m["totalAmount"],
                        "paid_amount": m["paidAmount"],
                        "dues": m["dues"],
                    }
                )

        return ReportData(
            data=data,
            fieldnames=[
                "number",
                "name",
                "type",
                "employee",
                "employee_iqama_id",
                "month",
                "total_amount",
                "paid_amount",
                "dues",
            ],
            rows=rows,
        )

    def payments_report(
        self,
        *,
        vehicle_id: Optional[int] = None,
        start_date: Any = None,
        end_date: Any = None,
    ) -> ReportData:
        date_from, date_to = _range(start_date, end_date)
        payments = self._payments.find(vehicle_id=vehicle_id, date_from=date_from, date_to=date_to)

        total = sum(p.total_amount for p in payments)
        paid = sum(p.paid_amount for p in payments)
        summary = {"totalAmount": _money(total), "totalPaid": _money(paid), "totalDues": _money(total - paid)}

        rows = [
            {
                "date": p.date.strftime("%Y-%m-%d"),
                "vehicle_number": p.vehicle.number if p.vehicle else "",
                "employee": p.vehicle.employee.name if p.vehicle and p.vehicle.employee else "",
                "total_amount": p.total_amount,
                "paid_amount": p.paid_amount,
                "dues": p.dues,
                "remarks": p.remarks or "",
            }
            for p in payments
        ]
        return ReportData(
            data={"payments": [p.to_dict() for p in payments], "summary": summary},
            fieldnames=["date", "vehicle_number", "employee", "total_amount", "paid_amount", "dues", "remarks"],
            rows=rows,
        )

    def bills_report(
        self,
        *,
        type: Optional[str] = None,
        employee_id: Optional[int] = None,
        start_date: Any = None,
        end_date: Any = None,
    ) -> ReportData:
        bill_type = None
        if type:
            try:
                bill_type = BillType(type.strip().lower())
            except ValueError:
                bill_type = None
        date_from, date_to = _range(start_date, end_date)
        bills = self._bills.find(type=bill_type, employee_id=employee_id, date_from=date_from, date_to=date_to)

        income = [b for b in bills if b.type == BillType.INCOME]
        expense = [b for b in bills if b.type == BillType.EXPENSE]
        total_income = sum(b.total_amount for b in income)
        paid_income = sum(b.paid_amount for b in income)
        total_expense = sum(b.total_amount for b in expense)
        paid_expense = sum(b.paid_amount for b in expense)
        summary = {
            "totalIncome": _money(total_income),
            "paidIncome": _money(paid_income),
            "duesIncome": _money(total_income - paid_income),
            "totalExpense": _money(total_expense),
            "paidExpense": _money(paid_expense),
            "duesExpense": _money(total_expense - paid_expense),
            "netTotal": _money(total_income - total_expense),
            "netPaid": _money(paid_income - paid_expense),
            "netDues": _money((total_income - paid_income) - (total_expense - paid_expense)),
        }

        rows = [
            {
                "date": b.date.strftime("%Y-%m-%d"),
                "type": b.type.value,
                "name": b.name,
                "employee": b.employee.name if b.employee else "",
                "total_amount": b.total_amount,
                "paid_amount": b.paid_amount,
                "dues": b.dues,
            }
            for b in bills
        ]
        return ReportData(
            data={"bills": [b.to_dict() for b in bills], "summary": summary},
            fieldnames=["date", "type", "name", "employee", "total_amount", "paid_amount", "dues"],
            rows=rows,
        )
