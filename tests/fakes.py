"""In-memory repositories sharing one FakeDB, so cross-table rules (companion
payments, derived paid amounts, cascades, unassignment) behave like MySQL."""
from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta
from typing import Any, Mapping, Optional

from src.fleet_admin.fleet_admin.admins.model import Admin
from src.fleet_admin.fleet_admin.bills.model import Bill, BillFields
from src.fleet_admin.fleet_admin.container import Container, wire_container
from src.fleet_admin.fleet_admin.core.constants import (
    DELETION_POLICIES,
    OPENING_PAYMENT_REMARKS,
    REMAINING_DUES_MESSAGE,
    TOTAL_BELOW_PAID_MESSAGE,
)
from src.fleet_admin.fleet_admin.core.enums import DeletionPolicy
from src.fleet_admin.fleet_admin.core.exceptions import DuplicateError, NotFoundError, ValidationError
from src.fleet_admin.fleet_admin.employees.model import Employee, EmployeeFields, EmployeeRef
from src.fleet_admin.fleet_admin.payments.model import (
    Installment,
    InstallmentFields,
    Payment,
    PaymentFields,
    VehicleRef,
)
from src.fleet_admin.fleet_admin.vehicles.model import InitialPayment, Vehicle, VehicleFields


class FakeDB:
    def __init__(self):
        self.employees: dict[int, Employee] = {}
        self.vehicles: dict[int, Vehicle] = {}
        self.payments: dict[int, Payment] = {}
        self.installments: dict[int, Installment] = {}
        self.bills: dict[int, Bill] = {}
        self.admins: dict[int, Admin] = {}
        self._ids: dict[str, int] = {}
        self._clock = datetime(2026, 1, 1, 8, 0, 0)

    def next_id(self, table: str) -> int:
        self._ids[table] = self._ids.get(table, 0) + 1
        return self._ids[table]

    def now(self) -> datetime:
        # strictly increasing so "newest first" ordering is deterministic
        self._clock += timedelta(seconds=1)
        return self._clock

    def insert_payment(self, *, vehicle_id, total_amount, date, remarks) -> int:
        pid = self.next_id("payments")
        now = self.now()
        self.payments[pid] = Payment(
            payment_id=pid,
            vehicle_id=vehicle_id,
            total_amount=float(total_amount),
            paid_amount=0.0,
            date=date,
            remarks=remarks,
            created_at=now,
            updated_at=now,
        )
        return pid

    def insert_installment(self, *, payment_id, amount, date, remarks) -> int:
        iid = self.next_id("installments")
        now = self.now()
        self.installments[iid] = Installment(
            installment_id=iid,
            payment_id=payment_id,
            amount=float(amount),
            date=date,
            remarks=remarks,
            created_at=now,
            updated_at=now,
        )
        return iid

    def paid_sum(self, payment: Payment, *, exclude_installment_id: Optional[int] = None) -> float:
        """Mirrors the SQL subquery: active installments, plus those removed with a removed payment."""
        total = 0.0
        for i in self.installments.values():
            if i.payment_id != payment.payment_id or i.installment_id == exclude_installment_id:
                continue
            if not i.is_deleted or (payment.is_deleted and i.deleted_at == payment.deleted_at):
                total += i.amount
        return total


def _visible(entity, include_deleted: bool) -> bool:
    return include_deleted or not entity.is_deleted


def _matches(term: str, values, strip_spaces: bool) -> bool:
    term = term.lower()
    if strip_spaces:
        term = "".join(term.split())
    for v in values:
        if not v:
            continue
        v = str(v).lower()
        if strip_spaces:
            v = v.replace(" ", "")
        if term in v:
            return True
    return False


def _in_range(value: Optional[datetime], start, end) -> bool:
    if start is not None and (value is None or value < start):
        return False
    if end is not None and (value is None or value > end):
        return False
    return True


def _newest_first(items, key):
    return sorted(items, key=lambda x: (key(x), _id_of(x)), reverse=True)


_ID_ATTR = {
    Employee: "employee_id",
    Vehicle: "vehicle_id",
    Payment: "payment_id",
    Installment: "installment_id",
    Bill: "bill_id",
    Admin: "admin_id",
}


def _id_of(entity) -> int:
    return getattr(entity, _ID_ATTR[type(entity)])


def _remove(table: dict, key: int, policy: DeletionPolicy, now: datetime) -> bool:
    entity = table.get(key)
    if entity is None or entity.is_deleted:
        return False
    if policy == DeletionPolicy.SOFT:
        table[key] = replace(entity, is_deleted=True, deleted_at=now)
    else:
        del table[key]
    return True


class InMemoryEmployees:
    def __init__(self, db: FakeDB, *, policy: DeletionPolicy = DeletionPolicy.SOFT):
        self.db = db
        self._policy = policy

    def get_by_id(self, employee_id: int, *, include_deleted: bool = False) -> Optional[Employee]:
        e = self.db.employees.get(int(employee_id))
        return e if e and _visible(e, include_deleted) else None

    def get_by_iqama_id(self, iqama_id: str) -> Optional[Employee]:
        return next((e for e in self.db.employees.values() if e.iqama_id == iqama_id), None)

    def find(
        self,
        *,
        search=None,
        type=None,
        include_deleted=False,
        strip_spaces=False,
        created_from=None,
        created_to=None,
    ):
        out = []
        for e in self.db.employees.values():
            if not _visible(e, include_deleted):
                continue
            if search and not _matches(search, (e.name, e.iqama_id, e.phone), strip_spaces):
                continue
            if type is not None and e.type != type:
                continue
            if not _in_range(e.created_at, created_from, created_to):
                continue
            out.append(e)
        return _newest_first(out, lambda e: e.created_at)

    def create(self, fields: EmployeeFields) -> int:
        if self.get_by_iqama_id(fields.iqama_id):
            raise DuplicateError("Employee with this Iqama ID already exists")
        eid = self.db.next_id("employees")
        now = self.db.now()
        self.db.employees[eid] = Employee(
            employee_id=eid,
            name=fields.name,
            iqama_id=fields.iqama_id,
            phone=fields.phone,
            type=fields.type,
            join_date=fields.join_date,
            image_urls=tuple(fields.image_urls),
            created_at=now,
            updated_at=now,
        )
        return eid

    def update(self, employee_id: int, changes: Mapping[str, Any]) -> bool:
        current = self.get_by_id(employee_id)
        if not current:
            return False
        self.db.employees[current.employee_id] = replace(current, **dict(changes), updated_at=self.db.now())
        return True

    def delete(self, employee_id: int) -> bool:
        return _remove(self.db.employees, int(employee_id), self._policy, self.db.now())

    def terminate(self, employee_id: int, *, termination_date, reason) -> int:
        unassigned = 0
        for vid, v in list(self.db.vehicles.items()):
            if v.employee_id == employee_id:
                self.db.vehicles[vid] = replace(v, employee_id=None)
                unassigned += 1
        current = self.db.employees[int(employee_id)]
        self.db.employees[current.employee_id] = replace(
            current, termination_date=termination_date, termination_reason=reason
        )
        return unassigned


class InMemoryVehicles:
    def __init__(self, db: FakeDB, *, policy: DeletionPolicy = DeletionPolicy.HARD):
        self.db = db
        self._policy = policy

    def _populate(self, v: Vehicle) -> Vehicle:
        e = self.db.employees.get(v.employee_id) if v.employee_id is not None else None
        ref = EmployeeRef(e.employee_id, e.name, e.type, e.iqama_id, e.phone) if e else None
        return replace(v, employee=ref)

    def get_by_id(self, vehicle_id: int, *, include_deleted: bool = False) -> Optional[Vehicle]:
        v = self.db.vehicles.get(int(vehicle_id))
        return self._populate(v) if v and _visible(v, include_deleted) else None

    def get_by_number(self, number: str) -> Optional[Vehicle]:
        v = next((v for v in self.db.vehicles.values() if v.number == number), None)
        return self._populate(v) if v else None

    def find(
        self,
        *,
        search=None,
        employee_id=None,
        type=None,
        include_deleted=False,
        strip_spaces=False,
        created_from=None,
        created_to=None,
    ):
        out = []
        for v in self.db.vehicles.values():
            if not _visible(v, include_deleted):
                continue
            if search and not _matches(search, (v.number, v.name, v.serial_number), strip_spaces):
                continue
            if employee_id is not None and v.employee_id != employee_id:
                continue
            if type is not None and v.type != type:
                continue
            if not _in_range(v.created_at, created_from, created_to):
                continue
            out.append(self._populate(v))
        return _newest_first(out, lambda v: v.created_at)

    def create(self, fields: VehicleFields, *, initial_payment: Optional[InitialPayment] = None) -> int:
        if self.get_by_number(fields.number):
            raise DuplicateError("Vehicle with this number already exists")
        vid = self.db.next_id("vehicles")
        now = self.db.now()
        self.db.vehicles[vid] = Vehicle(
            vehicle_id=vid,
            number=fields.number,
            name=fields.name,
            type=fields.type,
            serial_number=fields.serial_number,
            model=fields.model,
            vehicle_amount=fields.vehicle_amount,
            start_date=fields.start_date,
            contract_expiry=fields.contract_expiry,
            description=fields.description,
            employee_id=fields.employee_id,
            created_at=now,
            updated_at=now,
        )
        if initial_payment is not None:
            self.db.insert_payment(
                vehicle_id=vid,
                total_amount=initial_payment.total_amount,
                date=initial_payment.date,
                remarks=initial_payment.remarks,
            )
        return vid

    def update(self, vehicle_id: int, changes: Mapping[str, Any]) -> bool:
        current = self.db.vehicles.get(int(vehicle_id))
        if not current or current.is_deleted:
            return False
        self.db.vehicles[current.vehicle_id] = replace(current, **dict(changes), updated_at=self.db.now())
        return True

    def delete(self, vehicle_id: int) -> bool:
        removed = _remove(self.db.vehicles, int(vehicle_id), self._policy, self.db.now())
        if removed and self._policy == DeletionPolicy.HARD:
            # ON DELETE SET NULL
            for pid, p in list(self.db.payments.items()):
                if p.vehicle_id == int(vehicle_id):
                    self.db.payments[pid] = replace(p, vehicle_id=None)
        return removed

    def count_by_employee(self):
        counts: dict[int, int] = {}
        for v in self.db.vehicles.values():
            if v.employee_id is not None and not v.is_deleted:
                counts[v.employee_id] = counts.get(v.employee_id, 0) + 1
        return counts


class InMemoryPayments:
    def __init__(
        self,
        db: FakeDB,
        *,
        policy: DeletionPolicy = DeletionPolicy.SOFT,
        installment_policy: DeletionPolicy = DeletionPolicy.SOFT,
    ):
        self.db = db
        self._policy = policy
        self._installment_policy = installment_policy

    def _populate(self, p: Payment) -> Payment:
        paid = self.db.paid_sum(p)
        vehicle = None
        v = self.db.vehicles.get(p.vehicle_id) if p.vehicle_id is not None else None
        if v:
            e = self.db.employees.get(v.employee_id) if v.employee_id is not None else None
            vehicle = VehicleRef(v.vehicle_id, v.number, v.name, EmployeeRef(e.employee_id, e.name, e.type) if e else None)
        return replace(p, paid_amount=float(paid), vehicle=vehicle)

    def get_by_id(self, payment_id: int, *, include_deleted: bool = False) -> Optional[Payment]:
        p = self.db.payments.get(int(payment_id))
        return self._populate(p) if p and _visible(p, include_deleted) else None

    def find(self, *, vehicle_id=None, date_from=None, date_to=None, include_deleted=False):
        out = []
        for p in self.db.payments.values():
            if not _visible(p, include_deleted):
                continue
            if vehicle_id is not None and p.vehicle_id != vehicle_id:
                continue
            if not _in_range(p.date, date_from, date_to):
                continue
            out.append(self._populate(p))
        return _newest_first(out, lambda p: p.date)

    def create(self, fields: PaymentFields, *, opening_amount: Optional[float] = None) -> int:
        pid = self.db.insert_payment(
            vehicle_id=fields.vehicle_id,
            total_amount=fields.total_amount,
            date=fields.date,
            remarks=fields.remarks,
        )
        if opening_amount and opening_amount > 0:
            self.db.insert_installment(
                payment_id=pid, amount=opening_amount, date=fields.date, remarks=OPENING_PAYMENT_REMARKS
            )
        return pid

    def update(self, payment_id: int, changes: Mapping[str, Any]) -> bool:
        current = self.db.payments.get(int(payment_id))
        if not current or current.is_deleted:
            return False
        if "total_amount" in changes and round(changes["total_amount"], 2) < round(self.db.paid_sum(current), 2):
            raise ValidationError(TOTAL_BELOW_PAID_MESSAGE)
        self.db.payments[current.payment_id] = replace(current, **dict(changes), updated_at=self.db.now())
        return True

    def delete(self, payment_id: int) -> bool:
        current = self.db.payments.get(int(payment_id))
        if not current or current.is_deleted:
            return False
        now = self.db.now()
        for iid, i in list(self.db.installments.items()):
            if i.payment_id == current.payment_id:
                _remove(self.db.installments, iid, self._installment_policy, now)
        return _remove(self.db.payments, current.payment_id, self._policy, now)


class InMemoryInstallments:
    def __init__(self, db: FakeDB, *, policy: DeletionPolicy = DeletionPolicy.SOFT):
        self.db = db
        self._policy = policy

    def get_by_id(self, installment_id: int, *, include_deleted: bool = False) -> Optional[Installment]:
        i = self.db.installments.get(int(installment_id))
        return i if i and _visible(i, include_deleted) else None

    def find(self, *, payment_id=None, include_deleted=False):
        out = [
            i
            for i in self.db.installments.values()
            if _visible(i, include_deleted) and (payment_id is None or i.payment_id == payment_id)
        ]
        return _newest_first(out, lambda i: i.date)

    def _check_dues(self, payment_id: int, amount: float, *, exclude_installment_id: Optional[int] = None) -> None:
        payment = self.db.payments.get(int(payment_id))
        if not payment or payment.is_deleted:
            raise NotFoundError("Payment not found")
        paid = self.db.paid_sum(payment, exclude_installment_id=exclude_installment_id)
        if round(amount, 2) > round(payment.total_amount - paid, 2):
            raise ValidationError(REMAINING_DUES_MESSAGE)

    def create_within_dues(self, fields: InstallmentFields) -> int:
        self._check_dues(fields.payment_id, fields.amount)
        return self.db.insert_installment(
            payment_id=fields.payment_id, amount=fields.amount, date=fields.date, remarks=fields.remarks
        )

    def update(self, installment_id: int, changes: Mapping[str, Any]) -> bool:
        current = self.get_by_id(installment_id)
        if not current:
            return False
        if "amount" in changes:
            self._check_dues(current.payment_id, changes["amount"], exclude_installment_id=current.installment_id)
        self.db.installments[current.installment_id] = replace(current, **dict(changes), updated_at=self.db.now())
        return True

    def delete(self, installment_id: int) -> bool:
        return _remove(self.db.installments, int(installment_id), self._policy, self.db.now())


class InMemoryBills:
    def __init__(self, db: FakeDB, *, policy: DeletionPolicy = DeletionPolicy.HARD):
        self.db = db
        self._policy = policy

    def _populate(self, b: Bill) -> Bill:
        e = self.db.employees.get(b.employee_id) if b.employee_id is not None else None
        return replace(b, employee=EmployeeRef(e.employee_id, e.name, e.type) if e else None)

    def get_by_id(self, bill_id: int, *, include_deleted: bool = False) -> Optional[Bill]:
        b = self.db.bills.get(int(bill_id))
        return self._populate(b) if b and _visible(b, include_deleted) else None

    def find(self, *, type=None, employee_id=None, date_from=None, date_to=None, include_deleted=False):
        out = []
        for b in self.db.bills.values():
            if not _visible(b, include_deleted):
                continue
            if type is not None and b.type != type:
                continue
            if employee_id is not None and b.employee_id != employee_id:
                continue
            if not _in_range(b.date, date_from, date_to):
                continue
            out.append(self._populate(b))
        return _newest_first(out, lambda b: b.date)

    def create(self, fields: BillFields) -> int:
        bid = self.db.next_id("bills")
        now = self.db.now()
        self.db.bills[bid] = Bill(
            bill_id=bid,
            type=fields.type,
            name=fields.name,
            total_amount=float(fields.total_amount),
            paid_amount=float(fields.paid_amount),
            date=fields.date,
            employee_id=fields.employee_id,
            created_at=now,
            updated_at=now,
        )
        return bid

    def update(self, bill_id: int, changes: Mapping[str, Any]) -> bool:
        current = self.db.bills.get(int(bill_id))
        if not current or current.is_deleted:
            return False
        self.db.bills[current.bill_id] = replace(current, **dict(changes), updated_at=self.db.now())
        return True

    def delete(self, bill_id: int) -> bool:
        return _remove(self.db.bills, int(bill_id), self._policy, self.db.now())


class InMemoryAdmins:
    def __init__(self, db: FakeDB, *, policy: DeletionPolicy = DeletionPolicy.HARD):
        self.db = db
        self._policy = policy

    def _active(self):
        return [a for a in self.db.admins.values() if not a.is_deleted]

    def get_by_id(self, admin_id: int) -> Optional[Admin]:
        a = self.db.admins.get(int(admin_id))
        return a if a and not a.is_deleted else None

    def get_by_username(self, username: str) -> Optional[Admin]:
        return next((a for a in self._active() if a.username == username), None)

    def list_admins(self):
        return _newest_first(self._active(), lambda a: a.created_at)

    def count(self) -> int:
        return len(self._active())

    def create(self, *, username, password_hash, role) -> int:
        if self.get_by_username(username):
            raise DuplicateError("Username already exists")
        aid = self.db.next_id("admins")
        now = self.db.now()
        self.db.admins[aid] = Admin(
            admin_id=aid,
            username=username,
            password_hash=password_hash,
            role=role,
            created_at=now,
            updated_at=now,
        )
        return aid

    def update(self, admin_id: int, changes: Mapping[str, Any]) -> bool:
        current = self.get_by_id(admin_id)
        if not current:
            return False
        self.db.admins[current.admin_id] = replace(current, **dict(changes), updated_at=self.db.now())
        return True

    def delete_unless_last(self, admin_id: int) -> bool:
        if not self.get_by_id(admin_id):
            raise NotFoundError("Admin not found")
        if self.count() <= 1:
            return False
        return _remove(self.db.admins, int(admin_id), self._policy, self.db.now())


def make_container(db: Optional[FakeDB] = None) -> Container:
    db = db or FakeDB()
    return wire_container(
        employees_repo=InMemoryEmployees(db, policy=DELETION_POLICIES["employee"]),
        vehicles_repo=InMemoryVehicles(db, policy=DELETION_POLICIES["vehicle"]),
        payments_repo=InMemoryPayments(
            db,
            policy=DELETION_POLICIES["payment"],
            installment_policy=DELETION_POLICIES["installment"],
        ),
        installments_repo=InMemoryInstallments(db, policy=DELETION_POLICIES["installment"]),
        bills_repo=InMemoryBills(db, policy=DELETION_POLICIES["bill"]),
        admins_repo=InMemoryAdmins(db, policy=DELETION_POLICIES["admin"]),
    )
