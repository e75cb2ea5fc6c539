from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .admins.mysql_admin_repository import MySQLAdminRepository
from .admins.repository import AdminRepository
from .admins.service import AdminService, AuthService
from .bills.mysql_bill_repository import MySQLBillRepository
from .bills.repository import BillRepository
from .bills.service import BillService
from .core.constants import DELETION_POLICIES
from .database.connection import DBConfig, DatabaseConnection
from .employees.mysql_employee_repository import MySQLEmployeeRepository
from .employees.repository import EmployeeRepository
from .employees.service import EmployeeService
from .payments.mysql_installment_repository import MySQLInstallmentRepository
from .payments.mysql_payment_repository import MySQLPaymentRepository
from .payments.repository import InstallmentRepository, PaymentRepository
from .payments.service import InstallmentService, PaymentService
from .reports.service import ReportService
from .vehicles.mysql_vehicle_repository import MySQLVehicleRepository
from .vehicles.repository import VehicleRepository
from .vehicles.service import VehicleService


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    employees_repo: EmployeeRepository
    vehicles_repo: VehicleRepository
    payments_repo: PaymentRepository
    installments_repo: InstallmentRepository
    bills_repo: BillRepository
    admins_repo: AdminRepository

    employee_service: EmployeeService
    vehicle_service: VehicleService
    payment_service: PaymentService
    installment_service: InstallmentService
    bill_service: BillService
    admin_service: AdminService
    auth_service: AuthService
    report_service: ReportService


def wire_container(
    *,
    employees_repo: EmployeeRepository,
    vehicles_repo: VehicleRepository,
    payments_repo: PaymentRepository,
    installments_repo: InstallmentRepository,
    bills_repo: BillRepository,
    admins_repo: AdminRepository,
    conn: Optional[DatabaseConnection] = None,
) -> Container:
    """Build the services on top of any set of repositories (MySQL in the app, in-memory in tests)."""
    return Container(
        conn=conn,
        employees_repo=employees_repo,
        vehicles_repo=vehicles_repo,
        payments_repo=payments_repo,
        installments_repo=installments_repo,
        bills_repo=bills_repo,
        admins_repo=admins_repo,
        employee_service=EmployeeService(employees_repo, vehicles_repo),
        vehicle_service=VehicleService(vehicles_repo, employees_repo),
        payment_service=PaymentService(payments_repo, installments_repo, vehicles_repo),
        installment_service=InstallmentService(installments_repo),
        bill_service=BillService(bills_repo, employees_repo),
        admin_service=AdminService(admins_repo),
        auth_service=AuthService(admins_repo),
        report_service=ReportService(
            employees=employees_repo,
            vehicles=vehicles_repo,
            payments=payments_repo,
            bills=bills_repo,
        ),
    )


def build_container(*, db_config: dict) -> Container:
    conn = DatabaseConnection(DBConfig.from_dict(db_config))

    return wire_container(
        conn=conn,
        employees_repo=MySQLEmployeeRepository(conn, policy=DELETION_POLICIES["employee"]),
        vehicles_repo=MySQLVehicleRepository(conn, policy=DELETION_POLICIES["vehicle"]),
        payments_repo=MySQLPaymentRepository(
            conn,
            policy=DELETION_POLICIES["payment"],
            installment_policy=DELETION_POLICIES["installment"],
        ),
        installments_repo=MySQLInstallmentRepository(conn, policy=DELETION_POLICIES["installment"]),
        bills_repo=MySQLBillRepository(conn, policy=DELETION_POLICIES["bill"]),
        admins_repo=MySQLAdminRepository(conn, policy=DELETION_POLICIES["admin"]),
    )
