from __future__ import annotations

import csv
import io

from flask import Flask, request

from ..common.datetime_utils import now_local
from ..common.responses import api_errors, ok
from ..common.validators import optional_id
from ..container import Container
from .service import ReportData


def register(app: Flask, container: Container) -> None:
    service = container.report_service

    def _write_report_csv(*, report: ReportData, filename: str):
        """Write report rows to CSV response (UTF-8 with BOM so spreadsheets detect it)."""
        out = io.StringIO()
        writer = csv.DictWriter(out, fieldnames=report.fieldnames)
        writer.writeheader()
        for row in report.rows:
            writer.writerow(row)

        csv_bytes = out.getvalue().encode("utf-8-sig")
        return app.response_class(
            csv_bytes,
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )

    def _respond(report: ReportData, name: str):
        if (request.args.get("format") or "").strip().lower() == "csv":
            filename = f"{name}_report_{now_local().strftime('%Y%m%d')}.csv"
            return _write_report_csv(report=report, filename=filename)
        return ok(report.data)

    @app.route("/api/reports/employees", methods=["GET"], endpoint="reports_employees")
    @api_errors
    def reports_employees():
        report = service.employees_report(
            start_date=request.args.get("startDate"),
            end_date=request.args.get("endDate"),
        )
        return _respond(report, "employees")

    @app.route("/api/reports/vehicles", methods=["GET"], endpoint="reports_vehicles")
    @api_errors
    def reports_vehicles():
        report = service.vehicles_report(
            start_date=request.args.get("startDate"),
            end_date=request.args.get("endDate"),
        )
        return _respond(report, "vehicles")

    @app.route("/api/reports/payments", methods=["GET"], endpoint="reports_payments")
    @api_errors
    def reports_payments():
        report = service.payments_report(
            vehicle_id=optional_id(request.args.get("vehicleId"), "vehicle ID"),
            start_date=request.args.get("startDate"),
            end_date=request.args.get("endDate"),
        )
        return _respond(report, "payments")

    @app.route("/api/reports/bills", methods=["GET"], endpoint="reports_bills")
    @api_errors
    def reports_bills():
        report = service.bills_report(
            type=request.args.get("type"),
            employee_id=optional_id(request.args.get("employeeId"), "employee ID"),
            start_date=request.args.get("startDate"),
            end_date=request.args.get("endDate"),
        )
        return _respond(report, "bills")
