from __future__ import annotations

from flask import Flask, request

from ..common.responses import api_errors, json_body, ok, query_flag
from ..common.validators import parse_id
from ..container import Container


def register(app: Flask, container: Container) -> None:
    service = container.employee_service

    def _employee_id(raw: str) -> int:
        return parse_id(raw, "employee ID")

    @app.route("/api/employees", methods=["GET"], endpoint="employees_list")
    @api_errors
    def employees_list():
        employees = service.list_employees(
            search=request.args.get("search"),
            type=request.args.get("type"),
            include_deleted=query_flag("includeDeleted"),
        )
        return ok([e.to_dict() for e in employees])

    @app.route("/api/employees", methods=["POST"], endpoint="employees_create")
    @api_errors
    def employees_create():
        employee = service.create(json_body())
        return ok(employee.to_dict(), 201)

    @app.route("/api/employees/bulk", methods=["POST"], endpoint="employees_bulk")
    @api_errors
    def employees_bulk():
        result = service.bulk_create(json_body().get("employees"))
        return ok(result.to_dict(), message=f"{len(result.created)} employee(s) uploaded")

    @app.route("/api/employees/<employee_id>", methods=["GET"], endpoint="employees_get")
    @api_errors
    def employees_get(employee_id: str):
        employee = service.get(_employee_id(employee_id), include_deleted=query_flag("includeDeleted"))
        return ok(employee.to_dict())

    @app.route("/api/employees/<employee_id>", methods=["PUT"], endpoint="employees_update")
    @api_errors
    def employees_update(employee_id: str):
        employee = service.update(_employee_id(employee_id), json_body())
        return ok(employee.to_dict())

    @app.route("/api/employees/<employee_id>", methods=["DELETE"], endpoint="employees_delete")
    @api_errors
    def employees_delete(employee_id: str):
        service.delete(_employee_id(employee_id))
        return ok({})

    @app.route("/api/employees/<employee_id>/terminate", methods=["POST"], endpoint="employees_terminate")
    @api_errors
    def employees_terminate(employee_id: str):
        return ok(service.terminate(_employee_id(employee_id), json_body()))
