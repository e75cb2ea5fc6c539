from __future__ import annotations

from flask import Flask, request

from ..common.responses import api_errors, json_body, ok, query_flag
from ..common.validators import optional_id, parse_id
from ..container import Container


def register(app: Flask, container: Container) -> None:
    service = container.bill_service

    @app.route("/api/bills", methods=["GET"], endpoint="bills_list")
    @api_errors
    def bills_list():
        bills = service.list_bills(
            type=request.args.get("type"),
            employee_id=optional_id(request.args.get("employeeId"), "employee ID"),
            start_date=request.args.get("startDate"),
            end_date=request.args.get("endDate"),
            include_deleted=query_flag("includeDeleted"),
        )
        return ok([b.to_dict() for b in bills])

    @app.route("/api/bills", methods=["POST"], endpoint="bills_create")
    @api_errors
    def bills_create():
        return ok(service.create(json_body()).to_dict(), 201)

    @app.route("/api/bills/<bill_id>", methods=["GET"], endpoint="bills_get")
    @api_errors
    def bills_get(bill_id: str):
        return ok(service.get(parse_id(bill_id, "bill ID")).to_dict())

    @app.route("/api/bills/<bill_id>", methods=["PUT"], endpoint="bills_update")
    @api_errors
    def bills_update(bill_id: str):
        return ok(service.update(parse_id(bill_id, "bill ID"), json_body()).to_dict())

    @app.route("/api/bills/<bill_id>", methods=["DELETE"], endpoint="bills_delete")
    @api_errors
    def bills_delete(bill_id: str):
        service.delete(parse_id(bill_id, "bill ID"))
        return ok({})
