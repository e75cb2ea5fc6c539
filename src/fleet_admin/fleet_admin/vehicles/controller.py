from __future__ import annotations

from flask import Flask, request

from ..common.responses import api_errors, json_body, ok, query_flag
from ..common.validators import optional_id, parse_id
from ..container import Container


def register(app: Flask, container: Container) -> None:
    service = container.vehicle_service

    def _vehicle_id(raw: str) -> int:
        return parse_id(raw, "vehicle ID")

    @app.route("/api/vehicles", methods=["GET"], endpoint="vehicles_list")
    @api_errors
    def vehicles_list():
        vehicles = service.list_vehicles(
            search=request.args.get("search"),
            employee_id=optional_id(request.args.get("employeeId"), "employee ID"),
            type=request.args.get("type"),
            include_deleted=query_flag("includeDeleted"),
        )
        return ok([v.to_dict() for v in vehicles])

    @app.route("/api/vehicles", methods=["POST"], endpoint="vehicles_create")
    @api_errors
    def vehicles_create():
        vehicle = service.create(json_body())
        return ok(vehicle.to_dict(), 201)

    @app.route("/api/vehicles/bulk", methods=["POST"], endpoint="vehicles_bulk")
    @api_errors
    def vehicles_bulk():
        result = service.bulk_create(json_body().get("vehicles"))
        return ok(result.to_dict(), message=f"{len(result.created)} vehicle(s) uploaded")

    @app.route("/api/vehicles/<vehicle_id>", methods=["GET"], endpoint="vehicles_get")
    @api_errors
    def vehicles_get(vehicle_id: str):
        return ok(service.get(_vehicle_id(vehicle_id)).to_dict())

    @app.route("/api/vehicles/<vehicle_id>", methods=["PUT"], endpoint="vehicles_update")
    @api_errors
    def vehicles_update(vehicle_id: str):
        vehicle = service.update(_vehicle_id(vehicle_id), json_body())
        return ok(vehicle.to_dict())

    @app.route("/api/vehicles/<vehicle_id>", methods=["DELETE"], endpoint="vehicles_delete")
    @api_errors
    def vehicles_delete(vehicle_id: str):
        service.delete(_vehicle_id(vehicle_id))
        return ok({})
