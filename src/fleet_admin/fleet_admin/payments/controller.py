from __future__ import annotations

from flask import Flask, request

from ..common.responses import api_errors, json_body, ok, query_flag
from ..common.validators import optional_id, parse_id
from ..container import Container


def register(app: Flask, container: Container) -> None:
    payments = container.payment_service
    installments = container.installment_service

    @app.route("/api/payments", methods=["GET"], endpoint="payments_list")
    @api_errors
    def payments_list():
        found = payments.list_payments(
            vehicle_id=optional_id(request.args.get("vehicleId"), "vehicle ID"),
            start_date=request.args.get("startDate"),
            end_date=request.args.get("endDate"),
            include_deleted=query_flag("includeDeleted"),
        )
        return ok([p.to_dict() for p in found])

    @app.route("/api/payments", methods=["POST"], endpoint="payments_create")
    @api_errors
    def payments_create():
        return ok(payments.create(json_body()).to_dict(), 201)

    @app.route("/api/payments/<payment_id>", methods=["GET"], endpoint="payments_get")
    @api_errors
    def payments_get(payment_id: str):
        payment = payments.get_with_installments(
            parse_id(payment_id, "payment ID"), include_deleted=query_flag("includeDeleted")
        )
        return ok(payment.to_dict(with_installments=True))

    @app.route("/api/payments/<payment_id>", methods=["PUT"], endpoint="payments_update")
    @api_errors
    def payments_update(payment_id: str):
        return ok(payments.update(parse_id(payment_id, "payment ID"), json_body()).to_dict())

    @app.route("/api/payments/<payment_id>", methods=["DELETE"], endpoint="payments_delete")
    @api_errors
    def payments_delete(payment_id: str):
        payments.delete(parse_id(payment_id, "payment ID"))
        return ok({})

    @app.route("/api/installments", methods=["GET"], endpoint="installments_list")
    @api_errors
    def installments_list():
        found = installments.list_installments(
            payment_id=optional_id(request.args.get("paymentId"), "payment ID"),
            include_deleted=query_flag("includeDeleted"),
        )
        return ok([i.to_dict() for i in found])

    @app.route("/api/installments", methods=["POST"], endpoint="installments_create")
    @api_errors
    def installments_create():
        return ok(installments.create(json_body()).to_dict(), 201)

    @app.route("/api/installments/<installment_id>", methods=["PUT"], endpoint="installments_update")
    @api_errors
    def installments_update(installment_id: str):
        return ok(installments.update(parse_id(installment_id, "installment ID"), json_body()).to_dict())

    @app.route("/api/installments/<installment_id>", methods=["DELETE"], endpoint="installments_delete")
    @api_errors
    def installments_delete(installment_id: str):
        installments.delete(parse_id(installment_id, "installment ID"))
        return ok({})
