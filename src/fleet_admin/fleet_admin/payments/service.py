from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Mapping, Optional, Sequence

from ..common.datetime_utils import end_of_day, now_local, parse_datetime
from ..common.validators import optional_text, parse_id, require_amount, require_paid_within_total
from ..core.constants import MAX_REMARKS_LENGTH
from ..core.exceptions import NotFoundError
from ..vehicles.repository import VehicleRepository
from .model import Installment, InstallmentFields, Payment, PaymentFields
from .repository import InstallmentRepository, PaymentRepository

logger = logging.getLogger(__name__)


def _money(value: float) -> float:
    return round(float(value), 2)


class PaymentService:
    """Use case: vehicle payments; paid/dues always derived from installments."""

    def __init__(self, payments: PaymentRepository, installments: InstallmentRepository, vehicles: VehicleRepository):
        self._payments = payments
        self._installments = installments
        self._vehicles = vehicles

    def _check_vehicle(self, vehicle_id: int) -> None:
        if not self._vehicles.get_by_id(vehicle_id):
            raise NotFoundError("Vehicle not found")

    def list_payments(
        self,
        *,
        vehicle_id: Optional[int] = None,
        start_date: Any = None,
        end_date: Any = None,
        include_deleted: bool = False,
    ) -> Sequence[Payment]:
        return self._payments.find(
            vehicle_id=vehicle_id,
            date_from=parse_datetime(start_date, "Start date"),
            date_to=end_of_day(parse_datetime(end_date, "End date")),
            include_deleted=include_deleted,
        )

    def get(self, payment_id: int, *, include_deleted: bool = False) -> Payment:
        payment = self._payments.get_by_id(payment_id, include_deleted=include_deleted)
        if not payment:
            raise NotFoundError("Payment not found")
        return payment

    def get_with_installments(self, payment_id: int, *, include_deleted: bool = False) -> Payment:
        payment = self.get(payment_id, include_deleted=include_deleted)
        if payment.is_deleted:
            # installments removed together with the payment share its deleted_at
            installments = [
                i
                for i in self._installments.find(payment_id=payment.payment_id, include_deleted=True)
                if not i.is_deleted or i.deleted_at == payment.deleted_at
            ]
        else:
            installments = self._installments.find(payment_id=payment.payment_id)
        return replace(payment, installments=tuple(installments))

    def create(self, payload: Mapping[str, Any]) -> Payment:
        vehicle_id = parse_id(payload.get("vehicleId"), "vehicle ID")
        total = require_amount(payload.get("totalAmount"), "Total amount")
        opening = None
        if payload.get("paidAmount") not in (None, ""):
            opening = require_amount(payload.get("paidAmount"), "Paid amount")
            require_paid_within_total(_money(opening), _money(total))
        self._check_vehicle(vehicle_id)

        fields = PaymentFields(
            vehicle_id=vehicle_id,
            total_amount=total,
            date=parse_datetime(payload.get("date")) or now_local(),
            remarks=optional_text(payload.get("remarks"), "Remarks", max_len=MAX_REMARKS_LENGTH),
        )
        payment_id = self._payments.create(fields, opening_amount=opening)
        logger.info("Payment %s created for vehicle %s (total=%s, opening=%s)", payment_id, vehicle_id, total, opening)
        return self.get(payment_id)

    def update(self, payment_id: int, payload: Mapping[str, Any]) -> Payment:
        current = self.get(payment_id)

        changes: dict[str, Any] = {}
        if "vehicleId" in payload:
            changes["vehicle_id"] = parse_id(payload.get("vehicleId"), "vehicle ID")
            self._check_vehicle(changes["vehicle_id"])
        if "totalAmount" in payload:
            # checked against the paid sum by the repository, under a row lock
            changes["total_amount"] = require_amount(payload.get("totalAmount"), "Total amount")
        if "date" in payload:
            changes["date"] = parse_datetime(payload.get("date")) or current.date
        if "remarks" in payload:
            changes["remarks"] = optional_text(payload.get("remarks"), "Remarks", max_len=MAX_REMARKS_LENGTH)

        if not self._payments.update(payment_id, changes):
            raise NotFoundError("Payment not found")
        return self.get(payment_id)

    def delete(self, payment_id: int) -> None:
        if not self._payments.delete(payment_id):
            raise NotFoundError("Payment not found")
        logger.info("Payment %s deleted with its installments", payment_id)


class InstallmentService:
    """Use case: record installments against a payment without overpaying it."""

    def __init__(self, installments: InstallmentRepository):
        self._installments = installments

    def list_installments(self, *, payment_id: Optional[int] = None, include_deleted: bool = False) -> Sequence[Installment]:
        return self._installments.find(payment_id=payment_id, include_deleted=include_deleted)

    def get(self, installment_id: int) -> Installment:
        installment = self._installments.get_by_id(installment_id)
        if not installment:
            raise NotFoundError("Installment not found")
        return installment

    def create(self, payload: Mapping[str, Any]) -> Installment:
        payment_id = parse_id(payload.get("paymentId"), "payment ID")
        amount = require_amount(payload.get("amount"), "Amount")

        # dues are checked by the repository while the payment row is locked
        installment_id = self._installments.create_within_dues(
            InstallmentFields(
                payment_id=payment_id,
                amount=amount,
                date=parse_datetime(payload.get("date")) or now_local(),
                remarks=optional_text(payload.get("remarks"), "Remarks", max_len=MAX_REMARKS_LENGTH),
            )
        )
        logger.info("Installment %s recorded on payment %s (amount=%s)", installment_id, payment_id, amount)
        return self.get(installment_id)

    def update(self, installment_id: int, payload: Mapping[str, Any]) -> Installment:
        current = self.get(installment_id)

        changes: dict[str, Any] = {}
        if "amount" in payload:
            changes["amount"] = require_amount(payload.get("amount"), "Amount")
        if "date" in payload:
            changes["date"] = parse_datetime(payload.get("date")) or current.date
        if "remarks" in payload:
            changes["remarks"] = optional_text(payload.get("remarks"), "Remarks", max_len=MAX_REMARKS_LENGTH)

        if not self._installments.update(installment_id, changes):
            raise NotFoundError("Installment not found")
        return self.get(installment_id)

    def delete(self, installment_id: int) -> None:
        if not self._installments.delete(installment_id):
            raise NotFoundError("Installment not found")
        logger.info("Installment %s deleted", installment_id)
