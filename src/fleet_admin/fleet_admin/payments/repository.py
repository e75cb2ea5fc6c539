from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping, Optional, Protocol, Sequence

from .model import Installment, InstallmentFields, Payment, PaymentFields


class PaymentRepository(Protocol):
    """Giao diện repository cho Payment (paid_amount luôn được tính từ installments)."""

    def get_by_id(self, payment_id: int, *, include_deleted: bool = False) -> Optional[Payment]:
        raise NotImplementedError

    def find(
        self,
        *,
        vehicle_id: Optional[int] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
        include_deleted: bool = False,
    ) -> Sequence[Payment]:
        raise NotImplementedError

    def create(self, fields: PaymentFields, *, opening_amount: Optional[float] = None) -> int:
        """Insert the payment; a positive opening amount becomes its first installment (same transaction)."""
        raise NotImplementedError

    def update(self, payment_id: int, changes: Mapping[str, Any]) -> bool:
        """Apply changes under a lock on the payment row.

        Raises ValidationError when a new total_amount is below the paid sum.
        """
        raise NotImplementedError

    def delete(self, payment_id: int) -> bool:
        """Remove the payment and every installment referencing it, atomically."""
        raise NotImplementedError


class InstallmentRepository(Protocol):
    def get_by_id(self, installment_id: int, *, include_deleted: bool = False) -> Optional[Installment]:
        raise NotImplementedError

    def find(self, *, payment_id: Optional[int] = None, include_deleted: bool = False) -> Sequence[Installment]:
        raise NotImplementedError

    def create_within_dues(self, fields: InstallmentFields) -> int:
        """Insert only if the amount fits the payment's remaining dues, checked while the payment row is locked.

        Raises NotFoundError for a missing or removed payment, ValidationError when over dues.
        """
        raise NotImplementedError

    def update(self, installment_id: int, changes: Mapping[str, Any]) -> bool:
        """A changed amount is re-checked against the dues excluding this installment, under the same lock."""
        raise NotImplementedError

    def delete(self, installment_id: int) -> bool:
        raise NotImplementedError
