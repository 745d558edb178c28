"""Installment ledger - lookup and aggregation over one sale's installments"""

from datetime import date
from typing import Iterable, List, Optional
from crediario.domain.models import (
    DerivedStatus,
    Installment,
    PaymentMethod,
    PaymentOutcome,
    StoredStatus,
)
from crediario.domain.exceptions import InstallmentNotFound
from crediario.domain.payments import record_payment


class InstallmentLedger:
    """Ordered installments of a single sale"""

    def __init__(self, installments: Iterable[Installment]):
        self._installments = sorted(installments, key=lambda inst: inst.installment_number)

    def __iter__(self):
        return iter(self._installments)

    def __len__(self) -> int:
        return len(self._installments)

    @property
    def installments(self) -> List[Installment]:
        return list(self._installments)

    def get(self, installment_number: int) -> Installment:
        for inst in self._installments:
            if inst.installment_number == installment_number:
                return inst
        raise InstallmentNotFound(f"Installment {installment_number} not found")

    def _open(self) -> List[Installment]:
        return [inst for inst in self._installments if inst.status != StoredStatus.CANCELLED]

    def remaining_balance(self) -> int:
        """Sum of amount - paid over installments that are not cancelled"""
        return sum(inst.remaining_cents for inst in self._open())

    def paid_total(self) -> int:
        return sum(inst.paid_amount_cents for inst in self._installments)

    def overdue_installments(self, as_of: date) -> List[Installment]:
        """
        Pending installments whose due date is before as_of.

        Recomputed on every call from stored state; "overdue" is never
        persisted, so a missed background job cannot leave stale flags.
        """
        return [inst for inst in self._installments if inst.is_overdue(as_of)]

    def sale_status(self, as_of: date, cancelled: bool = False) -> DerivedStatus:
        """
        Aggregate status of the sale from its installments.

        - CANCELLED: the sale itself was cancelled
        - PAID: every installment that is not cancelled is paid
        - OVERDUE: at least one pending installment is past due
        - PENDING: otherwise
        """
        if cancelled:
            return DerivedStatus.CANCELLED

        open_installments = self._open()
        if open_installments and all(inst.status == StoredStatus.PAID for inst in open_installments):
            return DerivedStatus.PAID
        if self.overdue_installments(as_of):
            return DerivedStatus.OVERDUE
        return DerivedStatus.PENDING

    def apply_payment(
        self,
        installment_number: int,
        amount_cents: int,
        payment_date: date,
        method: PaymentMethod,
        notes: Optional[str] = None,
        late_fee_cents: int = 0,
        discount_cents: int = 0,
    ) -> PaymentOutcome:
        """Record a payment through the payment processor and keep the result"""
        current = self.get(installment_number)
        outcome = record_payment(
            current,
            amount_cents,
            payment_date,
            method,
            notes=notes,
            late_fee_cents=late_fee_cents,
            discount_cents=discount_cents,
        )

        self._installments = [
            outcome.installment if inst.installment_number == installment_number else inst
            for inst in self._installments
        ]
        return outcome
