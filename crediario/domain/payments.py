"""Payment processing - applies one payment to one installment"""

from dataclasses import replace
from datetime import date
from typing import Optional
from crediario.domain.models import Installment, Payment, PaymentMethod, PaymentOutcome, StoredStatus
from crediario.domain.exceptions import (
    InstallmentNotPayable,
    InvalidPaymentAmount,
    PaymentExceedsBalance,
)


def payment_ceiling(installment: Installment, late_fee_cents: int = 0, discount_cents: int = 0) -> int:
    """Largest payment accepted: open balance plus late fee minus discount"""
    return installment.remaining_cents + late_fee_cents - discount_cents


def record_payment(
    installment: Installment,
    amount_cents: int,
    payment_date: date,
    method: PaymentMethod,
    notes: Optional[str] = None,
    late_fee_cents: int = 0,
    discount_cents: int = 0,
) -> PaymentOutcome:
    """
    Validate a payment and compute the installment state after it.

    Rules:
    - amount must be > 0; late fee and discount must be >= 0
    - cancelled installments accept no payments
    - amount may not exceed remaining + late_fee - discount
    - principal credited = amount - late_fee + discount, kept within
      [0, remaining] so 0 <= paid_amount <= amount always holds
    - status becomes PAID only once the principal is fully covered; a
      partial payment leaves an overdue installment overdue
    - on the transition to PAID the customer's debt drops by the
      installment amount (fees and discounts are tracked apart from principal)

    The input installment is never mutated; a rejected payment leaves no trace.

    Returns:
        PaymentOutcome with the updated installment, the immutable payment
        record and the signed customer debt delta
    """
    if amount_cents <= 0:
        raise InvalidPaymentAmount("Payment amount must be greater than zero")
    if late_fee_cents < 0 or discount_cents < 0:
        raise InvalidPaymentAmount("Late fee and discount cannot be negative")
    if installment.status == StoredStatus.CANCELLED:
        raise InstallmentNotPayable(f"Installment {installment.installment_number} is cancelled")

    remaining = installment.remaining_cents
    ceiling = payment_ceiling(installment, late_fee_cents, discount_cents)
    if amount_cents > ceiling:
        raise PaymentExceedsBalance(amount_cents, max(ceiling, 0))

    principal = min(max(amount_cents - late_fee_cents + discount_cents, 0), remaining)
    new_paid = installment.paid_amount_cents + principal

    was_paid = installment.status == StoredStatus.PAID
    settled = new_paid >= installment.amount_cents and not was_paid

    updated = replace(
        installment,
        paid_amount_cents=new_paid,
        late_fee_cents=installment.late_fee_cents + late_fee_cents,
        discount_cents=installment.discount_cents + discount_cents,
        status=StoredStatus.PAID if new_paid >= installment.amount_cents else installment.status,
        payment_date=payment_date if settled else installment.payment_date,
        notes=notes or installment.notes,
    )

    payment = Payment(
        installment_id=installment.id,
        amount_cents=amount_cents,
        payment_date=payment_date,
        method=method,
        principal_cents=principal,
        late_fee_cents=late_fee_cents,
        discount_cents=discount_cents,
        notes=notes,
    )

    return PaymentOutcome(
        installment=updated,
        payment=payment,
        customer_debt_delta_cents=-installment.amount_cents if settled else 0,
        settled=settled,
    )
