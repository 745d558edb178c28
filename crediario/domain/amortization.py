"""Installment schedule calculation for crediário sales"""

from datetime import date
from decimal import Decimal
from crediario.domain.models import AmortizationMethod, Schedule
from crediario.domain.exceptions import InvalidScheduleInput
from crediario.utils.date_utils import monthly_dates
from crediario.utils.money import round_cents, split_evenly


def total_with_interest(
    financed_cents: int,
    installments_count: int,
    periodic_rate: Decimal,
    method: AmortizationMethod = AmortizationMethod.COMPOUND,
) -> int:
    """
    Amount the buyer repays across all installments, rounded half-up to cents.

    - rate 0: the financed amount itself
    - COMPOUND: financed * (1 + r)^n
    - PRICE: n * PMT, with PMT = financed * r * f / (f - 1) and f = (1 + r)^n
    """
    if periodic_rate == 0 or financed_cents == 0:
        return financed_cents

    factor = (Decimal(1) + periodic_rate) ** installments_count
    financed = Decimal(financed_cents)

    if method == AmortizationMethod.PRICE:
        payment = financed * periodic_rate * factor / (factor - 1)
        return round_cents(payment * installments_count)

    return round_cents(financed * factor)


def compute_schedule(
    financed_cents: int,
    installments_count: int,
    periodic_rate: Decimal,
    first_due_date: date,
    method: AmortizationMethod = AmortizationMethod.COMPOUND,
) -> Schedule:
    """
    Split a financed amount (plus interest) into monthly installments.

    Requirements:
    - Equal installments; the last one absorbs the rounding remainder
      (< installments_count cents), so the amounts add up exactly to the
      financed amount (rate 0) or the rounded total with interest
    - Due dates one calendar month apart starting at first_due_date
      (Jan 31 → Feb 28/29 → Mar 31)

    Args:
        financed_cents: Total sale value minus down payment
        installments_count: Number of monthly installments (>= 1)
        periodic_rate: Monthly interest as a fraction, e.g. Decimal("0.025")
        first_due_date: Due date of installment 1
        method: Interest formula (COMPOUND by default)

    Returns:
        Schedule with per-installment amounts and due dates

    Raises:
        InvalidScheduleInput: installments_count < 1, negative amount or rate

    Example:
        R$ 100.00 in 3x at 0% → [33.33, 33.33, 33.34]
    """
    if installments_count < 1:
        raise InvalidScheduleInput("installments_count must be at least 1")
    if financed_cents < 0:
        raise InvalidScheduleInput("financed amount cannot be negative")
    if periodic_rate < 0:
        raise InvalidScheduleInput("interest rate cannot be negative")

    total_cents = total_with_interest(financed_cents, installments_count, periodic_rate, method)
    amounts = split_evenly(total_cents, installments_count)

    return Schedule(
        installment_value_cents=amounts[0],
        amounts_cents=amounts,
        due_dates=monthly_dates(first_due_date, installments_count),
        financed_cents=financed_cents,
        total_cents=total_cents,
    )
