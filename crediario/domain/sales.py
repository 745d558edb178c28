"""Sale assembly - credit check, schedule and installments for a new sale"""

import random
from dataclasses import replace
from datetime import datetime
from typing import List, Optional
from crediario.domain.models import (
    AmortizationMethod,
    CancellationOutcome,
    Customer,
    Installment,
    Sale,
    SaleBundle,
    SaleDraft,
    Schedule,
    StoredStatus,
)
from crediario.domain.amortization import compute_schedule
from crediario.domain.credit import check_available_credit
from crediario.domain.exceptions import InactiveCustomer, InvalidScheduleInput, SaleNotCancellable


def generate_sale_number(now: Optional[datetime] = None) -> str:
    """YYYYMMDD followed by 6 digits, e.g. 20240115482913"""
    now = now or datetime.now()
    return f"{now:%Y%m%d}{random.randint(0, 999_999):06d}"


def check_installment_floor(schedule: Schedule) -> None:
    """Every installment must be worth at least one cent"""
    count = len(schedule.amounts_cents)
    if schedule.total_cents < count:
        raise InvalidScheduleInput(f"{schedule.total_cents} cents cannot be split into {count} installments")


def build_sale(
    customer: Customer,
    draft: SaleDraft,
    method: AmortizationMethod = AmortizationMethod.COMPOUND,
    sale_number: Optional[str] = None,
) -> SaleBundle:
    """
    Turn a sale draft into a sale with its installments.

    Flow:
    1. Validate amounts (down payment within total, something left to finance)
    2. Check the financed amount against the customer's available credit,
       before anything is scheduled or committed
    3. Compute the amortization schedule
    4. Create installments 1..n, all pending with nothing paid

    The customer's debt grows by the financed amount (principal only).

    Raises:
        InactiveCustomer: customer was deactivated
        InvalidScheduleInput: bad amounts, count or rate
        CreditLimitExceeded: financed amount above available credit
    """
    if not customer.active:
        raise InactiveCustomer(f"Customer {customer.full_name} is inactive")

    # 1. Validate amounts
    if draft.total_amount_cents <= 0:
        raise InvalidScheduleInput("total amount must be greater than zero")
    if draft.down_payment_cents < 0:
        raise InvalidScheduleInput("down payment cannot be negative")

    financed = draft.total_amount_cents - draft.down_payment_cents
    if financed < 0:
        raise InvalidScheduleInput("down payment cannot exceed the total amount")
    if financed == 0:
        raise InvalidScheduleInput("nothing left to finance after the down payment")

    # 2. Credit check strictly before the debt increase
    check_available_credit(customer, financed)

    # 3. Schedule
    schedule = compute_schedule(
        financed,
        draft.installments_count,
        draft.interest_rate,
        draft.first_due_date,
        method,
    )
    check_installment_floor(schedule)

    sale = Sale(
        customer_id=draft.customer_id,
        sale_number=sale_number or generate_sale_number(),
        total_amount_cents=draft.total_amount_cents,
        down_payment_cents=draft.down_payment_cents,
        financed_amount_cents=financed,
        installments_count=draft.installments_count,
        interest_rate=draft.interest_rate,
        installment_value_cents=schedule.installment_value_cents,
        total_with_interest_cents=schedule.total_cents,
        sale_date=draft.sale_date,
        first_due_date=draft.first_due_date,
        description=draft.description,
        notes=draft.notes,
    )

    # 4. Installments
    installments = [
        Installment(
            installment_number=number,
            due_date=due_date,
            amount_cents=amount,
        )
        for number, (due_date, amount) in enumerate(zip(schedule.due_dates, schedule.amounts_cents), start=1)
    ]

    return SaleBundle(
        sale=sale,
        installments=installments,
        schedule=schedule,
        customer_debt_delta_cents=financed,
    )


def cancel_sale(sale: Sale, installments: List[Installment]) -> CancellationOutcome:
    """
    Cancel a sale and every installment still open.

    Paid installments stay paid. The customer's debt drops by the open
    balance of the cancelled installments, capped at what this sale still
    adds to the debt: its financed principal minus the installments
    already settled. Interest was never added to the debt, so releasing it
    would eat into the debt of the customer's other sales.

    Raises:
        SaleNotCancellable: sale already cancelled or fully paid
    """
    if sale.status == StoredStatus.CANCELLED:
        raise SaleNotCancellable(f"Sale {sale.sale_number} is already cancelled")
    if sale.status == StoredStatus.PAID:
        raise SaleNotCancellable(f"Sale {sale.sale_number} is fully paid")

    open_balance = 0
    settled = 0
    updated = []
    for inst in installments:
        if inst.status == StoredStatus.PENDING:
            open_balance += inst.remaining_cents
            inst = replace(inst, status=StoredStatus.CANCELLED)
        elif inst.status == StoredStatus.PAID:
            settled += inst.amount_cents
        updated.append(inst)

    released = min(open_balance, max(0, sale.financed_amount_cents - settled))

    return CancellationOutcome(
        sale=replace(sale, status=StoredStatus.CANCELLED),
        installments=updated,
        customer_debt_delta_cents=-released,
    )
