"""Dashboard and report figures computed from loaded aggregates"""

import uuid
from datetime import date
from typing import Dict, List
from crediario.domain.models import (
    Customer,
    Installment,
    Payment,
    PaymentStats,
    PortfolioSummary,
    Sale,
    StoredStatus,
)
from crediario.domain.ledger import InstallmentLedger
from crediario.utils.date_utils import month_start


def payment_stats(payments: List[Payment], installments: List[Installment], as_of: date) -> PaymentStats:
    """
    Collection figures as of a date.

    - total received: every payment ever recorded
    - monthly received: payments from the first day of as_of's month
    - overdue: pending installments due before as_of, valued at their open balance
    """
    first_of_month = month_start(as_of)
    overdue = [inst for inst in installments if inst.is_overdue(as_of)]

    return PaymentStats(
        total_received_cents=sum(p.amount_cents for p in payments),
        monthly_received_cents=sum(
            p.amount_cents for p in payments if first_of_month <= p.payment_date <= as_of
        ),
        overdue_count=len(overdue),
        overdue_amount_cents=sum(inst.remaining_cents for inst in overdue),
    )


def portfolio_summary(
    customers: List[Customer],
    sales: List[Sale],
    installments_by_sale: Dict[uuid.UUID, List[Installment]],
    payments: List[Payment],
    as_of: date,
) -> PortfolioSummary:
    """Aggregate customers, sales and collections into one summary"""
    first_of_month = month_start(as_of)

    # Count sales by derived status (overdue is never stored)
    sales_by_status: Dict[str, int] = {}
    for sale in sales:
        ledger = InstallmentLedger(installments_by_sale.get(sale.id, []))
        status = ledger.sale_status(as_of, cancelled=sale.status == StoredStatus.CANCELLED)
        sales_by_status[status.value] = sales_by_status.get(status.value, 0) + 1

    all_installments = [inst for group in installments_by_sale.values() for inst in group]
    total_limit = sum(c.credit_limit_cents for c in customers)
    total_debt = sum(c.current_debt_cents for c in customers)

    return PortfolioSummary(
        customers_count=len(customers),
        active_customers_count=sum(1 for c in customers if c.active),
        total_credit_limit_cents=total_limit,
        total_debt_cents=total_debt,
        available_credit_cents=total_limit - total_debt,
        sales_count=len(sales),
        total_sales_cents=sum(s.total_amount_cents for s in sales),
        monthly_sales_cents=sum(
            s.total_amount_cents for s in sales if first_of_month <= s.sale_date <= as_of
        ),
        sales_by_status=sales_by_status,
        payments=payment_stats(payments, all_installments, as_of),
    )
