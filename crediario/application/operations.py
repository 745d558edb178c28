"""Boundary operations - each call is one transaction over one aggregate"""

import uuid
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple
from sqlalchemy.orm import Session

from crediario.application.context import RequestContext, Role
from crediario.config import settings
from crediario.domain.amortization import compute_schedule
from crediario.domain.credit import apply_debt_delta, validate_credit_limit
from crediario.domain.exceptions import (
    ConcurrentModificationError,
    CreditLimitExceeded,
    CustomerNotFound,
    DuplicateCustomer,
    InstallmentNotFound,
    InstallmentNotPayable,
    InvalidPaymentAmount,
    InvalidScheduleInput,
    PaymentExceedsBalance,
    SaleNotFound,
)
from crediario.domain.ledger import InstallmentLedger
from crediario.domain.models import (
    AmortizationMethod,
    Customer,
    DerivedStatus,
    PaymentMethod,
    PaymentOutcome,
    PortfolioSummary,
    SaleDraft,
    Schedule,
    StoredStatus,
)
from crediario.domain.reports import portfolio_summary
from crediario.domain.sales import (
    build_sale,
    cancel_sale as cancel_sale_rules,
    check_installment_floor,
    generate_sale_number,
)
from crediario.infrastructure.database.models import (
    CustomerRecord,
    InstallmentRecord,
    PaymentRecord,
    SaleRecord,
)
from crediario.infrastructure.database.repositories import (
    CustomerRepository,
    InstallmentRepository,
    PaymentRepository,
    SaleRepository,
    customer_to_domain,
    installment_to_domain,
    payment_to_domain,
    sale_to_domain,
)
from crediario.infrastructure.database.session import transaction
from crediario.infrastructure.observability.logging import (
    log_credit_rejected,
    log_payment_recorded,
    log_sale_created,
)
from crediario.infrastructure.observability.metrics import (
    payment_rejection_counter,
    record_payment as record_payment_metric,
    record_sale,
    sale_cancellation_counter,
)
from crediario.utils.money import format_brl

REJECTION_REASONS = {
    InvalidPaymentAmount: "invalid_amount",
    PaymentExceedsBalance: "exceeds_balance",
    InstallmentNotPayable: "not_payable",
}

SALE_NUMBER_ATTEMPTS = 5


def default_method() -> AmortizationMethod:
    return AmortizationMethod(settings.amortization_method)


def next_sale_number(sales: SaleRepository, tenant_id: str) -> str:
    """Draw sale numbers until one is free within the tenant"""
    for _ in range(SALE_NUMBER_ATTEMPTS):
        sale_number = generate_sale_number()
        if not sales.sale_number_exists(tenant_id, sale_number):
            return sale_number
    raise ConcurrentModificationError("Could not allocate a free sale number, try again")


# Customers


def register_customer(db: Session, ctx: RequestContext, **fields) -> CustomerRecord:
    """Register a customer with no debt; CPF is unique within the tenant"""
    ctx.require(Role.LOJA)
    customers = CustomerRepository(db)

    with transaction(db):
        if customers.get_by_cpf(ctx.tenant_id, fields["cpf"]):
            raise DuplicateCustomer(f"Customer with CPF {fields['cpf']} already exists")

        validate_credit_limit(
            Customer(full_name=fields["full_name"], credit_limit_cents=0),
            fields.get("credit_limit_cents", 0),
        )
        db_customer = customers.create_customer(ctx.tenant_id, ctx.acting_user_id, **fields)

    return db_customer


def get_customer(db: Session, ctx: RequestContext, customer_id: uuid.UUID) -> CustomerRecord:
    ctx.require(Role.LOJA)
    db_customer = CustomerRepository(db).get_customer(ctx.tenant_id, customer_id)
    if not db_customer:
        raise CustomerNotFound(f"Customer {customer_id} not found")
    return db_customer


def list_customers(db: Session, ctx: RequestContext, active_only: bool = False) -> List[CustomerRecord]:
    ctx.require(Role.LOJA)
    return CustomerRepository(db).list_customers(ctx.tenant_id, ctx.scope_user_id, active_only)


def update_credit_limit(
    db: Session,
    ctx: RequestContext,
    customer_id: uuid.UUID,
    credit_limit_cents: int,
) -> CustomerRecord:
    """Change a credit limit; it may never drop below the debt already taken"""
    ctx.require(Role.LOJA)
    customers = CustomerRepository(db)

    with transaction(db):
        db_customer = customers.get_customer(ctx.tenant_id, customer_id, for_update=True)
        if not db_customer:
            raise CustomerNotFound(f"Customer {customer_id} not found")

        validate_credit_limit(customer_to_domain(db_customer), credit_limit_cents)
        db_customer.credit_limit_cents = credit_limit_cents
        db.flush()

    return db_customer


def deactivate_customer(db: Session, ctx: RequestContext, customer_id: uuid.UUID) -> CustomerRecord:
    """Customers are never deleted, only deactivated"""
    ctx.require(Role.LOJA)

    with transaction(db):
        db_customer = CustomerRepository(db).get_customer(ctx.tenant_id, customer_id, for_update=True)
        if not db_customer:
            raise CustomerNotFound(f"Customer {customer_id} not found")
        db_customer.active = False
        db.flush()

    return db_customer


# Sales


def simulate_schedule(
    ctx: RequestContext,
    total_amount_cents: int,
    down_payment_cents: int,
    installments_count: int,
    interest_rate: Decimal,
    first_due_date: date,
    method: Optional[AmortizationMethod] = None,
) -> Schedule:
    """Preview a schedule without touching credit or storage"""
    ctx.require(Role.VENDEDOR)
    schedule = compute_schedule(
        total_amount_cents - down_payment_cents,
        installments_count,
        interest_rate,
        first_due_date,
        method or default_method(),
    )
    check_installment_floor(schedule)
    return schedule


def create_sale(
    db: Session,
    ctx: RequestContext,
    draft: SaleDraft,
    method: Optional[AmortizationMethod] = None,
) -> SaleRecord:
    """
    Create a sale, its installments and the matching debt increase.

    Flow:
    1. Lock the customer row
    2. Credit check + schedule (pure domain)
    3. Persist sale and installments
    4. Raise the customer's debt by the financed amount

    All four steps commit together; the customer row is locked and versioned
    so a concurrent sale cannot slip past the same available credit.

    Raises:
        CustomerNotFound, InactiveCustomer, InvalidScheduleInput, CreditLimitExceeded
    """
    ctx.require(Role.VENDEDOR)
    customers = CustomerRepository(db)

    try:
        with transaction(db):
            # 1. Lock customer
            db_customer = customers.get_customer(ctx.tenant_id, draft.customer_id, for_update=True)
            if not db_customer:
                raise CustomerNotFound(f"Customer {draft.customer_id} not found")
            customer = customer_to_domain(db_customer)
            sales = SaleRepository(db)

            # 2. Credit check and schedule
            bundle = build_sale(
                customer,
                draft,
                method or default_method(),
                sale_number=next_sale_number(sales, ctx.tenant_id),
            )
            new_debt = apply_debt_delta(customer, bundle.customer_debt_delta_cents)

            # 3. Persist sale + installments
            db_sale = sales.create_sale(
                ctx.tenant_id, ctx.acting_user_id, bundle.sale, bundle.installments
            )

            # 4. Debt increase
            customers.set_debt(db_customer, new_debt)

    except CreditLimitExceeded as e:
        record_sale("credit_rejected")
        log_credit_rejected(ctx.request_id, ctx.tenant_id, ctx.acting_user_id, e.requested_cents, e.available_cents)
        raise
    except InvalidScheduleInput:
        record_sale("invalid")
        raise

    record_sale("created", bundle.sale.financed_amount_cents)
    log_sale_created(
        ctx.request_id,
        ctx.tenant_id,
        ctx.acting_user_id,
        bundle.sale.sale_number,
        bundle.sale.financed_amount_cents,
        bundle.sale.installments_count,
    )
    return db_sale


def get_sale(db: Session, ctx: RequestContext, sale_id: uuid.UUID) -> SaleRecord:
    db_sale = SaleRepository(db).get_sale(ctx.tenant_id, sale_id)
    if not db_sale:
        raise SaleNotFound(f"Sale {sale_id} not found")
    return db_sale


def list_sales(
    db: Session,
    ctx: RequestContext,
    customer_id: Optional[uuid.UUID] = None,
    limit: int = 50,
) -> List[SaleRecord]:
    return SaleRepository(db).list_sales(ctx.tenant_id, ctx.scope_user_id, customer_id, limit)


def cancel_sale(db: Session, ctx: RequestContext, sale_id: uuid.UUID) -> SaleRecord:
    """Cancel a sale, its open installments and release their open balance"""
    ctx.require(Role.LOJA)
    sales = SaleRepository(db)
    installments = InstallmentRepository(db)
    customers = CustomerRepository(db)

    with transaction(db):
        db_sale = sales.get_sale(ctx.tenant_id, sale_id, for_update=True)
        if not db_sale:
            raise SaleNotFound(f"Sale {sale_id} not found")

        outcome = cancel_sale_rules(
            sale_to_domain(db_sale),
            [installment_to_domain(r) for r in db_sale.installments],
        )

        by_number = {inst.installment_number: inst for inst in outcome.installments}
        for db_installment in db_sale.installments:
            installments.apply(db_installment, by_number[db_installment.installment_number])

        db_customer = customers.get_customer(ctx.tenant_id, db_sale.customer_id, for_update=True)
        customers.set_debt(
            db_customer,
            apply_debt_delta(customer_to_domain(db_customer), outcome.customer_debt_delta_cents),
        )
        sales.set_status(db_sale, outcome.sale.status)

    sale_cancellation_counter.inc()
    return db_sale


# Payments


def record_payment(
    db: Session,
    ctx: RequestContext,
    installment_id: uuid.UUID,
    amount_cents: int,
    payment_date: date,
    method: PaymentMethod,
    notes: Optional[str] = None,
    late_fee_cents: int = 0,
    discount_cents: int = 0,
) -> Tuple[InstallmentRecord, PaymentRecord, PaymentOutcome]:
    """
    Apply a payment to an installment and reconcile the customer's debt.

    Flow:
    1. Lock the installment row
    2. Validate and compute the new installment state (pure domain)
    3. Persist the installment and append the payment
    4. On full settlement, lower the customer's debt by the installment amount
    5. Mark the sale paid once every open installment is paid

    Installment and customer rows are versioned; a concurrent payment that
    read the same paid amount fails with ConcurrentModificationError instead
    of overwriting it.

    Raises:
        InstallmentNotFound, InvalidPaymentAmount, PaymentExceedsBalance, InstallmentNotPayable
    """
    ctx.require(Role.LOJA)
    installments = InstallmentRepository(db)

    try:
        with transaction(db):
            # 1. Lock installment
            db_installment = installments.get_installment(ctx.tenant_id, installment_id, for_update=True)
            if not db_installment:
                raise InstallmentNotFound(f"Installment {installment_id} not found")

            # 2. Domain rules, applied through the sale's ledger
            db_sale = db_installment.sale
            ledger = InstallmentLedger(installment_to_domain(r) for r in db_sale.installments)
            outcome = ledger.apply_payment(
                db_installment.installment_number,
                amount_cents,
                payment_date,
                method,
                notes=notes,
                late_fee_cents=late_fee_cents,
                discount_cents=discount_cents,
            )

            # 3. Persist
            installments.apply(db_installment, outcome.installment)
            db_payment = PaymentRepository(db).create_payment(ctx.tenant_id, ctx.acting_user_id, outcome.payment)

            # 4. Debt reconciliation
            if outcome.customer_debt_delta_cents:
                customers = CustomerRepository(db)
                db_customer = customers.get_customer(ctx.tenant_id, db_sale.customer_id, for_update=True)
                customers.set_debt(
                    db_customer,
                    apply_debt_delta(customer_to_domain(db_customer), outcome.customer_debt_delta_cents),
                )

            # 5. Sale status
            if outcome.settled and ledger.sale_status(payment_date) == DerivedStatus.PAID:
                SaleRepository(db).set_status(db_sale, StoredStatus.PAID)

    except tuple(REJECTION_REASONS) as e:
        payment_rejection_counter.labels(reason=REJECTION_REASONS[type(e)]).inc()
        raise

    record_payment_metric(method.value, outcome.settled)
    log_payment_recorded(
        ctx.request_id,
        ctx.tenant_id,
        ctx.acting_user_id,
        str(installment_id),
        amount_cents,
        outcome.settled,
    )
    return db_installment, db_payment, outcome


def get_installment(db: Session, ctx: RequestContext, installment_id: uuid.UUID) -> InstallmentRecord:
    db_installment = InstallmentRepository(db).get_installment(ctx.tenant_id, installment_id)
    if not db_installment:
        raise InstallmentNotFound(f"Installment {installment_id} not found")
    return db_installment


def list_installment_payments(db: Session, ctx: RequestContext, installment_id: uuid.UUID) -> List[PaymentRecord]:
    ctx.require(Role.LOJA)
    get_installment(db, ctx, installment_id)
    return PaymentRepository(db).list_for_installment(installment_id)


def query_overdue(
    db: Session,
    ctx: RequestContext,
    as_of: date,
    customer_id: Optional[uuid.UUID] = None,
) -> List[InstallmentRecord]:
    """Pending installments due before as_of within the caller's scope"""
    ctx.require(Role.LOJA)
    return InstallmentRepository(db).list_overdue(ctx.tenant_id, as_of, ctx.scope_user_id, customer_id)


# Reports and documents


def build_report(db: Session, ctx: RequestContext, as_of: date) -> PortfolioSummary:
    ctx.require(Role.LOJA)
    db_sales = SaleRepository(db).list_sales(ctx.tenant_id, ctx.scope_user_id)
    db_customers = CustomerRepository(db).list_customers(ctx.tenant_id, ctx.scope_user_id)
    db_payments = PaymentRepository(db).list_payments(ctx.tenant_id, ctx.scope_user_id)

    return portfolio_summary(
        customers=[customer_to_domain(r) for r in db_customers],
        sales=[sale_to_domain(r) for r in db_sales],
        installments_by_sale={
            r.id: [installment_to_domain(i) for i in r.installments] for r in db_sales
        },
        payments=[payment_to_domain(r) for r in db_payments],
        as_of=as_of,
    )


def contract_snapshot(db: Session, ctx: RequestContext, sale_id: uuid.UUID) -> Dict[str, Any]:
    """Sale + installments + customer payload for the document renderer"""
    db_sale = get_sale(db, ctx, sale_id)
    customer = db_sale.customer

    return {
        "sale": {
            "id": str(db_sale.id),
            "sale_number": db_sale.sale_number,
            "sale_date": db_sale.sale_date.isoformat(),
            "description": db_sale.description,
            "total_amount_cents": db_sale.total_amount_cents,
            "down_payment_cents": db_sale.down_payment_cents,
            "financed_amount_cents": db_sale.financed_amount_cents,
            "interest_rate": str(db_sale.interest_rate),
            "installments_count": db_sale.installments_count,
            "installment_value_cents": db_sale.installment_value_cents,
            "total_with_interest_cents": db_sale.total_with_interest_cents,
            "total_with_interest": format_brl(db_sale.total_with_interest_cents),
        },
        "customer": {
            "id": str(customer.id),
            "full_name": customer.full_name,
            "cpf": customer.cpf,
            "phone": customer.phone,
            "address": customer.address,
            "city": customer.city,
            "state": customer.state,
        },
        "installments": [
            {
                "installment_number": inst.installment_number,
                "due_date": inst.due_date.isoformat(),
                "amount_cents": inst.amount_cents,
                "amount": format_brl(inst.amount_cents),
            }
            for inst in db_sale.installments
        ],
    }
