"""Installment endpoints - payments and overdue collection"""

import uuid
from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from crediario.api.dependencies import get_request_context
from crediario.api.v1.errors import to_http_exception
from crediario.api.v1.sales import to_installment_schema
from crediario.api.v1.schemas import (
    OverdueItem,
    OverdueResponse,
    PaymentCreate,
    PaymentHistoryResponse,
    PaymentResponse,
    PaymentResult,
)
from crediario.application import operations
from crediario.application.context import RequestContext
from crediario.domain.exceptions import DomainException
from crediario.infrastructure.database.models import PaymentRecord
from crediario.infrastructure.database.session import get_db
from crediario.utils.date_utils import days_overdue

router = APIRouter()


def to_payment_response(db_payment: PaymentRecord) -> PaymentResponse:
    return PaymentResponse(
        id=str(db_payment.id),
        installment_id=str(db_payment.installment_id),
        amount_cents=db_payment.amount_cents,
        principal_cents=db_payment.principal_cents,
        late_fee_cents=db_payment.late_fee_cents,
        discount_cents=db_payment.discount_cents,
        payment_date=db_payment.payment_date,
        payment_method=db_payment.payment_method,
        notes=db_payment.notes,
    )


# Registered before /installments/{installment_id}/... so "overdue" is not parsed as an ID
@router.get("/installments/overdue", response_model=OverdueResponse)
def list_overdue(
    as_of: Optional[date] = Query(None, description="Reference date, defaults to today"),
    customer_id: Optional[uuid.UUID] = Query(None),
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    """
    Pending installments whose due date has passed, oldest first.

    Overdue is derived from due date and stored status on every call.
    """
    as_of = as_of or date.today()
    try:
        overdue = operations.query_overdue(db, ctx, as_of, customer_id)
    except DomainException as e:
        raise to_http_exception(e, ctx.request_id)

    items = [
        OverdueItem(
            installment_id=str(inst.id),
            installment_number=inst.installment_number,
            due_date=inst.due_date,
            days_overdue=days_overdue(inst.due_date, as_of),
            remaining_cents=inst.amount_cents - inst.paid_amount_cents,
            sale_id=str(inst.sale.id),
            sale_number=inst.sale.sale_number,
            customer_id=str(inst.sale.customer.id),
            customer_name=inst.sale.customer.full_name,
            customer_phone=inst.sale.customer.phone,
        )
        for inst in overdue
    ]

    return OverdueResponse(
        as_of=as_of,
        count=len(items),
        total_overdue_cents=sum(item.remaining_cents for item in items),
        installments=items,
    )


@router.post("/installments/{installment_id}/payments", response_model=PaymentResult, status_code=201)
def record_payment(
    installment_id: uuid.UUID,
    request_body: PaymentCreate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    """
    Record a payment against an installment.

    The amount may not exceed the open balance (plus late fee, minus
    discount). Fully settling the installment lowers the customer's debt.
    """
    payment_date = request_body.payment_date or date.today()
    try:
        db_installment, db_payment, outcome = operations.record_payment(
            db,
            ctx,
            installment_id,
            request_body.amount_cents,
            payment_date,
            request_body.payment_method,
            notes=request_body.notes,
            late_fee_cents=request_body.late_fee_cents,
            discount_cents=request_body.discount_cents,
        )
    except (DomainException, SQLAlchemyError) as e:
        raise to_http_exception(e, ctx.request_id)

    return PaymentResult(
        installment=to_installment_schema(db_installment, date.today()),
        payment=to_payment_response(db_payment),
        customer_debt_delta_cents=outcome.customer_debt_delta_cents,
    )


@router.get("/installments/{installment_id}/payments", response_model=PaymentHistoryResponse)
def list_payments(
    installment_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    """Payments recorded against an installment, oldest first"""
    try:
        payments = operations.list_installment_payments(db, ctx, installment_id)
    except DomainException as e:
        raise to_http_exception(e, ctx.request_id)

    return PaymentHistoryResponse(
        installment_id=str(installment_id),
        payments=[to_payment_response(p) for p in payments],
    )
