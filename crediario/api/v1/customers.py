"""Customer registration and credit line endpoints"""

import uuid
from fastapi import APIRouter, Depends, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from crediario.api.dependencies import get_request_context
from crediario.api.v1.errors import to_http_exception
from crediario.api.v1.schemas import (
    CreditLimitUpdate,
    CustomerCreate,
    CustomerListResponse,
    CustomerResponse,
)
from crediario.application import operations
from crediario.application.context import RequestContext
from crediario.domain.exceptions import DomainException
from crediario.infrastructure.database.models import CustomerRecord
from crediario.infrastructure.database.session import get_db

router = APIRouter()


def to_customer_response(db_customer: CustomerRecord) -> CustomerResponse:
    return CustomerResponse(
        id=str(db_customer.id),
        full_name=db_customer.full_name,
        cpf=db_customer.cpf,
        phone=db_customer.phone,
        email=db_customer.email,
        city=db_customer.city,
        state=db_customer.state,
        credit_limit_cents=db_customer.credit_limit_cents,
        current_debt_cents=db_customer.current_debt_cents,
        available_credit_cents=db_customer.credit_limit_cents - db_customer.current_debt_cents,
        active=db_customer.active,
    )


@router.post("/customers", response_model=CustomerResponse, status_code=201)
def register_customer(
    request_body: CustomerCreate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    """Register a customer with a credit limit and no debt"""
    try:
        db_customer = operations.register_customer(db, ctx, **request_body.model_dump())
    except (DomainException, SQLAlchemyError) as e:
        raise to_http_exception(e, ctx.request_id)

    return to_customer_response(db_customer)


@router.get("/customers", response_model=CustomerListResponse)
def list_customers(
    active_only: bool = Query(False, description="Only customers that can take new sales"),
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    """Customers visible to the acting user, ordered by name"""
    try:
        customers = operations.list_customers(db, ctx, active_only=active_only)
    except DomainException as e:
        raise to_http_exception(e, ctx.request_id)

    return CustomerListResponse(customers=[to_customer_response(c) for c in customers])


@router.get("/customers/{customer_id}", response_model=CustomerResponse)
def get_customer(
    customer_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    try:
        db_customer = operations.get_customer(db, ctx, customer_id)
    except DomainException as e:
        raise to_http_exception(e, ctx.request_id)

    return to_customer_response(db_customer)


@router.patch("/customers/{customer_id}/credit-limit", response_model=CustomerResponse)
def update_credit_limit(
    customer_id: uuid.UUID,
    request_body: CreditLimitUpdate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    """Change a credit limit; rejected when it would fall below the current debt"""
    try:
        db_customer = operations.update_credit_limit(db, ctx, customer_id, request_body.credit_limit_cents)
    except (DomainException, SQLAlchemyError) as e:
        raise to_http_exception(e, ctx.request_id)

    return to_customer_response(db_customer)


@router.delete("/customers/{customer_id}", response_model=CustomerResponse)
def deactivate_customer(
    customer_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    """Deactivate a customer; history is kept and no new sales are accepted"""
    try:
        db_customer = operations.deactivate_customer(db, ctx, customer_id)
    except (DomainException, SQLAlchemyError) as e:
        raise to_http_exception(e, ctx.request_id)

    return to_customer_response(db_customer)
