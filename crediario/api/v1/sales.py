"""Sale endpoints - simulation, creation, cancellation and contract"""

import uuid
from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from crediario.api.dependencies import get_document_client, get_request_context
from crediario.api.v1.errors import to_http_exception
from crediario.api.v1.schemas import (
    InstallmentSchema,
    SaleCreate,
    SaleListResponse,
    SaleResponse,
    ScheduledInstallment,
    ScheduleRequest,
    ScheduleResponse,
)
from crediario.application import operations
from crediario.application.context import RequestContext
from crediario.domain.exceptions import DomainException
from crediario.domain.ledger import InstallmentLedger
from crediario.domain.models import SaleDraft, StoredStatus
from crediario.infrastructure.clients.documents import DocumentClient
from crediario.infrastructure.database.models import InstallmentRecord, SaleRecord
from crediario.infrastructure.database.repositories import installment_to_domain
from crediario.infrastructure.database.session import get_db
from crediario.utils.date_utils import add_months

router = APIRouter()


def to_installment_schema(db_installment: InstallmentRecord, as_of: date) -> InstallmentSchema:
    installment = installment_to_domain(db_installment)
    return InstallmentSchema(
        id=str(db_installment.id),
        installment_number=installment.installment_number,
        due_date=installment.due_date,
        amount_cents=installment.amount_cents,
        paid_amount_cents=installment.paid_amount_cents,
        remaining_cents=installment.remaining_cents,
        late_fee_cents=installment.late_fee_cents,
        discount_cents=installment.discount_cents,
        status=installment.derived_status(as_of),
        payment_date=installment.payment_date,
    )


def to_sale_response(db_sale: SaleRecord, as_of: date) -> SaleResponse:
    ledger = InstallmentLedger(installment_to_domain(r) for r in db_sale.installments)
    installments = [to_installment_schema(inst, as_of) for inst in db_sale.installments]
    return SaleResponse(
        id=str(db_sale.id),
        sale_number=db_sale.sale_number,
        customer_id=str(db_sale.customer_id),
        customer_name=db_sale.customer.full_name,
        total_amount_cents=db_sale.total_amount_cents,
        down_payment_cents=db_sale.down_payment_cents,
        financed_amount_cents=db_sale.financed_amount_cents,
        installments_count=db_sale.installments_count,
        interest_rate=str(db_sale.interest_rate),
        installment_value_cents=db_sale.installment_value_cents,
        total_with_interest_cents=db_sale.total_with_interest_cents,
        remaining_balance_cents=ledger.remaining_balance(),
        paid_total_cents=ledger.paid_total(),
        sale_date=db_sale.sale_date,
        first_due_date=db_sale.first_due_date,
        status=ledger.sale_status(as_of, cancelled=db_sale.status == StoredStatus.CANCELLED.value),
        description=db_sale.description,
        notes=db_sale.notes,
        installments=installments,
    )


@router.post("/sales/simulate", response_model=ScheduleResponse)
def simulate_sale(
    request_body: ScheduleRequest,
    ctx: RequestContext = Depends(get_request_context),
):
    """
    Preview installments for a sale without checking credit or saving anything.

    Returns:
        Installment value, total with interest and the full schedule
    """
    try:
        schedule = operations.simulate_schedule(
            ctx,
            request_body.total_amount_cents,
            request_body.down_payment_cents,
            request_body.installments_count,
            request_body.interest_rate,
            request_body.first_due_date or add_months(date.today(), 1),
            request_body.amortization_method,
        )
    except DomainException as e:
        raise to_http_exception(e, ctx.request_id)

    return ScheduleResponse(
        financed_amount_cents=schedule.financed_cents,
        installment_value_cents=schedule.installment_value_cents,
        total_with_interest_cents=schedule.total_cents,
        interest_cents=schedule.interest_cents,
        installments=[
            ScheduledInstallment(installment_number=number, due_date=due_date, amount_cents=amount)
            for number, (due_date, amount) in enumerate(zip(schedule.due_dates, schedule.amounts_cents), start=1)
        ],
    )


@router.post("/sales", response_model=SaleResponse, status_code=201)
def create_sale(
    request_body: SaleCreate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    """
    Create an installment sale.

    Flow:
    1. Check the financed amount against the customer's available credit
    2. Compute the monthly schedule
    3. Persist sale + installments and raise the customer's debt, atomically
    """
    today = date.today()
    draft = SaleDraft(
        customer_id=request_body.customer_id,
        total_amount_cents=request_body.total_amount_cents,
        down_payment_cents=request_body.down_payment_cents,
        installments_count=request_body.installments_count,
        interest_rate=request_body.interest_rate,
        sale_date=request_body.sale_date or today,
        first_due_date=request_body.first_due_date or add_months(request_body.sale_date or today, 1),
        description=request_body.description,
        notes=request_body.notes,
    )

    try:
        db_sale = operations.create_sale(db, ctx, draft, request_body.amortization_method)
    except (DomainException, SQLAlchemyError) as e:
        raise to_http_exception(e, ctx.request_id)

    return to_sale_response(db_sale, today)


@router.get("/sales", response_model=SaleListResponse)
def list_sales(
    customer_id: Optional[uuid.UUID] = Query(None),
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    """Recent sales visible to the acting user"""
    today = date.today()
    sales = operations.list_sales(db, ctx, customer_id=customer_id, limit=limit)
    return SaleListResponse(sales=[to_sale_response(s, today) for s in sales])


@router.get("/sales/{sale_id}", response_model=SaleResponse)
def get_sale(
    sale_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    """Sale with installments; statuses are derived as of today"""
    try:
        db_sale = operations.get_sale(db, ctx, sale_id)
    except DomainException as e:
        raise to_http_exception(e, ctx.request_id)

    return to_sale_response(db_sale, date.today())


@router.post("/sales/{sale_id}/cancel", response_model=SaleResponse)
def cancel_sale(
    sale_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    """Cancel a sale; open installments are cancelled and their balance released"""
    try:
        db_sale = operations.cancel_sale(db, ctx, sale_id)
    except (DomainException, SQLAlchemyError) as e:
        raise to_http_exception(e, ctx.request_id)

    return to_sale_response(db_sale, date.today())


@router.get("/sales/{sale_id}/contract")
async def get_contract(
    sale_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
    document_client: DocumentClient = Depends(get_document_client),
):
    """Render the sale contract through the document service"""
    try:
        snapshot = operations.contract_snapshot(db, ctx, sale_id)
        document = await document_client.render_contract(snapshot)
    except DomainException as e:
        raise to_http_exception(e, ctx.request_id)

    filename = f"contrato-{snapshot['sale']['sale_number']}.pdf"
    return Response(
        content=document.content,
        media_type=document.media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
