"""Pydantic schemas for API request/response validation"""

import uuid
from datetime import date
from decimal import Decimal
from pydantic import BaseModel, Field
from typing import Dict, List, Optional
from crediario.config import settings
from crediario.domain.models import AmortizationMethod, DerivedStatus, PaymentMethod


class CustomerCreate(BaseModel):
    """Request body for POST /v1/customers"""

    full_name: str = Field(..., min_length=1)
    cpf: str = Field(..., min_length=11, max_length=14, description="CPF, digits or formatted")
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = Field(None, min_length=2, max_length=2)
    monthly_income_cents: Optional[int] = Field(None, ge=0)
    credit_limit_cents: int = Field(0, ge=0, description="Credit limit in cents")
    notes: Optional[str] = None


class CreditLimitUpdate(BaseModel):
    """Request body for PATCH /v1/customers/{id}/credit-limit"""

    credit_limit_cents: int = Field(..., ge=0)


class CustomerResponse(BaseModel):
    id: str
    full_name: str
    cpf: str
    phone: Optional[str] = None
    email: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    credit_limit_cents: int
    current_debt_cents: int
    available_credit_cents: int
    active: bool


class CustomerListResponse(BaseModel):
    customers: List[CustomerResponse]


class ScheduleRequest(BaseModel):
    """Request body for POST /v1/sales/simulate"""

    total_amount_cents: int = Field(..., gt=0)
    down_payment_cents: int = Field(0, ge=0)
    installments_count: int = Field(..., ge=1, le=settings.max_installments)
    interest_rate: Decimal = Field(Decimal("0"), ge=0, description="Monthly rate as a fraction, 0.025 = 2.5%")
    first_due_date: Optional[date] = Field(None, description="Defaults to one month from today")
    amortization_method: Optional[AmortizationMethod] = None


class SaleCreate(ScheduleRequest):
    """Request body for POST /v1/sales"""

    customer_id: uuid.UUID
    sale_date: Optional[date] = Field(None, description="Defaults to today")
    description: Optional[str] = None
    notes: Optional[str] = None


class ScheduledInstallment(BaseModel):
    installment_number: int
    due_date: date
    amount_cents: int


class ScheduleResponse(BaseModel):
    """Response for POST /v1/sales/simulate"""

    financed_amount_cents: int
    installment_value_cents: int
    total_with_interest_cents: int
    interest_cents: int
    installments: List[ScheduledInstallment]


class InstallmentSchema(BaseModel):
    """Single installment with its status as of today"""

    id: str
    installment_number: int
    due_date: date
    amount_cents: int
    paid_amount_cents: int
    remaining_cents: int
    late_fee_cents: int
    discount_cents: int
    status: DerivedStatus
    payment_date: Optional[date] = None


class SaleResponse(BaseModel):
    """Response for sale endpoints"""

    id: str
    sale_number: str
    customer_id: str
    customer_name: str
    total_amount_cents: int
    down_payment_cents: int
    financed_amount_cents: int
    installments_count: int
    interest_rate: str
    installment_value_cents: int
    total_with_interest_cents: int
    remaining_balance_cents: int
    paid_total_cents: int
    sale_date: date
    first_due_date: date
    status: DerivedStatus
    description: Optional[str] = None
    notes: Optional[str] = None
    installments: List[InstallmentSchema]


class SaleListResponse(BaseModel):
    sales: List[SaleResponse]


class PaymentCreate(BaseModel):
    """Request body for POST /v1/installments/{id}/payments"""

    amount_cents: int = Field(..., description="Amount received in cents")
    payment_date: Optional[date] = Field(None, description="Defaults to today")
    payment_method: PaymentMethod = PaymentMethod.CASH
    late_fee_cents: int = Field(0, ge=0)
    discount_cents: int = Field(0, ge=0)
    notes: Optional[str] = None


class PaymentResponse(BaseModel):
    id: str
    installment_id: str
    amount_cents: int
    principal_cents: int
    late_fee_cents: int
    discount_cents: int
    payment_date: date
    payment_method: PaymentMethod
    notes: Optional[str] = None


class PaymentResult(BaseModel):
    """Response for POST /v1/installments/{id}/payments"""

    installment: InstallmentSchema
    payment: PaymentResponse
    customer_debt_delta_cents: int


class PaymentHistoryResponse(BaseModel):
    installment_id: str
    payments: List[PaymentResponse]


class OverdueItem(BaseModel):
    """Overdue installment with the data needed to chase it"""

    installment_id: str
    installment_number: int
    due_date: date
    days_overdue: int
    remaining_cents: int
    sale_id: str
    sale_number: str
    customer_id: str
    customer_name: str
    customer_phone: Optional[str] = None


class OverdueResponse(BaseModel):
    """Response for GET /v1/installments/overdue"""

    as_of: date
    count: int
    total_overdue_cents: int
    installments: List[OverdueItem]


class PaymentStatsSchema(BaseModel):
    total_received_cents: int
    monthly_received_cents: int
    overdue_count: int
    overdue_amount_cents: int


class ReportResponse(BaseModel):
    """Response for GET /v1/reports/summary"""

    as_of: date
    customers_count: int
    active_customers_count: int
    total_credit_limit_cents: int
    total_debt_cents: int
    available_credit_cents: int
    sales_count: int
    total_sales_cents: int
    monthly_sales_cents: int
    sales_by_status: Dict[str, int]
    payments: PaymentStatsSchema
