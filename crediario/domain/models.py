"""Domain models - pure Python dataclasses representing business entities"""

import uuid
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional


class StoredStatus(str, Enum):
    """Persisted lifecycle state of a sale or installment"""

    PENDING = "pending"
    PAID = "paid"
    CANCELLED = "cancelled"


class DerivedStatus(str, Enum):
    """Status shown to callers; OVERDUE is computed at read time, never stored"""

    PENDING = "pending"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"


class PaymentMethod(str, Enum):
    CASH = "dinheiro"
    PIX = "pix"
    DEBIT_CARD = "cartao_debito"
    CREDIT_CARD = "cartao_credito"
    BANK_TRANSFER = "transferencia"
    CHECK = "cheque"


class AmortizationMethod(str, Enum):
    """How interest grows the financed amount before it is split"""

    COMPOUND = "compound"  # financed * (1 + r)^n, split evenly
    PRICE = "price"  # constant PMT of the Price table


@dataclass
class Customer:
    """Buyer with a credit line"""

    full_name: str
    credit_limit_cents: int
    current_debt_cents: int = 0
    active: bool = True
    id: Optional[uuid.UUID] = None

    @property
    def available_credit_cents(self) -> int:
        return self.credit_limit_cents - self.current_debt_cents


@dataclass
class Installment:
    """One scheduled repayment of a sale"""

    installment_number: int
    due_date: date
    amount_cents: int
    paid_amount_cents: int = 0
    late_fee_cents: int = 0
    discount_cents: int = 0
    status: StoredStatus = StoredStatus.PENDING
    payment_date: Optional[date] = None
    notes: Optional[str] = None
    id: Optional[uuid.UUID] = None
    sale_id: Optional[uuid.UUID] = None

    @property
    def remaining_cents(self) -> int:
        return self.amount_cents - self.paid_amount_cents

    def is_overdue(self, as_of: date) -> bool:
        return self.status == StoredStatus.PENDING and self.due_date < as_of

    def derived_status(self, as_of: date) -> DerivedStatus:
        if self.is_overdue(as_of):
            return DerivedStatus.OVERDUE
        return DerivedStatus(self.status.value)


@dataclass
class Sale:
    """Installment sale; amounts fixed at creation, only status and notes change"""

    customer_id: Optional[uuid.UUID]
    sale_number: str
    total_amount_cents: int
    down_payment_cents: int
    financed_amount_cents: int
    installments_count: int
    interest_rate: Decimal
    installment_value_cents: int
    total_with_interest_cents: int
    sale_date: date
    first_due_date: date
    status: StoredStatus = StoredStatus.PENDING
    description: Optional[str] = None
    notes: Optional[str] = None
    id: Optional[uuid.UUID] = None


@dataclass(frozen=True)
class Payment:
    """Append-only ledger entry; never updated after creation"""

    installment_id: Optional[uuid.UUID]
    amount_cents: int
    payment_date: date
    method: PaymentMethod
    principal_cents: int
    late_fee_cents: int = 0
    discount_cents: int = 0
    notes: Optional[str] = None
    id: uuid.UUID = field(default_factory=uuid.uuid4)


@dataclass
class Schedule:
    """Output of the amortization calculator"""

    installment_value_cents: int
    amounts_cents: List[int]
    due_dates: List[date]
    financed_cents: int
    total_cents: int

    @property
    def interest_cents(self) -> int:
        return self.total_cents - self.financed_cents


@dataclass
class PaymentOutcome:
    """Result of applying one payment to one installment"""

    installment: Installment
    payment: Payment
    customer_debt_delta_cents: int
    settled: bool


@dataclass
class SaleDraft:
    """Caller input for a new sale"""

    customer_id: Optional[uuid.UUID]
    total_amount_cents: int
    down_payment_cents: int
    installments_count: int
    interest_rate: Decimal
    sale_date: date
    first_due_date: date
    description: Optional[str] = None
    notes: Optional[str] = None


@dataclass
class SaleBundle:
    """A sale with its freshly scheduled installments and the debt it adds"""

    sale: Sale
    installments: List[Installment]
    schedule: Schedule
    customer_debt_delta_cents: int


@dataclass
class CancellationOutcome:
    sale: Sale
    installments: List[Installment]
    customer_debt_delta_cents: int


@dataclass
class PaymentStats:
    """Collection figures for the payments dashboard"""

    total_received_cents: int
    monthly_received_cents: int
    overdue_count: int
    overdue_amount_cents: int


@dataclass
class PortfolioSummary:
    """Figures for the store dashboard and reports page"""

    customers_count: int
    active_customers_count: int
    total_credit_limit_cents: int
    total_debt_cents: int
    available_credit_cents: int
    sales_count: int
    total_sales_cents: int
    monthly_sales_cents: int
    sales_by_status: Dict[str, int]
    payments: PaymentStats
