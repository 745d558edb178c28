"""Data access layer for crediário entities"""

import uuid
from datetime import date
from decimal import Decimal
from typing import List, Optional
from sqlalchemy.orm import Session
from crediario.infrastructure.database.models import (
    CustomerRecord,
    SaleRecord,
    InstallmentRecord,
    PaymentRecord,
)
from crediario.domain.models import (
    Customer,
    Installment,
    Payment,
    PaymentMethod,
    Sale,
    StoredStatus,
)


def customer_to_domain(record: CustomerRecord) -> Customer:
    return Customer(
        id=record.id,
        full_name=record.full_name,
        credit_limit_cents=record.credit_limit_cents,
        current_debt_cents=record.current_debt_cents,
        active=record.active,
    )


def sale_to_domain(record: SaleRecord) -> Sale:
    return Sale(
        id=record.id,
        customer_id=record.customer_id,
        sale_number=record.sale_number,
        total_amount_cents=record.total_amount_cents,
        down_payment_cents=record.down_payment_cents,
        financed_amount_cents=record.financed_amount_cents,
        installments_count=record.installments_count,
        interest_rate=Decimal(record.interest_rate),
        installment_value_cents=record.installment_value_cents,
        total_with_interest_cents=record.total_with_interest_cents,
        sale_date=record.sale_date,
        first_due_date=record.first_due_date,
        status=StoredStatus(record.status),
        description=record.description,
        notes=record.notes,
    )


def installment_to_domain(record: InstallmentRecord) -> Installment:
    return Installment(
        id=record.id,
        sale_id=record.sale_id,
        installment_number=record.installment_number,
        due_date=record.due_date,
        amount_cents=record.amount_cents,
        paid_amount_cents=record.paid_amount_cents,
        late_fee_cents=record.late_fee_cents,
        discount_cents=record.discount_cents,
        status=StoredStatus(record.status),
        payment_date=record.payment_date,
        notes=record.notes,
    )


def payment_to_domain(record: PaymentRecord) -> Payment:
    return Payment(
        id=record.id,
        installment_id=record.installment_id,
        amount_cents=record.amount_cents,
        principal_cents=record.principal_cents,
        late_fee_cents=record.late_fee_cents,
        discount_cents=record.discount_cents,
        payment_date=record.payment_date,
        method=PaymentMethod(record.payment_method),
        notes=record.notes,
    )


class CustomerRepository:
    """Repository for customers"""

    def __init__(self, db: Session):
        self.db = db

    def create_customer(self, tenant_id: str, user_id: str, **fields) -> CustomerRecord:
        """Persist a new customer with no debt"""
        db_customer = CustomerRecord(tenant_id=tenant_id, user_id=user_id, current_debt_cents=0, **fields)
        self.db.add(db_customer)
        self.db.flush()  # Get ID without committing
        return db_customer

    def get_customer(self, tenant_id: str, customer_id: uuid.UUID, for_update: bool = False) -> Optional[CustomerRecord]:
        """Fetch a customer; for_update locks the row until the transaction ends"""
        query = self.db.query(CustomerRecord).filter(
            CustomerRecord.tenant_id == tenant_id,
            CustomerRecord.id == customer_id,
        )
        if for_update:
            query = query.with_for_update()
        return query.first()

    def get_by_cpf(self, tenant_id: str, cpf: str) -> Optional[CustomerRecord]:
        return (
            self.db.query(CustomerRecord)
            .filter(CustomerRecord.tenant_id == tenant_id, CustomerRecord.cpf == cpf)
            .first()
        )

    def list_customers(
        self,
        tenant_id: str,
        user_id: Optional[str] = None,
        active_only: bool = False,
    ) -> List[CustomerRecord]:
        """Customers of a tenant, optionally only those registered by one user"""
        query = self.db.query(CustomerRecord).filter(CustomerRecord.tenant_id == tenant_id)
        if user_id is not None:
            query = query.filter(CustomerRecord.user_id == user_id)
        if active_only:
            query = query.filter(CustomerRecord.active.is_(True))
        return query.order_by(CustomerRecord.full_name).all()

    def set_debt(self, db_customer: CustomerRecord, debt_cents: int) -> None:
        db_customer.current_debt_cents = debt_cents
        self.db.flush()


class SaleRepository:
    """Repository for sales and their installments"""

    def __init__(self, db: Session):
        self.db = db

    def create_sale(
        self,
        tenant_id: str,
        user_id: str,
        sale: Sale,
        installments: List[Installment],
    ) -> SaleRecord:
        """Create sale header with installments in one flush"""
        db_sale = SaleRecord(
            tenant_id=tenant_id,
            user_id=user_id,
            customer_id=sale.customer_id,
            sale_number=sale.sale_number,
            total_amount_cents=sale.total_amount_cents,
            down_payment_cents=sale.down_payment_cents,
            financed_amount_cents=sale.financed_amount_cents,
            installments_count=sale.installments_count,
            interest_rate=sale.interest_rate,
            installment_value_cents=sale.installment_value_cents,
            total_with_interest_cents=sale.total_with_interest_cents,
            sale_date=sale.sale_date,
            first_due_date=sale.first_due_date,
            description=sale.description,
            notes=sale.notes,
            status=sale.status.value,
        )

        # Create installments
        for inst in installments:
            db_sale.installments.append(
                InstallmentRecord(
                    installment_number=inst.installment_number,
                    due_date=inst.due_date,
                    amount_cents=inst.amount_cents,
                    paid_amount_cents=inst.paid_amount_cents,
                    status=inst.status.value,
                )
            )

        self.db.add(db_sale)
        self.db.flush()
        return db_sale

    def get_sale(self, tenant_id: str, sale_id: uuid.UUID, for_update: bool = False) -> Optional[SaleRecord]:
        """Fetch sale with installments"""
        query = self.db.query(SaleRecord).filter(SaleRecord.tenant_id == tenant_id, SaleRecord.id == sale_id)
        if for_update:
            query = query.with_for_update()
        return query.first()

    def sale_number_exists(self, tenant_id: str, sale_number: str) -> bool:
        query = self.db.query(SaleRecord.id).filter(
            SaleRecord.tenant_id == tenant_id,
            SaleRecord.sale_number == sale_number,
        )
        return query.first() is not None

    def list_sales(
        self,
        tenant_id: str,
        user_id: Optional[str] = None,
        customer_id: Optional[uuid.UUID] = None,
        limit: Optional[int] = None,
    ) -> List[SaleRecord]:
        """Most recent sales first"""
        query = self.db.query(SaleRecord).filter(SaleRecord.tenant_id == tenant_id)
        if user_id is not None:
            query = query.filter(SaleRecord.user_id == user_id)
        if customer_id is not None:
            query = query.filter(SaleRecord.customer_id == customer_id)
        query = query.order_by(SaleRecord.sale_date.desc(), SaleRecord.created_at.desc())
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    def set_status(self, db_sale: SaleRecord, status: StoredStatus) -> None:
        db_sale.status = status.value
        self.db.flush()


class InstallmentRepository:
    """Repository for installments"""

    def __init__(self, db: Session):
        self.db = db

    def get_installment(
        self,
        tenant_id: str,
        installment_id: uuid.UUID,
        for_update: bool = False,
    ) -> Optional[InstallmentRecord]:
        """Fetch an installment, tenant-scoped through its sale"""
        query = (
            self.db.query(InstallmentRecord)
            .join(SaleRecord, InstallmentRecord.sale_id == SaleRecord.id)
            .filter(SaleRecord.tenant_id == tenant_id, InstallmentRecord.id == installment_id)
        )
        if for_update:
            query = query.with_for_update(of=InstallmentRecord)
        return query.first()

    def apply(self, db_installment: InstallmentRecord, installment: Installment) -> None:
        """Copy the mutable fields of a domain installment onto its row"""
        db_installment.paid_amount_cents = installment.paid_amount_cents
        db_installment.late_fee_cents = installment.late_fee_cents
        db_installment.discount_cents = installment.discount_cents
        db_installment.status = installment.status.value
        db_installment.payment_date = installment.payment_date
        db_installment.notes = installment.notes
        self.db.flush()

    def list_overdue(
        self,
        tenant_id: str,
        as_of: date,
        user_id: Optional[str] = None,
        customer_id: Optional[uuid.UUID] = None,
    ) -> List[InstallmentRecord]:
        """Pending installments due before as_of, oldest first"""
        query = (
            self.db.query(InstallmentRecord)
            .join(SaleRecord, InstallmentRecord.sale_id == SaleRecord.id)
            .filter(
                SaleRecord.tenant_id == tenant_id,
                InstallmentRecord.status == StoredStatus.PENDING.value,
                InstallmentRecord.due_date < as_of,
            )
        )
        if user_id is not None:
            query = query.filter(SaleRecord.user_id == user_id)
        if customer_id is not None:
            query = query.filter(SaleRecord.customer_id == customer_id)
        return query.order_by(InstallmentRecord.due_date, InstallmentRecord.installment_number).all()


class PaymentRepository:
    """Repository for the append-only payment ledger"""

    def __init__(self, db: Session):
        self.db = db

    def create_payment(self, tenant_id: str, user_id: str, payment: Payment) -> PaymentRecord:
        db_payment = PaymentRecord(
            id=payment.id,
            tenant_id=tenant_id,
            user_id=user_id,
            installment_id=payment.installment_id,
            amount_cents=payment.amount_cents,
            principal_cents=payment.principal_cents,
            late_fee_cents=payment.late_fee_cents,
            discount_cents=payment.discount_cents,
            payment_date=payment.payment_date,
            payment_method=payment.method.value,
            notes=payment.notes,
        )
        self.db.add(db_payment)
        self.db.flush()
        return db_payment

    def list_for_installment(self, installment_id: uuid.UUID) -> List[PaymentRecord]:
        return (
            self.db.query(PaymentRecord)
            .filter(PaymentRecord.installment_id == installment_id)
            .order_by(PaymentRecord.payment_date, PaymentRecord.created_at)
            .all()
        )

    def list_payments(self, tenant_id: str, user_id: Optional[str] = None) -> List[PaymentRecord]:
        """Payments of a tenant, optionally only on sales made by one user"""
        query = self.db.query(PaymentRecord).filter(PaymentRecord.tenant_id == tenant_id)
        if user_id is not None:
            query = (
                query.join(InstallmentRecord, PaymentRecord.installment_id == InstallmentRecord.id)
                .join(SaleRecord, InstallmentRecord.sale_id == SaleRecord.id)
                .filter(SaleRecord.user_id == user_id)
            )
        return query.all()
