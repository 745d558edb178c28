"""SQLAlchemy ORM models for the crediário schema"""

import uuid
from sqlalchemy import (
    Column,
    String,
    BigInteger,
    Boolean,
    Date,
    DateTime,
    Integer,
    ForeignKey,
    Numeric,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()


class CustomerRecord(Base):
    """Registered buyer and their credit line"""

    __tablename__ = "customers"
    __table_args__ = (UniqueConstraint("tenant_id", "cpf", name="uq_customers_tenant_cpf"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    tenant_id = Column(Text, nullable=False, index=True)
    user_id = Column(Text, nullable=False, index=True)
    full_name = Column(Text, nullable=False)
    cpf = Column(String(14), nullable=False)
    phone = Column(Text, nullable=True)
    email = Column(Text, nullable=True)
    address = Column(Text, nullable=True)
    city = Column(Text, nullable=True)
    state = Column(String(2), nullable=True)
    monthly_income_cents = Column(BigInteger, nullable=True)
    credit_limit_cents = Column(BigInteger, nullable=False, default=0)
    current_debt_cents = Column(BigInteger, nullable=False, default=0)
    active = Column(Boolean, nullable=False, default=True)
    notes = Column(Text, nullable=True)
    # Optimistic concurrency: every UPDATE checks and bumps the version
    version_id = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    sales = relationship("SaleRecord", back_populates="customer")

    __mapper_args__ = {"version_id_col": version_id}


class SaleRecord(Base):
    """Installment sale header"""

    __tablename__ = "sales"
    __table_args__ = (UniqueConstraint("tenant_id", "sale_number", name="uq_sales_tenant_number"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    tenant_id = Column(Text, nullable=False, index=True)
    user_id = Column(Text, nullable=False, index=True)
    customer_id = Column(UUID(as_uuid=True), ForeignKey("customers.id"), nullable=False, index=True)
    sale_number = Column(Text, nullable=False)
    total_amount_cents = Column(BigInteger, nullable=False)
    down_payment_cents = Column(BigInteger, nullable=False, default=0)
    financed_amount_cents = Column(BigInteger, nullable=False)
    installments_count = Column(Integer, nullable=False)
    interest_rate = Column(Numeric(10, 6), nullable=False, default=0)
    installment_value_cents = Column(BigInteger, nullable=False)
    total_with_interest_cents = Column(BigInteger, nullable=False)
    sale_date = Column(Date, nullable=False)
    first_due_date = Column(Date, nullable=False)
    description = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    # pending | paid | cancelled; overdue is derived from installments
    status = Column(Text, nullable=False, default="pending")
    version_id = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    customer = relationship("CustomerRecord", back_populates="sales")
    installments = relationship(
        "InstallmentRecord",
        back_populates="sale",
        cascade="all, delete-orphan",
        order_by="InstallmentRecord.installment_number",
    )

    __mapper_args__ = {"version_id_col": version_id}


class InstallmentRecord(Base):
    """Individual installment within a sale"""

    __tablename__ = "installments"
    __table_args__ = (UniqueConstraint("sale_id", "installment_number", name="uq_installments_sale_number"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    sale_id = Column(UUID(as_uuid=True), ForeignKey("sales.id", ondelete="CASCADE"), nullable=False, index=True)
    installment_number = Column(Integer, nullable=False)
    due_date = Column(Date, nullable=False, index=True)
    amount_cents = Column(BigInteger, nullable=False)
    paid_amount_cents = Column(BigInteger, nullable=False, default=0)
    late_fee_cents = Column(BigInteger, nullable=False, default=0)
    discount_cents = Column(BigInteger, nullable=False, default=0)
    status = Column(Text, nullable=False, default="pending")
    payment_date = Column(Date, nullable=True)
    notes = Column(Text, nullable=True)
    version_id = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    sale = relationship("SaleRecord", back_populates="installments")
    payments = relationship("PaymentRecord", back_populates="installment", order_by="PaymentRecord.created_at")

    __mapper_args__ = {"version_id_col": version_id}


class PaymentRecord(Base):
    """Append-only payment entry"""

    __tablename__ = "payments"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    tenant_id = Column(Text, nullable=False, index=True)
    user_id = Column(Text, nullable=False)
    installment_id = Column(UUID(as_uuid=True), ForeignKey("installments.id"), nullable=False, index=True)
    amount_cents = Column(BigInteger, nullable=False)
    principal_cents = Column(BigInteger, nullable=False)
    late_fee_cents = Column(BigInteger, nullable=False, default=0)
    discount_cents = Column(BigInteger, nullable=False, default=0)
    payment_date = Column(Date, nullable=False, index=True)
    payment_method = Column(Text, nullable=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    installment = relationship("InstallmentRecord", back_populates="payments")
