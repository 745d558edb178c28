"""Pytest fixtures for testing"""

import os

# Point the app at SQLite before crediario.config builds its settings
os.environ.setdefault("DATABASE_URL", "sqlite:///./test_crediario.db")

import pytest
from datetime import date
from typing import Callable, Dict, Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from crediario.api.main import create_app
from crediario.infrastructure.database.models import Base
from crediario.infrastructure.database.session import get_db
from crediario.domain.models import Customer, Installment, StoredStatus
from crediario.utils.date_utils import add_months


# Test database
TEST_DATABASE_URL = "sqlite:///./test_crediario.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

TENANT_ID = "loja-centro"


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db: Session) -> TestClient:
    """Create FastAPI test client with test database"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app)


@pytest.fixture
def master_headers() -> Dict[str, str]:
    return {"X-Tenant-ID": TENANT_ID, "X-User-ID": "user_master", "X-User-Role": "master"}


@pytest.fixture
def store_headers() -> Dict[str, str]:
    return {"X-Tenant-ID": TENANT_ID, "X-User-ID": "user_store", "X-User-Role": "loja"}


@pytest.fixture
def seller_headers() -> Dict[str, str]:
    return {"X-Tenant-ID": TENANT_ID, "X-User-ID": "user_seller", "X-User-Role": "vendedor"}


@pytest.fixture
def create_customer(client: TestClient, master_headers: Dict[str, str]) -> Callable[..., dict]:
    """Register a customer through the API and return its JSON"""
    counter = {"n": 0}

    def _create(credit_limit_cents: int = 100_000, **overrides) -> dict:
        counter["n"] += 1
        body = {
            "full_name": f"Cliente {counter['n']}",
            "cpf": f"{counter['n']:011d}",
            "phone": "(11) 99999-0000",
            "city": "São Paulo",
            "state": "SP",
            "credit_limit_cents": credit_limit_cents,
        }
        body.update(overrides)
        response = client.post("/v1/customers", json=body, headers=master_headers)
        assert response.status_code == 201, response.text
        return response.json()

    return _create


@pytest.fixture
def next_month() -> date:
    return add_months(date.today(), 1)


@pytest.fixture
def sample_customer() -> Customer:
    return Customer(full_name="Maria Souza", credit_limit_cents=100_000)


@pytest.fixture
def sample_installments() -> list[Installment]:
    """Three monthly installments of R$ 100.00: one paid, one overdue, one open"""
    return [
        Installment(
            installment_number=1,
            due_date=date(2024, 1, 10),
            amount_cents=10_000,
            paid_amount_cents=10_000,
            status=StoredStatus.PAID,
            payment_date=date(2024, 1, 9),
        ),
        Installment(installment_number=2, due_date=date(2024, 2, 10), amount_cents=10_000, paid_amount_cents=2_500),
        Installment(installment_number=3, due_date=date(2024, 3, 10), amount_cents=10_000),
    ]
