"""Integration tests for API endpoints"""

import pytest
from unittest.mock import AsyncMock, patch
from fastapi.testclient import TestClient
from crediario.domain.exceptions import DocumentRenderError
from crediario.infrastructure.clients.documents import RenderedDocument


@pytest.fixture
def customer(create_customer) -> dict:
    return create_customer(credit_limit_cents=100_000)


@pytest.fixture
def sale(client: TestClient, customer: dict, seller_headers: dict) -> dict:
    """R$ 300.00 sale in 3 interest-free installments, first one already past due"""
    response = client.post(
        "/v1/sales",
        json={
            "customer_id": customer["id"],
            "total_amount_cents": 30_000,
            "installments_count": 3,
            "sale_date": "2024-01-15",
            "first_due_date": "2024-02-15",
            "description": "Sofá 3 lugares",
        },
        headers=seller_headers,
    )
    assert response.status_code == 201, response.text
    return response.json()


def test_health_endpoint(client: TestClient):
    """Test health check endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_metrics_endpoint(client: TestClient):
    """Test Prometheus metrics endpoint"""
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "crediario_sales" in response.text


def test_request_id_is_echoed(client: TestClient):
    response = client.get("/health", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"


def test_missing_identity_is_rejected(client: TestClient):
    response = client.get("/v1/customers")
    assert response.status_code == 401


def test_register_customer(client: TestClient, master_headers: dict):
    response = client.post(
        "/v1/customers",
        json={"full_name": "Maria Souza", "cpf": "123.456.789-09", "credit_limit_cents": 150_000},
        headers=master_headers,
    )

    assert response.status_code == 201
    data = response.json()
    assert data["credit_limit_cents"] == 150_000
    assert data["current_debt_cents"] == 0
    assert data["available_credit_cents"] == 150_000
    assert data["active"] is True


def test_register_duplicate_cpf(client: TestClient, customer: dict, master_headers: dict):
    response = client.post(
        "/v1/customers",
        json={"full_name": "Outra Pessoa", "cpf": customer["cpf"]},
        headers=master_headers,
    )
    assert response.status_code == 409


def test_seller_cannot_register_customer(client: TestClient, seller_headers: dict):
    response = client.post(
        "/v1/customers",
        json={"full_name": "Maria Souza", "cpf": "12345678909"},
        headers=seller_headers,
    )
    assert response.status_code == 403


def test_get_unknown_customer(client: TestClient, master_headers: dict):
    response = client.get("/v1/customers/00000000-0000-0000-0000-000000000000", headers=master_headers)
    assert response.status_code == 404


def test_customer_hidden_from_other_tenant(client: TestClient, customer: dict):
    response = client.get(
        f"/v1/customers/{customer['id']}",
        headers={"X-Tenant-ID": "loja-norte", "X-User-ID": "user_x", "X-User-Role": "master"},
    )
    assert response.status_code == 404


def test_seller_cannot_read_customers(client: TestClient, customer: dict, seller_headers: dict):
    assert client.get("/v1/customers", headers=seller_headers).status_code == 403
    assert client.get(f"/v1/customers/{customer['id']}", headers=seller_headers).status_code == 403


def test_store_can_read_customers(client: TestClient, customer: dict, store_headers: dict):
    response = client.get(f"/v1/customers/{customer['id']}", headers=store_headers)
    assert response.status_code == 200
    assert response.json()["cpf"] == customer["cpf"]


def test_simulate_sale(client: TestClient, seller_headers: dict):
    """Test POST /v1/sales/simulate returns the schedule without saving"""
    response = client.post(
        "/v1/sales/simulate",
        json={
            "total_amount_cents": 120_000,
            "down_payment_cents": 20_000,
            "installments_count": 3,
            "interest_rate": "0.025",
            "first_due_date": "2024-01-31",
        },
        headers=seller_headers,
    )

    assert response.status_code == 200
    data = response.json()
    assert data["financed_amount_cents"] == 100_000
    assert data["total_with_interest_cents"] == 107_689
    assert data["interest_cents"] == 7_689
    assert [i["amount_cents"] for i in data["installments"]] == [35_896, 35_896, 35_897]
    assert [i["due_date"] for i in data["installments"]] == ["2024-01-31", "2024-02-29", "2024-03-31"]


def test_simulate_price_method(client: TestClient, seller_headers: dict):
    response = client.post(
        "/v1/sales/simulate",
        json={
            "total_amount_cents": 100_000,
            "installments_count": 2,
            "interest_rate": "0.1",
            "first_due_date": "2024-02-10",
            "amortization_method": "price",
        },
        headers=seller_headers,
    )

    assert response.status_code == 200
    assert response.json()["total_with_interest_cents"] == 115_238


def test_simulate_rejects_too_many_installments(client: TestClient, seller_headers: dict):
    response = client.post(
        "/v1/sales/simulate",
        json={"total_amount_cents": 100_000, "installments_count": 49},
        headers=seller_headers,
    )
    assert response.status_code == 422


def test_create_sale(client: TestClient, sale: dict, customer: dict, master_headers: dict):
    """Test POST /v1/sales creates installments and raises the customer's debt"""
    assert sale["financed_amount_cents"] == 30_000
    assert sale["installment_value_cents"] == 10_000
    assert len(sale["installments"]) == 3
    assert [i["installment_number"] for i in sale["installments"]] == [1, 2, 3]
    assert sale["remaining_balance_cents"] == 30_000
    assert len(sale["sale_number"]) == 14
    assert sale["sale_number"].startswith("20")

    data = client.get(f"/v1/customers/{customer['id']}", headers=master_headers).json()
    assert data["current_debt_cents"] == 30_000
    assert data["available_credit_cents"] == 70_000


def test_create_sale_over_credit_limit(client: TestClient, create_customer, seller_headers: dict, master_headers: dict):
    customer = create_customer(credit_limit_cents=50_000)

    response = client.post(
        "/v1/sales",
        json={"customer_id": customer["id"], "total_amount_cents": 50_001, "installments_count": 2},
        headers=seller_headers,
    )

    assert response.status_code == 422
    data = client.get(f"/v1/customers/{customer['id']}", headers=master_headers).json()
    assert data["current_debt_cents"] == 0
    sales = client.get("/v1/sales", headers=master_headers).json()["sales"]
    assert sales == []


def test_create_sale_down_payment_above_total(client: TestClient, customer: dict, seller_headers: dict):
    response = client.post(
        "/v1/sales",
        json={
            "customer_id": customer["id"],
            "total_amount_cents": 10_000,
            "down_payment_cents": 12_000,
            "installments_count": 2,
        },
        headers=seller_headers,
    )
    assert response.status_code == 422


def test_create_sale_below_one_cent_per_installment(
    client: TestClient, customer: dict, seller_headers: dict, master_headers: dict
):
    response = client.post(
        "/v1/sales",
        json={"customer_id": customer["id"], "total_amount_cents": 3, "installments_count": 5},
        headers=seller_headers,
    )

    assert response.status_code == 422
    assert client.get("/v1/sales", headers=master_headers).json()["sales"] == []
    data = client.get(f"/v1/customers/{customer['id']}", headers=master_headers).json()
    assert data["current_debt_cents"] == 0


def test_simulate_below_one_cent_per_installment(client: TestClient, seller_headers: dict):
    response = client.post(
        "/v1/sales/simulate",
        json={"total_amount_cents": 3, "installments_count": 5},
        headers=seller_headers,
    )
    assert response.status_code == 422


def test_sale_numbers_redrawn_on_collision(client: TestClient, customer: dict, seller_headers: dict):
    body = {"customer_id": customer["id"], "total_amount_cents": 1_000, "installments_count": 1}

    with patch(
        "crediario.application.operations.generate_sale_number",
        side_effect=["20240115000001", "20240115000001", "20240115000002"],
    ):
        first = client.post("/v1/sales", json=body, headers=seller_headers)
        second = client.post("/v1/sales", json=body, headers=seller_headers)

    assert first.status_code == 201
    assert second.status_code == 201
    assert first.json()["sale_number"] == "20240115000001"
    assert second.json()["sale_number"] == "20240115000002"


def test_sale_numbers_are_per_tenant(client: TestClient, customer: dict, seller_headers: dict):
    north_master = {"X-Tenant-ID": "loja-norte", "X-User-ID": "user_norte", "X-User-Role": "master"}
    north_customer = client.post(
        "/v1/customers",
        json={"full_name": "Cliente Norte", "cpf": "98765432100", "credit_limit_cents": 10_000},
        headers=north_master,
    ).json()

    with patch("crediario.application.operations.generate_sale_number", return_value="20240115000001"):
        centro = client.post(
            "/v1/sales",
            json={"customer_id": customer["id"], "total_amount_cents": 1_000, "installments_count": 1},
            headers=seller_headers,
        )
        norte = client.post(
            "/v1/sales",
            json={"customer_id": north_customer["id"], "total_amount_cents": 1_000, "installments_count": 1},
            headers=north_master,
        )

    assert centro.status_code == 201
    assert norte.status_code == 201
    assert centro.json()["sale_number"] == norte.json()["sale_number"] == "20240115000001"


def test_sale_number_exhaustion_is_a_conflict(client: TestClient, customer: dict, seller_headers: dict):
    body = {"customer_id": customer["id"], "total_amount_cents": 1_000, "installments_count": 1}

    with patch("crediario.application.operations.generate_sale_number", return_value="20240115000001"):
        assert client.post("/v1/sales", json=body, headers=seller_headers).status_code == 201
        response = client.post("/v1/sales", json=body, headers=seller_headers)

    assert response.status_code == 409


def test_create_sale_for_unknown_customer(client: TestClient, seller_headers: dict):
    response = client.post(
        "/v1/sales",
        json={
            "customer_id": "00000000-0000-0000-0000-000000000000",
            "total_amount_cents": 10_000,
            "installments_count": 2,
        },
        headers=seller_headers,
    )
    assert response.status_code == 404


def test_create_sale_for_inactive_customer(
    client: TestClient, customer: dict, store_headers: dict, seller_headers: dict
):
    assert client.delete(f"/v1/customers/{customer['id']}", headers=store_headers).status_code == 200

    response = client.post(
        "/v1/sales",
        json={"customer_id": customer["id"], "total_amount_cents": 10_000, "installments_count": 2},
        headers=seller_headers,
    )
    assert response.status_code == 422


def test_sale_listing_is_scoped_to_seller(client: TestClient, sale: dict, master_headers: dict):
    other_seller = {"X-Tenant-ID": master_headers["X-Tenant-ID"], "X-User-ID": "user_other", "X-User-Role": "vendedor"}

    assert client.get("/v1/sales", headers=other_seller).json()["sales"] == []
    assert len(client.get("/v1/sales", headers=master_headers).json()["sales"]) == 1


def test_record_partial_payment(client: TestClient, sale: dict, customer: dict, store_headers: dict, master_headers: dict):
    installment_id = sale["installments"][0]["id"]

    response = client.post(
        f"/v1/installments/{installment_id}/payments",
        json={"amount_cents": 4_000, "payment_date": "2024-02-10", "payment_method": "pix"},
        headers=store_headers,
    )

    assert response.status_code == 201
    data = response.json()
    assert data["installment"]["paid_amount_cents"] == 4_000
    assert data["installment"]["remaining_cents"] == 6_000
    assert data["installment"]["status"] == "overdue"  # Due 2024-02-15, still open today
    assert data["payment"]["payment_method"] == "pix"
    assert data["customer_debt_delta_cents"] == 0

    debt = client.get(f"/v1/customers/{customer['id']}", headers=master_headers).json()["current_debt_cents"]
    assert debt == 30_000


def test_record_full_payment_lowers_debt(
    client: TestClient, sale: dict, customer: dict, store_headers: dict, master_headers: dict
):
    installment_id = sale["installments"][0]["id"]

    response = client.post(
        f"/v1/installments/{installment_id}/payments",
        json={"amount_cents": 10_000, "payment_date": "2024-02-10"},
        headers=store_headers,
    )

    assert response.status_code == 201
    data = response.json()
    assert data["installment"]["status"] == "paid"
    assert data["installment"]["payment_date"] == "2024-02-10"
    assert data["customer_debt_delta_cents"] == -10_000

    debt = client.get(f"/v1/customers/{customer['id']}", headers=master_headers).json()["current_debt_cents"]
    assert debt == 20_000

    history = client.get(f"/v1/installments/{installment_id}/payments", headers=store_headers).json()
    assert len(history["payments"]) == 1
    assert history["payments"][0]["payment_method"] == "dinheiro"


def test_sale_tracks_paid_total(client: TestClient, sale: dict, store_headers: dict, master_headers: dict):
    assert sale["paid_total_cents"] == 0

    client.post(
        f"/v1/installments/{sale['installments'][0]['id']}/payments",
        json={"amount_cents": 10_000, "payment_date": "2024-02-10"},
        headers=store_headers,
    )
    client.post(
        f"/v1/installments/{sale['installments'][1]['id']}/payments",
        json={"amount_cents": 2_500, "payment_date": "2024-03-10"},
        headers=store_headers,
    )

    data = client.get(f"/v1/sales/{sale['id']}", headers=master_headers).json()
    assert data["paid_total_cents"] == 12_500
    assert data["remaining_balance_cents"] == 17_500


def test_last_payment_marks_sale_paid(client: TestClient, sale: dict, store_headers: dict, master_headers: dict):
    for inst in sale["installments"]:
        response = client.post(
            f"/v1/installments/{inst['id']}/payments",
            json={"amount_cents": inst["amount_cents"], "payment_date": "2024-02-10"},
            headers=store_headers,
        )
        assert response.status_code == 201

    data = client.get(f"/v1/sales/{sale['id']}", headers=master_headers).json()
    assert data["status"] == "paid"
    assert data["paid_total_cents"] == 30_000
    assert client.post(f"/v1/sales/{sale['id']}/cancel", headers=store_headers).status_code == 409


def test_overpayment_rejected(client: TestClient, sale: dict, store_headers: dict):
    installment_id = sale["installments"][0]["id"]

    response = client.post(
        f"/v1/installments/{installment_id}/payments",
        json={"amount_cents": 10_001},
        headers=store_headers,
    )

    assert response.status_code == 422
    history = client.get(f"/v1/installments/{installment_id}/payments", headers=store_headers).json()
    assert history["payments"] == []


def test_zero_payment_rejected(client: TestClient, sale: dict, store_headers: dict):
    response = client.post(
        f"/v1/installments/{sale['installments'][0]['id']}/payments",
        json={"amount_cents": 0},
        headers=store_headers,
    )
    assert response.status_code == 422


def test_seller_cannot_record_payment(client: TestClient, sale: dict, seller_headers: dict):
    response = client.post(
        f"/v1/installments/{sale['installments'][0]['id']}/payments",
        json={"amount_cents": 1_000},
        headers=seller_headers,
    )
    assert response.status_code == 403


def test_overdue_query(client: TestClient, sale: dict, store_headers: dict, master_headers: dict):
    response = client.get("/v1/installments/overdue?as_of=2024-03-20", headers=master_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["count"] == 2
    assert data["total_overdue_cents"] == 20_000
    assert [i["installment_number"] for i in data["installments"]] == [1, 2]
    assert data["installments"][0]["days_overdue"] == 34
    assert data["installments"][0]["customer_name"] == sale["customer_name"]


def test_overdue_excludes_due_today(client: TestClient, sale: dict, master_headers: dict):
    data = client.get("/v1/installments/overdue?as_of=2024-02-15", headers=master_headers).json()
    assert data["count"] == 0


def test_cancel_sale(client: TestClient, sale: dict, customer: dict, store_headers: dict, master_headers: dict):
    client.post(
        f"/v1/installments/{sale['installments'][0]['id']}/payments",
        json={"amount_cents": 10_000, "payment_date": "2024-02-10"},
        headers=store_headers,
    )

    response = client.post(f"/v1/sales/{sale['id']}/cancel", headers=store_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "cancelled"
    assert [i["status"] for i in data["installments"]] == ["paid", "cancelled", "cancelled"]
    assert data["remaining_balance_cents"] == 0

    debt = client.get(f"/v1/customers/{customer['id']}", headers=master_headers).json()["current_debt_cents"]
    assert debt == 0

    again = client.post(f"/v1/sales/{sale['id']}/cancel", headers=store_headers)
    assert again.status_code == 409


def test_cancel_interest_sale_keeps_other_sale_debt(
    client: TestClient, create_customer, seller_headers: dict, store_headers: dict, master_headers: dict
):
    customer = create_customer(credit_limit_cents=200_000)
    with_interest = client.post(
        "/v1/sales",
        json={
            "customer_id": customer["id"],
            "total_amount_cents": 100_000,
            "installments_count": 2,
            "interest_rate": "0.1",
            "amortization_method": "compound",
        },
        headers=seller_headers,
    ).json()
    assert with_interest["total_with_interest_cents"] == 121_000
    client.post(
        "/v1/sales",
        json={"customer_id": customer["id"], "total_amount_cents": 50_000, "installments_count": 1},
        headers=seller_headers,
    )
    debt = client.get(f"/v1/customers/{customer['id']}", headers=master_headers).json()["current_debt_cents"]
    assert debt == 150_000

    response = client.post(f"/v1/sales/{with_interest['id']}/cancel", headers=store_headers)

    assert response.status_code == 200
    debt = client.get(f"/v1/customers/{customer['id']}", headers=master_headers).json()["current_debt_cents"]
    assert debt == 50_000


def test_payment_on_cancelled_installment(client: TestClient, sale: dict, store_headers: dict):
    client.post(f"/v1/sales/{sale['id']}/cancel", headers=store_headers)

    response = client.post(
        f"/v1/installments/{sale['installments'][1]['id']}/payments",
        json={"amount_cents": 1_000},
        headers=store_headers,
    )
    assert response.status_code == 422


def test_update_credit_limit_below_debt(client: TestClient, sale: dict, customer: dict, store_headers: dict):
    response = client.patch(
        f"/v1/customers/{customer['id']}/credit-limit",
        json={"credit_limit_cents": 29_999},
        headers=store_headers,
    )
    assert response.status_code == 422

    response = client.patch(
        f"/v1/customers/{customer['id']}/credit-limit",
        json={"credit_limit_cents": 30_000},
        headers=store_headers,
    )
    assert response.status_code == 200
    assert response.json()["available_credit_cents"] == 0


def test_report_summary(client: TestClient, sale: dict, store_headers: dict, master_headers: dict):
    client.post(
        f"/v1/installments/{sale['installments'][0]['id']}/payments",
        json={"amount_cents": 10_000, "payment_date": "2024-02-10"},
        headers=store_headers,
    )

    response = client.get("/v1/reports/summary?as_of=2024-03-20", headers=master_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["customers_count"] == 1
    assert data["total_debt_cents"] == 20_000
    assert data["sales_count"] == 1
    assert data["sales_by_status"] == {"overdue": 1}
    assert data["payments"]["total_received_cents"] == 10_000
    assert data["payments"]["overdue_count"] == 1
    assert data["payments"]["overdue_amount_cents"] == 10_000


@patch("crediario.infrastructure.clients.documents.DocumentClient.render_contract")
def test_contract_endpoint(mock_render: AsyncMock, client: TestClient, sale: dict, seller_headers: dict):
    """Test GET /v1/sales/{id}/contract returns the rendered document"""
    mock_render.return_value = RenderedDocument(content=b"%PDF-1.4", media_type="application/pdf")

    response = client.get(f"/v1/sales/{sale['id']}/contract", headers=seller_headers)

    assert response.status_code == 200
    assert response.content == b"%PDF-1.4"
    assert f"contrato-{sale['sale_number']}.pdf" in response.headers["content-disposition"]
    snapshot = mock_render.call_args.args[0]
    assert snapshot["sale"]["sale_number"] == sale["sale_number"]
    assert len(snapshot["installments"]) == 3
    assert snapshot["installments"][0]["amount"] == "R$ 100,00"


@patch("crediario.infrastructure.clients.documents.DocumentClient.render_contract")
def test_contract_renderer_down(mock_render: AsyncMock, client: TestClient, sale: dict, seller_headers: dict):
    mock_render.side_effect = DocumentRenderError("Document renderer unreachable")

    response = client.get(f"/v1/sales/{sale['id']}/contract", headers=seller_headers)

    assert response.status_code == 503
