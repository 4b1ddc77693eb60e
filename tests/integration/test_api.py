"""Integration tests for API endpoints"""

import pytest
from datetime import datetime
from decimal import Decimal
from fastapi.testclient import TestClient


@pytest.fixture
def customer_id(client: TestClient) -> int:
    """Customer registered through the API with a R$ 500 limit"""
    response = client.post(
        "/v1/customers",
        json={"name": "João Silva", "whatsapp": "5511999999999", "credit_limit": "500,00"},
    )
    assert response.status_code == 201
    return response.json()["id"]


def _credit_sale(client: TestClient, customer_id, price: str = "150.00", **extra):
    return client.post(
        "/v1/sales",
        json={
            "payment_method": "credit",
            "customer_id": customer_id,
            "items": [{"description": "Pneu traseiro", "quantity": 1, "price": price}],
            **extra,
        },
    )


def test_health_endpoint(client: TestClient):
    """Test health check endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_metrics_endpoint(client: TestClient, customer_id: int):
    """Test Prometheus metrics endpoint"""
    _credit_sale(client, customer_id)

    response = client.get("/metrics")
    assert response.status_code == 200
    assert "fiado_sales_total" in response.text
    assert "fiado_credit_checks_total" in response.text


def test_request_id_echoed(client: TestClient):
    response = client.get("/health", headers={"X-Request-ID": "abc-123"})
    assert response.headers["X-Request-ID"] == "abc-123"


def test_create_customer_brazilian_amounts(client: TestClient):
    """Limit typed as 1.500,00 is stored as 1500.00; rates default to 2% and 1%"""
    response = client.post(
        "/v1/customers",
        json={"name": "Maria Souza", "whatsapp": "5511988887777", "credit_limit": "1.500,00"},
    )

    assert response.status_code == 201
    data = response.json()
    assert Decimal(data["credit_limit"]) == Decimal("1500.00")
    assert Decimal(data["fine_rate"]) == Decimal("2")
    assert Decimal(data["interest_rate"]) == Decimal("1")


def test_create_customer_rejects_bad_amount(client: TestClient):
    response = client.post(
        "/v1/customers",
        json={"name": "Maria", "whatsapp": "5511988887777", "credit_limit": "muito"},
    )
    assert response.status_code == 422


def test_rates_and_amounts_keep_their_scale(client: TestClient):
    """More decimals than the columns hold is a 422, never a silent truncation"""
    base = {"name": "Maria", "whatsapp": "5511988887777"}

    assert client.post("/v1/customers", json={**base, "fine_rate": "1.2345"}).status_code == 422
    assert client.post("/v1/customers", json={**base, "credit_limit": "10,005"}).status_code == 422

    response = client.post("/v1/customers", json={**base, "fine_rate": "1,235", "interest_rate": "0.333"})
    assert response.status_code == 201
    customer_id = response.json()["id"]
    stored = client.get(f"/v1/customers/{customer_id}").json()
    assert Decimal(stored["fine_rate"]) == Decimal("1.235")
    assert Decimal(stored["interest_rate"]) == Decimal("0.333")

    response = client.post(
        "/v1/sales",
        json={"payment_method": "cash", "items": [{"description": "Vela", "quantity": 1, "price": "10.005"}]},
    )
    assert response.status_code == 422
    assert client.get("/v1/sales").json() == []


def test_customer_crud(client: TestClient, customer_id: int):
    response = client.get(f"/v1/customers/{customer_id}")
    assert response.status_code == 200
    assert response.json()["name"] == "João Silva"

    response = client.patch(f"/v1/customers/{customer_id}", json={"city": "Campinas", "credit_limit": "800"})
    assert response.status_code == 200
    assert response.json()["city"] == "Campinas"
    assert Decimal(response.json()["credit_limit"]) == Decimal("800")
    assert response.json()["name"] == "João Silva"

    assert len(client.get("/v1/customers").json()) == 1
    assert client.get("/v1/customers/999").status_code == 404
    assert client.patch("/v1/customers/999", json={"city": "Santos"}).status_code == 404


def test_products(client: TestClient):
    response = client.post(
        "/v1/products",
        json={"description": "Óleo Motul 5100", "sale_price": "65,00", "stock": 12, "category": "oleos"},
    )
    assert response.status_code == 201
    client.post("/v1/products", json={"description": "Pneu", "sale_price": "250", "category": "pneus"})

    response = client.get("/v1/products", params={"category": "oleos"})
    assert response.status_code == 200
    assert [p["description"] for p in response.json()] == ["Óleo Motul 5100"]


def test_credit_sale_opens_receivable(client: TestClient, customer_id: int):
    response = _credit_sale(client, customer_id)

    assert response.status_code == 201
    data = response.json()
    assert data["payment_status"] == "pending"
    assert data["due_date"] == "2024-01-31"
    assert Decimal(data["total"]) == Decimal("150.00")

    credit = client.get(f"/v1/customers/{customer_id}/credit").json()
    assert Decimal(credit["current_debt"]) == Decimal("150.00")
    assert Decimal(credit["remaining"]) == Decimal("350.00")


def test_credit_sale_without_customer(client: TestClient):
    response = _credit_sale(client, None)
    assert response.status_code == 422
    assert client.get("/v1/sales").json() == []


def test_credit_sale_unknown_customer(client: TestClient):
    assert _credit_sale(client, 999).status_code == 404


def test_credit_limit_exceeded(client: TestClient, customer_id: int):
    """Limit fully used: one more cent is refused with the amounts involved"""
    assert _credit_sale(client, customer_id, "500.00").status_code == 201

    response = _credit_sale(client, customer_id, "0.01")

    assert response.status_code == 409
    detail = response.json()["detail"]
    assert detail["error"] == "credit_limit_exceeded"
    assert Decimal(detail["limit"]) == Decimal("500.00")
    assert Decimal(detail["current_debt"]) == Decimal("500.00")
    assert Decimal(detail["proposed_amount"]) == Decimal("0.01")
    assert len(client.get("/v1/receivables").json()["receivables"]) == 1


def test_counter_sale_paid_immediately(client: TestClient):
    response = client.post(
        "/v1/sales",
        json={
            "payment_method": "pix",
            "items": [{"description": "Vela", "quantity": 2, "price": "18,90"}],
        },
    )

    assert response.status_code == 201
    data = response.json()
    assert data["payment_status"] == "paid"
    assert data["customer_name"] == "Consumidor Final"
    assert Decimal(data["total"]) == Decimal("37.80")
    assert client.get("/v1/receivables").json()["receivables"] == []


def test_receivable_ages_with_time(client: TestClient, customer_id: int, clock):
    """150.00 due 2024-01-31, read on 2024-02-10: 3.00 fine + 0.50 interest"""
    _credit_sale(client, customer_id)
    clock.now = datetime(2024, 2, 10, 15, 0)

    response = client.get("/v1/receivables")

    assert response.status_code == 200
    (receivable,) = response.json()["receivables"]
    assert receivable["status"] == "overdue"
    assert receivable["days_late"] == 10
    assert Decimal(receivable["fine"]) == Decimal("3.00")
    assert Decimal(receivable["interest"]) == Decimal("0.50")
    assert Decimal(receivable["total_due"]) == Decimal("153.50")


def test_rate_change_is_retroactive(client: TestClient, customer_id: int, clock):
    _credit_sale(client, customer_id)
    clock.now = datetime(2024, 3, 1, 10, 0)  # 30 days late

    client.patch(f"/v1/customers/{customer_id}", json={"fine_rate": "10", "interest_rate": "3"})
    (receivable,) = client.get("/v1/receivables").json()["receivables"]

    assert Decimal(receivable["total_due"]) == Decimal("169.50")


def test_settle_twice(client: TestClient, customer_id: int, clock):
    sale_id = _credit_sale(client, customer_id).json()["id"]
    clock.now = datetime(2024, 2, 10, 15, 0)

    first = client.post(f"/v1/receivables/{sale_id}/settle")
    clock.now = datetime(2024, 2, 12, 9, 0)
    second = client.post(f"/v1/receivables/{sale_id}/settle")

    assert first.status_code == 200
    assert second.status_code == 200
    assert first.json()["status"] == "paid"
    assert second.json()["paid_date"] == first.json()["paid_date"] == "2024-02-10T15:00:00"
    assert Decimal(second.json()["total_due"]) == Decimal("150.00")
    assert client.get("/v1/receivables").json()["receivables"] == []


def test_settle_unknown_receivable(client: TestClient):
    assert client.post("/v1/receivables/nope/settle").status_code == 404


def test_update_due_date(client: TestClient, customer_id: int):
    sale_id = _credit_sale(client, customer_id).json()["id"]

    response = client.patch(f"/v1/receivables/{sale_id}/due-date", json={"due_date": "2024-02-20"})
    assert response.status_code == 200
    assert response.json()["due_date"] == "2024-02-20"

    client.post(f"/v1/receivables/{sale_id}/settle")
    response = client.patch(f"/v1/receivables/{sale_id}/due-date", json={"due_date": "2024-03-20"})
    assert response.status_code == 422


def test_notices(client: TestClient, customer_id: int):
    """Clock on 2024-01-01: due on the 3rd gets the early reminder, due on the 6th nothing yet"""
    _credit_sale(client, customer_id, "10.00", due_date="2024-01-03")
    _credit_sale(client, customer_id, "20.00", due_date="2024-01-06")

    response = client.get("/v1/receivables/notices")

    assert response.status_code == 200
    (notice,) = response.json()["notices"]
    assert notice["bucket"] == "before_due"
    assert notice["recipient_phone"] == "5511999999999"
    assert "vence em 03/01/2024" in notice["text"]


def test_delete_sale(client: TestClient, customer_id: int):
    sale_id = _credit_sale(client, customer_id).json()["id"]

    assert client.delete(f"/v1/sales/{sale_id}").status_code == 204
    assert client.get("/v1/receivables").json()["receivables"] == []
    assert client.delete(f"/v1/sales/{sale_id}").status_code == 404


def test_dashboard_stats(client: TestClient, customer_id: int, clock):
    _credit_sale(client, customer_id, "150.00", due_date="2024-01-01")
    _credit_sale(client, customer_id, "100.00", due_date="2024-02-01")
    client.post(
        "/v1/sales",
        json={"payment_method": "cash", "items": [{"description": "Graxa", "quantity": 1, "price": "12.00"}]},
    )
    clock.now = datetime(2024, 1, 11, 12, 0)

    response = client.get("/v1/dashboard/stats")

    assert response.status_code == 200
    data = response.json()
    assert Decimal(data["month_revenue"]) == Decimal("262.00")
    assert Decimal(data["open_principal"]) == Decimal("250.00")
    assert Decimal(data["delinquency"]) == Decimal("150.00")
    assert Decimal(data["total_due"]) == Decimal("253.50")
    assert data["open_count"] == 2
    assert data["overdue_count"] == 1


def test_mechanic_commission(client: TestClient, mechanic):
    response = client.post(
        "/v1/sales",
        json={
            "sale_type": "service",
            "payment_method": "cash",
            "labor_value": "100,00",
            "mechanic_id": "M1",
            "mechanic_name": "Carlos",
            "fixed_services": [{"description": "Troca de óleo", "payout": "20", "quantity": 2}],
        },
    )
    assert response.status_code == 201
    assert response.json()["customer_name"] == "Cliente O.S."
    assert Decimal(response.json()["commission"]) == Decimal("90.00")

    response = client.get("/v1/mechanics/M1/commission", params={"period": "today"})
    assert response.status_code == 200
    assert Decimal(response.json()["commission"]) == Decimal("90.00")

    assert client.get("/v1/mechanics/M1/commission", params={"period": "decade"}).status_code == 422
