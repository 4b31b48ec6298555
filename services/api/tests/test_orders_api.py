from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from pathlib import Path

import pytest
from fastapi.testclient import TestClient


@pytest.fixture()
def client(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> TestClient:
    db_path = tmp_path / "orderbridge_api.db"
    monkeypatch.setenv("DATABASE_URL", f"sqlite+pysqlite:///{db_path}")
    monkeypatch.setenv("ORDERBRIDGE_DB_AUTO_CREATE", "true")
    monkeypatch.setenv("ORDERBRIDGE_INTAKE_CLIENT", "mock")
    monkeypatch.setenv("ORDERBRIDGE_PRICING_SOURCE", "static")

    from services.api.app.main import app

    with TestClient(app) as c:
        _seed()
        yield c


def _seed() -> None:
    from services.api.app.db.database import db_session
    from services.api.app.db.models import Cart, Product

    db = db_session()
    try:
        db.add(Product(product_id=101, plu=5101, type="INDIVIDUAL", core_name="HAMBURGUESA", price=Decimal("12.50")))
        db.add(
            Cart(
                id="cart-1",
                user_id=7,
                source="menu",
                product={"oldId": "101", "qty": "2", "name": "Burger"},
                created_at=datetime(2024, 3, 5, 13, 0, 0),
            )
        )
        db.add(
            Cart(
                id="cart-2",
                user_id=8,
                source="menu",
                product={"oldId": "999", "qty": "1"},
                created_at=datetime(2024, 3, 5, 13, 0, 0),
            )
        )
        db.commit()
    finally:
        db.close()


def _order_payload(**overrides) -> dict:
    payload = {
        "user_id": 7,
        "restaurant": "12",
        "customer_phone": "5555-1234",
        "customer_name": "Ana",
        "customer_address": "Zona 10",
    }
    payload.update(overrides)
    return payload


def test_health(client: TestClient) -> None:
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_create_order_from_cart_and_read_workflow(client: TestClient) -> None:
    resp = client.post("/v1/orders/from-cart", json=_order_payload())
    assert resp.status_code == 200

    data = resp.json()
    assert data["order"]["total_orden"] == "25.00"
    assert data["order"]["detalle"][0]["plu"] == "5101"
    assert data["intake_response"]["success"] is True

    workflow_id = data["workflow_id"]
    detail = client.get(f"/v1/workflows/{workflow_id}")
    assert detail.status_code == 200
    body = detail.json()
    assert body["status"] == "success"
    assert body["sent"] is True
    assert body["order_json"] == data["order"]

    listed = client.get("/v1/workflows", params={"user_id": 7})
    assert listed.status_code == 200
    assert [row["workflow_id"] for row in listed.json()] == [workflow_id]


def test_empty_cart_is_404(client: TestClient) -> None:
    resp = client.post("/v1/orders/from-cart", json=_order_payload(user_id=99))
    assert resp.status_code == 404
    assert resp.json()["detail"] == "No cart items found for owner 99"


def test_cart_without_valid_lines_is_422(client: TestClient) -> None:
    resp = client.post("/v1/orders/from-cart", json=_order_payload(user_id=8))
    assert resp.status_code == 422

    listed = client.get("/v1/workflows", params={"user_id": 8})
    assert listed.json() == []


def test_missing_owner_is_422(client: TestClient) -> None:
    resp = client.post("/v1/orders/from-cart", json=_order_payload(user_id=None))
    assert resp.status_code == 422


def test_intake_rejection_is_502_with_error_record(
    client: TestClient, monkeypatch: pytest.MonkeyPatch
) -> None:
    from services.api.app.services import intake_factory
    from services.api.app.services.intake_mock import MockIntakeClient

    monkeypatch.setattr(
        intake_factory,
        "MockIntakeClient",
        lambda: MockIntakeClient(response={"success": False, "error": "Restaurante cerrado"}),
    )

    resp = client.post("/v1/orders/from-cart", json=_order_payload())
    assert resp.status_code == 502
    assert resp.json()["detail"] == "Error sending order to intake: Restaurante cerrado"

    [row] = client.get("/v1/workflows", params={"user_id": 7}).json()
    assert row["status"] == "error"
    assert row["sent"] is False

    detail = client.get(f"/v1/workflows/{row['workflow_id']}").json()
    assert detail["error_message"] == "Restaurante cerrado"
    assert detail["intake_response"] is None


def test_misconfigured_intake_is_500(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ORDERBRIDGE_INTAKE_CLIENT", "http")
    monkeypatch.delenv("ORDERBRIDGE_INTAKE_URL", raising=False)

    resp = client.post("/v1/orders/from-cart", json=_order_payload())
    assert resp.status_code == 500
    assert "ORDERBRIDGE_INTAKE_URL" in resp.json()["detail"]


def test_workflow_not_found(client: TestClient) -> None:
    resp = client.get("/v1/workflows/does-not-exist")
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Workflow record not found"
