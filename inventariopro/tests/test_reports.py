from datetime import timedelta

import pytest
from httpx import ASGITransport, AsyncClient

from ..core.database import utcnow
from ..inventory.models import Movement
from ..reports.crud import dashboard_stats
from .conftest import PASSWORD


def _sell(client, headers, product_id, quantity, cost=None):
    payload = {"product_id": product_id, "type": "salida", "quantity": quantity, "reason": "venta"}
    if cost is not None:
        payload["cost"] = cost
    response = client.post("/api/inventory/movements", json=payload, headers=headers)
    assert response.status_code == 201, response.text


def test_dashboard_overview(client, admin_headers, employee_headers, make_product):
    make_product(name="Silla", quantity=20)
    make_product(name="Mesa", quantity=2)
    make_product(name="Lámpara", quantity=5)
    gone = make_product(name="Biombo", quantity=1)
    client.delete(f"/api/products/{gone['id']}", headers=admin_headers)

    response = client.get("/api/reports/dashboard", headers=employee_headers)
    assert response.status_code == 200
    overview = response.json()["overview"]
    assert overview["total_products"] == 3
    # quantity <= min_stock (5) counts as low
    assert overview["low_stock_products"] == 2
    assert overview["total_users"] == 3
    assert overview["recent_movements"] == 4
    assert overview["inventory_value"] == 2700.0

    categories = response.json()["category_stats"]
    assert [(row["name"], row["count"]) for row in categories] == [("Electrónica", 3)]


def test_top_products_ranked_by_recent_sales(client, db, employee, employee_headers, make_product):
    silla = make_product(name="Silla", quantity=50)
    mesa = make_product(name="Mesa", quantity=50)
    _sell(client, employee_headers, silla["id"], 3, cost=100)
    _sell(client, employee_headers, mesa["id"], 5, cost=90)
    _sell(client, employee_headers, silla["id"], 4, cost=100)

    # A large sale outside the window must not count
    db.add(Movement(
        product_id=mesa["id"],
        type="salida",
        quantity=30,
        previous_quantity=42,
        new_quantity=12,
        reason="venta",
        user_id=employee.id,
        cost=90,
        created_at=utcnow() - timedelta(days=45),
    ))
    db.commit()

    stats = dashboard_stats(db)
    top = [(row["name"], row["total_sold"]) for row in stats["top_products"]]
    assert top == [("Silla", 7), ("Mesa", 5)]
    assert stats["top_products"][0]["total_revenue"] == 700.0

    wider = dashboard_stats(db, top_days=60)
    assert wider["top_products"][0]["name"] == "Mesa"
    assert wider["top_products"][0]["total_sold"] == 35


def test_recent_movements_window(db, employee, make_product):
    product = make_product(name="Estante", quantity=10)
    db.add(Movement(
        product_id=product["id"],
        type="entrada",
        quantity=1,
        previous_quantity=9,
        new_quantity=10,
        reason="compra",
        user_id=employee.id,
        created_at=utcnow() - timedelta(days=10),
    ))
    db.commit()

    assert dashboard_stats(db)["overview"]["recent_movements"] == 1
    assert dashboard_stats(db, recent_days=30)["overview"]["recent_movements"] == 2


def test_inventory_report(client, manager_headers, employee_headers, make_product):
    make_product(name="Cuaderno", quantity=10, price=2.5)
    make_product(name="Bolígrafo", quantity=1, price=1.0)

    assert client.get("/api/reports/inventory", headers=employee_headers).status_code == 403

    response = client.get("/api/reports/inventory", headers=manager_headers)
    assert response.status_code == 200
    report = response.json()
    assert report["summary"] == {"total_products": 2, "low_stock_items": 1, "total_value": 26.0}
    assert [row["name"] for row in report["products"]] == ["Bolígrafo", "Cuaderno"]
    assert report["products"][0]["category"] == "Electrónica"

    low = client.get("/api/reports/inventory", params={"low_stock": True}, headers=manager_headers).json()
    assert [row["name"] for row in low["products"]] == ["Bolígrafo"]


def test_movements_report_filters(client, manager_headers, employee_headers, make_product):
    pala = make_product(name="Pala", quantity=10)
    make_product(name="Rastrillo", quantity=4)
    _sell(client, employee_headers, pala["id"], 2)

    response = client.get("/api/reports/movements", headers=manager_headers)
    assert response.status_code == 200
    report = response.json()
    assert report["total"] == 3
    assert report["items"][0]["type"] == "salida"
    assert report["items"][0]["user"]["email"] == "employee@inventario.com"
    assert report["items"][0]["product"]["sku"] == pala["sku"]

    salidas = client.get("/api/reports/movements", params={"type": "salida"}, headers=manager_headers).json()
    assert salidas["total"] == 1

    by_product = client.get("/api/reports/movements", params={"product": pala["id"]}, headers=manager_headers).json()
    assert by_product["total"] == 2

    today = utcnow().date().isoformat()
    same_day = client.get(
        "/api/reports/movements", params={"start_date": today, "end_date": today}, headers=manager_headers
    ).json()
    assert same_day["total"] == 3

    past = client.get("/api/reports/movements", params={"end_date": "2000-01-01"}, headers=manager_headers).json()
    assert past["total"] == 0


def test_movements_report_bad_date(client, manager_headers):
    response = client.get("/api/reports/movements", params={"start_date": "ayer"}, headers=manager_headers)
    assert response.status_code == 400
    assert response.json()["errors"][0]["field"] == "start_date"


def test_movements_report_requires_manager(client, employee_headers):
    assert client.get("/api/reports/movements", headers=employee_headers).status_code == 403


@pytest.mark.asyncio
async def test_dashboard_over_async_client(app, employee):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        login_response = await client.post("/api/auth/login", json={
            "email": employee.email,
            "password": PASSWORD
        })
        assert login_response.status_code == 200
        token = login_response.json().get("token")

        response = await client.get("/api/reports/dashboard", headers={"x-auth-token": token})
        assert response.status_code == 200
        assert response.json()["overview"]["total_users"] == 1
