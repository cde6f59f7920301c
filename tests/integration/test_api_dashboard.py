from fastapi.testclient import TestClient

BASE = "/api/v1/dashboard"


def _create_product(client: TestClient, headers: dict, **overrides: object) -> dict:
    payload = {"name": "Ceramic Bowl", "cost": "50", "price": "100", "quantity": "10"}
    payload.update(overrides)
    response = client.post(f"{BASE}/products", json=payload, headers=headers)
    assert response.status_code == 201
    return response.json()


def test_requires_api_key(client: TestClient):
    assert client.get(f"{BASE}/").status_code == 401
    assert client.get(f"{BASE}/", headers={"X-API-Key": "wrong"}).status_code == 401


def test_product_crud(client: TestClient, alice_headers: dict):
    product = _create_product(client, alice_headers)

    response = client.get(f"{BASE}/products", headers=alice_headers)
    assert [p["id"] for p in response.json()] == [product["id"]]

    response = client.patch(
        f"{BASE}/products/{product['id']}", json={"price": "120"}, headers=alice_headers
    )
    assert response.status_code == 200
    assert response.json()["price"] == "120"
    assert response.json()["name"] == "Ceramic Bowl"

    response = client.delete(f"{BASE}/products/{product['id']}", headers=alice_headers)
    assert response.status_code == 204
    assert client.get(f"{BASE}/products", headers=alice_headers).json() == []


def test_patch_with_null_keeps_dashboard_working(client: TestClient, alice_headers: dict):
    product = _create_product(client, alice_headers)

    response = client.patch(
        f"{BASE}/products/{product['id']}",
        json={"cost": None, "quantity": None},
        headers=alice_headers,
    )
    assert response.status_code == 200
    assert response.json()["cost"] == "50"
    assert response.json()["quantity"] == "10"

    dashboard = client.get(f"{BASE}/", headers=alice_headers)
    assert dashboard.status_code == 200
    assert dashboard.json()["product_profits"][0]["margin_percent"] == "50.0"


def test_update_unknown_product_returns_404(client: TestClient, alice_headers: dict):
    response = client.patch(f"{BASE}/products/missing", json={"price": "1"}, headers=alice_headers)
    assert response.status_code == 404

    response = client.delete(f"{BASE}/products/missing", headers=alice_headers)
    assert response.status_code == 404


def test_products_are_user_scoped(client: TestClient, alice_headers: dict, bob_headers: dict):
    product = _create_product(client, alice_headers)

    assert client.get(f"{BASE}/products", headers=bob_headers).json() == []
    response = client.delete(f"{BASE}/products/{product['id']}", headers=bob_headers)
    assert response.status_code == 404


def test_invalid_sale_rejected(client: TestClient, alice_headers: dict):
    response = client.post(
        f"{BASE}/sales",
        json={"product_name": "Bowl", "quantity": "0", "unit_price": "10"},
        headers=alice_headers,
    )
    assert response.status_code == 422


def test_dashboard_caches_until_data_changes(client: TestClient, alice_headers: dict):
    _create_product(client, alice_headers, quantity="0")

    first = client.get(f"{BASE}/", headers=alice_headers)
    assert first.status_code == 200
    body = first.json()
    assert body["recommendations_cached"] is False
    assert body["kpis"]["total_products"] == 1
    assert "restock-empty" in [r["id"] for r in body["recommendations"]["immediate"]]

    second = client.get(f"{BASE}/", headers=alice_headers).json()
    assert second["recommendations_cached"] is True
    assert second["recommendations"] == body["recommendations"]

    response = client.post(
        f"{BASE}/sales",
        json={
            "product_name": "Ceramic Bowl",
            "quantity": "2",
            "unit_price": "100",
            "sale_date": "2024-05-18",
        },
        headers=alice_headers,
    )
    assert response.status_code == 201

    third = client.get(f"{BASE}/", headers=alice_headers).json()
    assert third["recommendations_cached"] is False
    assert third["kpis"]["total_revenue"] == "200"
    assert third["sales_chart"] == [{"day": "2024-05-18", "units": "2", "revenue": "200"}]


def test_metric_write_invalidates_dashboard(client: TestClient, alice_headers: dict):
    client.get(f"{BASE}/", headers=alice_headers)

    response = client.post(
        f"{BASE}/metrics",
        json={"metric_type": "website_visits", "value": "42"},
        headers=alice_headers,
    )
    assert response.status_code == 201

    assert client.get(f"{BASE}/", headers=alice_headers).json()["recommendations_cached"] is False


def test_import_documents(client: TestClient, alice_headers: dict):
    response = client.post(
        f"{BASE}/import",
        json={
            "products": [
                {"productName": "Scarf", "material_cost": 120, "sellingPrice": "300", "qty": 4}
            ],
            "sales": [
                {"name": "Scarf", "quantity": 1, "price_per_unit": 300, "date": "2024-05-01"}
            ],
            "metrics": [{"type": "website_visits", "value": 10, "date_recorded": "2024-05-02"}],
        },
        headers=alice_headers,
    )

    assert response.status_code == 201
    assert response.json() == {"products": 1, "sales": 1, "metrics": 1}

    products = client.get(f"{BASE}/products", headers=alice_headers).json()
    assert products[0]["name"] == "Scarf"
    assert products[0]["price"] == "300"

    kpis = client.get(f"{BASE}/", headers=alice_headers).json()["kpis"]
    assert kpis["total_revenue"] == "300"


def test_repeated_import_with_ids_does_not_duplicate(
    sqlite_client: TestClient, alice_headers: dict
):
    documents = {
        "products": [{"id": "doc-1", "name": "Scarf", "price": 300, "quantity": 4}],
        "sales": [{"id": "sale-1", "product_name": "Scarf", "quantity": 1, "price": 300}],
    }

    for _ in range(2):
        response = sqlite_client.post(f"{BASE}/import", json=documents, headers=alice_headers)
        assert response.status_code == 201

    products = sqlite_client.get(f"{BASE}/products", headers=alice_headers).json()
    assert [p["id"] for p in products] == ["doc-1"]

    response = sqlite_client.patch(
        f"{BASE}/products/doc-1", json={"quantity": "2"}, headers=alice_headers
    )
    assert response.status_code == 200
    kpis = sqlite_client.get(f"{BASE}/", headers=alice_headers).json()["kpis"]
    assert kpis["total_revenue"] == "300"


def test_dashboard_is_rate_limited(limited_client: TestClient, alice_headers: dict):
    for _ in range(2):
        assert limited_client.get(f"{BASE}/", headers=alice_headers).status_code == 200

    assert limited_client.get(f"{BASE}/", headers=alice_headers).status_code == 429
    # Günstige Endpunkte sind nicht limitiert
    assert limited_client.get(f"{BASE}/products", headers=alice_headers).status_code == 200


def test_import_is_rate_limited(limited_client: TestClient, alice_headers: dict):
    statuses = [
        limited_client.post(f"{BASE}/import", json={}, headers=alice_headers).status_code
        for _ in range(3)
    ]

    assert statuses == [201, 201, 429]
