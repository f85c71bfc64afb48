def _create(client, headers, name, **fields):
    payload = {"name": name}
    payload.update(fields)
    return client.post("/api/categories", json=payload, headers=headers)


def test_create_category_defaults(client, manager_headers, manager):
    response = _create(client, manager_headers, "Oficina")
    assert response.status_code == 201
    data = response.json()
    assert data["color"] == "#2196F3"
    assert data["icon"] == "category"
    assert data["is_active"] is True
    assert data["created_by"] == manager.id
    assert data["product_count"] == 0


def test_employee_cannot_create_category(client, employee_headers):
    assert _create(client, employee_headers, "Limpieza").status_code == 403


def test_duplicate_name_is_case_insensitive(client, manager_headers):
    _create(client, manager_headers, "Herramientas")
    response = _create(client, manager_headers, "herramientas")
    assert response.status_code == 400
    assert response.json()["detail"] == "Category name already exists"


def test_invalid_color(client, manager_headers):
    response = _create(client, manager_headers, "Pinturas", color="rojo")
    assert response.status_code == 400
    assert response.json()["errors"][0]["field"] == "color"


def test_product_count_ignores_inactive_products(client, employee_headers, admin_headers, make_product, category):
    make_product(name="Tablet")
    gone = make_product(name="Radio")
    client.delete(f"/api/products/{gone['id']}", headers=admin_headers)

    response = client.get(f"/api/categories/{category.id}", headers=employee_headers)
    assert response.status_code == 200
    assert response.json()["product_count"] == 1

    listing = client.get("/api/categories", headers=employee_headers).json()
    assert [(row["name"], row["product_count"]) for row in listing] == [("Electrónica", 1)]


def test_tree_nests_subcategories(client, manager_headers, employee_headers):
    parent = _create(client, manager_headers, "Hogar").json()
    child = _create(client, manager_headers, "Cocina", parent_category=parent["id"]).json()
    _create(client, manager_headers, "Utensilios", parent_id=child["id"])

    response = client.get("/api/categories/tree", headers=employee_headers)
    assert response.status_code == 200
    tree = response.json()
    assert [node["name"] for node in tree] == ["Hogar"]
    assert tree[0]["subcategories"][0]["name"] == "Cocina"
    assert tree[0]["subcategories"][0]["subcategories"][0]["name"] == "Utensilios"


def test_parent_must_exist(client, manager_headers):
    response = _create(client, manager_headers, "Suelta", parent_id=4242)
    assert response.status_code == 404


def test_update_rejects_cycles(client, manager_headers):
    root = _create(client, manager_headers, "Raíz").json()
    child = _create(client, manager_headers, "Rama", parent_id=root["id"]).json()

    self_parent = client.put(f"/api/categories/{root['id']}", json={"parent_id": root["id"]}, headers=manager_headers)
    assert self_parent.status_code == 400

    loop = client.put(f"/api/categories/{root['id']}", json={"parent_id": child["id"]}, headers=manager_headers)
    assert loop.status_code == 400
    assert loop.json()["errors"][0]["field"] == "parent_id"


def test_update_category(client, manager_headers):
    category = _create(client, manager_headers, "Jardín").json()
    response = client.put(f"/api/categories/{category['id']}", json={
        "name": "Jardinería",
        "color": "#4CAF50",
    }, headers=manager_headers)
    assert response.status_code == 200
    assert response.json()["name"] == "Jardinería"
    assert response.json()["color"] == "#4CAF50"


def test_deactivate_is_admin_only(client, manager_headers, admin_headers, employee_headers):
    category = _create(client, manager_headers, "Temporada").json()

    assert client.delete(f"/api/categories/{category['id']}", headers=manager_headers).status_code == 403
    assert client.delete(f"/api/categories/{category['id']}", headers=admin_headers).status_code == 200

    active = client.get("/api/categories", headers=employee_headers).json()
    assert category["id"] not in [row["id"] for row in active]

    everything = client.get("/api/categories", params={"include_inactive": True}, headers=employee_headers).json()
    assert category["id"] in [row["id"] for row in everything]

    detail = client.get(f"/api/categories/{category['id']}", headers=employee_headers).json()
    assert detail["is_active"] is False


def test_unknown_category(client, employee_headers):
    assert client.get("/api/categories/999", headers=employee_headers).status_code == 404
