from ..user.models import Role
from .conftest import PASSWORD, auth_headers, login


def test_list_users_admin_only(client, admin_headers, employee_headers, manager):
    assert client.get("/api/users", headers=employee_headers).status_code == 403

    response = client.get("/api/users", headers=admin_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 3
    assert all("password" not in user for user in data["items"])

    managers = client.get("/api/users", params={"role": "manager"}, headers=admin_headers).json()
    assert [user["id"] for user in managers["items"]] == [manager.id]


def test_admin_creates_user(client, admin_headers):
    response = client.post("/api/users", json={
        "name": "Luis",
        "email": "luis@inventario.com",
        "password": PASSWORD,
        "role": "manager",
    }, headers=admin_headers)
    assert response.status_code == 201
    assert response.json()["role"] == "manager"
    assert login(client, "luis@inventario.com")


def test_user_reads_self_but_not_others(client, employee, employee_headers, manager, admin_headers):
    assert client.get(f"/api/users/{employee.id}", headers=employee_headers).status_code == 200
    assert client.get(f"/api/users/{manager.id}", headers=employee_headers).status_code == 403
    assert client.get(f"/api/users/{employee.id}", headers=admin_headers).status_code == 200
    assert client.get("/api/users/9999", headers=admin_headers).status_code == 404


def test_user_updates_own_profile(client, employee, employee_headers):
    response = client.put(f"/api/users/{employee.id}", json={
        "name": "Empleado Uno",
        "email": "empleado.uno@inventario.com",
    }, headers=employee_headers)
    assert response.status_code == 200
    assert response.json()["email"] == "empleado.uno@inventario.com"


def test_only_admin_changes_role(client, employee, employee_headers, admin_headers):
    payload = {"name": employee.name, "email": employee.email, "role": "admin"}

    response = client.put(f"/api/users/{employee.id}", json=payload, headers=employee_headers)
    assert response.status_code == 403

    response = client.put(f"/api/users/{employee.id}", json=payload, headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["role"] == "admin"


def test_update_email_conflict(client, employee, employee_headers, manager):
    response = client.put(f"/api/users/{employee.id}", json={
        "name": employee.name,
        "email": manager.email,
    }, headers=employee_headers)
    assert response.status_code == 400


def test_change_own_password(client, employee, employee_headers):
    wrong = client.put(f"/api/users/{employee.id}/password", json={
        "current_password": "nope-nope",
        "new_password": "nuevo123",
    }, headers=employee_headers)
    assert wrong.status_code == 400
    assert wrong.json()["errors"][0]["field"] == "current_password"

    response = client.put(f"/api/users/{employee.id}/password", json={
        "current_password": PASSWORD,
        "new_password": "nuevo123",
    }, headers=employee_headers)
    assert response.status_code == 200
    assert login(client, employee.email, "nuevo123")


def test_admin_resets_password(client, employee, admin_headers):
    response = client.put(f"/api/users/{employee.id}/password", json={"new_password": "reset123"}, headers=admin_headers)
    assert response.status_code == 200
    assert login(client, employee.email, "reset123")


def test_admin_cannot_deactivate_self(client, admin, admin_headers):
    response = client.delete(f"/api/users/{admin.id}", headers=admin_headers)
    assert response.status_code == 400

    response = client.put(f"/api/users/{admin.id}", json={
        "name": admin.name,
        "email": admin.email,
        "is_active": False,
    }, headers=admin_headers)
    assert response.status_code == 400


def test_deactivated_user_cannot_login(client, make_user, admin_headers, manager_headers):
    user = make_user("temporal@inventario.com", Role.EMPLOYEE)
    assert client.delete(f"/api/users/{user.id}", headers=manager_headers).status_code == 403
    assert client.delete(f"/api/users/{user.id}", headers=admin_headers).status_code == 200

    response = client.post("/api/auth/login", json={"email": user.email, "password": PASSWORD})
    assert response.status_code == 400

    listing = client.get("/api/users", params={"is_active": False}, headers=admin_headers).json()
    assert [row["email"] for row in listing["items"]] == ["temporal@inventario.com"]


def test_permissions_follow_current_role(client, manager, admin_headers):
    headers = auth_headers(login(client, manager.email))
    client.put(f"/api/users/{manager.id}", json={
        "name": manager.name,
        "email": manager.email,
        "role": "employee",
    }, headers=admin_headers)

    response = client.post("/api/categories", json={"name": "Nueva"}, headers=headers)
    assert response.status_code == 403
