from datetime import timedelta

from ..core.security import create_access_token
from ..user.models import Role
from .conftest import PASSWORD, auth_headers, login


def test_register_returns_token_and_employee_role(client):
    response = client.post("/api/auth/register", json={
        "name": "Ana Torres",
        "email": "Ana@Inventario.com",
        "password": PASSWORD,
    })
    assert response.status_code == 200
    data = response.json()
    assert data["token"]
    assert data["user"]["email"] == "ana@inventario.com"
    assert data["user"]["role"] == "employee"

    me = client.get("/api/auth/user", headers=auth_headers(data["token"]))
    assert me.status_code == 200
    assert me.json()["name"] == "Ana Torres"
    assert "password" not in me.json()


def test_register_duplicate_email(client, employee):
    response = client.post("/api/auth/register", json={
        "name": "Otra",
        "email": employee.email.upper(),
        "password": PASSWORD,
    })
    assert response.status_code == 400
    assert response.json()["detail"] == "Email already registered"


def test_register_short_password(client):
    response = client.post("/api/auth/register", json={
        "name": "Corto",
        "email": "corto@inventario.com",
        "password": "123",
    })
    assert response.status_code == 400
    assert response.json()["errors"][0]["field"] == "password"


def test_register_invalid_email_reports_field(client):
    response = client.post("/api/auth/register", json={
        "name": "Sin correo",
        "email": "not-an-email",
        "password": PASSWORD,
    })
    assert response.status_code == 400
    body = response.json()
    assert body["detail"] == "Validation failed"
    assert "email" in [error["field"] for error in body["errors"]]


def test_register_privileged_role_requires_admin(client, employee_headers):
    payload = {"name": "Jefe", "email": "jefe@inventario.com", "password": PASSWORD, "role": "manager"}

    anonymous = client.post("/api/auth/register", json=payload)
    assert anonymous.status_code == 403

    as_employee = client.post("/api/auth/register", json=payload, headers=employee_headers)
    assert as_employee.status_code == 403


def test_admin_can_register_manager(client, admin_headers):
    response = client.post("/api/auth/register", json={
        "name": "Jefe",
        "email": "jefe@inventario.com",
        "password": PASSWORD,
        "role": "manager",
    }, headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["user"]["role"] == "manager"


def test_login_sets_last_login(client, employee):
    response = client.post("/api/auth/login", json={"email": employee.email, "password": PASSWORD})
    assert response.status_code == 200
    assert response.json()["user"]["last_login"] is not None
    assert response.json()["token_type"] == "bearer"


def test_login_failures_are_indistinguishable(client, make_user):
    make_user("activo@inventario.com")
    make_user("inactivo@inventario.com", is_active=False)

    wrong_password = client.post("/api/auth/login", json={"email": "activo@inventario.com", "password": "wrong-pass"})
    unknown_email = client.post("/api/auth/login", json={"email": "nadie@inventario.com", "password": PASSWORD})
    inactive = client.post("/api/auth/login", json={"email": "inactivo@inventario.com", "password": PASSWORD})

    for response in (wrong_password, unknown_email, inactive):
        assert response.status_code == 400
        assert response.json() == {"detail": "Invalid credentials"}


def test_token_accepted_in_either_header(client, employee):
    token = login(client, employee.email)

    bearer = client.get("/api/auth/user", headers={"Authorization": f"Bearer {token}"})
    custom = client.get("/api/auth/user", headers={"x-auth-token": token})

    assert bearer.status_code == 200
    assert custom.status_code == 200
    assert bearer.json()["id"] == custom.json()["id"] == employee.id


def test_missing_or_invalid_token(client):
    missing = client.get("/api/auth/user")
    assert missing.status_code == 401
    assert missing.json()["detail"] == "No token, access denied"

    garbage = client.get("/api/auth/user", headers={"x-auth-token": "not-a-token"})
    assert garbage.status_code == 401
    assert garbage.json()["detail"] == "Invalid token"


def test_expired_and_foreign_tokens_rejected(client, settings, employee):
    expired = create_access_token(settings, employee.id, employee.role, expires_delta=timedelta(seconds=-1))
    response = client.get("/api/auth/user", headers=auth_headers(expired))
    assert response.status_code == 401

    foreign_settings = settings.model_copy(update={"secret_key": "another-secret"})
    foreign = create_access_token(foreign_settings, employee.id, employee.role)
    response = client.get("/api/auth/user", headers=auth_headers(foreign))
    assert response.status_code == 401


def test_token_of_deactivated_user_is_rejected(client, db, make_user, admin_headers):
    user = make_user("baja@inventario.com", Role.EMPLOYEE)
    headers = auth_headers(login(client, user.email))
    assert client.get("/api/auth/user", headers=headers).status_code == 200

    assert client.delete(f"/api/users/{user.id}", headers=admin_headers).status_code == 200

    response = client.get("/api/auth/user", headers=headers)
    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid session"


def test_token_of_deleted_user_is_rejected(client, db, make_user):
    user = make_user("borrado@inventario.com")
    headers = auth_headers(login(client, user.email))

    db.delete(user)
    db.commit()

    assert client.get("/api/auth/user", headers=headers).status_code == 401
