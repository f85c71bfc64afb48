import pytest
from fastapi.testclient import TestClient

from ..catalog.models import Category
from ..core.config import Settings
from ..main import create_app
from ..user.crud import create_user
from ..user.models import Role

PASSWORD = "secret123"


@pytest.fixture
def settings(tmp_path):
    return Settings(
        secret_key="test-secret",
        database_url=f"sqlite:///{tmp_path / 'test.db'}",
    )


@pytest.fixture
def app(settings):
    app = create_app(settings)
    app.state.context.startup()
    yield app
    app.state.context.shutdown()


@pytest.fixture
def client(app):
    with TestClient(app) as client:
        yield client


@pytest.fixture
def db(app):
    session = app.state.context.session_factory()
    try:
        yield session
    finally:
        session.close()


def login(client, email, password=PASSWORD):
    response = client.post("/api/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return response.json()["token"]


def auth_headers(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def make_user(db):
    def _make_user(email, role=Role.EMPLOYEE, name=None, is_active=True):
        return create_user(db, {
            "name": name or email.split("@")[0].title(),
            "email": email,
            "password": PASSWORD,
            "role": role,
            "is_active": is_active,
        })
    return _make_user


@pytest.fixture
def admin(make_user):
    return make_user("admin@inventario.com", Role.ADMIN, name="Admin")


@pytest.fixture
def manager(make_user):
    return make_user("manager@inventario.com", Role.MANAGER, name="Manager")


@pytest.fixture
def employee(make_user):
    return make_user("employee@inventario.com", Role.EMPLOYEE, name="Employee")


@pytest.fixture
def admin_headers(client, admin):
    return auth_headers(login(client, admin.email))


@pytest.fixture
def manager_headers(client, manager):
    return auth_headers(login(client, manager.email))


@pytest.fixture
def employee_headers(client, employee):
    return auth_headers(login(client, employee.email))


@pytest.fixture
def category(db, admin):
    category = Category(name="Electrónica", description="Equipos", created_by=admin.id)
    db.add(category)
    db.commit()
    db.refresh(category)
    return category


@pytest.fixture
def make_product(client, manager_headers, category):
    """Create products through the API so the initial stock goes through the ledger."""
    def _make_product(name="Laptop", quantity=10, **fields):
        payload = {
            "name": name,
            "category": category.id,
            "price": 100.0,
            "cost": 60.0,
            "quantity": quantity,
        }
        payload.update(fields)
        response = client.post("/api/products", json=payload, headers=manager_headers)
        assert response.status_code == 201, response.text
        return response.json()
    return _make_product
