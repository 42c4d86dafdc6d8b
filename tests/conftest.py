import pytest
from fastapi.testclient import TestClient

from inventory_tracker.config import Settings
from inventory_tracker.database import Database
from inventory_tracker.main import create_app
from inventory_tracker.models.user import User, UserRole
from inventory_tracker.services import auth_service

ADMIN_EMAIL = "admin@example.com"


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {auth_service.create_access_token(user)}"}


# --- Service-level fixtures ---

@pytest.fixture
def database():
    database = Database("sqlite://")
    database.create_all()
    yield database
    database.drop_all()
    database.dispose()


@pytest.fixture
def db(database):
    session = database.session()
    yield session
    session.close()


@pytest.fixture
def clerk(db):
    return auth_service.create_user(db, "Stock Clerk", "clerk@example.com", "secret123")


@pytest.fixture
def manager(db):
    return auth_service.create_user(db, "Store Manager", "manager@example.com", "secret123")


# --- HTTP fixtures ---

@pytest.fixture
def app():
    return create_app(
        Settings(
            DATABASE_URL="sqlite://",
            DEFAULT_ADMIN_EMAIL=ADMIN_EMAIL,
            DEFAULT_ADMIN_PASSWORD="admin-pass",
            LOG_LEVEL="WARNING",
        )
    )


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def api_db(client):
    session = client.app.state.database.session()
    yield session
    session.close()


@pytest.fixture
def admin(api_db):
    return api_db.query(User).filter(User.email == ADMIN_EMAIL).one()


@pytest.fixture
def admin_headers(admin):
    return auth_headers(admin)


@pytest.fixture
def viewer_headers(api_db):
    viewer = auth_service.create_user(api_db, "Auditor", "auditor@example.com", "secret123", role=UserRole.VIEWER.value)
    return auth_headers(viewer)


@pytest.fixture
def widget(client, admin_headers):
    resp = client.post(
        "/api/v1/products",
        json={"name": "Widget", "unit": "pcs", "category": "Tools", "brand": "Acme", "stock": 10},
        headers=admin_headers,
    )
    assert resp.status_code == 201
    return resp.json()["product"]
