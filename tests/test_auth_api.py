from inventory_tracker.services import auth_service

from tests.conftest import ADMIN_EMAIL

AUTH = "/api/v1/auth"


def test_signup_creates_staff_user(client):
    resp = client.post(AUTH + "/signup", json={"name": "Dana", "email": "Dana@Example.com", "password": "secret123"})

    assert resp.status_code == 201
    body = resp.json()
    assert body["user"]["email"] == "dana@example.com"
    assert body["user"]["role"] == "staff"
    assert body["accessToken"]
    assert resp.cookies.get("token") == body["accessToken"]


def test_signup_duplicate_email(client):
    payload = {"name": "Dana", "email": "dana@example.com", "password": "secret123"}
    client.post(AUTH + "/signup", json=payload)
    assert client.post(AUTH + "/signup", json=payload).status_code == 409


def test_signup_short_password(client):
    resp = client.post(AUTH + "/signup", json={"name": "Dana", "email": "dana@example.com", "password": "123"})
    assert resp.status_code == 422


def test_login_and_me(client):
    resp = client.post(AUTH + "/login", json={"email": ADMIN_EMAIL, "password": "admin-pass"})
    assert resp.status_code == 200
    token = resp.json()["accessToken"]

    client.cookies.clear()
    me = client.get(AUTH + "/me", headers={"Authorization": f"Bearer {token}"})

    assert me.status_code == 200
    assert me.json()["role"] == "admin"


def test_login_wrong_password(client):
    resp = client.post(AUTH + "/login", json={"email": ADMIN_EMAIL, "password": "nope"})
    assert resp.status_code == 401


def test_refresh_issues_new_access_token(client, admin):
    resp = client.post(AUTH + "/refresh", json={"refreshToken": auth_service.create_refresh_token(admin)})

    assert resp.status_code == 200
    payload = auth_service.decode_token(resp.json()["accessToken"])
    assert payload["sub"] == admin.id


def test_refresh_rejects_access_token(client, admin):
    resp = client.post(AUTH + "/refresh", json={"refreshToken": auth_service.create_access_token(admin)})
    assert resp.status_code == 401


def test_cookie_auth_and_logout(client):
    client.post(AUTH + "/login", json={"email": ADMIN_EMAIL, "password": "admin-pass"})
    assert client.get(AUTH + "/me").status_code == 200

    client.post(AUTH + "/logout")
    client.cookies.clear()

    assert client.get(AUTH + "/me").status_code == 401


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_inventory_report(client, admin_headers, widget):
    body = client.get("/api/v1/reports/inventory", headers=admin_headers).json()
    assert body["total_products"] == 1
    assert body["status_counts"] == {"In Stock": 1, "Out of Stock": 0}


def test_history_stats_report(client, admin_headers, widget):
    resp = client.get("/api/v1/reports/history-stats", params={"productId": widget["id"]}, headers=admin_headers)
    assert resp.json() == {"totalChanges": 1, "totalIncrease": 10, "totalDecrease": 0, "avgChangeAmount": 10.0}
