from sqlmodel import select

from models.enums import UserRole
from models.users import User
from services.bootstrap import ensure_admin_user

PASSWORD = "secreto123"


def test_login_returns_role(client, users):
    r = client.post("/api/auth/login", json={"username": "kitchen", "password": PASSWORD})
    assert r.status_code == 200
    body = r.json()
    assert body["token_type"] == "bearer"
    assert body["role"] == "kitchen"


def test_bad_credentials(client, users):
    r = client.post("/api/auth/login", json={"username": "waiter", "password": "otra-clave"})
    assert r.status_code == 401
    r = client.post("/api/auth/login", json={"username": "nadie", "password": PASSWORD})
    assert r.status_code == 401


def test_form_login(client, users):
    r = client.post("/api/auth/token", data={"username": "admin", "password": PASSWORD})
    assert r.status_code == 200
    assert r.json()["role"] == "admin"


def test_me(client, waiter_headers):
    r = client.get("/api/auth/me", headers=waiter_headers)
    assert r.status_code == 200
    assert r.json()["username"] == "waiter"
    assert "password" not in r.json()


def test_logout_invalidates_token(client, waiter_headers):
    assert client.post("/api/auth/logout", headers=waiter_headers).status_code == 204
    assert client.get("/api/auth/me", headers=waiter_headers).status_code == 401


def test_new_login_invalidates_previous_token(client, login):
    old = login("waiter")
    new = login("waiter")
    assert client.get("/api/auth/me", headers=old).status_code == 401
    assert client.get("/api/auth/me", headers=new).status_code == 200


def test_inactive_user_cannot_login(client, users, session):
    user = users[UserRole.WAITER]
    user.active = False
    session.add(user)
    session.commit()
    r = client.post("/api/auth/login", json={"username": "waiter", "password": PASSWORD})
    assert r.status_code == 403


def test_users_admin_only(client, admin_headers, waiter_headers):
    assert client.get("/api/users", headers=waiter_headers).status_code == 403

    payload = {"name": "Ana", "username": "ana", "password": "clave-segura", "role": "kitchen"}
    r = client.post("/api/users", json=payload, headers=admin_headers)
    assert r.status_code == 201
    assert r.json()["role"] == "kitchen"
    assert client.post("/api/users", json=payload, headers=admin_headers).status_code == 409


def test_ensure_admin_user(engine, session):
    assert ensure_admin_user(engine, "jefe", "clave-segura") is True
    assert ensure_admin_user(engine, "jefe", "clave-segura") is False
    admin = session.exec(select(User).where(User.username == "jefe")).one()
    assert admin.role == UserRole.ADMIN
