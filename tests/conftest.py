import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, create_engine

from app.main import app
from core.database import create_db_and_tables, get_session
from core.security import hash_password
from models.categories import Category
from models.enums import TableKind, TableStatus, UserRole
from models.menu_items import MenuItem
from models.special_dishes import SpecialDish
from models.tables import Table
from models.users import User

PASSWORD = "secreto123"
PASSWORD_HASH = hash_password(PASSWORD)


# ─── Base de datos en memoria ──────────────────────────────────────────────────
@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_db_and_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def client(session):
    def get_session_override():
        return session

    app.dependency_overrides[get_session] = get_session_override
    yield TestClient(app)
    app.dependency_overrides.clear()


# ─── Fábricas ──────────────────────────────────────────────────────────────────
@pytest.fixture
def make_table(session):
    counter = {"n": 0}

    def _make(number=None, status=TableStatus.AVAILABLE, kind=TableKind.TABLE, capacity=4, **kwargs):
        counter["n"] += 1
        number = number or str(counter["n"])
        table = Table(number=number, name=f"Mesa {number}", capacity=capacity, kind=kind, status=status, **kwargs)
        session.add(table)
        session.commit()
        session.refresh(table)
        return table

    return _make


@pytest.fixture
def category(session):
    category = Category(name="Platos fuertes")
    session.add(category)
    session.commit()
    session.refresh(category)
    return category


@pytest.fixture
def make_menu_item(session):
    def _make(name="Enchiladas", price=8500.0, available=True, **kwargs):
        item = MenuItem(name=name, price=price, available=available, **kwargs)
        session.add(item)
        session.commit()
        session.refresh(item)
        return item

    return _make


@pytest.fixture
def make_special(session):
    def _make(name="Mole del día", price=12000.0, available=True, **kwargs):
        dish = SpecialDish(name=name, price=price, available=available, **kwargs)
        session.add(dish)
        session.commit()
        session.refresh(dish)
        return dish

    return _make


# ─── Usuarios y autenticación ──────────────────────────────────────────────────
@pytest.fixture
def users(session):
    created = {}
    for role in UserRole:
        user = User(name=role.value.title(), username=role.value, password=PASSWORD_HASH, role=role)
        session.add(user)
        created[role] = user
    session.commit()
    for user in created.values():
        session.refresh(user)
    return created


def _login(client, username, password=PASSWORD):
    r = client.post("/api/auth/login", json={"username": username, "password": password})
    assert r.status_code == 200, r.text
    return {"Authorization": f"Bearer {r.json()['access_token']}"}


@pytest.fixture
def login(client, users):
    def _do(username, password=PASSWORD):
        return _login(client, username, password)

    return _do


@pytest.fixture
def admin_headers(client, users):
    return _login(client, "admin")


@pytest.fixture
def waiter_headers(client, users):
    return _login(client, "waiter")


@pytest.fixture
def kitchen_headers(client, users):
    return _login(client, "kitchen")
