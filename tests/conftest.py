"""Pytest fixtures for orderdesk tests."""

import os
import time
import uuid
from decimal import Decimal

# Settings are read at import time; point them at throwaway values first.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SUPABASE_URL"] = "http://localhost:54321"
os.environ["SUPABASE_KEY"] = "test-anon-key"
os.environ["SUPABASE_JWT_SECRET"] = "test-jwt-secret"
os.environ.pop("SUPABASE_SERVICE_ROLE_KEY", None)

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from orderdesk.core.auth import Identity, IdentityGate, get_identity
from orderdesk.core.auth_admin import get_auth_admin
from orderdesk.database import get_session
from orderdesk.main import app
from orderdesk.models.product import Product
from orderdesk.models.user import User
from orderdesk.repositories.activity_log_repo import ActivityLogRepository
from orderdesk.repositories.order_repo import OrderRepository
from orderdesk.repositories.product_repo import ProductRepository
from orderdesk.repositories.user_repo import UserRepository
from orderdesk.services.activity_log_service import ActivityLogService
from orderdesk.services.order_service import OrderService


class FakeAuthAdmin:
    """Stands in for the Supabase Auth admin API."""

    def __init__(self):
        self.users: dict[uuid.UUID, dict] = {}
        self.deleted: list[uuid.UUID] = []
        self.fail_create = False
        self.fail_update = False
        self.fail_delete = False

    def create_user(self, email: str, password: str, name: str) -> uuid.UUID:
        if self.fail_create:
            raise RuntimeError("auth create failed")
        user_id = uuid.uuid4()
        self.users[user_id] = {"email": email, "name": name}
        return user_id

    def update_user(self, user_id: uuid.UUID, email: str, name: str) -> None:
        if self.fail_update:
            raise RuntimeError("auth update failed")
        self.users[user_id] = {"email": email, "name": name}

    def delete_user(self, user_id: uuid.UUID) -> None:
        if self.fail_delete:
            raise RuntimeError("auth delete failed")
        self.users.pop(user_id, None)
        self.deleted.append(user_id)


@pytest.fixture
def engine():
    """In-memory SQLite shared by every session of one test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


def make_user(session: Session, name: str, role: str = "user") -> User:
    user = User(
        id=uuid.uuid4(),
        email=f"{name.lower().replace(' ', '.')}-{uuid.uuid4().hex[:6]}@example.com",
        name=name,
        role=role,
    )
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


def make_product(session: Session, name: str = "Widget", price: str = "10.00") -> Product:
    product = Product(name=name, price=Decimal(price))
    session.add(product)
    session.commit()
    session.refresh(product)
    return product


def identity_of(user: User) -> Identity:
    return Identity(id=user.id, email=user.email)


def bearer_headers(user: User) -> dict[str, str]:
    """Authorization header carrying a valid access token for `user`."""
    claims = {"sub": str(user.id), "email": user.email, "exp": int(time.time()) + 3600}
    token = jwt.encode(claims, os.environ["SUPABASE_JWT_SECRET"], algorithm="HS256")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin(session):
    return make_user(session, "Ada Admin", role="admin")


@pytest.fixture
def customer(session):
    return make_user(session, "Carl Customer")


@pytest.fixture
def other_customer(session):
    return make_user(session, "Olga Other")


@pytest.fixture
def product(session):
    return make_product(session, "P1", "10.00")


@pytest.fixture
def gate():
    return IdentityGate()


def build_order_service(gate: IdentityGate, log_repo: ActivityLogRepository | None = None) -> OrderService:
    log_service = ActivityLogService(log_repo or ActivityLogRepository(), gate)
    return OrderService(
        OrderRepository(),
        ProductRepository(),
        UserRepository(),
        log_service,
        gate,
    )


@pytest.fixture
def order_service(gate):
    return build_order_service(gate)


@pytest.fixture
def auth_admin():
    return FakeAuthAdmin()


@pytest.fixture
def caller():
    """Mutable holder for the identity the API client acts as."""
    return {"identity": None}


@pytest.fixture
def client(engine, caller, auth_admin):
    """TestClient wired to the in-memory DB, a fabricated caller and fake auth."""

    def override_session():
        with Session(engine) as s:
            yield s

    app.dependency_overrides[get_session] = override_session
    app.dependency_overrides[get_identity] = lambda: caller["identity"]
    app.dependency_overrides[get_auth_admin] = lambda: auth_admin

    yield TestClient(app)

    app.dependency_overrides.clear()
