"""Tests for the user directory: role changes, guards and auth sync."""

import logging
import uuid

import pytest
from sqlalchemy.exc import OperationalError
from sqlmodel import select

from conftest import identity_of
from orderdesk.models.activity_log import ActivityLog
from orderdesk.models.user import User
from orderdesk.repositories.activity_log_repo import ActivityLogRepository
from orderdesk.repositories.order_repo import OrderRepository
from orderdesk.repositories.user_repo import UserRepository
from orderdesk.schemas.order import OrderCreate
from orderdesk.schemas.user import UserCreate, UserRoleUpdate, UserUpdate
from orderdesk.services.activity_log_service import ActivityLogService
from orderdesk.services.user_service import UserService

API = "/api/v1"


class BrokenUpsertRepository(UserRepository):
    def upsert(self, session, user):
        raise OperationalError("INSERT INTO users", {}, Exception("profile store down"))


def build_user_service(gate, repo=None):
    return UserService(
        repo or UserRepository(),
        OrderRepository(),
        ActivityLogService(ActivityLogRepository(), gate),
        gate,
    )


@pytest.fixture
def user_service(gate):
    return build_user_service(gate)


class TestChangeRole:
    @pytest.mark.parametrize("role", ["admin", "user"])
    def test_self_change_forbidden(self, session, user_service, admin, role):
        result = user_service.change_role(
            session, identity_of(admin), str(admin.id), UserRoleUpdate(role=role)
        )
        assert result.ok is False
        assert result.code == "forbidden"
        assert result.error == "You cannot change your own role."

    def test_admin_promotes(self, session, user_service, admin, customer):
        result = user_service.change_role(
            session, identity_of(admin), str(customer.id), UserRoleUpdate(role="admin")
        )

        assert result.ok is True
        session.expire_all()
        assert session.get(User, customer.id).role == "admin"

        entry = session.exec(select(ActivityLog)).one()
        assert entry.action == "ROLE_CHANGED"
        assert entry.description == "Role changed: user → admin"
        assert entry.order_id is None

    def test_non_admin_forbidden(self, session, user_service, customer, other_customer):
        result = user_service.change_role(
            session, identity_of(customer), str(other_customer.id), UserRoleUpdate(role="admin")
        )
        assert result.code == "forbidden"

    def test_invalid_role(self, session, user_service, admin, customer):
        result = user_service.change_role(
            session, identity_of(admin), str(customer.id), UserRoleUpdate(role="owner")
        )
        assert result.code == "invalid_argument"
        assert result.allowed == ["admin", "user"]

    def test_unknown_user(self, session, user_service, admin):
        result = user_service.change_role(
            session, identity_of(admin), str(uuid.uuid4()), UserRoleUpdate(role="admin")
        )
        assert result.code == "not_found"


class TestCreateUser:
    def test_creates_login_and_profile(self, session, user_service, admin, auth_admin):
        result = user_service.create_user(
            session,
            identity_of(admin),
            UserCreate(name="Nina New", email=" Nina@Example.com ", password="secret1"),
            auth_admin,
        )

        assert result.ok is True
        assert result.id in auth_admin.users
        profile = session.get(User, result.id)
        assert profile.email == "nina@example.com"
        assert profile.role == "user"

    def test_profile_failure_rolls_back_login(self, session, gate, admin, auth_admin):
        service = build_user_service(gate, repo=BrokenUpsertRepository())

        result = service.create_user(
            session,
            identity_of(admin),
            UserCreate(name="Nina New", email="nina@example.com", password="secret1"),
            auth_admin,
        )

        assert result.ok is False
        assert result.code == "internal"
        assert auth_admin.users == {}
        assert len(auth_admin.deleted) == 1

    def test_auth_failure(self, session, user_service, admin, auth_admin):
        auth_admin.fail_create = True
        result = user_service.create_user(
            session,
            identity_of(admin),
            UserCreate(name="Nina New", email="nina@example.com", password="secret1"),
            auth_admin,
        )
        assert result.code == "internal"
        assert session.exec(select(User).where(User.name == "Nina New")).first() is None

    @pytest.mark.parametrize(
        "payload",
        [
            {"name": "N", "email": "n@example.com", "password": "secret1"},
            {"name": "Nina", "email": "not-an-email", "password": "secret1"},
            {"name": "Nina", "email": "nina@", "password": "secret1"},
            {"name": "Nina", "email": "nina@example", "password": "secret1"},
            {"name": "Nina", "email": "ni@na@example.com", "password": "secret1"},
            {"name": "Nina", "email": "n@example.com", "password": "123"},
            {"name": "Nina", "email": "n@example.com", "password": "secret1", "role": "root"},
        ],
    )
    def test_invalid(self, session, user_service, admin, auth_admin, payload):
        result = user_service.create_user(
            session, identity_of(admin), UserCreate(**payload), auth_admin
        )
        assert result.code == "invalid_argument"
        assert auth_admin.users == {}

    def test_non_admin(self, session, user_service, customer, auth_admin):
        result = user_service.create_user(
            session,
            identity_of(customer),
            UserCreate(name="Nina New", email="nina@example.com", password="secret1"),
            auth_admin,
        )
        assert result.code == "forbidden"


class TestUpdateUser:
    def test_updates_profile_and_login(self, session, user_service, admin, customer, auth_admin):
        result = user_service.update_user(
            session,
            identity_of(admin),
            str(customer.id),
            UserUpdate(name="Carl C.", email="carl@example.com", role="admin"),
            auth_admin,
        )

        assert result.ok is True
        assert auth_admin.users[customer.id] == {"email": "carl@example.com", "name": "Carl C."}
        session.expire_all()
        updated = session.get(User, customer.id)
        assert updated.name == "Carl C."
        assert updated.role == "admin"

    def test_self_edit_forbidden(self, session, user_service, admin, auth_admin):
        result = user_service.update_user(
            session,
            identity_of(admin),
            str(admin.id),
            UserUpdate(name="Ada", email="ada@example.com"),
            auth_admin,
        )
        assert result.code == "forbidden"

    def test_profile_clash_after_login_update(
        self, session, user_service, admin, customer, other_customer, auth_admin, caplog
    ):
        customer_id = customer.id
        taken = other_customer.email
        caplog.set_level(logging.ERROR, logger="orderdesk.services.user_service")

        result = user_service.update_user(
            session,
            identity_of(admin),
            str(customer_id),
            UserUpdate(name="Carl C.", email=taken),
            auth_admin,
        )

        assert result.code == "internal"
        # The login was changed before the profile write failed
        assert auth_admin.users[customer_id]["email"] == taken
        assert any(
            r.levelno == logging.ERROR and str(customer_id) in r.getMessage()
            for r in caplog.records
        )
        assert session.exec(select(ActivityLog)).first() is None


class TestDeleteUser:
    def test_delete_self_forbidden(self, session, user_service, admin, auth_admin):
        result = user_service.delete_user(session, identity_of(admin), str(admin.id), auth_admin)
        assert result.code == "forbidden"
        assert result.error == "You cannot delete yourself."
        assert auth_admin.deleted == []

    def test_delete_user(self, session, user_service, admin, other_customer, auth_admin):
        user_id = other_customer.id

        result = user_service.delete_user(session, identity_of(admin), str(user_id), auth_admin)

        assert result.ok is True
        assert auth_admin.deleted == [user_id]
        session.expire_all()
        assert session.get(User, user_id) is None
        entry = session.exec(select(ActivityLog)).one()
        assert entry.action == "USER_DELETED"
        assert entry.customer_ref == "Olga Other"

    def test_delete_user_with_orders_conflicts(
        self, session, user_service, order_service, admin, customer, product, auth_admin
    ):
        order_service.create_order(
            session,
            identity_of(customer),
            OrderCreate(product_id=str(product.id), quantity=1, address="Main St 42"),
        )

        result = user_service.delete_user(session, identity_of(admin), str(customer.id), auth_admin)

        assert result.code == "conflict"
        assert auth_admin.deleted == []


class TestUserEndpoints:
    def test_me(self, client, caller, customer):
        caller["identity"] = identity_of(customer)
        response = client.get(f"{API}/users/me")
        assert response.status_code == 200
        assert response.json()["name"] == "Carl Customer"

    def test_customers_excludes_admins(self, client, caller, admin, customer, other_customer):
        caller["identity"] = identity_of(admin)

        response = client.get(f"{API}/users/customers")

        assert response.status_code == 200
        assert [c["name"] for c in response.json()] == ["Carl Customer", "Olga Other"]

    def test_change_own_role_via_api(self, client, caller, admin):
        caller["identity"] = identity_of(admin)
        response = client.patch(f"{API}/users/{admin.id}/role", json={"role": "user"})
        assert response.status_code == 403

    def test_create_user_via_api(self, client, caller, admin, auth_admin):
        caller["identity"] = identity_of(admin)

        response = client.post(
            f"{API}/users",
            json={"name": "Nina New", "email": "nina@example.com", "password": "secret1"},
        )

        assert response.status_code == 201
        assert uuid.UUID(response.json()["id"]) in auth_admin.users
