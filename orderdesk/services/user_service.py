# orderdesk/services/user_service.py
import logging
import uuid

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from orderdesk.core.auth import ROLE_USER, ROLES, Identity, IdentityGate
from orderdesk.core.auth_admin import AuthAdmin
from orderdesk.core.errors import (
    ConflictError,
    ForbiddenError,
    InternalError,
    InvalidArgumentError,
    NotFoundError,
)
from orderdesk.core.results import action
from orderdesk.models.user import User
from orderdesk.repositories.order_repo import OrderRepository
from orderdesk.repositories.user_repo import UserRepository
from orderdesk.schemas.common import ActionResult
from orderdesk.schemas.user import UserCreate, UserRoleUpdate, UserUpdate
from orderdesk.services.activity_log_service import (
    ACTION_ROLE_CHANGED,
    ACTION_USER_CREATED,
    ACTION_USER_DELETED,
    ACTION_USER_UPDATED,
    ActivityLogService,
    LogEntry,
    customer_display,
)
from orderdesk.services.validation import (
    MIN_NAME_LENGTH,
    MIN_PASSWORD_LENGTH,
    parse_id,
    require_email,
    require_text,
)

logger = logging.getLogger(__name__)


def _require_role(value: str | None) -> str:
    role = str(value or "").strip()
    if role not in ROLES:
        raise InvalidArgumentError("Invalid role.", allowed=list(ROLES))
    return role


class UserService:
    """
    Business logic for User.

    Responsibilities:
      - admin-only directory management
      - self-modification guards (role change, edit, delete)
      - keep Supabase Auth and the profile table in step, with a
        compensating delete when profile creation fails
    """

    def __init__(
        self,
        repo: UserRepository,
        order_repo: OrderRepository,
        log_service: ActivityLogService,
        gate: IdentityGate,
    ):
        self.repo = repo
        self.order_repo = order_repo
        self.log_service = log_service
        self.gate = gate

    # ----- Reads -----

    def get_me(self, session: Session, identity: Identity | None) -> User:
        """Return the caller's profile."""
        identity = self.gate.require_identity(identity)
        user = self.repo.get_by_id(session, identity.id)
        if user is None:
            raise NotFoundError("Profile not found.")
        return user

    def list_users(
        self,
        session: Session,
        identity: Identity | None,
        skip: int = 0,
        limit: int = 50,
    ) -> list[User]:
        """List users with pagination (admin only)."""
        self.gate.require_admin(session, identity)
        return self.repo.list(session, skip=skip, limit=limit)

    def list_customers(self, session: Session, identity: Identity | None) -> list[User]:
        """Users with role 'user' (admin only), ordered by name."""
        self.gate.require_admin(session, identity)
        return self.repo.list_by_role(session, ROLE_USER)

    # ----- Mutations -----

    @action("create user")
    def create_user(
        self,
        session: Session,
        identity: Identity | None,
        payload: UserCreate,
        auth_admin: AuthAdmin,
    ) -> ActionResult:
        """
        Create a login in Supabase Auth, then its profile row.

        If the profile write fails, the login is deleted again so no
        account exists without a profile.
        """
        identity = self.gate.require_admin(session, identity)

        name = require_text(
            payload.name,
            MIN_NAME_LENGTH,
            "Name is required.",
            "Name must be at least 2 characters.",
        )
        email = require_email(payload.email, "Invalid email.")
        password = str(payload.password or "").strip()
        if len(password) < MIN_PASSWORD_LENGTH:
            raise InvalidArgumentError("Password must be at least 6 characters.")
        role = _require_role(payload.role)

        try:
            user_id = auth_admin.create_user(email, password, name)
        except Exception:
            logger.exception("Auth create_user failed for %s", email)
            raise InternalError("Could not create the login account.")

        try:
            self.repo.upsert(
                session, User(id=user_id, name=name, email=email, role=role)
            )
        except SQLAlchemyError:
            session.rollback()
            logger.exception("Profile insert failed for %s; removing auth user", user_id)
            try:
                auth_admin.delete_user(user_id)
            except Exception:
                logger.exception("Compensating auth delete failed for %s", user_id)
            raise InternalError("Could not create the user profile.")

        self.log_service.record(
            session,
            LogEntry(
                actor_id=identity.id,
                action=ACTION_USER_CREATED,
                description=f"User created ({role})",
                customer_ref=customer_display(name),
            ),
        )
        return ActionResult.success(user_id)

    @action("update user")
    def update_user(
        self,
        session: Session,
        identity: Identity | None,
        user_id: str | uuid.UUID,
        payload: UserUpdate,
        auth_admin: AuthAdmin,
    ) -> ActionResult:
        """
        Update another user's name/email (and role if given).
        Admins edit their own account elsewhere.
        """
        identity = self.gate.require_admin(session, identity)
        target_id = parse_id(user_id, NotFoundError, "User not found.")
        if target_id == identity.id:
            raise ForbiddenError("You cannot edit your own account here.")

        name = require_text(
            payload.name,
            MIN_NAME_LENGTH,
            "Name is required.",
            "Name must be at least 2 characters.",
        )
        email = require_email(payload.email, "Invalid email.")
        role = _require_role(payload.role) if payload.role is not None else None

        user = self.repo.get_by_id(session, target_id)
        if user is None:
            raise NotFoundError("User not found.")

        try:
            auth_admin.update_user(target_id, email, name)
        except Exception:
            logger.exception("Auth update_user failed for %s", target_id)
            raise InternalError("Could not update the login account.")

        user.name = name
        user.email = email
        if role is not None:
            user.role = role
        try:
            self.repo.update(session, user)
        except SQLAlchemyError:
            session.rollback()
            logger.error(
                "Profile update failed for %s; auth login was already updated",
                target_id,
            )
            raise

        self.log_service.record(
            session,
            LogEntry(
                actor_id=identity.id,
                action=ACTION_USER_UPDATED,
                description="User updated",
                customer_ref=customer_display(name),
            ),
        )
        return ActionResult.success()

    @action("change role")
    def change_role(
        self,
        session: Session,
        identity: Identity | None,
        user_id: str | uuid.UUID,
        payload: UserRoleUpdate,
    ) -> ActionResult:
        """
        Change a user's role (admin only). Nobody can change their own role.
        """
        identity = self.gate.require_identity(identity)
        target_id = parse_id(user_id, NotFoundError, "User not found.")
        if target_id == identity.id:
            raise ForbiddenError("You cannot change your own role.")

        self.gate.require_admin(session, identity)
        role = _require_role(payload.role)

        user = self.repo.get_by_id(session, target_id)
        if user is None:
            raise NotFoundError("User not found.")

        old_role = user.role
        name = user.name
        user.role = role
        self.repo.update(session, user)

        self.log_service.record(
            session,
            LogEntry(
                actor_id=identity.id,
                action=ACTION_ROLE_CHANGED,
                description=f"Role changed: {old_role} → {role}",
                customer_ref=customer_display(name),
            ),
        )
        return ActionResult.success()

    @action("delete user")
    def delete_user(
        self,
        session: Session,
        identity: Identity | None,
        user_id: str | uuid.UUID,
        auth_admin: AuthAdmin,
    ) -> ActionResult:
        """
        Delete a login and its profile (admin only, never yourself).

        Users who still own orders are kept (Conflict).
        """
        identity = self.gate.require_admin(session, identity)
        target_id = parse_id(user_id, NotFoundError, "User not found.")
        if target_id == identity.id:
            raise ForbiddenError("You cannot delete yourself.")

        user = self.repo.get_by_id(session, target_id)
        if user is None:
            raise NotFoundError("User not found.")

        if self.order_repo.count_for_user(session, target_id) > 0:
            raise ConflictError("Cannot delete a user who has orders.")

        name = user.name

        try:
            auth_admin.delete_user(target_id)
        except Exception:
            logger.exception("Auth delete_user failed for %s", target_id)
            raise InternalError("Could not delete the login account.")

        self.repo.delete(session, user)

        self.log_service.record(
            session,
            LogEntry(
                actor_id=identity.id,
                action=ACTION_USER_DELETED,
                description="User deleted",
                customer_ref=customer_display(name),
            ),
        )
        return ActionResult.success()
