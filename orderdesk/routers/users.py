# orderdesk/routers/users.py
from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from orderdesk.core.auth import Identity, IdentityGate, get_identity
from orderdesk.core.auth_admin import AuthAdmin, get_auth_admin
from orderdesk.core.results import as_response
from orderdesk.database import get_session
from orderdesk.repositories.activity_log_repo import ActivityLogRepository
from orderdesk.repositories.order_repo import OrderRepository
from orderdesk.repositories.user_repo import UserRepository
from orderdesk.schemas.common import ActionResult
from orderdesk.schemas.user import (
    CustomerOption,
    UserCreate,
    UserRead,
    UserRoleUpdate,
    UserUpdate,
)
from orderdesk.services.activity_log_service import ActivityLogService
from orderdesk.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["Users"])

gate = IdentityGate()
service = UserService(
    UserRepository(),
    OrderRepository(),
    ActivityLogService(ActivityLogRepository(), gate),
    gate,
)


# -------- Self profile --------


@router.get("/me", response_model=UserRead)
def read_me(
    session: Session = Depends(get_session),
    identity: Identity | None = Depends(get_identity),
):
    """
    Return the authenticated user's profile.
    """
    return service.get_me(session, identity)


# -------- Admin endpoints --------


@router.get("", response_model=list[UserRead])
def list_users(
    session: Session = Depends(get_session),
    identity: Identity | None = Depends(get_identity),
    skip: int = 0,
    limit: int = 50,
):
    """
    List all users (admin only).
    """
    return service.list_users(session, identity, skip, limit)


@router.get("/customers", response_model=list[CustomerOption])
def list_customers(
    session: Session = Depends(get_session),
    identity: Identity | None = Depends(get_identity),
):
    """
    Users selectable as the customer of an order (admin only).
    """
    return service.list_customers(session, identity)


@router.post("", response_model=ActionResult, status_code=status.HTTP_201_CREATED)
def create_user(
    payload: UserCreate,
    session: Session = Depends(get_session),
    identity: Identity | None = Depends(get_identity),
    auth_admin: AuthAdmin = Depends(get_auth_admin),
):
    """
    Create a login and profile (admin only).
    """
    result = service.create_user(session, identity, payload, auth_admin)
    return as_response(result, success_status=status.HTTP_201_CREATED)


@router.patch("/{user_id}", response_model=ActionResult)
def update_user(
    user_id: str,
    payload: UserUpdate,
    session: Session = Depends(get_session),
    identity: Identity | None = Depends(get_identity),
    auth_admin: AuthAdmin = Depends(get_auth_admin),
):
    """
    Update another user's name/email/role (admin only).
    """
    return as_response(service.update_user(session, identity, user_id, payload, auth_admin))


@router.patch("/{user_id}/role", response_model=ActionResult)
def change_role(
    user_id: str,
    payload: UserRoleUpdate,
    session: Session = Depends(get_session),
    identity: Identity | None = Depends(get_identity),
):
    """
    Update a user's role (admin only, never your own).

    Allowed roles: user, admin.
    """
    return as_response(service.change_role(session, identity, user_id, payload))


@router.delete("/{user_id}", response_model=ActionResult)
def delete_user(
    user_id: str,
    session: Session = Depends(get_session),
    identity: Identity | None = Depends(get_identity),
    auth_admin: AuthAdmin = Depends(get_auth_admin),
):
    """
    Delete a user (admin only, never yourself).
    """
    return as_response(service.delete_user(session, identity, user_id, auth_admin))
