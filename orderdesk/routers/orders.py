# orderdesk/routers/orders.py
from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from orderdesk.core.auth import Identity, IdentityGate, get_identity
from orderdesk.core.results import as_response
from orderdesk.database import get_session
from orderdesk.repositories.activity_log_repo import ActivityLogRepository
from orderdesk.repositories.order_repo import OrderRepository
from orderdesk.repositories.product_repo import ProductRepository
from orderdesk.repositories.user_repo import UserRepository
from orderdesk.schemas.common import ActionResult
from orderdesk.schemas.order import (
    OrderCreate,
    OrderDetailsUpdate,
    OrderRow,
    OrderStatusUpdate,
)
from orderdesk.services.activity_log_service import ActivityLogService
from orderdesk.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["Orders"])

gate = IdentityGate()
log_service = ActivityLogService(ActivityLogRepository(), gate)
service = OrderService(
    OrderRepository(),
    ProductRepository(),
    UserRepository(),
    log_service,
    gate,
)


# -------- Reads --------


@router.get("", response_model=list[OrderRow])
def list_orders(
    session: Session = Depends(get_session),
    identity: Identity | None = Depends(get_identity),
    status: str | None = None,
    skip: int = 0,
    limit: int = 50,
):
    """
    List orders, newest first.

    Auth:
      - admin: every order
      - user: own orders only
    """
    return service.list_orders(session, identity, status=status, skip=skip, limit=limit)


@router.get("/{order_id}", response_model=OrderRow)
def get_order(
    order_id: str,
    session: Session = Depends(get_session),
    identity: Identity | None = Depends(get_identity),
):
    """
    Get a single order (flattened row).
    """
    return service.get_order(session, identity, order_id)


# -------- Mutations --------


@router.post("", response_model=ActionResult, status_code=status.HTTP_201_CREATED)
def create_order(
    payload: OrderCreate,
    session: Session = Depends(get_session),
    identity: Identity | None = Depends(get_identity),
):
    """
    Create an order in status CREATED.

    Admins may pass `customer_user_id` to order on behalf of a customer.
    """
    result = service.create_order(session, identity, payload)
    return as_response(result, success_status=status.HTTP_201_CREATED)


@router.patch("/{order_id}", response_model=ActionResult)
def update_order(
    order_id: str,
    payload: OrderDetailsUpdate,
    session: Session = Depends(get_session),
    identity: Identity | None = Depends(get_identity),
):
    """
    Update quantity and delivery address (owner or admin).
    """
    return as_response(service.update_details(session, identity, order_id, payload))


@router.patch("/{order_id}/status", response_model=ActionResult)
def update_order_status(
    order_id: str,
    payload: OrderStatusUpdate,
    session: Session = Depends(get_session),
    identity: Identity | None = Depends(get_identity),
):
    """
    Change order status (admin only).

    Allowed: CREATED, PROCESSING, SHIPPED, DELIVERED, CANCELLED.
    Any status may move to any other.
    """
    return as_response(service.change_status(session, identity, order_id, payload))


@router.delete("/{order_id}", response_model=ActionResult)
def delete_order(
    order_id: str,
    session: Session = Depends(get_session),
    identity: Identity | None = Depends(get_identity),
):
    """
    Delete an order (owner or admin). A DELETED log entry is written first.
    """
    return as_response(service.delete_order(session, identity, order_id))
