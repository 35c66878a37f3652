# orderdesk/services/order_service.py
import uuid
from decimal import Decimal

from sqlmodel import Session

from orderdesk.core.auth import ROLE_ADMIN, Identity, IdentityGate
from orderdesk.core.config import get_settings
from orderdesk.core.errors import (
    ForbiddenError,
    InvalidArgumentError,
    NotFoundError,
)
from orderdesk.core.results import action
from orderdesk.models.order import Order
from orderdesk.repositories.order_repo import OrderRepository
from orderdesk.repositories.product_repo import ProductRepository
from orderdesk.repositories.user_repo import UserRepository
from orderdesk.schemas.common import ActionResult
from orderdesk.schemas.order import (
    ORDER_STATUSES,
    OrderCreate,
    OrderDetailsUpdate,
    OrderRow,
    OrderStatusUpdate,
)
from orderdesk.services.activity_log_service import (
    ACTION_CREATED,
    ACTION_DELETED,
    ACTION_STATUS_CHANGED,
    ActivityLogService,
    LogEntry,
    customer_display,
    snapshot_order,
)
from orderdesk.services.validation import (
    MIN_ADDRESS_LENGTH,
    parse_id,
    require_positive_int,
    require_text,
)

settings = get_settings()

STATUS_CREATED = "CREATED"


class OrderService:
    """
    Business logic for orders.

    Responsibilities:
      - Create orders (snapshot the product price, admins may pick a customer)
      - Edit quantity/address (owner or admin, no log entry)
      - Change status (admin, any status -> any status, logged)
      - Delete orders (owner or admin, logged before the row disappears)
      - Flattened read models for tables

    Every mutation returns an ActionResult and never raises.
    """

    def __init__(
        self,
        order_repo: OrderRepository,
        product_repo: ProductRepository,
        user_repo: UserRepository,
        log_service: ActivityLogService,
        gate: IdentityGate,
    ):
        self.order_repo = order_repo
        self.product_repo = product_repo
        self.user_repo = user_repo
        self.log_service = log_service
        self.gate = gate

    # -------- Helpers --------

    def _owner_filter(self, session: Session, identity: Identity) -> uuid.UUID | None:
        """None for admins (all rows), the caller's id otherwise."""
        if self.gate.is_admin(session, identity):
            return None
        return identity.id

    def _resolve_customer(
        self,
        session: Session,
        identity: Identity,
        customer_user_id: str | None,
    ) -> tuple[uuid.UUID, str | None]:
        """
        Pick the owning user of a new order and its display name.

          - no customer given   -> the caller
          - customer given      -> caller must be admin, target must exist
                                   and must not be an admin
        """
        if customer_user_id is None:
            me = self.user_repo.get_by_id(session, identity.id)
            return identity.id, me.name if me else None

        if not self.gate.is_admin(session, identity):
            raise ForbiddenError("Only admins can order on behalf of a customer.")

        target_id = parse_id(customer_user_id, NotFoundError, "Customer not found.")
        target = self.user_repo.get_by_id(session, target_id)
        if target is None:
            raise NotFoundError("Customer not found.")
        if target.role == ROLE_ADMIN:
            raise ForbiddenError("An admin cannot be chosen as the customer.")
        return target.id, target.name

    @staticmethod
    def _validate_details(quantity, address: str | None) -> tuple[int, str]:
        quantity = require_positive_int(quantity, "Quantity must be a whole number of at least 1.")
        address = require_text(
            address,
            MIN_ADDRESS_LENGTH,
            "Delivery address is required.",
            "Delivery address is too short.",
        )
        return quantity, address

    @staticmethod
    def _to_row(order: Order, product_name: str | None, customer_name: str | None) -> OrderRow:
        unit_price = Decimal(order.unit_price)
        return OrderRow(
            id=order.id,
            product_id=order.product_id,
            product_name=product_name or "",
            user_id=order.user_id,
            customer_name=customer_name or "",
            quantity=order.quantity,
            unit_price=unit_price,
            total=order.total,
            address=order.address,
            status=order.status,
            created_at=order.created_at,
        )

    # -------- Mutations --------

    @action("create order")
    def create_order(
        self,
        session: Session,
        identity: Identity | None,
        payload: OrderCreate,
    ) -> ActionResult:
        """
        Create an order in status CREATED.

        Steps:
          1. Resolve caller (Unauthorized first, before any validation).
          2. Validate product id, quantity, address.
          3. Load product; snapshot its current price.
          4. Resolve the customer (caller or admin-chosen customer).
          5. Insert the order (commits).
          6. Append a CREATED log entry (best-effort).
        """
        identity = self.gate.require_identity(identity)

        product_id = str(payload.product_id or "").strip()
        if not product_id:
            raise InvalidArgumentError("Product is required.")
        quantity, address = self._validate_details(payload.quantity, payload.address)
        product_uuid = parse_id(product_id, InvalidArgumentError, "Invalid product id.")

        product = self.product_repo.get_by_id(session, product_uuid)
        if product is None:
            raise NotFoundError("Product not found.")

        unit_price = Decimal(product.price)
        if not unit_price.is_finite() or unit_price < 0:
            raise InvalidArgumentError("Invalid product price.")

        customer_id, customer_name = self._resolve_customer(
            session, identity, payload.customer_user_id
        )

        order = self.order_repo.create(
            session,
            Order(
                product_id=product.id,
                user_id=customer_id,
                quantity=quantity,
                unit_price=unit_price,
                address=address,
                status=STATUS_CREATED,
            ),
        )
        ref = snapshot_order(order)

        self.log_service.record(
            session,
            LogEntry(
                actor_id=identity.id,
                action=ACTION_CREATED,
                description="Order created",
                order=ref,
                customer_ref=customer_display(customer_name),
            ),
        )
        return ActionResult.success(ref.id)

    @action("update order")
    def update_details(
        self,
        session: Session,
        identity: Identity | None,
        order_id: str | uuid.UUID,
        payload: OrderDetailsUpdate,
    ) -> ActionResult:
        """
        Overwrite quantity and address. No log entry is written.

        Non-admins can only touch their own orders; the ownership filter
        is part of the UPDATE statement.
        """
        identity = self.gate.require_identity(identity)
        quantity, address = self._validate_details(payload.quantity, payload.address)
        order_uuid = parse_id(order_id, NotFoundError, "Order not found.")

        owner_id = self._owner_filter(session, identity)
        changed = self.order_repo.update_details(
            session, order_uuid, quantity, address, owner_id=owner_id
        )
        if not changed:
            if owner_id is not None and self.order_repo.exists(session, order_uuid):
                raise ForbiddenError("You can only edit your own orders.")
            raise NotFoundError("Order not found.")
        return ActionResult.success()

    @action("change order status")
    def change_status(
        self,
        session: Session,
        identity: Identity | None,
        order_id: str | uuid.UUID,
        payload: OrderStatusUpdate,
    ) -> ActionResult:
        """
        Admin-only status change. Any status may move to any other.

        The previous status and customer name are read BEFORE the update
        and used for the STATUS_CHANGED log entry.
        """
        identity = self.gate.require_admin(session, identity)
        order_uuid = parse_id(order_id, NotFoundError, "Order not found.")

        new_status = str(payload.status or "").strip()
        if new_status not in ORDER_STATUSES:
            raise InvalidArgumentError("Invalid status.", allowed=list(ORDER_STATUSES))

        found = self.order_repo.get_with_customer(session, order_uuid)
        if found is None:
            raise NotFoundError("Order not found.")
        order, customer_name = found

        old_status = order.status
        ref = snapshot_order(order)
        customer_ref = customer_display(customer_name)

        if not self.order_repo.update_status(session, order_uuid, new_status):
            # Deleted between read and write
            raise NotFoundError("Order not found.")

        self.log_service.record(
            session,
            LogEntry(
                actor_id=identity.id,
                action=ACTION_STATUS_CHANGED,
                description=f"Status changed: {old_status} → {new_status}",
                order=ref,
                customer_ref=customer_ref,
            ),
        )
        return ActionResult.success()

    @action("delete order")
    def delete_order(
        self,
        session: Session,
        identity: Identity | None,
        order_id: str | uuid.UUID,
    ) -> ActionResult:
        """
        Hard delete (owner or admin).

        Order matters:
          1. read status/quantity/customer (scoped to the caller's rows
             for non-admins)
          2. append the DELETED log entry
          3. delete, again scoped to the caller's rows
        A rejected delete writes no log entry.
        """
        identity = self.gate.require_identity(identity)
        order_uuid = parse_id(order_id, NotFoundError, "Order not found.")

        owner_id = self._owner_filter(session, identity)
        found = self.order_repo.get_with_customer(session, order_uuid, owner_id=owner_id)
        if found is None:
            if owner_id is not None and self.order_repo.exists(session, order_uuid):
                raise ForbiddenError("You can only delete your own orders.")
            raise NotFoundError("Order not found.")
        order, customer_name = found

        ref = snapshot_order(order)
        description = f"Order deleted (status: {order.status}, quantity: {order.quantity})"

        self.log_service.record(
            session,
            LogEntry(
                actor_id=identity.id,
                action=ACTION_DELETED,
                description=description,
                order=ref,
                customer_ref=customer_display(customer_name),
            ),
        )

        if not self.order_repo.delete(session, order_uuid, owner_id=owner_id):
            raise NotFoundError("Order not found.")
        return ActionResult.success()

    # -------- Reads --------

    def list_orders(
        self,
        session: Session,
        identity: Identity | None,
        status: str | None = None,
        skip: int = 0,
        limit: int = 50,
    ) -> list[OrderRow]:
        """
        Orders newest first. Admins see all orders, users only their own.
        """
        identity = self.gate.require_identity(identity)
        if status is not None and status not in ORDER_STATUSES:
            raise InvalidArgumentError("Invalid status.", allowed=list(ORDER_STATUSES))

        limit = max(1, min(limit, settings.ORDER_LIST_LIMIT_MAX))
        owner_id = self._owner_filter(session, identity)
        rows = self.order_repo.list_rows(
            session, owner_id=owner_id, status=status, skip=max(0, skip), limit=limit
        )
        return [self._to_row(o, p, c) for o, p, c in rows]

    def get_order(
        self,
        session: Session,
        identity: Identity | None,
        order_id: str | uuid.UUID,
    ) -> OrderRow:
        """
        One order. Other users' orders are reported as not found.
        """
        identity = self.gate.require_identity(identity)
        order_uuid = parse_id(order_id, NotFoundError, "Order not found.")

        owner_id = self._owner_filter(session, identity)
        found = self.order_repo.get_row(session, order_uuid, owner_id=owner_id)
        if found is None:
            raise NotFoundError("Order not found.")
        order, product_name, customer_name = found
        return self._to_row(order, product_name, customer_name)
