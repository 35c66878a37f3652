# orderdesk/schemas/order.py
import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel

# Closed set, in lifecycle order. Any status may move to any other.
ORDER_STATUSES: tuple[str, ...] = (
    "CREATED",
    "PROCESSING",
    "SHIPPED",
    "DELIVERED",
    "CANCELLED",
)


class OrderCreate(SQLModel):
    """
    Payload for creating an order.

    User provides:
      - product_id
      - quantity
      - address
      - customer_user_id (admins only: order on behalf of a customer)

    Backend derives:
      - user_id (caller, or the chosen customer)
      - unit_price snapshot from the product
      - status = 'CREATED'
    """

    model_config = ConfigDict(extra="forbid")

    product_id: str = ""
    quantity: int | None = None
    address: str = ""
    customer_user_id: str | None = None

    @field_validator("customer_user_id")
    @classmethod
    def normalize_customer(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        return v or None


class OrderDetailsUpdate(SQLModel):
    """
    Owner/admin edit of quantity and address.
    Status and unit price are never touched here.
    """

    model_config = ConfigDict(extra="forbid")

    quantity: int | None = None
    address: str = ""


class OrderStatusUpdate(SQLModel):
    """
    Admin payload to change order status.

    Kept as a plain string so an unknown value is reported with the
    allowed set instead of a schema error.
    """

    model_config = ConfigDict(extra="forbid")

    status: str = ""


class OrderRow(SQLModel):
    """
    Flattened order row for tables and detail views.
    """

    id: uuid.UUID
    product_id: uuid.UUID
    product_name: str
    user_id: uuid.UUID
    customer_name: str
    quantity: int
    unit_price: Decimal
    total: Decimal
    address: str
    status: str
    created_at: datetime
