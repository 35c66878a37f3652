# orderdesk/models/order.py
import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlmodel import SQLModel, Field


class Order(SQLModel, table=True):
    """
    One purchase request for a single product.

    - unit_price is a snapshot of Product.price at creation time.
    - total is never stored: quantity * unit_price.
    """

    __tablename__ = "orders"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    product_id: uuid.UUID = Field(
        foreign_key="products.id",
        index=True,
    )

    # Owning user (the customer)
    user_id: uuid.UUID = Field(
        foreign_key="users.id",
        index=True,
    )

    quantity: int = Field(
        gt=0,
        description="Quantity ordered (>=1)",
    )

    unit_price: Decimal = Field(
        max_digits=12,
        decimal_places=2,
        description="Unit price at time of order",
    )

    address: str = Field(
        description="Delivery address (>= 5 chars)",
    )

    # CREATED | PROCESSING | SHIPPED | DELIVERED | CANCELLED
    status: str = Field(
        default="CREATED",
        index=True,
        description="Order status",
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        index=True,
        description="Creation timestamp (UTC)",
    )

    @property
    def total(self) -> Decimal:
        return self.quantity * Decimal(self.unit_price)
