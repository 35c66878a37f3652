# orderdesk/schemas/product.py
import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import ConfigDict
from sqlmodel import SQLModel


class ProductCreate(SQLModel):
    """
    Payload for creating a product (admin).

    Range checks (name >= 2 chars, price >= 0) happen in ProductService so
    they come back as a result envelope.
    """

    model_config = ConfigDict(extra="forbid")

    name: str = ""
    price: Decimal | None = None


class ProductUpdate(ProductCreate):
    """
    Full replacement of name and price.
    Existing orders keep their unit_price snapshot.
    """


class ProductRead(SQLModel):
    """
    Product representation for clients.
    """

    id: uuid.UUID
    name: str
    price: Decimal
    created_at: datetime
