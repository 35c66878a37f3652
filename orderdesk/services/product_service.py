# orderdesk/services/product_service.py
import uuid

from sqlmodel import Session

from orderdesk.core.auth import Identity, IdentityGate
from orderdesk.core.errors import ConflictError, NotFoundError
from orderdesk.core.results import action
from orderdesk.models.product import Product
from orderdesk.repositories.order_repo import OrderRepository
from orderdesk.repositories.product_repo import ProductRepository
from orderdesk.schemas.common import ActionResult
from orderdesk.schemas.product import ProductCreate, ProductUpdate
from orderdesk.services.validation import (
    MIN_NAME_LENGTH,
    parse_id,
    require_price,
    require_text,
)


class ProductService:
    """
    Business logic for the product catalog.

    Responsibilities:
      - validation beyond pydantic (name length, non-negative price)
      - admin-only mutations
      - referential guard: a product with orders cannot be deleted
    """

    def __init__(
        self,
        repo: ProductRepository,
        order_repo: OrderRepository,
        gate: IdentityGate,
    ):
        self.repo = repo
        self.order_repo = order_repo
        self.gate = gate

    @staticmethod
    def _validate(payload: ProductCreate):
        name = require_text(
            payload.name,
            MIN_NAME_LENGTH,
            "Name is required.",
            "Name must be at least 2 characters.",
        )
        price = require_price(payload.price, "Price must be a non-negative number.")
        return name, price

    def list_products(self, session: Session, identity: Identity | None) -> list[Product]:
        self.gate.require_identity(identity)
        return self.repo.list(session)

    @action("create product")
    def create_product(
        self,
        session: Session,
        identity: Identity | None,
        payload: ProductCreate,
    ) -> ActionResult:
        self.gate.require_admin(session, identity)
        name, price = self._validate(payload)
        product = self.repo.create(session, Product(name=name, price=price))
        return ActionResult.success(product.id)

    @action("update product")
    def update_product(
        self,
        session: Session,
        identity: Identity | None,
        product_id: str | uuid.UUID,
        payload: ProductUpdate,
    ) -> ActionResult:
        """
        Replace name and price. Orders keep their own unit_price.
        """
        self.gate.require_admin(session, identity)
        product_uuid = parse_id(product_id, NotFoundError, "Product not found.")
        name, price = self._validate(payload)

        product = self.repo.get_by_id(session, product_uuid)
        if product is None:
            raise NotFoundError("Product not found.")

        product.name = name
        product.price = price
        self.repo.update(session, product)
        return ActionResult.success()

    @action("delete product")
    def delete_product(
        self,
        session: Session,
        identity: Identity | None,
        product_id: str | uuid.UUID,
    ) -> ActionResult:
        """
        Delete a product that no order references. No cascade.
        """
        self.gate.require_admin(session, identity)
        product_uuid = parse_id(product_id, NotFoundError, "Product not found.")

        product = self.repo.get_by_id(session, product_uuid)
        if product is None:
            raise NotFoundError("Product not found.")

        if self.order_repo.count_for_product(session, product_uuid) > 0:
            raise ConflictError("Cannot delete a product that has orders.")

        self.repo.delete(session, product)
        return ActionResult.success()
