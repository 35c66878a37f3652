# orderdesk/repositories/order_repo.py
import uuid

from sqlalchemy import delete, func, update
from sqlmodel import Session, select

from orderdesk.models.order import Order
from orderdesk.models.product import Product
from orderdesk.models.user import User


class OrderRepository:
    """
    Data access layer for orders.

    NOTE:
      - Every mutation commits on its own. The activity log entry that
        follows is a separate unit of work, not part of this transaction.
      - `owner_id` narrows a statement to rows owned by that user; the
        filter is part of the UPDATE/DELETE itself.
    """

    def _row_stmt(self):
        return (
            select(Order, Product.name, User.name)
            .join(Product, Order.product_id == Product.id, isouter=True)
            .join(User, Order.user_id == User.id, isouter=True)
        )

    # ---- Reads ----

    def list_rows(
        self,
        session: Session,
        owner_id: uuid.UUID | None = None,
        status: str | None = None,
        skip: int = 0,
        limit: int = 50,
    ) -> list[tuple[Order, str | None, str | None]]:
        """
        Orders joined with product name and customer name, newest first.
        """
        stmt = self._row_stmt()
        if owner_id is not None:
            stmt = stmt.where(Order.user_id == owner_id)
        if status is not None:
            stmt = stmt.where(Order.status == status)
        stmt = stmt.order_by(Order.created_at.desc()).offset(skip).limit(limit)
        return list(session.exec(stmt).all())

    def get_row(
        self,
        session: Session,
        order_id: uuid.UUID,
        owner_id: uuid.UUID | None = None,
    ) -> tuple[Order, str | None, str | None] | None:
        stmt = self._row_stmt().where(Order.id == order_id)
        if owner_id is not None:
            stmt = stmt.where(Order.user_id == owner_id)
        return session.exec(stmt).first()

    def get_with_customer(
        self,
        session: Session,
        order_id: uuid.UUID,
        owner_id: uuid.UUID | None = None,
    ) -> tuple[Order, str | None] | None:
        """
        The order plus its customer's current display name (None if the
        profile is missing).
        """
        stmt = (
            select(Order, User.name)
            .join(User, Order.user_id == User.id, isouter=True)
            .where(Order.id == order_id)
        )
        if owner_id is not None:
            stmt = stmt.where(Order.user_id == owner_id)
        return session.exec(stmt).first()

    def exists(self, session: Session, order_id: uuid.UUID) -> bool:
        stmt = select(Order.id).where(Order.id == order_id)
        return session.exec(stmt).first() is not None

    def count_for_product(self, session: Session, product_id: uuid.UUID) -> int:
        stmt = select(func.count()).select_from(Order).where(Order.product_id == product_id)
        value = session.exec(stmt).one()
        return int(value or 0)

    def count_for_user(self, session: Session, user_id: uuid.UUID) -> int:
        stmt = select(func.count()).select_from(Order).where(Order.user_id == user_id)
        value = session.exec(stmt).one()
        return int(value or 0)

    # ---- Writes ----

    def create(self, session: Session, order: Order) -> Order:
        session.add(order)
        session.commit()
        session.refresh(order)
        return order

    def update_details(
        self,
        session: Session,
        order_id: uuid.UUID,
        quantity: int,
        address: str,
        owner_id: uuid.UUID | None = None,
    ) -> int:
        """Overwrite quantity/address; returns the number of rows changed."""
        stmt = update(Order).where(Order.id == order_id)
        if owner_id is not None:
            stmt = stmt.where(Order.user_id == owner_id)
        result = session.exec(stmt.values(quantity=quantity, address=address))
        session.commit()
        return result.rowcount

    def update_status(self, session: Session, order_id: uuid.UUID, status: str) -> int:
        stmt = update(Order).where(Order.id == order_id).values(status=status)
        result = session.exec(stmt)
        session.commit()
        return result.rowcount

    def delete(
        self,
        session: Session,
        order_id: uuid.UUID,
        owner_id: uuid.UUID | None = None,
    ) -> int:
        """Hard delete; returns the number of rows removed."""
        stmt = delete(Order).where(Order.id == order_id)
        if owner_id is not None:
            stmt = stmt.where(Order.user_id == owner_id)
        result = session.exec(stmt)
        session.commit()
        return result.rowcount
