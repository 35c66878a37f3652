# orderdesk/routers/products.py
from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from orderdesk.core.auth import Identity, IdentityGate, get_identity
from orderdesk.core.results import as_response
from orderdesk.database import get_session
from orderdesk.repositories.order_repo import OrderRepository
from orderdesk.repositories.product_repo import ProductRepository
from orderdesk.schemas.common import ActionResult
from orderdesk.schemas.product import ProductCreate, ProductRead, ProductUpdate
from orderdesk.services.product_service import ProductService

router = APIRouter(prefix="/products", tags=["Products"])

service = ProductService(ProductRepository(), OrderRepository(), IdentityGate())


@router.get("", response_model=list[ProductRead])
def list_products(
    session: Session = Depends(get_session),
    identity: Identity | None = Depends(get_identity),
):
    """
    List products ordered by name (any signed-in user).
    """
    return service.list_products(session, identity)


@router.post("", response_model=ActionResult, status_code=status.HTTP_201_CREATED)
def create_product(
    payload: ProductCreate,
    session: Session = Depends(get_session),
    identity: Identity | None = Depends(get_identity),
):
    """
    Create a new product (admin only).
    """
    result = service.create_product(session, identity, payload)
    return as_response(result, success_status=status.HTTP_201_CREATED)


@router.patch("/{product_id}", response_model=ActionResult)
def update_product(
    product_id: str,
    payload: ProductUpdate,
    session: Session = Depends(get_session),
    identity: Identity | None = Depends(get_identity),
):
    """
    Update name and price (admin only). Existing orders keep their price.
    """
    return as_response(service.update_product(session, identity, product_id, payload))


@router.delete("/{product_id}", response_model=ActionResult)
def delete_product(
    product_id: str,
    session: Session = Depends(get_session),
    identity: Identity | None = Depends(get_identity),
):
    """
    Delete a product (admin only). Blocked with 409 while orders reference it.
    """
    return as_response(service.delete_product(session, identity, product_id))
