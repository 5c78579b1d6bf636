# primavera/services/catalog.py

import logging
from typing import List, Optional

from sqlmodel import Session, select

from primavera.errors import ProductInUseError, ProductNotFoundError
from primavera.models import OrderItem, Product, utcnow
from primavera.schemas import ProductCreate, ProductRead, ProductUpdate
from primavera.utils.db import atomic

logger = logging.getLogger(__name__)

CLEARABLE_FIELDS = {"description", "image_url"}


def list_products(
    session: Session, category: Optional[str] = None, include_unavailable: bool = False
) -> List[Product]:
    statement = select(Product)
    if category:
        statement = statement.where(Product.category == category)
    if not include_unavailable:
        statement = statement.where(Product.available == True)  # noqa: E712
    statement = statement.order_by(Product.sort_order.asc(), Product.name.asc())
    return list(session.exec(statement).all())


def get_product(session: Session, product_id: int) -> Product:
    product = session.get(Product, product_id)
    if not product:
        raise ProductNotFoundError(product_id)
    return product


def list_categories(session: Session) -> List[str]:
    statement = (
        select(Product.category)
        .where(Product.available == True)  # noqa: E712
        .distinct()
        .order_by(Product.category)
    )
    return list(session.exec(statement).all())


def create_product(session: Session, data: ProductCreate) -> Product:
    product = Product(**data.model_dump())
    with atomic(session):
        session.add(product)
    session.refresh(product)
    logger.info("Added product %s '%s' at %s", product.id, product.name, product.price)
    return product


def update_product(session: Session, product_id: int, data: ProductUpdate) -> Product:
    product = get_product(session, product_id)
    # Only the fields the caller actually sent; null only clears nullable columns
    changes = {
        key: value
        for key, value in data.model_dump(exclude_unset=True).items()
        if value is not None or key in CLEARABLE_FIELDS
    }
    with atomic(session):
        for key, value in changes.items():
            setattr(product, key, value)
        product.updated_at = utcnow()
        session.add(product)
    session.refresh(product)
    logger.info("Updated product %s: %s", product.id, ", ".join(sorted(changes)) or "no changes")
    return product


def toggle_availability(session: Session, product_id: int) -> Product:
    product = get_product(session, product_id)
    with atomic(session):
        product.available = not product.available
        product.updated_at = utcnow()
        session.add(product)
    session.refresh(product)
    logger.info("Product %s is now %s", product.id, "available" if product.available else "unavailable")
    return product


def delete_product(session: Session, product_id: int) -> ProductRead:
    product = get_product(session, product_id)

    # Order lines keep pointing at the product, so it can't go away
    in_use = session.exec(select(OrderItem.id).where(OrderItem.product_id == product_id).limit(1)).first()
    if in_use is not None:
        raise ProductInUseError(product_id)

    deleted = ProductRead.model_validate(product)
    with atomic(session):
        session.delete(product)
    logger.info("Deleted product %s '%s'", deleted.id, deleted.name)
    return deleted
