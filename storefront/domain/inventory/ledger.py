from __future__ import annotations

import logging
from collections import Counter
from typing import Iterable

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from storefront.domain.errors import InsufficientStock, ProductUnavailable
from storefront.domain.orders.aggregates import CartLine
from storefront.persistence.models import ProductModel

logger = logging.getLogger(__name__)


def requested_quantities(lines: Iterable[CartLine]) -> dict[int, int]:
    totals: Counter[int] = Counter()
    for line in lines:
        totals[line.product_id] += line.quantity
    return dict(totals)


def lock_products(session: Session, product_ids: Iterable[int]) -> dict[int, ProductModel]:
    # Ascending id order keeps lock acquisition consistent across checkouts.
    ids = sorted(set(product_ids))
    if not ids:
        return {}
    stmt = (
        select(ProductModel)
        .where(ProductModel.id.in_(ids))
        .order_by(ProductModel.id.asc())
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return {product.id: product for product in session.scalars(stmt).all()}


def ensure_available(products: dict[int, ProductModel], lines: list[CartLine]) -> None:
    for line in lines:
        product = products.get(line.product_id)
        if product is None or not product.active:
            raise ProductUnavailable(line.product_id)

    for product_id, quantity in requested_quantities(lines).items():
        available = products[product_id].stock
        if available < quantity:
            raise InsufficientStock(product_id, requested=quantity, available=available)


def decrement_stock(session: Session, product_id: int, quantity: int) -> None:
    result = session.execute(
        update(ProductModel)
        .where(ProductModel.id == product_id)
        .where(ProductModel.stock >= quantity)
        .values(stock=ProductModel.stock - quantity)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise InsufficientStock(product_id, requested=quantity)


def restitute_stock(session: Session, product_id: int | None, quantity: int) -> bool:
    if product_id is None:
        return False
    result = session.execute(
        update(ProductModel)
        .where(ProductModel.id == product_id)
        .values(stock=ProductModel.stock + quantity)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        logger.warning("stock restitution skipped, product missing: product_id=%s qty=%s", product_id, quantity)
        return False
    return True


def current_stock(session: Session, product_id: int) -> int | None:
    return session.scalar(select(ProductModel.stock).where(ProductModel.id == product_id))
