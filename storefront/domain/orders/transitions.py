"""Order status transition engine.

Every status change, manual or from the delivery sweep, goes through
``transition_order``. Legality comes from ``ALLOWED_TRANSITIONS``; a
cancellation restores the stock of every line in the same unit of work.
"""

from __future__ import annotations

import logging
from datetime import date

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from storefront.api.utils import now_utc
from storefront.domain.errors import InvalidTransition, OrderNotFound, OrderStateConflict
from storefront.domain.inventory.ledger import restitute_stock
from storefront.domain.orders.delivery import is_delivery_due
from storefront.domain.orders.status import (
    OrderStatus,
    is_allowed_transition,
    requires_restitution,
)
from storefront.persistence.models import OrderItemModel, OrderModel

logger = logging.getLogger(__name__)


def _lock_order(session: Session, order_id: int) -> OrderModel | None:
    stmt = (
        select(OrderModel)
        .where(OrderModel.id == order_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return session.scalar(stmt)


def _restitute_order_stock(session: Session, order: OrderModel) -> int:
    items = session.scalars(
        select(OrderItemModel)
        .where(OrderItemModel.order_id == order.id)
        .order_by(OrderItemModel.product_id.asc())
    ).all()
    restored = 0
    for item in items:
        if restitute_stock(session, item.product_id, item.quantity):
            restored += item.quantity
    return restored


def transition_order(
    session: Session,
    order_id: int,
    target: OrderStatus | str,
    today: date | None = None,
) -> OrderModel:
    target = OrderStatus(target)
    order = _lock_order(session, order_id)
    if order is None:
        raise OrderNotFound(order_id)

    current = OrderStatus(order.status)
    if current is target:
        return order

    if not is_allowed_transition(current, target):
        raise InvalidTransition(order_id, current.value, target.value)

    if target is OrderStatus.DELIVERED:
        today = today or now_utc().date()
        if not is_delivery_due(order.estimated_delivery, today):
            raise InvalidTransition(
                order_id,
                current.value,
                target.value,
                reason=f"estimated delivery {order.estimated_delivery} has not elapsed",
            )

    # Compare-and-set on the previous status so a concurrent change cannot double-apply.
    result = session.execute(
        update(OrderModel)
        .where(OrderModel.id == order_id)
        .where(OrderModel.status == current.value)
        .values(status=target.value)
    )
    if result.rowcount != 1:
        raise OrderStateConflict(order_id, expected=current.value)

    restored = 0
    if requires_restitution(current, target):
        restored = _restitute_order_stock(session, order)

    order.status = target.value
    session.flush()
    logger.info(
        "order status changed: order_id=%s %s -> %s restored_qty=%s",
        order_id,
        current.value,
        target.value,
        restored,
    )
    return order
