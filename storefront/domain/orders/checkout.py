"""Order transaction coordinator.

``place_order`` turns a cart into a persisted ``PAID`` order. Availability is
checked, prices are snapshotted, stock is decremented and the order rows are
inserted using the caller's session, so the whole checkout commits or rolls
back as one unit of work.
"""

from __future__ import annotations

import logging
import random
from datetime import datetime
from decimal import Decimal

from sqlalchemy.orm import Session

from storefront.api.utils import now_utc
from storefront.core.config import Settings, get_settings
from storefront.domain.inventory.ledger import (
    decrement_stock,
    ensure_available,
    lock_products,
    requested_quantities,
)
from storefront.domain.orders.aggregates import (
    CartLine,
    OrderDraft,
    OrderLine,
    PaymentInfo,
    ShippingInfo,
    to_money,
)
from storefront.domain.orders.delivery import estimate_delivery
from storefront.domain.orders.payment import summarize_payment
from storefront.domain.orders.status import OrderStatus
from storefront.persistence.models import OrderItemModel, OrderModel

logger = logging.getLogger(__name__)


def build_draft(
    user_id: int,
    lines: list[CartLine],
    prices: dict[int, Decimal],
    shipping: ShippingInfo,
    payment: PaymentInfo,
    now: datetime,
    settings: Settings,
    rng: random.Random | None = None,
) -> OrderDraft:
    return OrderDraft(
        user_id=user_id,
        shipping=shipping.normalized(),
        payment=summarize_payment(payment),
        estimated_delivery=estimate_delivery(now, settings, rng),
        lines=[
            OrderLine(
                product_id=line.product_id,
                quantity=line.quantity,
                unit_price=to_money(prices[line.product_id]),
            )
            for line in lines
        ],
    )


def place_order(
    session: Session,
    user_id: int,
    lines: list[CartLine],
    shipping: ShippingInfo | None = None,
    payment: PaymentInfo | None = None,
    now: datetime | None = None,
    settings: Settings | None = None,
    rng: random.Random | None = None,
) -> OrderModel:
    if not lines:
        raise ValueError("cart must contain at least one item")
    settings = settings or get_settings()
    now = now or now_utc()

    products = lock_products(session, (line.product_id for line in lines))
    ensure_available(products, lines)

    draft = build_draft(
        user_id=user_id,
        lines=lines,
        prices={product_id: product.price for product_id, product in products.items()},
        shipping=shipping or ShippingInfo(),
        payment=payment or PaymentInfo(),
        now=now,
        settings=settings,
        rng=rng,
    )

    # Guarded decrements are the linearization point against concurrent checkouts.
    for product_id, quantity in sorted(requested_quantities(lines).items()):
        decrement_stock(session, product_id, quantity)

    order = OrderModel(
        user_id=draft.user_id,
        total=draft.total,
        status=OrderStatus.PAID.value,
        shipping_name=draft.shipping.full_name,
        shipping_phone=draft.shipping.phone,
        shipping_address1=draft.shipping.address1,
        shipping_address2=draft.shipping.address2,
        shipping_city=draft.shipping.city,
        shipping_state=draft.shipping.state,
        shipping_zip=draft.shipping.zip,
        shipping_country=draft.shipping.country,
        card_brand=draft.payment.brand,
        card_last4=draft.payment.last4,
        estimated_delivery=draft.estimated_delivery,
        created_at=now,
    )
    session.add(order)
    session.flush()

    for line in draft.lines:
        session.add(
            OrderItemModel(
                order_id=order.id,
                product_id=line.product_id,
                quantity=line.quantity,
                unit_price=line.unit_price,
            )
        )
    session.flush()

    logger.info(
        "order placed: order_id=%s user_id=%s total=%s items=%s eta=%s",
        order.id,
        user_id,
        order.total,
        len(draft.lines),
        order.estimated_delivery,
    )
    return order
