from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest
from sqlalchemy import func, select

from storefront.domain.errors import InsufficientStock, ProductUnavailable
from storefront.domain.orders.aggregates import CartLine, PaymentInfo, ShippingInfo
from storefront.domain.orders.checkout import place_order
from storefront.domain.orders.queries import order_receipt
from storefront.domain.inventory.ledger import current_stock
from storefront.persistence.database import unit_of_work
from storefront.persistence.models import OrderItemModel, OrderModel, ProductModel


def _count(model) -> int:
    with unit_of_work() as s:
        return s.scalar(select(func.count()).select_from(model))


def test_checkout_snapshots_prices_and_decrements_stock(make_product):
    p1 = make_product(price="10.00", stock=5, name="Mug", image_urls=["https://img/mug-1.jpg", "https://img/mug-2.jpg"])
    p2 = make_product(price="5.00", stock=3, name="Spoon")

    with unit_of_work() as s:
        order = place_order(
            s,
            user_id=1,
            lines=[CartLine(p1, 2), CartLine(p2, 1)],
            payment=PaymentInfo(card_number="4111 1111 1111 4242"),
        )
        receipt = order_receipt(s, order)

    assert receipt["total"] == Decimal("25.00")
    assert receipt["status"] == "PAID"
    assert [item["unit_price"] for item in receipt["items"]] == [Decimal("10.00"), Decimal("5.00")]
    assert receipt["items"][0]["product_name"] == "Mug"
    assert receipt["items"][0]["product_image"] == "https://img/mug-1.jpg"
    assert receipt["items"][1]["product_image"] is None
    assert receipt["payment"] == {"brand": "Visa", "last4": "4242"}

    with unit_of_work() as s:
        assert current_stock(s, p1) == 3
        assert current_stock(s, p2) == 2
        items = s.scalars(select(OrderItemModel).where(OrderItemModel.order_id == receipt["id"])).all()
        assert sum(item.unit_price * item.quantity for item in items) == Decimal("25.00")


def test_failed_stock_check_leaves_no_partial_effects(make_product):
    p1 = make_product(stock=10)
    p2 = make_product(stock=10)
    p3 = make_product(stock=1)

    with pytest.raises(InsufficientStock) as excinfo:
        with unit_of_work() as s:
            place_order(s, user_id=1, lines=[CartLine(p1, 2), CartLine(p2, 2), CartLine(p3, 2)])

    assert excinfo.value.product_id == p3
    assert _count(OrderModel) == 0
    assert _count(OrderItemModel) == 0
    with unit_of_work() as s:
        assert [current_stock(s, pid) for pid in (p1, p2, p3)] == [10, 10, 1]


def test_inactive_or_missing_products_are_unavailable(make_product):
    active = make_product(stock=5)
    inactive = make_product(stock=5, active=False)

    with pytest.raises(ProductUnavailable):
        with unit_of_work() as s:
            place_order(s, user_id=1, lines=[CartLine(active, 1), CartLine(inactive, 1)])

    with pytest.raises(ProductUnavailable) as excinfo:
        with unit_of_work() as s:
            place_order(s, user_id=1, lines=[CartLine(987654, 1)])
    assert excinfo.value.product_id == 987654

    assert _count(OrderModel) == 0
    with unit_of_work() as s:
        assert current_stock(s, active) == 5


def test_repeated_lines_are_checked_against_combined_quantity(make_product):
    product = make_product(stock=3)

    with pytest.raises(InsufficientStock):
        with unit_of_work() as s:
            place_order(s, user_id=1, lines=[CartLine(product, 2), CartLine(product, 2)])

    with unit_of_work() as s:
        assert current_stock(s, product) == 3


def test_later_price_change_does_not_touch_order(make_product):
    product = make_product(price="19.99", stock=4)

    with unit_of_work() as s:
        order_id = place_order(s, user_id=1, lines=[CartLine(product, 2)]).id

    with unit_of_work() as s:
        s.get(ProductModel, product).price = Decimal("99.00")

    with unit_of_work() as s:
        order = s.get(OrderModel, order_id)
        receipt = order_receipt(s, order)
    assert receipt["total"] == Decimal("39.98")
    assert receipt["items"][0]["unit_price"] == Decimal("19.99")


def test_shipping_snapshot_and_delivery_estimate(make_product):
    product = make_product(stock=2)
    now = datetime(2026, 5, 4, 15, 0, tzinfo=timezone.utc)

    with unit_of_work() as s:
        order = place_order(
            s,
            user_id=7,
            lines=[CartLine(product, 1)],
            shipping=ShippingInfo(full_name="Ana Ruiz", city="Lima", address2="", country="PE"),
            payment=PaymentInfo(card_number="", brand="", last4=""),
            now=now,
        )
        receipt = order_receipt(s, order)

    assert receipt["shipping"]["fullName"] == "Ana Ruiz"
    assert receipt["shipping"]["address2"] is None
    assert receipt["payment"] == {"brand": None, "last4": None}
    assert receipt["estimatedDelivery"] == date(2026, 5, 5).isoformat()


def test_empty_cart_is_rejected():
    with pytest.raises(ValueError):
        with unit_of_work() as s:
            place_order(s, user_id=1, lines=[])


def test_cart_line_requires_positive_quantity():
    with pytest.raises(ValueError):
        CartLine(product_id=1, quantity=0)
