from __future__ import annotations

from datetime import date, datetime, timezone
import random

from storefront.core.config import Settings
from storefront.domain.orders.delivery import estimate_delivery, is_delivery_due
from storefront.domain.orders.status import (
    ALLOWED_TRANSITIONS,
    OrderStatus,
    is_allowed_transition,
    requires_restitution,
)


def test_terminal_statuses_have_no_exits():
    assert ALLOWED_TRANSITIONS[OrderStatus.CANCELLED] == frozenset()
    assert ALLOWED_TRANSITIONS[OrderStatus.DELIVERED] == frozenset()


def test_paid_can_be_cancelled_or_delivered():
    assert is_allowed_transition(OrderStatus.PAID, OrderStatus.CANCELLED)
    assert is_allowed_transition(OrderStatus.PAID, OrderStatus.DELIVERED)
    assert not is_allowed_transition(OrderStatus.PAID, OrderStatus.PENDING)
    assert not is_allowed_transition(OrderStatus.DELIVERED, OrderStatus.PENDING)
    assert not is_allowed_transition(OrderStatus.CANCELLED, OrderStatus.PAID)


def test_restitution_only_when_entering_cancelled():
    assert requires_restitution(OrderStatus.PAID, OrderStatus.CANCELLED)
    assert requires_restitution(OrderStatus.PENDING, OrderStatus.CANCELLED)
    assert not requires_restitution(OrderStatus.CANCELLED, OrderStatus.CANCELLED)
    assert not requires_restitution(OrderStatus.PAID, OrderStatus.DELIVERED)


def test_delivery_due_compares_dates_strictly():
    today = date(2026, 3, 10)
    assert is_delivery_due(date(2026, 3, 9), today)
    assert not is_delivery_due(date(2026, 3, 10), today)
    assert not is_delivery_due(date(2026, 3, 11), today)
    assert not is_delivery_due(None, today)


def test_fixed_delivery_estimate():
    settings = Settings(delivery_mode="fixed", delivery_fixed_days=1)
    now = datetime(2026, 3, 10, 23, 30, tzinfo=timezone.utc)
    assert estimate_delivery(now, settings) == date(2026, 3, 11)


def test_random_delivery_estimate_stays_inside_window():
    settings = Settings(delivery_mode="random", delivery_min_days=3, delivery_max_days=7)
    now = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)
    rng = random.Random(42)
    estimates = {estimate_delivery(now, settings, rng) for _ in range(200)}
    assert min(estimates) >= date(2026, 3, 13)
    assert max(estimates) <= date(2026, 3, 17)
