"""Delivery reconciliation sweep.

One sweep selects every ``PAID`` order whose estimated delivery date is
strictly before ``today`` and promotes each one to ``DELIVERED`` through the
regular transition engine, one short transaction per order.
"""

from __future__ import annotations

import logging
from contextlib import AbstractContextManager
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Callable

from sqlalchemy import select
from sqlalchemy.orm import Session

from storefront.api.utils import now_utc
from storefront.domain.errors import InvalidTransition, OrderStateConflict
from storefront.domain.orders.status import OrderStatus
from storefront.domain.orders.transitions import transition_order
from storefront.persistence.models import OrderModel
from storefront.persistence.database import unit_of_work

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], AbstractContextManager[Session]]


@dataclass
class SweepResult:
    today: date
    scanned: int = 0
    delivered: list[int] = field(default_factory=list)
    skipped: list[int] = field(default_factory=list)
    failed: list[int] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "today": self.today.isoformat(),
            "scanned": self.scanned,
            "delivered": list(self.delivered),
            "skipped": list(self.skipped),
            "failed": list(self.failed),
        }


def find_due_order_ids(session: Session, today: date) -> list[int]:
    stmt = (
        select(OrderModel.id)
        .where(OrderModel.status == OrderStatus.PAID.value)
        .where(OrderModel.estimated_delivery.is_not(None))
        .where(OrderModel.estimated_delivery < today)
        .order_by(OrderModel.id.asc())
    )
    return list(session.scalars(stmt).all())


def run_delivery_sweep(
    now: datetime | None = None,
    session_factory: SessionFactory = unit_of_work,
) -> SweepResult:
    today = (now or now_utc()).date()
    result = SweepResult(today=today)

    with session_factory() as session:
        order_ids = find_due_order_ids(session, today)
    result.scanned = len(order_ids)
    if not order_ids:
        logger.info("delivery sweep: no orders due before %s", today)
        return result

    for order_id in order_ids:
        try:
            with session_factory() as session:
                transition_order(session, order_id, OrderStatus.DELIVERED, today=today)
        except (InvalidTransition, OrderStateConflict) as exc:
            # Status changed after selection, e.g. cancelled by an admin.
            logger.info("delivery sweep: skipped order_id=%s: %s", order_id, exc)
            result.skipped.append(order_id)
            continue
        except Exception:
            # Left PAID; the next sweep picks it up again.
            logger.exception("delivery sweep: failed to deliver order_id=%s", order_id)
            result.failed.append(order_id)
            continue
        result.delivered.append(order_id)

    logger.info(
        "delivery sweep finished: today=%s scanned=%s delivered=%s skipped=%s failed=%s",
        today,
        result.scanned,
        len(result.delivered),
        len(result.skipped),
        len(result.failed),
    )
    return result
