from __future__ import annotations

import json
from datetime import datetime, timezone

from storefront.cli import main
from storefront.domain.orders.aggregates import CartLine
from storefront.domain.orders.checkout import place_order
from storefront.persistence.database import unit_of_work
from storefront.persistence.models import OrderModel


def test_sweep_command_reports_delivered_orders(make_product, capsys):
    product = make_product(stock=3)
    with unit_of_work() as s:
        order_id = place_order(
            s,
            user_id=1,
            lines=[CartLine(product, 1)],
            now=datetime(2026, 6, 1, tzinfo=timezone.utc),
        ).id

    exit_code = main(["sweep", "--now", "2026-06-05T00:00:00Z"])

    assert exit_code == 0
    summary = json.loads(capsys.readouterr().out)
    assert summary["today"] == "2026-06-05"
    assert summary["delivered"] == [order_id]
    with unit_of_work() as s:
        assert s.get(OrderModel, order_id).status == "DELIVERED"
