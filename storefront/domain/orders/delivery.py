from __future__ import annotations

import random
from datetime import date, datetime, timedelta

from storefront.core.config import Settings


def estimate_delivery(now: datetime, settings: Settings, rng: random.Random | None = None) -> date:
    if settings.delivery_mode == "fixed":
        days = settings.delivery_fixed_days
    else:
        days = (rng or random).randint(settings.delivery_min_days, settings.delivery_max_days)
    return (now + timedelta(days=days)).date()


def is_delivery_due(estimated_delivery: date | None, today: date) -> bool:
    # An order due "today" is promoted starting tomorrow.
    return estimated_delivery is not None and estimated_delivery < today
