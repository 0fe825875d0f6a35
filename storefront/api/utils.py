from __future__ import annotations

from datetime import datetime, timezone


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def clamp_pagination(page: int | None, limit: int | None, default_limit: int, max_limit: int) -> tuple[int, int]:
    resolved_page = max(page or 1, 1)
    resolved_limit = min(max(limit or default_limit, 1), max_limit)
    return resolved_page, resolved_limit


def isoformat_z(value: datetime | None) -> str | None:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")
