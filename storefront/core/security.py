"""Authentication boundary.

Callers identify themselves with an API key, sent either as a bearer token or
in ``X-API-Key``. The key resolves to an ``Actor`` carrying the role and user
id the order endpoints act on.
"""

from __future__ import annotations

import hmac
from typing import Callable, Literal

from fastapi import Depends, Header, HTTPException
from pydantic import BaseModel

from storefront.core.config import Settings, get_settings

Role = Literal["CUSTOMER", "ADMIN"]


class Actor(BaseModel):
    role: Role
    id: int


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=401, detail=detail, headers={"WWW-Authenticate": "Bearer"})


def presented_key(authorization: str | None, x_api_key: str | None) -> str | None:
    if authorization is not None:
        scheme, _, token = authorization.strip().partition(" ")
        token = token.strip()
        if scheme.lower() != "bearer" or not token:
            raise _unauthorized("invalid authorization header")
        return token
    return (x_api_key or "").strip() or None


def resolve_actor(api_key: str, settings: Settings) -> Actor | None:
    candidates = (
        (settings.customer_api_key, "CUSTOMER", settings.customer_user_id),
        (settings.admin_api_key, "ADMIN", settings.admin_user_id),
    )
    for expected, role, user_id in candidates:
        if hmac.compare_digest(api_key.encode("utf-8"), expected.encode("utf-8")):
            return Actor(role=role, id=user_id)
    return None


def get_actor(
    authorization: str | None = Header(default=None),
    x_api_key: str | None = Header(default=None),
) -> Actor:
    settings = get_settings()
    if not settings.auth_enabled:
        return Actor(role="CUSTOMER", id=settings.customer_user_id)

    api_key = presented_key(authorization, x_api_key)
    if api_key is None:
        raise _unauthorized("missing api key")
    actor = resolve_actor(api_key, settings)
    if actor is None:
        raise _unauthorized("invalid api key")
    return actor


def require_role(role: Role, detail: str) -> Callable[[Actor], Actor]:
    """Build a dependency that admits only actors holding ``role``."""

    def dependency(actor: Actor = Depends(get_actor)) -> Actor:
        if actor.role != role:
            raise HTTPException(status_code=403, detail=detail)
        return actor

    return dependency


customer_only = require_role("CUSTOMER", "only customers can place orders")
admin_only = require_role("ADMIN", "admin role required")
