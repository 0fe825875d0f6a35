from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from storefront.api.utils import clamp_pagination
from storefront.core.config import get_settings
from storefront.core.security import Actor, admin_only, customer_only, get_actor
from storefront.domain.orders.aggregates import CartLine, PaymentInfo, ShippingInfo
from storefront.domain.orders.checkout import place_order
from storefront.domain.orders.queries import list_orders_for_user, list_orders_page, order_receipt
from storefront.domain.orders.status import OrderStatus
from storefront.domain.orders.transitions import transition_order
from storefront.persistence.database import get_session

router = APIRouter(tags=["orders"])


class CartItemRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    product_id: int = Field(alias="productId")
    quantity: int = Field(ge=1)


# Matches the width of the shipping and card columns on orders.
TEXT_FIELD_MAX = 255


class ShippingRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    full_name: str | None = Field(default=None, alias="fullName", max_length=TEXT_FIELD_MAX)
    phone: str | None = Field(default=None, max_length=TEXT_FIELD_MAX)
    address1: str | None = Field(default=None, max_length=TEXT_FIELD_MAX)
    address2: str | None = Field(default=None, max_length=TEXT_FIELD_MAX)
    city: str | None = Field(default=None, max_length=TEXT_FIELD_MAX)
    state: str | None = Field(default=None, max_length=TEXT_FIELD_MAX)
    zip: str | None = Field(default=None, max_length=TEXT_FIELD_MAX)
    country: str | None = Field(default=None, max_length=TEXT_FIELD_MAX)

    def to_domain(self) -> ShippingInfo:
        return ShippingInfo(**self.model_dump())


class PaymentRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    card_number: str | None = Field(default=None, alias="cardNumber", max_length=64)
    brand: str | None = Field(default=None, max_length=TEXT_FIELD_MAX)
    last4: str | None = Field(default=None, max_length=64)
    expiry: str | None = Field(default=None, max_length=16)

    def to_domain(self) -> PaymentInfo:
        # expiry is accepted from the form but never stored.
        return PaymentInfo(card_number=self.card_number, brand=self.brand or None, last4=self.last4 or None)


class CheckoutRequest(BaseModel):
    items: list[CartItemRequest] = Field(min_length=1)
    shipping: ShippingRequest = Field(default_factory=ShippingRequest)
    payment: PaymentRequest = Field(default_factory=PaymentRequest)


class StatusChangeRequest(BaseModel):
    status: OrderStatus


@router.post("/orders", status_code=201)
def create_order(
    request: CheckoutRequest,
    actor: Actor = Depends(customer_only),
    session: Session = Depends(get_session),
):
    order = place_order(
        session=session,
        user_id=actor.id,
        lines=[CartLine(product_id=item.product_id, quantity=item.quantity) for item in request.items],
        shipping=request.shipping.to_domain(),
        payment=request.payment.to_domain(),
    )
    return order_receipt(session, order)


@router.get("/orders/my")
def list_my_orders(
    actor: Actor = Depends(get_actor),
    session: Session = Depends(get_session),
):
    return list_orders_for_user(session, actor.id)


@router.get("/orders", dependencies=[Depends(admin_only)])
def list_all_orders(
    page: int | None = Query(default=None),
    limit: int | None = Query(default=None),
    session: Session = Depends(get_session),
):
    settings = get_settings()
    resolved_page, resolved_limit = clamp_pagination(
        page,
        limit,
        default_limit=settings.orders_default_page_size,
        max_limit=settings.orders_max_page_size,
    )
    return list_orders_page(session, resolved_page, resolved_limit)


@router.put("/orders/{order_id}/status", dependencies=[Depends(admin_only)])
def change_order_status(
    order_id: int,
    request: StatusChangeRequest,
    session: Session = Depends(get_session),
):
    order = transition_order(session, order_id, request.status)
    return {"id": order.id, "total": order.total, "status": order.status}
