from __future__ import annotations

from collections import defaultdict
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from storefront.api.utils import isoformat_z
from storefront.persistence.models import OrderItemModel, OrderModel, ProductImageModel, ProductModel


def _first_image_url():
    return (
        select(ProductImageModel.url)
        .where(ProductImageModel.product_id == ProductModel.id)
        .order_by(ProductImageModel.id.asc())
        .limit(1)
        .correlate(ProductModel)
        .scalar_subquery()
    )


def load_receipt_items(session: Session, order_ids: list[int]) -> dict[int, list[dict[str, Any]]]:
    if not order_ids:
        return {}
    stmt = (
        select(
            OrderItemModel,
            ProductModel.name.label("product_name"),
            _first_image_url().label("product_image"),
        )
        .outerjoin(ProductModel, ProductModel.id == OrderItemModel.product_id)
        .where(OrderItemModel.order_id.in_(order_ids))
        .order_by(OrderItemModel.order_id.asc(), OrderItemModel.id.asc())
    )
    grouped: dict[int, list[dict[str, Any]]] = defaultdict(list)
    for item, product_name, product_image in session.execute(stmt).all():
        grouped[item.order_id].append(
            {
                "order_id": item.order_id,
                "product_id": item.product_id,
                "product_name": product_name,
                "product_image": product_image,
                "quantity": item.quantity,
                "unit_price": item.unit_price,
            }
        )
    return grouped


def serialize_order(order: OrderModel, items: list[dict[str, Any]]) -> dict[str, Any]:
    return {
        "id": order.id,
        "total": order.total,
        "status": order.status,
        "created_at": isoformat_z(order.created_at),
        "items": items,
        "shipping": {
            "fullName": order.shipping_name,
            "phone": order.shipping_phone,
            "address1": order.shipping_address1,
            "address2": order.shipping_address2,
            "city": order.shipping_city,
            "state": order.shipping_state,
            "zip": order.shipping_zip,
            "country": order.shipping_country,
        },
        "payment": {"brand": order.card_brand, "last4": order.card_last4},
        "estimatedDelivery": order.estimated_delivery.isoformat() if order.estimated_delivery else None,
    }


def order_receipt(session: Session, order: OrderModel) -> dict[str, Any]:
    items = load_receipt_items(session, [order.id])
    return serialize_order(order, items.get(order.id, []))


def list_orders_for_user(session: Session, user_id: int) -> list[dict[str, Any]]:
    orders = list(
        session.scalars(
            select(OrderModel)
            .where(OrderModel.user_id == user_id)
            .order_by(OrderModel.created_at.desc(), OrderModel.id.desc())
        ).all()
    )
    items = load_receipt_items(session, [order.id for order in orders])
    return [serialize_order(order, items.get(order.id, [])) for order in orders]


def list_orders_page(session: Session, page: int, limit: int) -> dict[str, Any]:
    total = session.scalar(select(func.count()).select_from(OrderModel)) or 0
    rows = list(
        session.scalars(
            select(OrderModel)
            .order_by(OrderModel.created_at.desc(), OrderModel.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        ).all()
    )
    return {
        "total": total,
        "page": page,
        "limit": limit,
        "items": [
            {
                "id": row.id,
                "user_id": row.user_id,
                "total": row.total,
                "status": row.status,
                "created_at": isoformat_z(row.created_at),
                "estimatedDelivery": row.estimated_delivery.isoformat() if row.estimated_delivery else None,
            }
            for row in rows
        ],
    }
