from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date
from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")


def to_money(value: Decimal | int | str) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class CartLine:
    product_id: int
    quantity: int

    def __post_init__(self) -> None:
        if self.quantity < 1:
            raise ValueError(f"quantity must be >= 1 for product {self.product_id}")


@dataclass(frozen=True)
class ShippingInfo:
    full_name: str | None = None
    phone: str | None = None
    address1: str | None = None
    address2: str | None = None
    city: str | None = None
    state: str | None = None
    zip: str | None = None
    country: str | None = None

    def normalized(self) -> "ShippingInfo":
        # Blank form fields are stored as null.
        return ShippingInfo(**{key: (value or None) for key, value in asdict(self).items()})


@dataclass(frozen=True)
class PaymentInfo:
    card_number: str | None = None
    brand: str | None = None
    last4: str | None = None


@dataclass(frozen=True)
class PaymentSummary:
    brand: str | None
    last4: str | None


@dataclass
class OrderLine:
    product_id: int
    quantity: int
    unit_price: Decimal

    @property
    def subtotal(self) -> Decimal:
        return to_money(self.unit_price * self.quantity)


@dataclass
class OrderDraft:
    user_id: int
    shipping: ShippingInfo
    payment: PaymentSummary
    estimated_delivery: date
    lines: list[OrderLine] = field(default_factory=list)

    @property
    def total(self) -> Decimal:
        return to_money(sum((line.subtotal for line in self.lines), Decimal("0")))
