from __future__ import annotations

import re

from storefront.domain.orders.aggregates import PaymentInfo, PaymentSummary

_NON_DIGITS = re.compile(r"\D")


def card_brand_from_digits(digits: str) -> str | None:
    if digits.startswith("4"):
        return "Visa"
    if digits.startswith("5"):
        return "Mastercard"
    if digits:
        return "Tarjeta"
    return None


def trailing_four(value: str | None) -> str | None:
    digits = _NON_DIGITS.sub("", value or "")
    return digits[-4:] if len(digits) >= 4 else None


def summarize_payment(payment: PaymentInfo) -> PaymentSummary:
    """Reduce raw payment input to brand and last four digits.

    The card number is only read here and is never returned or stored. A
    supplied ``last4`` goes through the same digit filter, so whatever the
    client sends, at most four digits are kept.
    """
    digits = _NON_DIGITS.sub("", payment.card_number or "")
    brand = (payment.brand or "").strip() or card_brand_from_digits(digits)
    last4 = trailing_four(payment.last4) or trailing_four(digits)
    return PaymentSummary(brand=brand, last4=last4)
