"""Shipping, tax and total derivation for a cart subtotal.

Every caller (cart view, checkout review, order placement) prices through
``calculate_pricing`` so the figures shown and the figures persisted agree.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Union

ZERO = Decimal("0")
CENT = Decimal("0.01")

Number = Union[Decimal, int, float, str]


def to_decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    # str() first so 29.99 stays 29.99 and not its binary expansion
    return Decimal(str(value))


def quantize_money(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class PricingRules:
    free_shipping_threshold: Decimal = Decimal("50")
    flat_shipping_rate: Decimal = Decimal("4.99")
    tax_rate: Decimal = Decimal("0.10")

    @classmethod
    def from_settings(cls, settings) -> "PricingRules":
        return cls(
            free_shipping_threshold=to_decimal(settings.FREE_SHIPPING_THRESHOLD),
            flat_shipping_rate=to_decimal(settings.FLAT_SHIPPING_RATE),
            tax_rate=to_decimal(settings.TAX_RATE),
        )


DEFAULT_RULES = PricingRules()


@dataclass(frozen=True)
class PriceBreakdown:
    subtotal: Decimal
    shipping: Decimal
    tax: Decimal
    total: Decimal
    free_shipping_remaining: Decimal

    @property
    def free_shipping(self) -> bool:
        return self.shipping == ZERO


def shipping_for(subtotal: Number, rules: PricingRules = DEFAULT_RULES) -> Decimal:
    subtotal = to_decimal(subtotal)
    # strictly greater: a subtotal of exactly the threshold still pays shipping
    if subtotal > rules.free_shipping_threshold:
        return ZERO
    return rules.flat_shipping_rate


def free_shipping_remaining(subtotal: Number, rules: PricingRules = DEFAULT_RULES) -> Decimal:
    """Smallest amount to add so the subtotal clears the threshold (0 once it has)."""
    subtotal = to_decimal(subtotal)
    if subtotal > rules.free_shipping_threshold:
        return ZERO
    return rules.free_shipping_threshold - subtotal + CENT


def tax_for(subtotal: Number, rules: PricingRules = DEFAULT_RULES) -> Decimal:
    return to_decimal(subtotal) * rules.tax_rate


def calculate_pricing(subtotal: Number, rules: PricingRules = DEFAULT_RULES) -> PriceBreakdown:
    """Price a subtotal. Exact decimal arithmetic, no rounding."""
    subtotal = to_decimal(subtotal)
    if subtotal < ZERO:
        raise ValueError("subtotal must not be negative")
    shipping = shipping_for(subtotal, rules)
    tax = tax_for(subtotal, rules)
    return PriceBreakdown(
        subtotal=subtotal,
        shipping=shipping,
        tax=tax,
        total=subtotal + shipping + tax,
        free_shipping_remaining=free_shipping_remaining(subtotal, rules),
    )
