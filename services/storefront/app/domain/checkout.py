"""Checkout wizard as an explicit state machine.

    idle -> info -> payment -> review -> submitted

``transition`` is the only way a draft changes step. It is pure: it takes a
draft and an event and returns a new draft. Guard failures keep the current
step and record messages in ``draft.errors``; events that make no sense in
the current step raise ``CheckoutStateError``.
"""

import re
from dataclasses import dataclass, field, fields, replace
from enum import Enum
from typing import Dict, Optional, Tuple

from .errors import CheckoutStateError

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class CheckoutStep(str, Enum):
    IDLE = "idle"
    INFO = "info"
    PAYMENT = "payment"
    REVIEW = "review"
    SUBMITTED = "submitted"


@dataclass(frozen=True)
class ShippingInfo:
    email: str = ""
    first_name: str = ""
    last_name: str = ""
    address: str = ""
    city: str = ""
    postal_code: str = ""
    country: str = ""
    phone: str = ""

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def address_dict(self) -> dict:
        return {
            "address": self.address,
            "city": self.city,
            "postalCode": self.postal_code,
            "country": self.country,
        }


def validate_shipping_info(info: ShippingInfo) -> Dict[str, str]:
    """Return field -> message for every missing or malformed field."""
    errors = {}
    for f in fields(ShippingInfo):
        if not getattr(info, f.name).strip():
            errors[f.name] = "This field is required"
    if "email" not in errors and not EMAIL_RE.match(info.email.strip()):
        errors["email"] = "Enter a valid email address"
    return errors


@dataclass(frozen=True)
class CheckoutDraft:
    step: CheckoutStep = CheckoutStep.IDLE
    shipping_info: ShippingInfo = field(default_factory=ShippingInfo)
    selected_payment_method_id: Optional[int] = None
    available_payment_method_ids: Tuple[int, ...] = ()
    errors: Dict[str, str] = field(default_factory=dict)
    order_number: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "step": self.step.value,
            "shipping_info": {f.name: getattr(self.shipping_info, f.name) for f in fields(ShippingInfo)},
            "selected_payment_method_id": self.selected_payment_method_id,
            "available_payment_method_ids": list(self.available_payment_method_ids),
            "errors": dict(self.errors),
            "order_number": self.order_number,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CheckoutDraft":
        return cls(
            step=CheckoutStep(data.get("step", CheckoutStep.IDLE.value)),
            shipping_info=ShippingInfo(**data.get("shipping_info", {})),
            selected_payment_method_id=data.get("selected_payment_method_id"),
            available_payment_method_ids=tuple(data.get("available_payment_method_ids", ())),
            errors=dict(data.get("errors", {})),
            order_number=data.get("order_number"),
        )


# Events

@dataclass(frozen=True)
class OpenCheckout:
    pass


@dataclass(frozen=True)
class CloseCheckout:
    pass


@dataclass(frozen=True)
class PaymentMethodsLoaded:
    method_ids: Tuple[int, ...]


@dataclass(frozen=True)
class UpdateShippingInfo:
    shipping_info: ShippingInfo


@dataclass(frozen=True)
class SelectPaymentMethod:
    method_id: Optional[int]


@dataclass(frozen=True)
class Advance:
    pass


@dataclass(frozen=True)
class GoBack:
    pass


@dataclass(frozen=True)
class OrderPlaced:
    order_number: str


@dataclass(frozen=True)
class OrderFailed:
    message: str


EDITABLE_STEPS = (CheckoutStep.INFO, CheckoutStep.PAYMENT, CheckoutStep.REVIEW)


def _require(draft: CheckoutDraft, event, *steps: CheckoutStep) -> None:
    if draft.step not in steps:
        raise CheckoutStateError(
            f"{type(event).__name__} is not allowed in step '{draft.step.value}'"
        )


def _advance(draft: CheckoutDraft) -> CheckoutDraft:
    if draft.step == CheckoutStep.INFO:
        errors = validate_shipping_info(draft.shipping_info)
        if errors:
            return replace(draft, errors=errors)
        return replace(draft, step=CheckoutStep.PAYMENT, errors={})

    if draft.step == CheckoutStep.PAYMENT:
        method_id = draft.selected_payment_method_id
        if method_id is None:
            return replace(draft, errors={"payment_method": "Please select a payment method"})
        if method_id not in draft.available_payment_method_ids:
            return replace(draft, errors={"payment_method": "Selected payment method is not available"})
        return replace(draft, step=CheckoutStep.REVIEW, errors={})

    # review only leaves through OrderPlaced
    raise CheckoutStateError(f"Cannot advance from step '{draft.step.value}'")


def transition(draft: CheckoutDraft, event) -> CheckoutDraft:
    if isinstance(event, OpenCheckout):
        if draft.step in (CheckoutStep.IDLE, CheckoutStep.SUBMITTED):
            if draft.step == CheckoutStep.SUBMITTED:
                return CheckoutDraft(step=CheckoutStep.INFO)
            return replace(draft, step=CheckoutStep.INFO, errors={}, order_number=None)
        return draft

    if isinstance(event, CloseCheckout):
        if draft.step == CheckoutStep.SUBMITTED:
            return CheckoutDraft()
        return replace(draft, step=CheckoutStep.IDLE, errors={})

    if isinstance(event, PaymentMethodsLoaded):
        ids = tuple(event.method_ids)
        selected = draft.selected_payment_method_id
        step = draft.step
        if selected not in ids:
            if step in (CheckoutStep.PAYMENT, CheckoutStep.REVIEW):
                # the chosen method went away; the shopper has to pick again
                selected = None
                step = CheckoutStep.PAYMENT
            else:
                selected = ids[0] if ids else None
        return replace(
            draft,
            step=step,
            available_payment_method_ids=ids,
            selected_payment_method_id=selected,
        )

    if isinstance(event, UpdateShippingInfo):
        # shipping info only changes before it is validated
        _require(draft, event, CheckoutStep.INFO)
        return replace(draft, shipping_info=event.shipping_info)

    if isinstance(event, SelectPaymentMethod):
        _require(draft, event, CheckoutStep.INFO, CheckoutStep.PAYMENT)
        return replace(draft, selected_payment_method_id=event.method_id)

    if isinstance(event, Advance):
        _require(draft, event, *EDITABLE_STEPS)
        return _advance(draft)

    if isinstance(event, GoBack):
        _require(draft, event, *EDITABLE_STEPS)
        previous = {
            CheckoutStep.PAYMENT: CheckoutStep.INFO,
            CheckoutStep.REVIEW: CheckoutStep.PAYMENT,
        }.get(draft.step, draft.step)
        return replace(draft, step=previous, errors={})

    if isinstance(event, OrderPlaced):
        _require(draft, event, CheckoutStep.REVIEW)
        return replace(draft, step=CheckoutStep.SUBMITTED, errors={}, order_number=event.order_number)

    if isinstance(event, OrderFailed):
        _require(draft, event, CheckoutStep.REVIEW)
        return replace(draft, errors={"order": event.message})

    raise CheckoutStateError(f"Unknown checkout event {event!r}")
