from dataclasses import replace

import pytest

from app.domain.checkout import (
    Advance,
    CheckoutDraft,
    CheckoutStep,
    CloseCheckout,
    GoBack,
    OpenCheckout,
    OrderFailed,
    OrderPlaced,
    PaymentMethodsLoaded,
    SelectPaymentMethod,
    ShippingInfo,
    UpdateShippingInfo,
    transition,
    validate_shipping_info,
)
from app.domain.errors import CheckoutStateError


def run(draft, *events):
    for event in events:
        draft = transition(draft, event)
    return draft


@pytest.fixture
def at_payment(shipping_info):
    return run(
        CheckoutDraft(),
        OpenCheckout(),
        PaymentMethodsLoaded((1, 2)),
        UpdateShippingInfo(shipping_info),
        Advance(),
    )


def test_open_moves_idle_to_info():
    draft = transition(CheckoutDraft(), OpenCheckout())
    assert draft.step == CheckoutStep.INFO


def test_payment_methods_loaded_preselects_first():
    draft = run(CheckoutDraft(), OpenCheckout(), PaymentMethodsLoaded((7, 3)))
    assert draft.selected_payment_method_id == 7
    assert draft.available_payment_method_ids == (7, 3)


def test_blank_info_blocks_advance_with_field_errors():
    draft = run(CheckoutDraft(), OpenCheckout(), Advance())
    assert draft.step == CheckoutStep.INFO
    assert set(draft.errors) == {
        "email", "first_name", "last_name", "address", "city", "postal_code", "country", "phone",
    }


@pytest.mark.parametrize("email", ["foo", "foo@", "@bar.com"])
def test_invalid_email_blocks_advance(shipping_info, email):
    info = replace(shipping_info, email=email)
    draft = run(CheckoutDraft(), OpenCheckout(), UpdateShippingInfo(info), Advance())
    assert draft.step == CheckoutStep.INFO
    assert list(draft.errors) == ["email"]
    assert draft.shipping_info.email == email


def test_valid_email_with_all_fields_advances(shipping_info):
    info = replace(shipping_info, email="a@b.com")
    draft = run(CheckoutDraft(), OpenCheckout(), UpdateShippingInfo(info), Advance())
    assert draft.step == CheckoutStep.PAYMENT
    assert draft.errors == {}


def test_whitespace_only_field_counts_as_missing(shipping_info):
    errors = validate_shipping_info(replace(shipping_info, city="   "))
    assert errors == {"city": "This field is required"}


def test_payment_requires_selected_method(at_payment):
    draft = run(at_payment, SelectPaymentMethod(None), Advance())
    assert draft.step == CheckoutStep.PAYMENT
    assert "payment_method" in draft.errors


def test_payment_requires_available_method(at_payment):
    draft = run(at_payment, SelectPaymentMethod(99), Advance())
    assert draft.step == CheckoutStep.PAYMENT
    assert "payment_method" in draft.errors


def test_payment_advances_to_review(at_payment):
    draft = run(at_payment, SelectPaymentMethod(2), Advance())
    assert draft.step == CheckoutStep.REVIEW
    assert draft.selected_payment_method_id == 2


def test_review_unreachable_without_method_whatever_the_route(shipping_info):
    draft = run(
        CheckoutDraft(),
        OpenCheckout(),
        UpdateShippingInfo(shipping_info),
        SelectPaymentMethod(None),
        Advance(),
        GoBack(),
        Advance(),
        Advance(),
        Advance(),
    )
    assert draft.step == CheckoutStep.PAYMENT
    assert draft.selected_payment_method_id is None


def test_back_keeps_entered_data(at_payment, shipping_info):
    review = run(at_payment, Advance())
    assert review.step == CheckoutStep.REVIEW
    back = run(review, GoBack())
    assert back.step == CheckoutStep.PAYMENT
    assert back.selected_payment_method_id == 1
    back = run(back, GoBack())
    assert back.step == CheckoutStep.INFO
    assert back.shipping_info == shipping_info


def test_back_from_info_stays_on_info():
    draft = run(CheckoutDraft(), OpenCheckout(), GoBack())
    assert draft.step == CheckoutStep.INFO


def test_shipping_info_locked_after_validation(at_payment, shipping_info):
    with pytest.raises(CheckoutStateError):
        transition(at_payment, UpdateShippingInfo(replace(shipping_info, email="")))


def test_order_placed_only_from_review(at_payment):
    with pytest.raises(CheckoutStateError):
        transition(at_payment, OrderPlaced("ORD-1"))
    with pytest.raises(CheckoutStateError):
        transition(CheckoutDraft(), Advance())


def test_advance_from_review_is_rejected(at_payment):
    review = run(at_payment, Advance())
    with pytest.raises(CheckoutStateError):
        transition(review, Advance())


def test_order_failed_keeps_review_and_data(at_payment):
    review = run(at_payment, Advance())
    failed = transition(review, OrderFailed("Could not place order, please try again"))
    assert failed.step == CheckoutStep.REVIEW
    assert failed.errors == {"order": "Could not place order, please try again"}
    assert failed.shipping_info == review.shipping_info
    retried = transition(failed, OrderPlaced("ORD-2026-ABC"))
    assert retried.step == CheckoutStep.SUBMITTED
    assert retried.errors == {}


def test_reopen_after_submission_starts_blank(at_payment):
    submitted = run(at_payment, Advance(), OrderPlaced("ORD-2026-ABC"))
    assert submitted.order_number == "ORD-2026-ABC"
    reopened = transition(submitted, OpenCheckout())
    assert reopened.step == CheckoutStep.INFO
    assert reopened.shipping_info == ShippingInfo()
    assert reopened.selected_payment_method_id is None
    assert reopened.order_number is None


def test_open_while_in_progress_keeps_draft(at_payment):
    assert transition(at_payment, OpenCheckout()) is at_payment


def test_close_and_reopen_keeps_draft_data(at_payment, shipping_info):
    closed = transition(at_payment, CloseCheckout())
    assert closed.step == CheckoutStep.IDLE
    reopened = transition(closed, OpenCheckout())
    assert reopened.step == CheckoutStep.INFO
    assert reopened.shipping_info == shipping_info


def test_method_disappearing_during_review_returns_to_payment(at_payment):
    review = run(at_payment, Advance())
    draft = transition(review, PaymentMethodsLoaded((2,)))
    assert draft.step == CheckoutStep.PAYMENT
    assert draft.selected_payment_method_id is None
    assert transition(draft, Advance()).step == CheckoutStep.PAYMENT


def test_draft_dict_form_round_trips(at_payment):
    assert CheckoutDraft.from_dict(at_payment.to_dict()) == at_payment
