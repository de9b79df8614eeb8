"""Shopper-facing operations on a storefront session: cart edits and the
checkout wizard. The session (cart + draft) is loaded from the store,
changed, and written back on every call."""

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from typing import Optional

from app.domain.cart import Cart, ProductSnapshot
from app.domain.checkout import (
    Advance,
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
)
from app.domain.errors import (
    CheckoutStateError,
    EmptyCartError,
    OrderPlacementError,
    ProductNotFoundError,
    StorefrontError,
)
from app.domain.pricing import PriceBreakdown, PricingRules, calculate_pricing
from app.infrastructure.session_store import SessionStore, StorefrontSession
from .catalog import CatalogService
from .service import OrderService, PlacedOrder
from shared.core import get_logger, set_request_context

logger = get_logger(__name__)

class StorefrontService:
    def __init__(self, db: Session, store: SessionStore, rules: Optional[PricingRules] = None):
        self.db = db
        self.store = store
        self.catalog = CatalogService(db)
        self.orders = OrderService(db, rules)
        self.rules = self.orders.rules

    # Sessions

    def create_session(self) -> StorefrontSession:
        return self.store.create()

    def get_session(self, session_id: str) -> StorefrontSession:
        session = self.store.get(session_id)
        set_request_context(session_id=session_id)
        return session

    def pricing(self, cart: Cart) -> PriceBreakdown:
        return calculate_pricing(cart.subtotal(), self.rules)

    # Cart

    def add_item(self, session_id: str, product_id: int, quantity: int = 1) -> StorefrontSession:
        session = self.get_session(session_id)
        product = ProductSnapshot.from_model(self.catalog.get_product(product_id))
        session.cart.add(product, quantity)
        self.store.save(session)
        return session

    def set_item_quantity(self, session_id: str, product_id: int, quantity: int) -> StorefrontSession:
        session = self.get_session(session_id)
        session.cart.set_quantity(product_id, quantity)
        self.store.save(session)
        return session

    def remove_item(self, session_id: str, product_id: int) -> StorefrontSession:
        session = self.get_session(session_id)
        session.cart.remove(product_id)
        self.store.save(session)
        return session

    def clear_cart(self, session_id: str) -> StorefrontSession:
        session = self.get_session(session_id)
        session.cart.clear()
        self.store.save(session)
        return session

    # Checkout

    def _apply(self, session: StorefrontSession, event) -> StorefrontSession:
        session.draft = transition(session.draft, event)
        self.store.save(session)
        return session

    def open_checkout(self, session_id: str) -> StorefrontSession:
        session = self.get_session(session_id)
        if session.cart.is_empty():
            raise EmptyCartError("Add something to the cart before checking out")
        session.draft = transition(session.draft, OpenCheckout())
        methods = self.catalog.list_payment_methods()
        return self._apply(session, PaymentMethodsLoaded(tuple(m.id for m in methods)))

    def close_checkout(self, session_id: str) -> StorefrontSession:
        return self._apply(self.get_session(session_id), CloseCheckout())

    def update_shipping_info(self, session_id: str, info: ShippingInfo) -> StorefrontSession:
        return self._apply(self.get_session(session_id), UpdateShippingInfo(info))

    def select_payment_method(self, session_id: str, method_id: Optional[int]) -> StorefrontSession:
        return self._apply(self.get_session(session_id), SelectPaymentMethod(method_id))

    def advance(self, session_id: str) -> StorefrontSession:
        session = self.get_session(session_id)
        if session.draft.step == CheckoutStep.PAYMENT:
            # the method list may have changed since the flow opened
            methods = self.catalog.list_payment_methods()
            session.draft = transition(session.draft, PaymentMethodsLoaded(tuple(m.id for m in methods)))
        return self._apply(session, Advance())

    def go_back(self, session_id: str) -> StorefrontSession:
        return self._apply(self.get_session(session_id), GoBack())

    def _refreshed_cart(self, cart: Cart) -> Cart:
        """A copy of ``cart`` with every line re-read from the catalog."""
        refreshed = cart.copy()
        for line in refreshed.lines:
            try:
                product = self.catalog.get_product(line.product.id)
            except ProductNotFoundError:
                raise ProductNotFoundError(f"{line.product.name} is no longer available") from None
            refreshed.refresh(ProductSnapshot.from_model(product))
        return refreshed

    def submit_order(self, session_id: str, currency_code: Optional[str] = None) -> PlacedOrder:
        """Place the order for the reviewed draft.

        On success the draft moves to ``submitted`` and the cart is cleared.
        On failure the draft stays in ``review`` with the error recorded, the
        cart is untouched and the error is re-raised.
        """
        session = self.get_session(session_id)
        draft = session.draft
        if draft.step != CheckoutStep.REVIEW:
            raise CheckoutStateError(f"Cannot place an order from step '{draft.step.value}'")

        try:
            placed = self.orders.place_order(
                self._refreshed_cart(session.cart),
                draft.shipping_info,
                draft.selected_payment_method_id,
                currency_code,
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(
                "Checkout submission failed reading the catalog",
                exc_info=True,
                extra={'extra_fields': {'session_id': session_id}}
            )
            error = OrderPlacementError()
            self._apply(session, OrderFailed(error.message))
            raise error from e
        except StorefrontError as e:
            logger.warning(
                f"Checkout submission failed: {e.message}",
                extra={'extra_fields': {'session_id': session_id, 'error': type(e).__name__}}
            )
            self._apply(session, OrderFailed(e.message))
            raise

        session.cart.clear()
        self._apply(session, OrderPlaced(placed.order_number))
        logger.info(
            "Cart cleared after order",
            extra={'extra_fields': {'session_id': session_id, 'order_number': placed.order_number}}
        )
        return placed
