from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from typing import Optional
from app.infrastructure.db import get_db
from app.infrastructure.session_store import SessionStore, StorefrontSession
from app.application.catalog import CatalogService
from app.application.service import OrderService
from app.application.storefront import StorefrontService
from app.application.schemas import (
    CartItemAdd,
    CartItemUpdate,
    CartLineRead,
    CartRead,
    CategoryRead,
    CheckoutRead,
    CheckoutSubmit,
    CurrencyRead,
    OrderRead,
    OrderStatusUpdate,
    PaymentMethodRead,
    PaymentMethodSelect,
    PlacedOrderRead,
    PricingRead,
    ProductRead,
    SessionRead,
    ShippingInfoIn,
)
from app.domain.checkout import ShippingInfo
from app.domain.currency import CurrencyRate, format_price
from app.domain import errors

ERROR_STATUS = {
    errors.ProductNotFoundError: 404,
    errors.SessionNotFoundError: 404,
    errors.OrderNotFoundError: 404,
    errors.CartLineNotFoundError: 404,
    errors.OutOfStockError: 409,
    errors.CheckoutStateError: 409,
    errors.EmptyCartError: 409,
    errors.PaymentMethodUnavailableError: 422,
    errors.InvalidOrderStatusError: 422,
    errors.OrderPlacementError: 503,
}

async def storefront_error_handler(request: Request, exc: errors.StorefrontError) -> JSONResponse:
    status_code = ERROR_STATUS.get(type(exc), 400)
    return JSONResponse(status_code=status_code, content={"detail": exc.message})

def get_session_store(request: Request) -> SessionStore:
    return request.app.state.session_store

def get_storefront(
    db: Session = Depends(get_db),
    store: SessionStore = Depends(get_session_store),
) -> StorefrontService:
    return StorefrontService(db, store)

def _pricing_read(storefront: StorefrontService, session: StorefrontSession, currency_code: Optional[str]) -> PricingRead:
    pricing = storefront.pricing(session.cart)
    currency = storefront.catalog.resolve_currency(currency_code)
    rate = CurrencyRate.from_model(currency) if currency else None
    return PricingRead(
        subtotal=pricing.subtotal,
        shipping=pricing.shipping,
        tax=pricing.tax,
        total=pricing.total,
        free_shipping_remaining=pricing.free_shipping_remaining,
        formatted_total=format_price(pricing.total, rate),
        currency_code=rate.code if rate else None,
    )

def _cart_read(storefront: StorefrontService, session: StorefrontSession, currency_code: Optional[str] = None) -> CartRead:
    return CartRead(
        session_id=session.id,
        lines=[
            CartLineRead(
                product_id=line.product.id,
                name=line.product.name,
                sku=line.product.sku,
                image=line.product.image,
                unit_price=line.product.price,
                quantity=line.quantity,
                stock_quantity=line.product.stock_quantity,
                line_total=line.line_total,
            )
            for line in session.cart
        ],
        total_items=session.cart.total_items(),
        pricing=_pricing_read(storefront, session, currency_code),
    )

def _checkout_read(storefront: StorefrontService, session: StorefrontSession, currency_code: Optional[str] = None) -> CheckoutRead:
    draft = session.draft
    data = draft.to_dict()
    return CheckoutRead(
        session_id=session.id,
        step=data["step"],
        shipping_info=ShippingInfoIn(**data["shipping_info"]),
        selected_payment_method_id=draft.selected_payment_method_id,
        available_payment_method_ids=data["available_payment_method_ids"],
        errors=data["errors"],
        order_number=draft.order_number,
        pricing=_pricing_read(storefront, session, currency_code),
    )

# Catalog

catalog_router = APIRouter(tags=["catalog"])

@catalog_router.get("/products", response_model=list[ProductRead])
def list_products(
    db: Session = Depends(get_db),
    category: Optional[str] = Query(None, max_length=200, description="Category slug")
):
    return CatalogService(db).list_products(category_slug=category)

@catalog_router.get("/products/{product_id}", response_model=ProductRead)
def get_product(product_id: int, db: Session = Depends(get_db)):
    return CatalogService(db).get_product(product_id)

@catalog_router.get("/categories", response_model=list[CategoryRead])
def list_categories(db: Session = Depends(get_db)):
    return CatalogService(db).list_categories()

@catalog_router.get("/payment-methods", response_model=list[PaymentMethodRead])
def list_payment_methods(db: Session = Depends(get_db)):
    """Active payment methods in display order."""
    return CatalogService(db).list_payment_methods()

@catalog_router.get("/currencies", response_model=list[CurrencyRead])
def list_currencies(db: Session = Depends(get_db)):
    """Active currencies, default first."""
    return CatalogService(db).list_currencies()

# Sessions: cart

sessions_router = APIRouter(prefix="/sessions", tags=["sessions"])

@sessions_router.post("", response_model=SessionRead, status_code=201)
def create_session(storefront: StorefrontService = Depends(get_storefront)):
    session = storefront.create_session()
    return SessionRead(session_id=session.id, created_at=session.created_at)

@sessions_router.get("/{session_id}/cart", response_model=CartRead)
def get_cart(
    session_id: str,
    currency: Optional[str] = Query(None, max_length=3),
    storefront: StorefrontService = Depends(get_storefront),
):
    return _cart_read(storefront, storefront.get_session(session_id), currency)

@sessions_router.post("/{session_id}/cart/items", response_model=CartRead)
def add_cart_item(session_id: str, payload: CartItemAdd, storefront: StorefrontService = Depends(get_storefront)):
    session = storefront.add_item(session_id, payload.product_id, payload.quantity)
    return _cart_read(storefront, session)

@sessions_router.put("/{session_id}/cart/items/{product_id}", response_model=CartRead)
def update_cart_item(
    session_id: str,
    product_id: int,
    payload: CartItemUpdate,
    storefront: StorefrontService = Depends(get_storefront),
):
    session = storefront.set_item_quantity(session_id, product_id, payload.quantity)
    return _cart_read(storefront, session)

@sessions_router.delete("/{session_id}/cart/items/{product_id}", response_model=CartRead)
def remove_cart_item(session_id: str, product_id: int, storefront: StorefrontService = Depends(get_storefront)):
    session = storefront.remove_item(session_id, product_id)
    return _cart_read(storefront, session)

@sessions_router.delete("/{session_id}/cart", response_model=CartRead)
def clear_cart(session_id: str, storefront: StorefrontService = Depends(get_storefront)):
    return _cart_read(storefront, storefront.clear_cart(session_id))

# Sessions: checkout

@sessions_router.get("/{session_id}/checkout", response_model=CheckoutRead)
def get_checkout(
    session_id: str,
    currency: Optional[str] = Query(None, max_length=3),
    storefront: StorefrontService = Depends(get_storefront),
):
    return _checkout_read(storefront, storefront.get_session(session_id), currency)

@sessions_router.post("/{session_id}/checkout/open", response_model=CheckoutRead)
def open_checkout(session_id: str, storefront: StorefrontService = Depends(get_storefront)):
    return _checkout_read(storefront, storefront.open_checkout(session_id))

@sessions_router.post("/{session_id}/checkout/close", response_model=CheckoutRead)
def close_checkout(session_id: str, storefront: StorefrontService = Depends(get_storefront)):
    return _checkout_read(storefront, storefront.close_checkout(session_id))

@sessions_router.put("/{session_id}/checkout/shipping", response_model=CheckoutRead)
def update_shipping(session_id: str, payload: ShippingInfoIn, storefront: StorefrontService = Depends(get_storefront)):
    info = ShippingInfo(**payload.model_dump())
    return _checkout_read(storefront, storefront.update_shipping_info(session_id, info))

@sessions_router.put("/{session_id}/checkout/payment-method", response_model=CheckoutRead)
def select_payment_method(
    session_id: str,
    payload: PaymentMethodSelect,
    storefront: StorefrontService = Depends(get_storefront),
):
    return _checkout_read(storefront, storefront.select_payment_method(session_id, payload.payment_method_id))

@sessions_router.post("/{session_id}/checkout/advance", response_model=CheckoutRead)
def advance_checkout(session_id: str, storefront: StorefrontService = Depends(get_storefront)):
    """Move to the next step. Validation errors come back in ``errors``."""
    return _checkout_read(storefront, storefront.advance(session_id))

@sessions_router.post("/{session_id}/checkout/back", response_model=CheckoutRead)
def checkout_back(session_id: str, storefront: StorefrontService = Depends(get_storefront)):
    return _checkout_read(storefront, storefront.go_back(session_id))

@sessions_router.post("/{session_id}/checkout/submit", response_model=PlacedOrderRead, status_code=201)
def submit_checkout(
    session_id: str,
    payload: Optional[CheckoutSubmit] = None,
    storefront: StorefrontService = Depends(get_storefront),
):
    placed = storefront.submit_order(session_id, payload.currency_code if payload else None)
    return PlacedOrderRead(
        order_id=placed.order_id,
        order_number=placed.order_number,
        subtotal=placed.subtotal,
        shipping_amount=placed.shipping_amount,
        tax_amount=placed.tax_amount,
        total_amount=placed.total_amount,
        currency_code=placed.currency_code,
        payment_method=placed.payment_method,
        requires_online_payment=placed.requires_online_payment,
    )

# Orders

orders_router = APIRouter(prefix="/orders", tags=["orders"])

@orders_router.get("/{order_number}", response_model=OrderRead)
def get_order(order_number: str, db: Session = Depends(get_db)):
    return OrderService(db).get_by_number(order_number)

@orders_router.put("/{order_number}/status", response_model=OrderRead)
def update_order_status(order_number: str, payload: OrderStatusUpdate, db: Session = Depends(get_db)):
    return OrderService(db).update_status(order_number, payload.status)
