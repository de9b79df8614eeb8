from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional
import uuid

from app.core_settings import get_settings
from app.domain.cart import Cart
from app.domain.checkout import ShippingInfo
from app.domain.errors import (
    EmptyCartError,
    InvalidOrderStatusError,
    OrderNotFoundError,
    OrderPlacementError,
)
from app.domain.models import Customer, Order, OrderItem, ORDER_STATUSES
from app.domain.pricing import PricingRules, calculate_pricing, quantize_money
from .catalog import CatalogService
from shared.core import get_logger

logger = get_logger(__name__)

ONLINE_PAYMENT_CODES = ("stripe", "paypal")

@dataclass(frozen=True)
class PlacedOrder:
    order_id: int
    order_number: str
    subtotal: Decimal
    shipping_amount: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    currency_code: str
    payment_method: str

    @property
    def requires_online_payment(self) -> bool:
        return self.payment_method in ONLINE_PAYMENT_CODES

class CustomerService:
    def __init__(self, db: Session, dedup_by_email: bool = True):
        self.db = db
        self.dedup_by_email = dedup_by_email

    def find_by_email(self, email: str) -> Optional[Customer]:
        return self.db.query(Customer).filter(
            func.lower(Customer.email) == email.strip().lower()
        ).order_by(Customer.id).first()

    def find_or_create(self, info: ShippingInfo) -> Customer:
        """Adds the customer to the session without committing."""
        customer = self.find_by_email(info.email) if self.dedup_by_email else None
        if customer is None:
            customer = Customer(email=info.email.strip())
            self.db.add(customer)
        # latest checkout wins for contact details
        customer.first_name = info.first_name
        customer.last_name = info.last_name
        customer.phone = info.phone
        customer.shipping_address = info.address_dict()
        self.db.flush()  # assign id
        return customer

class OrderService:
    def __init__(self, db: Session, rules: Optional[PricingRules] = None):
        self.db = db
        self.settings = get_settings()
        self.rules = rules or PricingRules.from_settings(self.settings)
        self.catalog = CatalogService(db)
        self.customers = CustomerService(db, dedup_by_email=self.settings.CUSTOMER_DEDUP_BY_EMAIL)

    def _generate_order_number(self) -> str:
        """ORD-YYYY-<uuid4 hex>; unique without consulting the table"""
        year = datetime.now().year
        return f"{self.settings.ORDER_NUMBER_PREFIX}-{year}-{uuid.uuid4().hex.upper()}"

    def place_order(
        self,
        cart: Cart,
        shipping_info: ShippingInfo,
        payment_method_id: int,
        currency_code: Optional[str] = None,
    ) -> PlacedOrder:
        """Persist customer, order header and items in one transaction.

        Totals are derived here from the cart as it is now. Nothing is
        committed unless every row was written; the cart itself is left
        alone, clearing it is the caller's job.
        """
        if cart.is_empty():
            raise EmptyCartError()
        pricing = calculate_pricing(cart.subtotal(), self.rules)
        order_number = self._generate_order_number()

        try:
            method = self.catalog.get_payment_method(payment_method_id)
            currency = self.catalog.resolve_currency(currency_code)
            resolved_code = currency.code if currency else self.settings.DEFAULT_CURRENCY_CODE
            customer = self.customers.find_or_create(shipping_info)
            order = Order(
                order_number=order_number,
                customer_id=customer.id,
                customer_email=customer.email,
                customer_name=shipping_info.full_name,
                status="pending",
                payment_status="pending",
                currency_code=resolved_code,
                subtotal=quantize_money(pricing.subtotal),
                shipping_amount=quantize_money(pricing.shipping),
                tax_amount=quantize_money(pricing.tax),
                discount_amount=Decimal("0"),
                total_amount=quantize_money(pricing.total),
                shipping_address=shipping_info.address_dict(),
                payment_method=method.code,
                payment_method_id=method.id,
                # Product snapshot per line (decoupled from the live product row)
                items=[
                    OrderItem(
                        product_id=line.product.id,
                        product_name=line.product.name,
                        product_sku=line.product.sku,
                        quantity=line.quantity,
                        unit_price=line.product.price,
                        total_price=line.line_total,
                    )
                    for line in cart
                ],
            )
            self.db.add(order)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(
                "Order placement failed",
                exc_info=True,
                extra={'extra_fields': {'order_number': order_number, 'lines': len(cart)}}
            )
            raise OrderPlacementError() from e

        logger.info(
            f"Order placed: {order_number}",
            extra={'extra_fields': {
                'order_number': order_number,
                'order_id': order.id,
                'customer_id': customer.id,
                'lines': len(cart),
                'total_amount': str(order.total_amount),
                'payment_method': method.code,
            }}
        )
        return PlacedOrder(
            order_id=order.id,
            order_number=order_number,
            subtotal=order.subtotal,
            shipping_amount=order.shipping_amount,
            tax_amount=order.tax_amount,
            total_amount=order.total_amount,
            currency_code=resolved_code,
            payment_method=method.code,
        )

    def get_by_number(self, order_number: str) -> Order:
        order = self.db.query(Order).options(selectinload(Order.items)).filter(
            Order.order_number == order_number
        ).first()
        if not order:
            raise OrderNotFoundError()
        return order

    def update_status(self, order_number: str, status: str) -> Order:
        if status not in ORDER_STATUSES:
            raise InvalidOrderStatusError(
                f"Invalid order status '{status}', expected one of: {', '.join(ORDER_STATUSES)}"
            )
        order = self.get_by_number(order_number)
        order.status = status
        self.db.commit()
        self.db.refresh(order)
        logger.info(f"Order {order_number} status changed to {status}")
        return order
