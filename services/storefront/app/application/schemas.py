from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional

class CategoryRead(BaseModel):
    id: int
    name: str
    slug: str
    description: Optional[str] = None
    sort_order: int = 0
    class Config:
        from_attributes = True

class ProductRead(BaseModel):
    id: int
    category_id: Optional[int] = None
    name: str
    slug: str
    sku: str
    description: Optional[str] = None
    base_price: float
    stock_quantity: int
    images: list[str] = []
    is_featured: bool = False
    class Config:
        from_attributes = True

class PaymentMethodRead(BaseModel):
    id: int
    name: str
    code: str
    description: Optional[str] = None
    icon: Optional[str] = None
    sort_order: int = 0
    class Config:
        from_attributes = True

class CurrencyRead(BaseModel):
    id: int
    code: str
    name: str
    symbol: str
    exchange_rate: float
    is_default: bool
    class Config:
        from_attributes = True

# Sessions and cart

class SessionRead(BaseModel):
    session_id: str
    created_at: datetime

class CartItemAdd(BaseModel):
    product_id: int
    quantity: int = Field(1, ge=1)

class CartItemUpdate(BaseModel):
    # 0 or less removes the line
    quantity: int

class PricingRead(BaseModel):
    subtotal: float
    shipping: float
    tax: float
    total: float
    free_shipping_remaining: float
    # Display strings in the requested currency
    formatted_total: Optional[str] = None
    currency_code: Optional[str] = None

class CartLineRead(BaseModel):
    product_id: int
    name: str
    sku: str
    image: Optional[str] = None
    unit_price: float
    quantity: int
    stock_quantity: int
    line_total: float

class CartRead(BaseModel):
    session_id: str
    lines: list[CartLineRead]
    total_items: int
    pricing: PricingRead

# Checkout

class ShippingInfoIn(BaseModel):
    email: str = ""
    first_name: str = ""
    last_name: str = ""
    address: str = ""
    city: str = ""
    postal_code: str = ""
    country: str = ""
    phone: str = ""

class PaymentMethodSelect(BaseModel):
    payment_method_id: Optional[int] = None

class CheckoutSubmit(BaseModel):
    currency_code: Optional[str] = None

class CheckoutRead(BaseModel):
    session_id: str
    step: str
    shipping_info: ShippingInfoIn
    selected_payment_method_id: Optional[int] = None
    available_payment_method_ids: list[int]
    errors: dict[str, str]
    order_number: Optional[str] = None
    pricing: PricingRead

class PlacedOrderRead(BaseModel):
    order_id: int
    order_number: str
    subtotal: float
    shipping_amount: float
    tax_amount: float
    total_amount: float
    currency_code: str
    payment_method: str
    # stripe / paypal orders still need capture through the payment bridge
    requires_online_payment: bool

# Orders

class OrderItemRead(BaseModel):
    id: int
    product_id: Optional[int] = None
    product_name: str
    product_sku: str
    quantity: int
    unit_price: float
    total_price: float
    class Config:
        from_attributes = True

class OrderRead(BaseModel):
    id: int
    order_number: str
    customer_id: int
    customer_email: str
    customer_name: str
    status: str
    payment_status: str
    currency_code: str
    subtotal: float
    shipping_amount: float
    tax_amount: float
    discount_amount: float
    total_amount: float
    shipping_address: Optional[dict] = None
    payment_method: Optional[str] = None
    created_at: datetime
    items: list[OrderItemRead]
    class Config:
        from_attributes = True

class OrderStatusUpdate(BaseModel):
    status: str
