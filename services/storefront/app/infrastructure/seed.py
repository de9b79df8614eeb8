"""Reference data a fresh storefront needs before it can take an order.

Run with ``python -m app.infrastructure.seed`` from the service directory.
Rows are matched on their natural key (code / slug / sku) so running it
again only fills in what is missing.
"""

from decimal import Decimal
from sqlalchemy.orm import Session

from app.domain.models import Category, Currency, PaymentMethod, Product
from shared.core import get_logger

logger = get_logger(__name__)

PAYMENT_METHODS = [
    {"name": "Credit Card", "code": "stripe", "description": "Pay securely by card", "icon": "credit-card", "sort_order": 1},
    {"name": "PayPal", "code": "paypal", "description": "Pay with your PayPal account", "icon": "wallet", "sort_order": 2},
    {"name": "Cash on Delivery", "code": "cod", "description": "Pay when your order arrives", "icon": "banknote", "sort_order": 3},
    {"name": "Bank Transfer", "code": "bank_transfer", "description": "Wire the total to our account", "icon": "building-2", "sort_order": 4},
]

CURRENCIES = [
    {"code": "USD", "name": "US Dollar", "symbol": "$", "exchange_rate": Decimal("1"), "is_default": True},
    {"code": "EUR", "name": "Euro", "symbol": "€", "exchange_rate": Decimal("0.92")},
    {"code": "GBP", "name": "British Pound", "symbol": "£", "exchange_rate": Decimal("0.79")},
]

CATEGORIES = [
    {"name": "Apparel", "slug": "apparel", "sort_order": 1},
    {"name": "Accessories", "slug": "accessories", "sort_order": 2},
]

PRODUCTS = [
    {"category": "apparel", "name": "Classic Tee", "slug": "classic-tee", "sku": "SKU0001",
     "base_price": Decimal("29.99"), "stock_quantity": 50, "is_featured": True},
    {"category": "apparel", "name": "Denim Jacket", "slug": "denim-jacket", "sku": "SKU0002",
     "base_price": Decimal("89.00"), "stock_quantity": 12},
    {"category": "accessories", "name": "Canvas Tote", "slug": "canvas-tote", "sku": "SKU0003",
     "base_price": Decimal("10.00"), "stock_quantity": 100},
]

def _missing(db: Session, model, column, value) -> bool:
    return db.query(model).filter(column == value).first() is None

def seed_reference_data(db: Session, with_demo_products: bool = True) -> dict:
    """Insert missing payment methods, currencies and demo catalog rows.

    Returns how many rows of each kind were added.
    """
    added = {"payment_methods": 0, "currencies": 0, "categories": 0, "products": 0}

    for row in PAYMENT_METHODS:
        if _missing(db, PaymentMethod, PaymentMethod.code, row["code"]):
            db.add(PaymentMethod(is_active=True, **row))
            added["payment_methods"] += 1

    for row in CURRENCIES:
        if _missing(db, Currency, Currency.code, row["code"]):
            db.add(Currency(is_active=True, **row))
            added["currencies"] += 1

    if with_demo_products:
        for row in CATEGORIES:
            if _missing(db, Category, Category.slug, row["slug"]):
                db.add(Category(**row))
                added["categories"] += 1
        db.flush()

        for row in PRODUCTS:
            row = dict(row)
            category_slug = row.pop("category")
            if _missing(db, Product, Product.sku, row["sku"]):
                category = db.query(Category).filter(Category.slug == category_slug).first()
                db.add(Product(category_id=category.id if category else None, images=[], is_active=True, **row))
                added["products"] += 1

    db.commit()
    logger.info("Reference data seeded", extra={'extra_fields': added})
    return added

def main():
    from shared.core import setup_logging
    from app.core_settings import get_settings
    from app.infrastructure.db import SessionLocal, init_models

    setup_logging(service_name="storefront-seed", level=get_settings().LOG_LEVEL)
    init_models()
    db = SessionLocal()
    try:
        seed_reference_data(db)
    finally:
        db.close()

if __name__ == "__main__":
    main()
