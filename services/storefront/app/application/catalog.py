from sqlalchemy.orm import Session
from typing import Optional
from app.domain.models import Category, Product, PaymentMethod, Currency
from app.domain.errors import ProductNotFoundError, PaymentMethodUnavailableError

class CatalogService:
    """Read side of the store: products, categories, payment methods, currencies."""

    def __init__(self, db: Session):
        self.db = db

    def list_products(self, category_slug: Optional[str] = None):
        query = self.db.query(Product).filter(Product.is_active.is_(True))
        if category_slug:
            query = query.join(Category).filter(Category.slug == category_slug)
        return query.order_by(Product.is_featured.desc(), Product.name).all()

    def get_product(self, product_id: int) -> Product:
        product = self.db.query(Product).filter(
            Product.id == product_id, Product.is_active.is_(True)
        ).first()
        if not product:
            raise ProductNotFoundError()
        return product

    def list_categories(self):
        return self.db.query(Category).order_by(Category.sort_order, Category.name).all()

    def list_payment_methods(self):
        return self.db.query(PaymentMethod).filter(
            PaymentMethod.is_active.is_(True)
        ).order_by(PaymentMethod.sort_order, PaymentMethod.id).all()

    def get_payment_method(self, method_id: int) -> PaymentMethod:
        method = self.db.query(PaymentMethod).filter(
            PaymentMethod.id == method_id, PaymentMethod.is_active.is_(True)
        ).first()
        if not method:
            raise PaymentMethodUnavailableError()
        return method

    def list_currencies(self):
        return self.db.query(Currency).filter(
            Currency.is_active.is_(True)
        ).order_by(Currency.is_default.desc(), Currency.code).all()

    def resolve_currency(self, code: Optional[str] = None) -> Optional[Currency]:
        """Active currency for ``code``, else the default one, else None."""
        currencies = self.list_currencies()
        if code:
            for currency in currencies:
                if currency.code == code.upper():
                    return currency
        return currencies[0] if currencies else None
