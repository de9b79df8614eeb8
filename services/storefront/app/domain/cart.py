"""Session-scoped shopping cart aggregate."""

from dataclasses import dataclass, asdict
from decimal import Decimal
from typing import Dict, Iterator, List, Optional

from .errors import CartLineNotFoundError, OutOfStockError
from .pricing import ZERO, to_decimal


@dataclass(frozen=True)
class ProductSnapshot:
    """The product fields a cart line needs, captured when it was added."""
    id: int
    name: str
    price: Decimal
    stock_quantity: int
    sku: str
    image: Optional[str] = None

    @classmethod
    def from_model(cls, product) -> "ProductSnapshot":
        images = product.images or []
        return cls(
            id=product.id,
            name=product.name,
            price=to_decimal(product.base_price),
            stock_quantity=product.stock_quantity,
            sku=product.sku,
            image=images[0] if images else None,
        )


@dataclass
class CartLine:
    product: ProductSnapshot
    quantity: int

    @property
    def line_total(self) -> Decimal:
        return self.product.price * self.quantity


def _clamp(quantity: int, stock: int) -> int:
    return max(1, min(quantity, stock))


class Cart:
    """Product id -> CartLine, in insertion order.

    Quantities always stay within ``[1, stock_quantity]``; a line that would
    drop to zero is removed instead.
    """

    def __init__(self):
        self._lines: Dict[int, CartLine] = {}

    def __iter__(self) -> Iterator[CartLine]:
        return iter(list(self._lines.values()))

    def __len__(self) -> int:
        return len(self._lines)

    def __contains__(self, product_id: int) -> bool:
        return product_id in self._lines

    @property
    def lines(self) -> List[CartLine]:
        return list(self._lines.values())

    def get(self, product_id: int) -> Optional[CartLine]:
        return self._lines.get(product_id)

    def is_empty(self) -> bool:
        return not self._lines

    def add(self, product: ProductSnapshot, quantity: int = 1) -> CartLine:
        if product.stock_quantity < 1:
            raise OutOfStockError(f"{product.name} is out of stock")
        line = self._lines.get(product.id)
        if line is not None:
            # refresh the snapshot so price/stock follow the catalog
            line.product = product
            line.quantity = _clamp(line.quantity + quantity, product.stock_quantity)
            return line
        line = CartLine(product=product, quantity=_clamp(quantity, product.stock_quantity))
        self._lines[product.id] = line
        return line

    def set_quantity(self, product_id: int, quantity: int) -> Optional[CartLine]:
        line = self._lines.get(product_id)
        if line is None:
            raise CartLineNotFoundError()
        if quantity <= 0:
            del self._lines[product_id]
            return None
        line.quantity = _clamp(quantity, line.product.stock_quantity)
        return line

    def refresh(self, product: ProductSnapshot) -> CartLine:
        """Swap in a newer snapshot of a product already in the cart."""
        line = self._lines.get(product.id)
        if line is None:
            raise CartLineNotFoundError()
        if product.stock_quantity < 1:
            raise OutOfStockError(f"{product.name} is out of stock")
        line.product = product
        line.quantity = _clamp(line.quantity, product.stock_quantity)
        return line

    def copy(self) -> "Cart":
        clone = Cart()
        for product_id, line in self._lines.items():
            clone._lines[product_id] = CartLine(line.product, line.quantity)
        return clone

    def remove(self, product_id: int) -> None:
        self._lines.pop(product_id, None)

    def clear(self) -> None:
        self._lines.clear()

    def total_items(self) -> int:
        return sum(line.quantity for line in self._lines.values())

    def subtotal(self) -> Decimal:
        return sum((line.line_total for line in self._lines.values()), ZERO)

    def to_dict(self) -> dict:
        return {
            "lines": [
                {
                    "product": {**asdict(line.product), "price": str(line.product.price)},
                    "quantity": line.quantity,
                }
                for line in self._lines.values()
            ]
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Cart":
        cart = cls()
        for raw in data.get("lines", []):
            product_data = dict(raw["product"])
            product_data["price"] = to_decimal(product_data["price"])
            product = ProductSnapshot(**product_data)
            cart._lines[product.id] = CartLine(product=product, quantity=int(raw["quantity"]))
        return cart
