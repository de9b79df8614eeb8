from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from .pricing import Number, quantize_money, to_decimal


@dataclass(frozen=True)
class CurrencyRate:
    code: str
    symbol: str
    exchange_rate: Decimal

    @classmethod
    def from_model(cls, currency) -> "CurrencyRate":
        return cls(
            code=currency.code,
            symbol=currency.symbol,
            exchange_rate=to_decimal(currency.exchange_rate),
        )


def convert_price(price: Number, currency: Optional[CurrencyRate] = None) -> Decimal:
    """Convert a base-currency price with the active exchange rate."""
    price = to_decimal(price)
    if currency is None:
        return price
    return price * currency.exchange_rate


def format_price(price: Number, currency: Optional[CurrencyRate] = None) -> str:
    """Display string, e.g. ``format_price(10, eur) == "€9.20"``."""
    symbol = currency.symbol if currency is not None else "$"
    return f"{symbol}{quantize_money(convert_price(price, currency))}"
