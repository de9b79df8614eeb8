from decimal import Decimal

from app.domain.currency import CurrencyRate, convert_price, format_price

EUR = CurrencyRate(code="EUR", symbol="€", exchange_rate=Decimal("0.92"))


def test_without_currency_prices_show_in_dollars():
    assert convert_price(Decimal("10")) == Decimal("10")
    assert format_price(Decimal("4.99")) == "$4.99"
    assert format_price(15) == "$15.00"


def test_exchange_rate_applied_and_rounded_to_cents():
    assert convert_price(Decimal("10"), EUR) == Decimal("9.20")
    assert format_price(Decimal("10"), EUR) == "€9.20"
    assert format_price(Decimal("65.978"), EUR) == "€60.70"


def test_rate_built_from_currency_row(db):
    from app.domain.models import Currency
    gbp = db.query(Currency).filter(Currency.code == "GBP").one()
    rate = CurrencyRate.from_model(gbp)
    assert rate.symbol == "£"
    assert format_price(Decimal("100"), rate) == "£79.00"
