"""Cart models"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from .catalog import Product

CURRENCY_SYMBOLS = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "JPY": "¥",
    "INR": "₹",
    "UAH": "₴",
    "PLN": "zł",
}


@dataclass
class CartEntry:
    """Product snapshot and the quantity ordered"""
    product: Product
    quantity: int

    @property
    def line_total(self) -> Optional[Decimal]:
        if self.product.price is None:
            return None
        return self.product.price.amount * self.quantity


@dataclass(frozen=True)
class CartSummary:
    """Derived cart totals; currency is None while unset"""
    items: int
    amount: Decimal
    currency: Optional[str]

    def display_currency(self, default: str = "USD") -> str:
        return self.currency or default

    def formatted_total(self, default_currency: str = "USD") -> str:
        return format_money(self.amount, self.display_currency(default_currency))


def format_money(amount: Decimal, currency: str) -> str:
    """Format an amount with two decimals, prefixed by the currency symbol if known"""
    value = Decimal(amount).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    code = (currency or "").upper()
    symbol = CURRENCY_SYMBOLS.get(code)
    if symbol:
        return f"{symbol}{value:,.2f}"
    return f"{value:,.2f} {code}".strip()
