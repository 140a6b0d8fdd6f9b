"""In-memory cart for one session"""

import itertools
import logging
from decimal import Decimal
from typing import Optional

from ..models.cart import CartEntry, CartSummary
from ..models.catalog import Product

logger = logging.getLogger(__name__)


class CartStore:
    """
    Cart keyed by product id.

    At most one entry per product; a quantity of zero or less removes it.
    The inferred currency follows the latest mutation attempt and resets
    once the cart is empty.
    """

    def __init__(self):
        self.entries: dict[str, CartEntry] = {}
        self.currency: Optional[str] = None
        self._observed: dict[str, int] = {}
        self._sequence = itertools.count()

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries.values())

    @property
    def is_empty(self) -> bool:
        return not self.entries

    def quantity_of(self, product_id: str) -> int:
        entry = self.entries.get(product_id)
        return entry.quantity if entry else 0

    def set_quantity(self, product: Product, quantity: int) -> None:
        """Upsert or remove the entry for a product"""
        if quantity <= 0:
            self.entries.pop(product.id, None)
            self._observed.pop(product.id, None)
        else:
            # Latest snapshot wins so name and price follow the last fetch
            self.entries[product.id] = CartEntry(product=product, quantity=quantity)
            self._observed[product.id] = next(self._sequence)

        if product.currency:
            self.currency = product.currency
        if not self.entries:
            self.currency = None

    def summarize(self) -> CartSummary:
        """Item count and total over priced entries"""
        items = 0
        amount = Decimal("0")
        latest: Optional[int] = None
        currency = self.currency

        for product_id, entry in self.entries.items():
            price = entry.product.price
            if price is None:
                continue
            items += entry.quantity
            amount += price.amount * entry.quantity
            observed = self._observed.get(product_id, -1)
            if price.currency and (latest is None or observed > latest):
                latest = observed
                currency = price.currency

        if not self.entries:
            currency = None
        return CartSummary(items=items, amount=amount, currency=currency)

    def clear(self) -> None:
        """Empty the cart and reset the inferred currency"""
        self.entries.clear()
        self._observed.clear()
        self.currency = None
