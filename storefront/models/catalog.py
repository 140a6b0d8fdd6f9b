"""Catalog models: stores, products and derived categories"""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict

UNCATEGORIZED_ID = "uncategorized"
UNCATEGORIZED_NAME = "Menu"


class Money(BaseModel):
    """Amount in a single currency"""
    model_config = ConfigDict(frozen=True)

    amount: Decimal
    currency: str


class Variant(BaseModel):
    """The variant chosen to represent a product in the cart"""
    model_config = ConfigDict(frozen=True)

    id: Optional[str] = None
    name: str = ""
    sku: str = ""
    quantity_available: Optional[int] = None


class Store(BaseModel):
    """A restaurant or shop (a Saleor collection)"""
    model_config = ConfigDict(frozen=True)

    id: str
    slug: str = ""
    name: str
    description: str = ""
    image: str = ""
    image_alt: str = ""


class Product(BaseModel):
    """Product as shown on a store menu"""
    model_config = ConfigDict(frozen=True)

    id: str
    slug: str = ""
    name: str
    description: str = ""
    image: str = ""
    image_alt: str = ""
    variant: Optional[Variant] = None
    price: Optional[Money] = None

    @property
    def variant_id(self) -> Optional[str]:
        return self.variant.id if self.variant else None

    @property
    def currency(self) -> Optional[str]:
        return self.price.currency if self.price else None

    @property
    def is_purchasable(self) -> bool:
        """A product needs both a resolved variant and a price to be ordered"""
        return bool(self.variant_id) and self.price is not None


class Category(BaseModel):
    """Products grouped under one category, ordered by name"""

    id: str
    name: str
    products: list[Product] = []

    def sort_products(self) -> None:
        self.products.sort(key=lambda product: product.name.casefold())

    def find_product(self, product_id: str) -> Optional[Product]:
        return next((p for p in self.products if p.id == product_id), None)


def sort_categories(categories: dict[str, Category]) -> list[Category]:
    """Categories ordered by display name, case-insensitive"""
    return sorted(categories.values(), key=lambda category: category.name.casefold())
