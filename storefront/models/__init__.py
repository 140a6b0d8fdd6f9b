# Storefront Models

from .catalog import Money, Variant, Store, Product, Category, sort_categories
from .cart import CartEntry, CartSummary, format_money
from .order import OrderLine, BuyerContext, OrderDraft

__all__ = [
    "Money",
    "Variant",
    "Store",
    "Product",
    "Category",
    "sort_categories",
    "CartEntry",
    "CartSummary",
    "format_money",
    "OrderLine",
    "BuyerContext",
    "OrderDraft",
]
