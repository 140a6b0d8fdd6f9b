"""Shared fixtures for storefront tests"""

import asyncio
from decimal import Decimal
from typing import Optional

import pytest

from storefront.core.host import HostContext
from storefront.models.catalog import Money, Variant, Store, Product, Category
from storefront.models.order import OrderDraft
from storefront.services.chrome import ChromeAdapter, ChromeState
from storefront.services.controller import SessionController
from storefront.services.notifications import Notifier


def build_product(
    product_id: str,
    name: Optional[str] = None,
    amount: Optional[str] = "5.00",
    currency: str = "USD",
    variant_id: Optional[str] = "auto",
) -> Product:
    if variant_id == "auto":
        variant_id = f"variant-{product_id}"
    return Product(
        id=product_id,
        slug=product_id,
        name=name or product_id.title(),
        variant=Variant(id=variant_id, name="Default", sku=f"SKU-{product_id}") if variant_id else None,
        price=Money(amount=Decimal(amount), currency=currency) if amount is not None else None,
    )


class FakeCatalog:
    """In-memory stand-in for CatalogClient"""

    def __init__(self, stores=None, catalogs=None, draft=None):
        self.stores: list[Store] = stores or []
        self.catalogs: dict[str, dict[str, Category]] = catalogs or {}
        self.draft = draft or OrderDraft(confirmation_reference="checkout-1")
        self.stores_error: Optional[Exception] = None
        self.catalog_errors: dict[str, Exception] = {}
        self.catalog_gates: dict[str, asyncio.Event] = {}
        self.submit_error: Optional[Exception] = None
        self.submit_gate: Optional[asyncio.Event] = None
        self.catalog_calls: list[str] = []
        self.submitted: list[tuple] = []

    async def fetch_stores(self):
        if self.stores_error:
            raise self.stores_error
        return list(self.stores)

    async def fetch_store_catalog(self, store_id):
        self.catalog_calls.append(store_id)
        gate = self.catalog_gates.get(store_id)
        if gate:
            await gate.wait()
        if store_id in self.catalog_errors:
            raise self.catalog_errors[store_id]
        return {
            category_id: category.model_copy(deep=True)
            for category_id, category in self.catalogs.get(store_id, {}).items()
        }

    async def submit_order(self, lines, buyer):
        self.submitted.append((lines, buyer))
        if self.submit_gate:
            await self.submit_gate.wait()
        if self.submit_error:
            raise self.submit_error
        return self.draft


@pytest.fixture
def make_product():
    return build_product


@pytest.fixture
def stores():
    return [
        Store(id="store-a", slug="cafe-a", name="Cafe A"),
        Store(id="store-b", slug="deli-b", name="Deli B"),
    ]


@pytest.fixture
def catalog(stores):
    drinks = Category(
        id="cat-drinks",
        name="Drinks",
        products=[
            build_product("cola", amount="2.50"),
            build_product("product-x", name="Product X", amount="5.00"),
        ],
    )
    food = Category(
        id="cat-food",
        name="food",
        products=[
            build_product("soup", amount="7.25"),
            build_product("mystery", amount=None),
        ],
    )
    return FakeCatalog(
        stores=stores,
        catalogs={
            "store-a": {"cat-food": food, "cat-drinks": drinks},
            "store-b": {},
        },
    )


@pytest.fixture
def host():
    return HostContext.from_init_data(
        "query_id=AAE&user=%7B%22id%22%3A42%2C%22username%22%3A%22alice%22%7D&auth_date=1&hash=abc"
    )


@pytest.fixture
def chrome():
    return ChromeState()


@pytest.fixture
def controller(catalog, host, chrome):
    return SessionController(
        catalog=catalog,
        notifier=Notifier(default_duration=60),
        host=host,
        open_link=chrome.open_link,
    )


@pytest.fixture
def adapter(controller, chrome):
    adapter = ChromeAdapter(controller, chrome)
    adapter.attach()
    return adapter
