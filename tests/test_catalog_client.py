"""Tests for the Saleor catalog client."""

import json
from decimal import Decimal

import httpx
import pytest

from storefront.core.host import HostContext
from storefront.models.order import OrderLine, BuyerContext
from storefront.services.catalog_client import CatalogClient
from storefront.services.errors import TransportError, BackendError, ValidationError

API_URL = "https://shop.example.com/graphql/"


def make_client(handler, host=None) -> CatalogClient:
    transport = httpx.MockTransport(handler)
    return CatalogClient(
        api_url=API_URL,
        channel="default-channel",
        host=host,
        http_client=httpx.AsyncClient(transport=transport),
    )


def gross(amount, currency="USD"):
    return {"gross": {"amount": amount, "currency": currency}}


def product_node(product_id, name, category=None, variants=None, price_range=None):
    return {
        "id": product_id,
        "name": name,
        "slug": product_id,
        "description": None,
        "category": category,
        "thumbnail": {"url": f"https://img/{product_id}.png", "alt": None},
        "pricing": {"priceRange": {"start": price_range}} if price_range else None,
        "variants": variants or [],
    }


def catalog_payload(*nodes):
    return {"data": {"collection": {"id": "store-a", "products": {"edges": [{"node": n} for n in nodes]}}}}


class TestRequests:
    """Transport, headers and error mapping."""

    @pytest.mark.asyncio
    async def test_auth_header_from_init_data(self):
        seen = {}

        def handler(request):
            seen["auth"] = request.headers.get("Authorization")
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"data": {"collections": {"edges": []}}})

        client = make_client(handler, host=HostContext.from_init_data("user=%7B%7D&hash=x"))
        await client.fetch_stores()
        assert seen["auth"] == "tma user=%7B%7D&hash=x"
        assert seen["body"]["variables"]["channel"] == "default-channel"

    @pytest.mark.asyncio
    async def test_anonymous_requests_still_sent(self):
        seen = {}

        def handler(request):
            seen["auth"] = request.headers.get("Authorization")
            return httpx.Response(200, json={"data": {"collections": {"edges": []}}})

        stores = await make_client(handler).fetch_stores()
        assert stores == []
        assert seen["auth"] is None

    @pytest.mark.asyncio
    async def test_http_error_is_transport_error(self):
        client = make_client(lambda request: httpx.Response(502, text="bad gateway"))
        with pytest.raises(TransportError) as excinfo:
            await client.fetch_stores()
        assert excinfo.value.status_code == 502
        assert "502" in str(excinfo.value)
        assert "bad gateway" in str(excinfo.value)

    @pytest.mark.asyncio
    async def test_network_failure_is_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(TransportError):
            await make_client(handler).fetch_stores()

    @pytest.mark.asyncio
    async def test_timeout_is_transport_error(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(TransportError):
            await make_client(handler).fetch_store_catalog("store-a")

    @pytest.mark.asyncio
    async def test_graphql_errors_are_backend_error(self):
        def handler(request):
            return httpx.Response(200, json={"errors": [{"message": "Channel missing"}, {"message": "Denied"}]})

        with pytest.raises(BackendError) as excinfo:
            await make_client(handler).fetch_stores()
        assert str(excinfo.value) == "Channel missing, Denied"
        assert excinfo.value.messages == ["Channel missing", "Denied"]

    @pytest.mark.asyncio
    async def test_redirect_is_transport_error(self):
        def handler(request):
            return httpx.Response(302, headers={"Location": "https://login.example.com/"}, json={})

        with pytest.raises(TransportError) as excinfo:
            await make_client(handler).fetch_stores()
        assert excinfo.value.status_code == 302

    @pytest.mark.asyncio
    async def test_non_object_body_is_backend_error(self):
        with pytest.raises(BackendError):
            await make_client(lambda request: httpx.Response(200, json=["unexpected"])).fetch_stores()


class TestMalformedPayloads:
    """Shape mismatches surface as BackendError, never as KeyError or TypeError."""

    @pytest.mark.asyncio
    async def test_store_edge_without_node(self):
        payload = {"data": {"collections": {"edges": [{"cursor": "abc"}]}}}
        with pytest.raises(BackendError) as excinfo:
            await make_client(lambda request: httpx.Response(200, json=payload)).fetch_stores()
        assert "store list" in str(excinfo.value)

    @pytest.mark.asyncio
    async def test_store_without_id(self):
        payload = {"data": {"collections": {"edges": [{"node": {"name": "Cafe"}}]}}}
        with pytest.raises(BackendError):
            await make_client(lambda request: httpx.Response(200, json=payload)).fetch_stores()

    @pytest.mark.asyncio
    async def test_product_without_id(self):
        node = product_node("p1", "Tea")
        del node["id"]
        with pytest.raises(BackendError) as excinfo:
            await make_client(lambda request: httpx.Response(200, json=catalog_payload(node))).fetch_store_catalog("store-a")
        assert "catalog" in str(excinfo.value)

    @pytest.mark.asyncio
    async def test_products_not_a_connection(self):
        payload = {"data": {"collection": {"id": "store-a", "products": "oops"}}}
        with pytest.raises(BackendError):
            await make_client(lambda request: httpx.Response(200, json=payload)).fetch_store_catalog("store-a")

    @pytest.mark.asyncio
    async def test_checkout_not_an_object(self):
        payload = {"data": {"checkoutCreate": {"checkout": "chk-1", "errors": []}}}
        lines = [OrderLine(variant_id="v1", quantity=1)]
        buyer = BuyerContext(email="alice@telegram.local")
        with pytest.raises(BackendError) as excinfo:
            await make_client(lambda request: httpx.Response(200, json=payload)).submit_order(lines, buyer)
        assert "order draft" in str(excinfo.value)


class TestFetchStores:

    @pytest.mark.asyncio
    async def test_maps_collections(self):
        payload = {
            "data": {
                "collections": {
                    "edges": [
                        {"node": {
                            "id": "c1", "slug": "cafe", "name": "Cafe",
                            "description": "long", "seoDescription": "short",
                            "backgroundImage": {"url": "https://img/cafe.png", "alt": ""},
                        }},
                        {"node": {
                            "id": "c2", "slug": "deli", "name": "Deli",
                            "description": None, "seoDescription": None,
                            "backgroundImage": None,
                        }},
                    ]
                }
            }
        }
        stores = await make_client(lambda request: httpx.Response(200, json=payload)).fetch_stores()
        assert [s.id for s in stores] == ["c1", "c2"]
        assert stores[0].description == "short"
        assert stores[0].image == "https://img/cafe.png"
        assert stores[0].image_alt == "Cafe"
        assert stores[1].description == ""
        assert stores[1].image == ""


class TestFetchStoreCatalog:

    @pytest.mark.asyncio
    async def test_groups_by_category(self):
        payload = catalog_payload(
            product_node("p2", "Latte", {"id": "drinks", "name": "Drinks"}, [{"id": "v2", "pricing": {"price": gross(4)}}]),
            product_node("p1", "Espresso", {"id": "drinks", "name": "Drinks"}, [{"id": "v1", "pricing": {"price": gross(3)}}]),
            product_node("p3", "Bagel", None, [{"id": "v3", "pricing": {"price": gross(2)}}]),
        )
        categories = await make_client(lambda request: httpx.Response(200, json=payload)).fetch_store_catalog("store-a")

        assert set(categories) == {"drinks", "uncategorized"}
        assert [p.name for p in categories["drinks"].products] == ["Espresso", "Latte"]
        assert categories["uncategorized"].name == "Menu"

    @pytest.mark.asyncio
    async def test_first_variant_wins(self):
        variants = [
            {"id": "v-out", "name": "Small", "sku": "S", "quantityAvailable": 0, "pricing": {"price": gross("1.50")}},
            {"id": "v-in", "name": "Large", "sku": "L", "quantityAvailable": 10, "pricing": {"price": gross("2.50")}},
        ]
        payload = catalog_payload(product_node("p1", "Tea", None, variants))
        categories = await make_client(lambda request: httpx.Response(200, json=payload)).fetch_store_catalog("store-a")
        product = categories["uncategorized"].products[0]

        assert product.variant_id == "v-out"
        assert product.variant.quantity_available == 0
        assert product.price.amount == Decimal("1.50")
        assert product.is_purchasable

    @pytest.mark.asyncio
    async def test_falls_back_to_price_range(self):
        payload = catalog_payload(
            product_node("p1", "Tea", None, [{"id": "v1", "pricing": None}], price_range=gross(9, "EUR"))
        )
        categories = await make_client(lambda request: httpx.Response(200, json=payload)).fetch_store_catalog("store-a")
        product = categories["uncategorized"].products[0]

        assert product.price.amount == Decimal("9")
        assert product.price.currency == "EUR"
        assert product.is_purchasable

    @pytest.mark.asyncio
    async def test_unpriced_product_is_kept_but_not_purchasable(self):
        payload = catalog_payload(product_node("p1", "Secret", None, [{"id": "v1", "pricing": None}]))
        categories = await make_client(lambda request: httpx.Response(200, json=payload)).fetch_store_catalog("store-a")
        product = categories["uncategorized"].products[0]

        assert product.price is None
        assert not product.is_purchasable

    @pytest.mark.asyncio
    async def test_no_variants_is_not_purchasable(self):
        payload = catalog_payload(product_node("p1", "Gift", None, [], price_range=gross(5)))
        categories = await make_client(lambda request: httpx.Response(200, json=payload)).fetch_store_catalog("store-a")
        product = categories["uncategorized"].products[0]

        assert product.variant is None
        assert product.price is not None
        assert not product.is_purchasable

    @pytest.mark.asyncio
    async def test_variant_connection_shape(self):
        variants = {"edges": [{"node": {"id": "v9", "pricing": {"price": gross(1)}}}]}
        payload = catalog_payload(product_node("p1", "Tea", None, variants))
        categories = await make_client(lambda request: httpx.Response(200, json=payload)).fetch_store_catalog("store-a")
        assert categories["uncategorized"].products[0].variant_id == "v9"

    @pytest.mark.asyncio
    async def test_empty_store(self):
        payload = {"data": {"collection": None}}
        categories = await make_client(lambda request: httpx.Response(200, json=payload)).fetch_store_catalog("store-a")
        assert categories == {}


class TestSubmitOrder:

    LINES = [OrderLine(variant_id="v1", quantity=2)]
    BUYER = BuyerContext(email="alice@telegram.local", metadata={"store_slug": "cafe"})

    @pytest.mark.asyncio
    async def test_success(self):
        seen = {}

        def handler(request):
            seen["input"] = json.loads(request.content)["variables"]["input"]
            return httpx.Response(200, json={"data": {"checkoutCreate": {
                "checkout": {"id": "chk-1", "webUrl": "https://pay/chk-1"}, "errors": [],
            }}})

        draft = await make_client(handler).submit_order(self.LINES, self.BUYER)
        assert draft.confirmation_reference == "chk-1"
        assert draft.follow_up_link == "https://pay/chk-1"
        assert seen["input"] == {
            "channel": "default-channel",
            "email": "alice@telegram.local",
            "lines": [{"variantId": "v1", "quantity": 2}],
            "metadata": [{"key": "store_slug", "value": "cafe"}],
        }

    @pytest.mark.asyncio
    async def test_missing_link_is_optional(self):
        def handler(request):
            return httpx.Response(200, json={"data": {"checkoutCreate": {
                "checkout": {"id": "chk-2", "webUrl": None}, "errors": [],
            }}})

        draft = await make_client(handler).submit_order(self.LINES, self.BUYER)
        assert draft.follow_up_link is None

    @pytest.mark.asyncio
    async def test_line_errors_are_validation_error(self):
        def handler(request):
            return httpx.Response(200, json={"data": {"checkoutCreate": {
                "checkout": None,
                "errors": [
                    {"field": "lines", "message": "Insufficient stock", "code": "INSUFFICIENT_STOCK"},
                    {"field": "email", "message": None, "code": "INVALID"},
                ],
            }}})

        with pytest.raises(ValidationError) as excinfo:
            await make_client(handler).submit_order(self.LINES, self.BUYER)
        assert str(excinfo.value) == "Insufficient stock, INVALID"
        assert excinfo.value.errors[0]["field"] == "lines"
