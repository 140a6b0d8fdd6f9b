"""
Catalog Client

GraphQL client for the Saleor backend.
Maps raw responses into stores and categorized products and raises
typed errors. Requests carry the host init data as an auth header when
present; anonymous requests are still attempted.
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import Optional, Any

import httpx

from ..core.host import HostContext
from ..models.catalog import (
    Money,
    Variant,
    Store,
    Product,
    Category,
    UNCATEGORIZED_ID,
    UNCATEGORIZED_NAME,
)
from ..models.order import OrderLine, BuyerContext, OrderDraft
from . import queries
from .errors import TransportError, BackendError, ValidationError

logger = logging.getLogger(__name__)


class CatalogClient:
    """
    Client for the catalog/commerce backend.

    Usage:
        client = CatalogClient(api_url, channel, host=HostContext.from_init_data(raw))
        stores = await client.fetch_stores()
        categories = await client.fetch_store_catalog(stores[0].id)
        draft = await client.submit_order(lines, buyer)
    """

    def __init__(
        self,
        api_url: str,
        channel: str,
        host: Optional[HostContext] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = 30.0,
        stores_page_size: int = 12,
        products_page_size: int = 60,
        variants_page_size: int = 5,
    ):
        """
        Initialize the catalog client.

        Args:
            api_url: GraphQL endpoint
            channel: Saleor channel slug
            host: Host context supplying the auth header
            http_client: Shared HTTP client; a private one is created if omitted
            timeout: Request timeout for a private client
        """
        self.api_url = api_url
        self.channel = channel
        self.host = host or HostContext.anonymous()
        self.stores_page_size = stores_page_size
        self.products_page_size = products_page_size
        self.variants_page_size = variants_page_size
        self._owns_client = http_client is None
        self._http_client = http_client or httpx.AsyncClient(timeout=timeout)

    async def close(self) -> None:
        """Close HTTP client if this instance created it"""
        if self._owns_client:
            await self._http_client.aclose()

    def _generate_headers(self) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        auth_header = self.host.auth_header
        if auth_header:
            headers["Authorization"] = auth_header
        return headers

    async def _request(self, query: str, variables: dict[str, Any]) -> dict[str, Any]:
        """Run a query or mutation and return its data"""
        try:
            response = await self._http_client.post(
                self.api_url,
                headers=self._generate_headers(),
                json={"query": query, "variables": variables},
            )
        except httpx.HTTPError as e:
            logger.error(f"Request to {self.api_url} failed: {e!r}")
            raise TransportError(f"API request failed: {e}") from e

        # Redirects are not followed; anything outside 2xx is a failed call
        if not response.is_success:
            detail = response.text or response.reason_phrase
            logger.error(f"Request failed: {response.status_code} - {detail}")
            raise TransportError(
                f"API request failed ({response.status_code}): {detail}",
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise TransportError(f"API returned invalid JSON: {e}") from e
        if not isinstance(payload, dict):
            raise BackendError(["Unexpected response from the backend."])

        errors = payload.get("errors") or []
        if errors:
            messages = [err.get("message") for err in errors if err.get("message")]
            raise BackendError(messages)

        return payload.get("data") or {}

    # ==================== Catalog queries ====================

    async def fetch_stores(self) -> list[Store]:
        """List stores in backend order; an empty list means none are configured"""
        data = await self._request(
            queries.LIST_STORES,
            {"channel": self.channel, "first": self.stores_page_size},
        )
        try:
            edges = (data.get("collections") or {}).get("edges") or []
            stores = [self._parse_store(edge["node"]) for edge in edges]
        except (KeyError, TypeError, AttributeError) as e:
            raise self._malformed("store list", e) from e
        logger.debug(f"Fetched {len(stores)} stores from channel {self.channel}")
        return stores

    async def fetch_store_catalog(self, store_id: str) -> dict[str, Category]:
        """Products of a store grouped by category id"""
        data = await self._request(
            queries.LIST_STORE_CATALOG,
            {
                "id": store_id,
                "channel": self.channel,
                "first": self.products_page_size,
                "variants": self.variants_page_size,
            },
        )
        by_category: dict[str, Category] = {}
        try:
            collection = data.get("collection") or {}
            edges = (collection.get("products") or {}).get("edges") or []
            for edge in edges:
                node = edge["node"]
                category = node.get("category") or {}
                category_id = category.get("id") or UNCATEGORIZED_ID
                if category_id not in by_category:
                    by_category[category_id] = Category(
                        id=category_id,
                        name=category.get("name") or UNCATEGORIZED_NAME,
                    )
                by_category[category_id].products.append(self._parse_product(node))
        except (KeyError, TypeError, AttributeError) as e:
            raise self._malformed("catalog", e) from e

        for category in by_category.values():
            category.sort_products()

        logger.debug(
            f"Fetched catalog for store {store_id}: "
            f"{len(edges)} products in {len(by_category)} categories"
        )
        return by_category

    # ==================== Order mutation ====================

    async def submit_order(
        self,
        lines: list[OrderLine],
        buyer: BuyerContext,
    ) -> OrderDraft:
        """
        Create an order draft (a Saleor checkout).

        Raises:
            ValidationError: Backend rejected lines or fields
            BackendError: GraphQL errors or an unreadable response
            TransportError: Network or HTTP failure
        """
        payload = {
            "channel": self.channel,
            "email": buyer.email,
            "lines": [line.to_input() for line in lines],
            "metadata": buyer.metadata_input(),
        }
        data = await self._request(queries.CREATE_ORDER_DRAFT, {"input": payload})

        try:
            result = data.get("checkoutCreate") or {}
            errors = result.get("errors") or []
            checkout = result.get("checkout") or {}
            reference = checkout.get("id")
            follow_up_link = checkout.get("webUrl") or None
        except (KeyError, TypeError, AttributeError) as e:
            raise self._malformed("order draft", e) from e

        if errors:
            raise ValidationError(errors)
        if not reference:
            raise BackendError(["Order draft was not created."])

        return OrderDraft(
            confirmation_reference=reference,
            follow_up_link=follow_up_link,
        )

    # ==================== Mapping ====================

    @staticmethod
    def _malformed(what: str, error: Exception) -> BackendError:
        logger.error(f"Malformed {what} payload: {error!r}")
        return BackendError([f"Unexpected {what} payload from the backend."])

    @staticmethod
    def _parse_store(node: dict) -> Store:
        image = node.get("backgroundImage") or {}
        return Store(
            id=node["id"],
            slug=node.get("slug") or "",
            name=node.get("name") or "",
            description=node.get("seoDescription") or node.get("description") or "",
            image=image.get("url") or "",
            image_alt=image.get("alt") or node.get("name") or "",
        )

    @classmethod
    def _parse_product(cls, node: dict) -> Product:
        variants = node.get("variants")
        if isinstance(variants, dict):
            variants = [edge["node"] for edge in variants.get("edges") or []]
        variants = variants or []

        # First variant wins, regardless of stock or price
        selected = variants[0] if variants else None
        gross = None
        if selected:
            gross = ((selected.get("pricing") or {}).get("price") or {}).get("gross")
        if not gross:
            price_range = (node.get("pricing") or {}).get("priceRange") or {}
            gross = (price_range.get("start") or {}).get("gross")

        thumbnail = node.get("thumbnail") or {}
        return Product(
            id=node["id"],
            slug=node.get("slug") or "",
            name=node.get("name") or "",
            description=node.get("description") or "",
            image=thumbnail.get("url") or "",
            image_alt=thumbnail.get("alt") or node.get("name") or "",
            variant=cls._parse_variant(selected) if selected else None,
            price=cls._parse_money(gross),
        )

    @staticmethod
    def _parse_variant(node: dict) -> Variant:
        quantity = node.get("quantityAvailable")
        return Variant(
            id=node.get("id") or None,
            name=node.get("name") or "",
            sku=node.get("sku") or "",
            quantity_available=quantity if isinstance(quantity, int) else None,
        )

    @staticmethod
    def _parse_money(gross: Optional[dict]) -> Optional[Money]:
        if not gross or gross.get("amount") is None:
            return None
        try:
            amount = Decimal(str(gross["amount"]))
        except InvalidOperation:
            logger.warning(f"Ignoring unreadable price amount: {gross['amount']!r}")
            return None
        return Money(amount=amount, currency=gross.get("currency") or "")
