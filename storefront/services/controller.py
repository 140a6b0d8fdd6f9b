"""
Session Controller

State machine behind one ordering session:
1. Loads the store list and a store's categorized menu
2. Owns the cart and the order sheet
3. Submits order drafts, at most one at a time
4. Turns every failure into a valid state plus a notification
"""

import itertools
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional

from ..core.host import HostContext, build_pseudo_email, build_buyer_metadata
from ..models.cart import CartSummary, format_money
from ..models.catalog import Store, Product, Category, sort_categories
from ..models.order import OrderLine, BuyerContext, OrderDraft
from .cart_store import CartStore
from .catalog_client import CatalogClient
from .errors import CatalogError, DomainInvariantViolation
from .notifications import Notifier

logger = logging.getLogger(__name__)

STORES_LOADING = "Loading stores…"
STORES_EMPTY = "No active stores were found in this Saleor channel."
STORES_FAILED = "Unable to load stores. Pull to refresh or try again later."
PRODUCTS_EMPTY = "This category has no products right now. Try another one."
PRODUCTS_FAILED = "Unable to load products. Swipe down to retry."
CATALOG_FAILED_NOTICE = "Unable to load products for this store."
NOTHING_TO_SUBMIT = "Nothing to submit. Add items first."
ORDER_CREATED = "Order draft created. Continue in Saleor to finalize."
ORDER_FAILED = "Order submission failed: {reason}"


class SessionView(str, Enum):
    """Which screen the session is on"""
    BROWSING = "browsing"
    VIEWING_STORE = "viewing_store"


@dataclass
class SessionState:
    """Everything the rendering layer needs, owned by the controller"""
    view: SessionView = SessionView.BROWSING
    stores: list[Store] = field(default_factory=list)
    stores_loading: bool = False
    store_message: str = STORES_LOADING
    store: Optional[Store] = None
    categories: dict[str, Category] = field(default_factory=dict)
    catalog_loading: bool = False
    active_category_id: Optional[str] = None
    product_message: str = PRODUCTS_EMPTY
    order_sheet_open: bool = False
    submitting: bool = False

    @property
    def is_viewing_store(self) -> bool:
        return self.view == SessionView.VIEWING_STORE


class SessionController:
    """
    Orchestrates store selection, cart mutation and order submission.

    Nothing raised by the catalog backend escapes this class; callers always
    get a consistent state and, at most, a notification.
    """

    def __init__(
        self,
        catalog: CatalogClient,
        notifier: Notifier,
        host: Optional[HostContext] = None,
        cart: Optional[CartStore] = None,
        open_link: Optional[Callable[[str], None]] = None,
        default_currency: str = "USD",
        email_domain: str = "telegram.local",
    ):
        self.catalog = catalog
        self.notifier = notifier
        self.host = host or HostContext.anonymous()
        self.cart = cart or CartStore()
        self.state = SessionState()
        self.default_currency = default_currency
        self.email_domain = email_domain
        self._open_link = open_link
        self._listeners: list[Callable[[], None]] = []
        self._catalog_requests = itertools.count(1)
        self._catalog_request = 0
        self._selection = 0

    # ==================== Change notification ====================

    def subscribe(self, listener: Callable[[], None]) -> Callable[[], None]:
        """Call listener after every state change; returns an unsubscribe"""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _changed(self) -> None:
        for listener in list(self._listeners):
            listener()

    # ==================== Derived views ====================

    def summary(self) -> CartSummary:
        return self.cart.summarize()

    @property
    def categories(self) -> list[Category]:
        return sort_categories(self.state.categories)

    @property
    def active_category(self) -> Optional[Category]:
        if not self.state.active_category_id:
            return None
        return self.state.categories.get(self.state.active_category_id)

    def find_store(self, store_id: str) -> Optional[Store]:
        return next((s for s in self.state.stores if s.id == store_id), None)

    def find_product(self, product_id: str) -> Optional[Product]:
        for category in self.state.categories.values():
            product = category.find_product(product_id)
            if product:
                return product
        entry = self.cart.entries.get(product_id)
        return entry.product if entry else None

    def order_lines(self) -> list[OrderLine]:
        """Lines for every purchasable cart entry"""
        return [
            OrderLine(variant_id=entry.product.variant_id, quantity=entry.quantity)
            for entry in self.cart
            if entry.product.is_purchasable
        ]

    # ==================== Stores ====================

    async def load_stores(self) -> bool:
        """(Re)load the store list; failure leaves a persistent retry message"""
        self.state.stores_loading = True
        self.state.store_message = STORES_LOADING
        self._changed()

        try:
            stores = await self.catalog.fetch_stores()
        except Exception as e:
            logger.error(f"Loading stores failed: {e}", exc_info=not isinstance(e, CatalogError))
            self.state.stores = []
            self.state.store_message = STORES_FAILED
            return False
        else:
            self.state.stores = stores
            self.state.store_message = "" if stores else STORES_EMPTY
            return True
        finally:
            self.state.stores_loading = False
            self._changed()

    async def select_store(self, store: Store) -> bool:
        """
        Enter a store and load its menu.

        Only the latest selection is applied; a slower earlier fetch is
        discarded when it resolves.
        """
        request_id = next(self._catalog_requests)
        self._catalog_request = request_id
        self._selection += 1

        self.state.view = SessionView.VIEWING_STORE
        self.state.store = store
        self.state.categories = {}
        self.state.active_category_id = None
        self.state.order_sheet_open = False
        self.state.product_message = PRODUCTS_EMPTY
        self.state.catalog_loading = True
        self.cart.clear()
        self._changed()

        try:
            categories = await self.catalog.fetch_store_catalog(store.id)
        except Exception as e:
            if self._is_stale(request_id, store):
                logger.debug(f"Discarding failed catalog load for store {store.id}")
                return False
            logger.error(
                f"Loading catalog for store {store.id} failed: {e}",
                exc_info=not isinstance(e, CatalogError),
            )
            self.state.categories = {}
            self.state.active_category_id = None
            self.state.product_message = PRODUCTS_FAILED
            self.state.catalog_loading = False
            message = str(e) if isinstance(e, CatalogError) else ""
            self.notifier.post(message or CATALOG_FAILED_NOTICE)
            self._changed()
            return False

        if self._is_stale(request_id, store):
            logger.debug(f"Discarding stale catalog for store {store.id}")
            return False

        self.state.categories = categories
        ordered = sort_categories(categories)
        self.state.active_category_id = ordered[0].id if ordered else None
        self.state.catalog_loading = False
        self._changed()
        return True

    def _is_stale(self, request_id: int, store: Store) -> bool:
        current = self.state.store
        return (
            request_id != self._catalog_request
            or current is None
            or current.id != store.id
        )

    def select_category(self, category_id: str) -> bool:
        if not self.state.is_viewing_store or category_id not in self.state.categories:
            return False
        self.state.active_category_id = category_id
        self._changed()
        return True

    def exit_store(self) -> bool:
        """Back to the store list; the order sheet has to be closed first"""
        if not self.state.is_viewing_store or self.state.order_sheet_open:
            return False

        self._catalog_request = next(self._catalog_requests)
        self._selection += 1
        self.state.view = SessionView.BROWSING
        self.state.store = None
        self.state.categories = {}
        self.state.active_category_id = None
        self.state.catalog_loading = False
        self.cart.clear()
        self._changed()
        return True

    # ==================== Cart ====================

    def _ensure_purchasable(self, product: Product) -> None:
        if not product.is_purchasable:
            raise DomainInvariantViolation(
                f"Product {product.id} has no resolved variant or price"
            )

    def set_quantity(self, product: Product, quantity: int) -> bool:
        """Set the cart quantity of a product; unpurchasable products are refused"""
        if quantity > 0:
            try:
                self._ensure_purchasable(product)
            except DomainInvariantViolation as e:
                logger.warning(f"Rejected cart update: {e}")
                return False

        self.cart.set_quantity(product, quantity)
        self._changed()
        return True

    def add_or_adjust(self, product: Product, delta: int) -> bool:
        return self.set_quantity(product, self.cart.quantity_of(product.id) + delta)

    # ==================== Order sheet ====================

    def open_order_sheet(self) -> bool:
        if self.state.order_sheet_open or self.cart.is_empty:
            return False
        self.state.order_sheet_open = True
        self._changed()
        return True

    def close_order_sheet(self) -> bool:
        if not self.state.order_sheet_open:
            return False
        self.state.order_sheet_open = False
        self._changed()
        return True

    # ==================== Submission ====================

    def _buyer_context(self, summary: CartSummary) -> BuyerContext:
        user = self.host.user
        total = format_money(summary.amount, summary.display_currency(self.default_currency))
        store_slug = self.state.store.slug if self.state.store else ""
        return BuyerContext(
            email=build_pseudo_email(user, self.email_domain),
            metadata=build_buyer_metadata(user, store_slug, total),
        )

    async def submit_order(self) -> Optional[OrderDraft]:
        """
        Submit the purchasable part of the cart as an order draft.

        On failure the cart and order sheet stay as they are so the user
        can retry.
        """
        if self.state.submitting:
            return None

        lines = self.order_lines()
        if not lines:
            self.notifier.post(NOTHING_TO_SUBMIT)
            self._changed()
            return None

        self.state.submitting = True
        selection = self._selection
        buyer = self._buyer_context(self.summary())
        self._changed()

        try:
            draft = await self.catalog.submit_order(lines, buyer)
        except Exception as e:
            logger.error(f"Order submission failed: {e}", exc_info=not isinstance(e, CatalogError))
            reason = str(e) if isinstance(e, CatalogError) else ""
            self.notifier.post(ORDER_FAILED.format(reason=reason or "Unknown error"))
            return None
        finally:
            self.state.submitting = False
            self._changed()

        logger.info(f"Order draft {draft.confirmation_reference} created ({len(lines)} lines)")

        # The session may have moved to another store while the call was in flight
        if selection == self._selection:
            self.state.order_sheet_open = False
            self.cart.clear()
        self.notifier.post(ORDER_CREATED)
        self._changed()

        if draft.follow_up_link and self._open_link:
            try:
                self._open_link(draft.follow_up_link)
            except Exception as e:
                logger.warning(f"Could not open follow-up link {draft.follow_up_link}: {e}")

        return draft
