"""Session API routes driven by the mini-app front end"""

import logging
from decimal import Decimal
from typing import Optional

import httpx
from pydantic import BaseModel, Field
from fastapi import APIRouter, HTTPException, Depends

from ..core.config import settings
from ..core.host import HostContext
from ..core.session import session_manager, OrderSession, SessionFactory
from ..models.catalog import Store, Category
from ..services.catalog_client import CatalogClient
from ..services.chrome import ChromeAdapter, ChromeState
from ..services.controller import SessionController
from ..services.notifications import Notifier

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/sessions", tags=["Sessions"])

# Shared transport for all sessions, closed on shutdown
http_client: Optional[httpx.AsyncClient] = None


def get_http_client() -> httpx.AsyncClient:
    """Get or create the shared HTTP client"""
    global http_client
    if http_client is None:
        http_client = httpx.AsyncClient(timeout=settings.request_timeout)
    return http_client


def build_session(host: HostContext) -> tuple[SessionController, ChromeState, ChromeAdapter]:
    """Wire a controller, its chrome and adapter for one user"""
    catalog = CatalogClient(
        api_url=settings.saleor_api_url,
        channel=settings.saleor_channel,
        host=host,
        http_client=get_http_client(),
        stores_page_size=settings.stores_page_size,
        products_page_size=settings.products_page_size,
        variants_page_size=settings.variants_page_size,
    )
    chrome = ChromeState()
    controller = SessionController(
        catalog=catalog,
        notifier=Notifier(default_duration=settings.notification_duration),
        host=host,
        open_link=chrome.open_link,
        default_currency=settings.default_currency,
        email_domain=settings.guest_email_domain,
    )
    adapter = ChromeAdapter(
        controller,
        chrome,
        review_label=settings.review_order_label,
        default_currency=settings.default_currency,
        enabled=host.is_embedded,
    )
    return controller, chrome, adapter


def get_session_factory() -> SessionFactory:
    return build_session


def get_order_session(session_id: str) -> OrderSession:
    session = session_manager.get_session(session_id)
    if not session:
        raise HTTPException(status_code=404, detail="Session not found")
    return session


# ==================== Schemas ====================

class CreateSessionRequest(BaseModel):
    """Request to start a session"""
    init_data: Optional[str] = None


class CartUpdateRequest(BaseModel):
    """Set the quantity of a product in the cart"""
    product_id: str
    quantity: int = Field(ge=0)


class CartLine(BaseModel):
    product_id: str
    name: str
    variant_name: str
    quantity: int
    unit_price: Optional[Decimal] = None
    line_total: Optional[Decimal] = None
    currency: Optional[str] = None
    purchasable: bool


class CartView(BaseModel):
    lines: list[CartLine]
    items: int
    amount: Decimal
    currency: str
    formatted_total: str


class ChromeView(BaseModel):
    primary_visible: bool
    primary_label: str
    primary_enabled: bool
    back_visible: bool
    open_link: Optional[str] = None


class NotificationView(BaseModel):
    message: str
    visible: bool


class SessionSnapshot(BaseModel):
    """Everything the front end renders"""
    session_id: str
    view: str
    embedded: bool
    stores: list[Store]
    stores_loading: bool
    store_message: str
    store: Optional[Store] = None
    categories: list[Category]
    active_category_id: Optional[str] = None
    catalog_loading: bool
    product_message: str
    cart: CartView
    order_sheet_open: bool
    submitting: bool
    notification: NotificationView
    chrome: ChromeView
    docs_url: str


def build_snapshot(session: OrderSession, hand_out_link: bool = True) -> SessionSnapshot:
    """
    Render the session for the front end.

    A pending link is handed out once, by the response to the action
    that produced it or a later action; plain reads leave it queued.
    """
    controller = session.controller
    state = controller.state
    summary = controller.summary()
    currency = summary.display_currency(settings.default_currency)

    lines = [
        CartLine(
            product_id=entry.product.id,
            name=entry.product.name,
            variant_name=entry.product.variant.name if entry.product.variant else "",
            quantity=entry.quantity,
            unit_price=entry.product.price.amount if entry.product.price else None,
            line_total=entry.line_total,
            currency=entry.product.currency,
            purchasable=entry.product.is_purchasable,
        )
        for entry in controller.cart
    ]

    return SessionSnapshot(
        session_id=session.session_id,
        view=state.view.value,
        embedded=session.host.is_embedded,
        stores=state.stores,
        stores_loading=state.stores_loading,
        store_message=state.store_message,
        store=state.store,
        categories=controller.categories,
        active_category_id=state.active_category_id,
        catalog_loading=state.catalog_loading,
        product_message=state.product_message,
        cart=CartView(
            lines=lines,
            items=summary.items,
            amount=summary.amount,
            currency=currency,
            formatted_total=summary.formatted_total(settings.default_currency),
        ),
        order_sheet_open=state.order_sheet_open,
        submitting=state.submitting,
        notification=NotificationView(
            message=controller.notifier.message,
            visible=controller.notifier.visible,
        ),
        chrome=ChromeView(
            primary_visible=session.chrome.primary_visible,
            primary_label=session.chrome.primary_label,
            primary_enabled=session.chrome.primary_enabled,
            back_visible=session.chrome.back_visible,
            open_link=session.chrome.take_link() if hand_out_link else None,
        ),
        docs_url=settings.saleor_docs_url,
    )


# ==================== Routes ====================

@router.post("", response_model=SessionSnapshot)
async def create_session(
    request: CreateSessionRequest,
    factory: SessionFactory = Depends(get_session_factory),
):
    """
    Start a session and load the store list.

    Without init data the session runs as a browsing-only web session.
    """
    session_manager.cleanup_old_sessions(settings.session_max_age_hours)
    host = HostContext.from_init_data(request.init_data)
    session = session_manager.create_session(host, factory)
    await session.controller.load_stores()
    return build_snapshot(session)


@router.get("/{session_id}", response_model=SessionSnapshot)
async def get_session(session: OrderSession = Depends(get_order_session)):
    """Current session snapshot"""
    return build_snapshot(session, hand_out_link=False)


@router.post("/{session_id}/stores/reload", response_model=SessionSnapshot)
async def reload_stores(session: OrderSession = Depends(get_order_session)):
    """Retry loading the store list"""
    await session.controller.load_stores()
    return build_snapshot(session)


@router.post("/{session_id}/stores/{store_id}", response_model=SessionSnapshot)
async def select_store(
    store_id: str,
    session: OrderSession = Depends(get_order_session),
):
    """Open a store and load its menu"""
    store = session.controller.find_store(store_id)
    if not store:
        raise HTTPException(status_code=404, detail="Store not found")
    await session.controller.select_store(store)
    return build_snapshot(session)


@router.post("/{session_id}/categories/{category_id}", response_model=SessionSnapshot)
async def select_category(
    category_id: str,
    session: OrderSession = Depends(get_order_session),
):
    """Switch the active category"""
    if not session.controller.select_category(category_id):
        raise HTTPException(status_code=404, detail="Category not found")
    return build_snapshot(session)


@router.post("/{session_id}/exit", response_model=SessionSnapshot)
async def exit_store(session: OrderSession = Depends(get_order_session)):
    """Leave the store view, closing the order sheet first"""
    session.controller.close_order_sheet()
    session.controller.exit_store()
    return build_snapshot(session)


@router.post("/{session_id}/cart", response_model=SessionSnapshot)
async def update_cart(
    request: CartUpdateRequest,
    session: OrderSession = Depends(get_order_session),
):
    """Set a product quantity; zero removes it"""
    product = session.controller.find_product(request.product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    if not session.controller.set_quantity(product, request.quantity):
        raise HTTPException(status_code=409, detail="Product is not available for ordering")
    return build_snapshot(session)


@router.post("/{session_id}/order-sheet/open", response_model=SessionSnapshot)
async def open_order_sheet(session: OrderSession = Depends(get_order_session)):
    session.controller.open_order_sheet()
    return build_snapshot(session)


@router.post("/{session_id}/order-sheet/close", response_model=SessionSnapshot)
async def close_order_sheet(session: OrderSession = Depends(get_order_session)):
    session.controller.close_order_sheet()
    return build_snapshot(session)


@router.post("/{session_id}/chrome/primary-click", response_model=SessionSnapshot)
async def primary_click(session: OrderSession = Depends(get_order_session)):
    """Relay a host primary-action click"""
    session.chrome.click_primary()
    return build_snapshot(session)


@router.post("/{session_id}/chrome/back-click", response_model=SessionSnapshot)
async def back_click(session: OrderSession = Depends(get_order_session)):
    """Relay a host back-action click"""
    session.chrome.click_back()
    return build_snapshot(session)


@router.post("/{session_id}/order", response_model=SessionSnapshot)
async def submit_order(session: OrderSession = Depends(get_order_session)):
    """Submit the cart as an order draft"""
    await session.controller.submit_order()
    return build_snapshot(session)


@router.delete("/{session_id}")
async def delete_session(session_id: str):
    """Delete a session"""
    if session_manager.delete_session(session_id):
        return {"message": "Session deleted"}
    raise HTTPException(status_code=404, detail="Session not found")
