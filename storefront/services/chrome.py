"""
Host Chrome

Narrow command/event interface to the shell's primary and back
actions, a recording implementation used by the HTTP layer and tests,
and the adapter that projects session state onto it.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional, Protocol

from ..models.cart import format_money

logger = logging.getLogger(__name__)

ClickHandler = Callable[[], None]
Unsubscribe = Callable[[], None]


class HostChrome(Protocol):
    """Commands accepted by the host shell and the clicks it emits"""

    def show_primary(self, label: str, enabled: bool = True) -> None: ...

    def hide_primary(self) -> None: ...

    def show_back(self) -> None: ...

    def hide_back(self) -> None: ...

    def open_link(self, url: str) -> None: ...

    def on_primary_click(self, handler: ClickHandler) -> Unsubscribe: ...

    def on_back_click(self, handler: ClickHandler) -> Unsubscribe: ...


@dataclass
class ChromeState:
    """Host chrome that remembers the last commands it received"""
    primary_visible: bool = False
    primary_label: str = ""
    primary_enabled: bool = False
    back_visible: bool = False
    pending_link: Optional[str] = None
    commands: list[str] = field(default_factory=list)
    _primary_handlers: list[ClickHandler] = field(default_factory=list, init=False, repr=False)
    _back_handlers: list[ClickHandler] = field(default_factory=list, init=False, repr=False)

    def show_primary(self, label: str, enabled: bool = True) -> None:
        self.primary_visible = True
        self.primary_label = label
        self.primary_enabled = enabled
        self.commands.append(f"show_primary:{label}")

    def hide_primary(self) -> None:
        self.primary_visible = False
        self.primary_enabled = False
        self.commands.append("hide_primary")

    def show_back(self) -> None:
        self.back_visible = True
        self.commands.append("show_back")

    def hide_back(self) -> None:
        self.back_visible = False
        self.commands.append("hide_back")

    def open_link(self, url: str) -> None:
        self.pending_link = url
        self.commands.append(f"open_link:{url}")

    def take_link(self) -> Optional[str]:
        """Hand the requested link to the client once"""
        link, self.pending_link = self.pending_link, None
        return link

    def on_primary_click(self, handler: ClickHandler) -> Unsubscribe:
        return self._subscribe(self._primary_handlers, handler)

    def on_back_click(self, handler: ClickHandler) -> Unsubscribe:
        return self._subscribe(self._back_handlers, handler)

    def click_primary(self) -> None:
        for handler in list(self._primary_handlers):
            handler()

    def click_back(self) -> None:
        for handler in list(self._back_handlers):
            handler()

    @staticmethod
    def _subscribe(handlers: list[ClickHandler], handler: ClickHandler) -> Unsubscribe:
        handlers.append(handler)

        def unsubscribe() -> None:
            if handler in handlers:
                handlers.remove(handler)

        return unsubscribe


class ChromeAdapter:
    """
    Projects session state onto the host chrome and relays its clicks.

    Holds no state of its own beyond subscriptions.
    """

    def __init__(
        self,
        controller,
        chrome: HostChrome,
        review_label: str = "Review order",
        default_currency: str = "USD",
        enabled: bool = True,
    ):
        self.controller = controller
        self.chrome = chrome
        self.review_label = review_label
        self.default_currency = default_currency
        self.enabled = enabled
        self._unsubscribers: list[Unsubscribe] = []

    def attach(self) -> None:
        """Subscribe to host clicks and session changes, then sync once"""
        if not self.enabled:
            logger.debug("Host chrome unavailable, running in web mode")
            return
        self._unsubscribers = [
            self.chrome.on_primary_click(self.handle_primary_click),
            self.chrome.on_back_click(self.handle_back_click),
            self.controller.subscribe(self.sync),
        ]
        self.sync()

    def detach(self) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []

    def primary_label(self) -> Optional[str]:
        """Label of the primary action, or None when it should be hidden"""
        summary = self.controller.summary()
        if summary.items == 0:
            return None
        total = format_money(summary.amount, summary.display_currency(self.default_currency))
        return f"{self.review_label} · {total}"

    def back_visible(self) -> bool:
        state = self.controller.state
        return state.is_viewing_store or state.order_sheet_open

    def sync(self) -> None:
        """Push the current projection to the host"""
        label = self.primary_label()
        if label is None:
            self.chrome.hide_primary()
        else:
            self.chrome.show_primary(label, enabled=True)

        if self.back_visible():
            self.chrome.show_back()
        else:
            self.chrome.hide_back()

    def handle_primary_click(self) -> None:
        if not self.controller.cart.is_empty:
            self.controller.open_order_sheet()

    def handle_back_click(self) -> None:
        # Nearer overlay first: order sheet, then store view
        state = self.controller.state
        if state.order_sheet_open:
            self.controller.close_order_sheet()
            return
        if state.is_viewing_store:
            self.controller.exit_store()
            return
