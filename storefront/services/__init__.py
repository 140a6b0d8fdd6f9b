# Storefront Services

from .errors import (
    CatalogError,
    TransportError,
    BackendError,
    ValidationError,
    DomainInvariantViolation,
)
from .catalog_client import CatalogClient
from .cart_store import CartStore
from .notifications import Notifier, Notification
from .chrome import HostChrome, ChromeState, ChromeAdapter
from .controller import SessionController, SessionState, SessionView

__all__ = [
    "CatalogError",
    "TransportError",
    "BackendError",
    "ValidationError",
    "DomainInvariantViolation",
    "CatalogClient",
    "CartStore",
    "Notifier",
    "Notification",
    "HostChrome",
    "ChromeState",
    "ChromeAdapter",
    "SessionController",
    "SessionState",
    "SessionView",
]
