# Core modules

from .config import settings, get_settings
from .host import HostContext, HostUser

__all__ = ["settings", "get_settings", "HostContext", "HostUser"]
