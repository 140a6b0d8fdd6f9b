"""
Host Context

Identity and auth data handed over by the Telegram shell.
The raw init data is forwarded to Saleor untouched; only the user
object is decoded locally to build buyer metadata.
"""

import re
import json
import time
import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import parse_qsl

logger = logging.getLogger(__name__)

AUTH_SCHEME = "tma"


@dataclass(frozen=True)
class HostUser:
    """Telegram user from init data"""
    id: Optional[int] = None
    username: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None


@dataclass(frozen=True)
class HostContext:
    """Init data and launch parameters of the host shell"""
    raw_init_data: Optional[str] = None
    user: Optional[HostUser] = None
    is_embedded: bool = False

    @classmethod
    def anonymous(cls) -> "HostContext":
        return cls()

    @classmethod
    def from_init_data(cls, raw_init_data: Optional[str]) -> "HostContext":
        """Build a context from raw init data; bad data yields an anonymous user"""
        if not raw_init_data:
            return cls.anonymous()

        params = dict(parse_qsl(raw_init_data, keep_blank_values=True))
        user = None
        raw_user = params.get("user")
        if raw_user:
            try:
                data = json.loads(raw_user)
            except json.JSONDecodeError:
                logger.warning("Init data carries an unreadable user payload")
                data = None
            if isinstance(data, dict):
                user = HostUser(
                    id=data.get("id") if isinstance(data.get("id"), int) else None,
                    username=data.get("username") or None,
                    first_name=data.get("first_name") or None,
                    last_name=data.get("last_name") or None,
                )

        return cls(raw_init_data=raw_init_data, user=user, is_embedded=True)

    @property
    def auth_header(self) -> Optional[str]:
        """Authorization header value, or None for anonymous requests"""
        if not self.raw_init_data:
            return None
        return f"{AUTH_SCHEME} {self.raw_init_data}"


def build_pseudo_email(user: Optional[HostUser], domain: str = "telegram.local") -> str:
    """Stable buyer email for a Telegram user, or a fresh guest address"""
    if user is None:
        return f"guest+{int(time.time() * 1000)}@{domain}"
    if user.username:
        return f"{user.username}@{domain}"
    if user.id:
        safe_id = re.sub(r"\D+", "", str(user.id))
        return f"user{safe_id}@{domain}"
    return f"user{int(time.time() * 1000)}@{domain}"


def build_buyer_metadata(
    user: Optional[HostUser],
    store_slug: str,
    order_total: str,
) -> dict[str, str]:
    """Metadata attached to every order draft"""
    return {
        "telegram_user_id": str(user.id) if user and user.id else "guest",
        "telegram_username": (user.username or "") if user else "",
        "store_slug": store_slug,
        "telegram_order_total": order_total,
    }
