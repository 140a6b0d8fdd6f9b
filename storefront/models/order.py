"""Order draft models"""

from dataclasses import dataclass, field
from typing import Optional


@dataclass
class OrderLine:
    """Line of an order draft"""
    variant_id: str
    quantity: int

    def to_input(self) -> dict:
        return {"variantId": self.variant_id, "quantity": self.quantity}


@dataclass
class BuyerContext:
    """Who is ordering and where from"""
    email: str
    metadata: dict[str, str] = field(default_factory=dict)

    def metadata_input(self) -> list[dict]:
        return [{"key": key, "value": value} for key, value in self.metadata.items()]


@dataclass
class OrderDraft:
    """Result of a successful submission"""
    confirmation_reference: str
    follow_up_link: Optional[str] = None
