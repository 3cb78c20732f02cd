"""
PATH: notifications/events.py

NOTIFICATION EVENTS

A closed set of immutable events. Each one knows its kind, its severity
and how to render itself for API responses.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import ClassVar, Optional, Union


@dataclass(frozen=True)
class StockDepleted:
    kind: ClassVar[str] = "stock_depleted"
    level: ClassVar[str] = "error"

    product_id: str
    product_name: str

    @property
    def title(self) -> str:
        return "Out of stock"

    @property
    def message(self) -> str:
        return f"{self.product_name} is out of stock"


@dataclass(frozen=True)
class LowStock:
    kind: ClassVar[str] = "low_stock"
    level: ClassVar[str] = "warning"

    product_id: str
    product_name: str
    remaining: int

    @property
    def title(self) -> str:
        return "Low stock"

    @property
    def message(self) -> str:
        return f"{self.product_name} has {self.remaining} left"


@dataclass(frozen=True)
class SaleCompleted:
    kind: ClassVar[str] = "sale_completed"
    level: ClassVar[str] = "success"

    total_amount: int
    payment_method: str
    sale_id: Optional[str] = None

    @property
    def title(self) -> str:
        return "Sale completed"

    @property
    def message(self) -> str:
        return f"Rp {self.total_amount:,} paid by {self.payment_method}".replace(",", ".")


@dataclass(frozen=True)
class ProductAdded:
    kind: ClassVar[str] = "product_added"
    level: ClassVar[str] = "info"

    product_id: str
    product_name: str

    @property
    def title(self) -> str:
        return "Product added"

    @property
    def message(self) -> str:
        return f"{self.product_name} was added to the catalog"


Event = Union[StockDepleted, LowStock, SaleCompleted, ProductAdded]


def event_to_dict(event: Event) -> dict:
    return {
        "kind": event.kind,
        "level": event.level,
        "title": event.title,
        "message": event.message,
        "data": asdict(event),
    }
