"""
PATH: sales/services/checkout_request.py

CHECKOUT SNAPSHOT TYPES

CheckoutRequest is built once from the cart at the start of a checkout and
never changes afterwards. Every later step (stock, ledger, stats) reads
from it, and it is stored on the CheckoutIntent so a resumed checkout
writes exactly the same records.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Tuple

from django.utils import timezone
from django.utils.dateparse import parse_datetime

from products.models import Product
from sales.models import LedgerRecord
from sales.services.exceptions import CheckoutValidationError

PAYMENT_METHODS = (LedgerRecord.PAYMENT_CASH, LedgerRecord.PAYMENT_QRIS)


@dataclass(frozen=True)
class CheckoutItem:
    product_id: str
    name: str
    unit_price: int
    quantity: int
    unit_cost: int = 0

    @property
    def subtotal(self) -> int:
        return self.unit_price * self.quantity

    @property
    def profit(self) -> int:
        return (self.unit_price - self.unit_cost) * self.quantity

    def ledger_line(self) -> dict:
        return {
            "product_id": self.product_id,
            "name": self.name,
            "unit_price": self.unit_price,
            "quantity": self.quantity,
            "subtotal": self.subtotal,
        }


@dataclass(frozen=True)
class CheckoutRequest:
    order_id: str
    items: Tuple[CheckoutItem, ...]
    payment_method: str
    store_id: Optional[str]
    acting_user_id: Optional[str]
    created_at: datetime

    @property
    def total_amount(self) -> int:
        return sum(i.subtotal for i in self.items)

    @property
    def total_item_count(self) -> int:
        return sum(i.quantity for i in self.items)

    @property
    def total_profit(self) -> int:
        return sum(i.profit for i in self.items)

    def ledger_items(self) -> list:
        return [i.ledger_line() for i in self.items]

    def to_payload(self) -> dict:
        return {
            "order_id": self.order_id,
            "items": [
                {
                    "product_id": i.product_id,
                    "name": i.name,
                    "unit_price": i.unit_price,
                    "quantity": i.quantity,
                    "unit_cost": i.unit_cost,
                }
                for i in self.items
            ],
            "payment_method": self.payment_method,
            "store_id": self.store_id,
            "acting_user_id": self.acting_user_id,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_payload(cls, payload: dict) -> "CheckoutRequest":
        return cls(
            order_id=payload["order_id"],
            items=tuple(CheckoutItem(**row) for row in payload["items"]),
            payment_method=payload["payment_method"],
            store_id=payload.get("store_id"),
            acting_user_id=payload.get("acting_user_id"),
            created_at=parse_datetime(payload["created_at"]),
        )


@dataclass(frozen=True)
class ReceiptSummary:
    request: CheckoutRequest
    sale_id: str
    transaction_id: str
    intent_id: str
    notifications: list = field(default_factory=list)

    @property
    def order_id(self) -> str:
        return self.request.order_id


@dataclass(frozen=True)
class CheckoutCancelled:
    order_id: str
    reason: str = "closed"


def build_checkout_request(
    *,
    cart,
    payment_method: str,
    store_id=None,
    user_id=None,
    order_id: str,
) -> CheckoutRequest:
    """
    Snapshot the cart. Unit costs come from the catalog (profit only);
    prices and quantities come from the cart as the cashier saw them.
    """
    method = (payment_method or "").strip().lower()
    if method not in PAYMENT_METHODS:
        raise CheckoutValidationError(f"Unsupported payment method: {payment_method!r}")

    if cart.is_empty:
        raise CheckoutValidationError("Cart is empty")

    if cart.total_price <= 0:
        raise CheckoutValidationError("Cart total must be greater than zero")

    costs = dict(
        Product.objects.filter(id__in=[i.product_id for i in cart.items]).values_list("id", "cost_price")
    )
    costs = {str(k): int(v or 0) for k, v in costs.items()}

    return CheckoutRequest(
        order_id=order_id,
        items=tuple(
            CheckoutItem(
                product_id=i.product_id,
                name=i.name,
                unit_price=int(i.unit_price),
                quantity=int(i.quantity),
                unit_cost=costs.get(i.product_id, 0),
            )
            for i in cart.items
        ),
        payment_method=method,
        store_id=str(store_id) if store_id else None,
        acting_user_id=str(user_id) if user_id else None,
        created_at=timezone.now(),
    )
