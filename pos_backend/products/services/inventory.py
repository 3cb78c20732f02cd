# products/services/inventory.py

"""
======================================================
PATH: products/services/inventory.py
======================================================
INVENTORY CORE SERVICES

Purpose:
- Atomic stock decrements for sold items (relative UPDATE per product).
- Settle-all batch decrement: every item is attempted, failures collected.
- Fresh stock reads for post-sale notifications.
- Stock monitor classification (out / low / overstock / normal).

Rules:
- Quantities are integer units.
- A decrement never reads stock first; the database applies stock - qty.
- No rollback: a failed item does not undo the items that succeeded.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple

from django.core.exceptions import ValidationError
from django.db import DatabaseError, transaction
from django.db.models import F

from products.models import Product

logger = logging.getLogger(__name__)


# =====================================================
# ERRORS
# =====================================================

class InventoryError(Exception):
    """Base inventory failure."""


class ProductNotFoundError(InventoryError):
    pass


def _to_int(value, *, field_name="value") -> int:
    if value is None or value == "":
        raise ValidationError(f"{field_name} is required")
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be an integer")


def _require_positive_int(value, *, field_name: str) -> int:
    v = _to_int(value, field_name=field_name)
    if v <= 0:
        raise ValidationError(f"{field_name} must be greater than zero")
    return v


# =====================================================
# READS
# =====================================================

def read_stock(product_id) -> Optional[int]:
    """Current stock straight from the row, or None if the product is gone."""
    return (
        Product.objects.filter(id=product_id)
        .values_list("stock", flat=True)
        .first()
    )


# =====================================================
# DECREMENTS
# =====================================================

def decrement_stock(product_id, quantity) -> None:
    """
    Atomically subtract quantity from a product's stock.

    Raises:
    - ValidationError for a non-positive quantity
    - ProductNotFoundError if no row was updated
    """
    qty = _require_positive_int(quantity, field_name="quantity")

    with transaction.atomic():
        updated = Product.objects.filter(id=product_id).update(stock=F("stock") - qty)
    if updated != 1:
        raise ProductNotFoundError(f"Product {product_id} not found")


@dataclass
class DecrementResult:
    succeeded: List[str] = field(default_factory=list)
    failed: List[Tuple[str, str]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed

    @property
    def failed_ids(self) -> List[str]:
        return [pid for pid, _ in self.failed]


def decrement_many(items: Iterable[Tuple[str, int]]) -> DecrementResult:
    """
    Decrement every (product_id, quantity) pair.

    All items are attempted even when an earlier one fails; the result
    lists which succeeded and which did not (with the reason).
    """
    result = DecrementResult()

    # Sequential on one connection; each F() update is atomic on its own.
    for product_id, quantity in items:
        pid = str(product_id)
        try:
            decrement_stock(product_id, quantity)
        except (InventoryError, ValidationError, DatabaseError) as exc:
            logger.error(
                "Stock decrement failed",
                extra={"product_id": pid, "quantity": quantity, "error": str(exc)},
            )
            result.failed.append((pid, str(exc)))
        else:
            result.succeeded.append(pid)

    return result


# =====================================================
# STOCK MONITOR
# =====================================================

STOCK_OUT = "stock_out"
STOCK_LOW = "low"
STOCK_OVER = "overstock"
STOCK_NORMAL = "normal"


def classify_stock(*, stock: int, batch_size: int, is_bundle: bool = False) -> str:
    """
    Bundles are never classified. Otherwise, relative to the restock unit:
    - 0 units                  -> stock_out
    - at least 5 batches       -> overstock
    - at most half a batch     -> low
    """
    if is_bundle:
        return STOCK_NORMAL

    stock = int(stock or 0)
    batch_size = int(batch_size or 0) or 1

    if stock == 0:
        return STOCK_OUT
    if stock >= 5 * batch_size:
        return STOCK_OVER
    if stock * 2 <= batch_size:
        return STOCK_LOW
    return STOCK_NORMAL


def stock_monitor_report(products: Iterable[Product], *, enabled: bool = True) -> dict:
    """
    Products that need restocking (stock_out / low) plus summary stats.
    """
    flagged = []
    if enabled:
        for p in products:
            status = classify_stock(stock=p.stock, batch_size=p.batch_size, is_bundle=p.is_bundle)
            if status in (STOCK_OUT, STOCK_LOW):
                flagged.append((p, status))

    return {
        "enabled": enabled,
        "stats": {
            "total_products": len(flagged),
            "out_of_stock": sum(1 for _, s in flagged if s == STOCK_OUT),
            "critical_stock": sum(1 for _, s in flagged if s == STOCK_LOW),
            "total_value": sum(int(p.unit_price) * int(p.stock) for p, _ in flagged),
        },
        "products": [
            {
                "id": str(p.id),
                "sku": p.sku,
                "name": p.name,
                "stock": p.stock,
                "batch_size": p.batch_size,
                "status": status,
            }
            for p, status in flagged
        ],
    }
