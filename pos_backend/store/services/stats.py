"""
PATH: store/services/stats.py

STORE STATISTICS

Write side:
- apply_increment() adds deltas with one relative UPDATE (F expressions),
  so concurrent checkouts never lose each other's counts.
- NOT idempotent. Retrying a sale that already counted double-counts it.

Read side:
- store_summary() derives today / all-time numbers from the Sale ledger,
  so it can be used to reconcile the counters.
"""

from __future__ import annotations

import logging
from typing import Optional

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Count, F, Sum
from django.utils import timezone

from store.models import Store, StoreStats

logger = logging.getLogger(__name__)


def stores_for_user(user_id):
    """Stores the user may book sales to and read numbers for. Admins get all."""
    User = get_user_model()
    role = User.objects.filter(id=user_id).values_list("role", flat=True).first()
    if role == User.ROLE_ADMIN:
        return Store.objects.all()
    return Store.objects.filter(owner_id=user_id)


def resolve_store_id(*, store_id=None, user_id=None):
    """
    Pick the store a sale is booked to.

    Explicit store wins when the acting user may act for it (owner, or an
    admin). Otherwise the acting user's own (oldest active) store.
    Returns None when neither resolves.
    """
    if store_id:
        qs = stores_for_user(user_id) if user_id else Store.objects.all()
        try:
            exists = qs.filter(id=store_id).exists()
        except (ValueError, ValidationError):
            exists = False
        if exists:
            return store_id
        logger.warning(
            "Unknown or foreign store id",
            extra={"store_id": str(store_id), "user_id": str(user_id) if user_id else None},
        )
        return None

    if not user_id:
        return None

    return (
        Store.objects.filter(owner_id=user_id, is_active=True)
        .order_by("created_at")
        .values_list("id", flat=True)
        .first()
    )


def apply_increment(
    store_id,
    *,
    sales_delta: int,
    revenue_delta: int,
    profit_delta: int = 0,
    at=None,
) -> StoreStats:
    """
    Atomically add deltas to a store's counters and stamp last_sale_at.

    The counter row is created (all zeros) on first use.
    """
    StoreStats.objects.get_or_create(store_id=store_id)

    with transaction.atomic():
        StoreStats.objects.filter(store_id=store_id).update(
            total_sales=F("total_sales") + int(sales_delta),
            total_revenue=F("total_revenue") + int(revenue_delta),
            total_profit=F("total_profit") + int(profit_delta),
            last_sale_at=at or timezone.now(),
        )

    stats = StoreStats.objects.get(store_id=store_id)

    logger.info(
        "Store stats incremented",
        extra={
            "store_id": str(store_id),
            "sales_delta": sales_delta,
            "revenue_delta": revenue_delta,
            "total_sales": stats.total_sales,
        },
    )
    return stats


def store_summary(store_id) -> dict:
    """
    Today vs all-time sale count and revenue, computed from the Sale ledger.
    """
    from sales.models import Sale

    ledger = Sale.objects.filter(store_id=store_id)
    today = timezone.localdate()

    all_time = ledger.aggregate(count=Count("id"), revenue=Sum("total_amount"))
    today_agg = ledger.filter(timestamp__date=today).aggregate(
        count=Count("id"), revenue=Sum("total_amount")
    )

    return {
        "date": today.isoformat(),
        "today_sales": today_agg["count"] or 0,
        "today_revenue": today_agg["revenue"] or 0,
        "all_time_sales": all_time["count"] or 0,
        "all_time_revenue": all_time["revenue"] or 0,
    }


def get_stats(store_id) -> Optional[StoreStats]:
    return StoreStats.objects.filter(store_id=store_id).first()
