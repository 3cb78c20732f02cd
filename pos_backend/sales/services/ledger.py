# sales/services/ledger.py

"""
SALES LEDGER WRITES + READS

Two views of every completed sale:
- Sale         general sales record (history, store summary)
- Transaction  revenue record (today's revenue, profit)

Both carry the same items / totals / timestamp. They are written one after
the other, without a shared DB transaction.
"""

from __future__ import annotations

import logging

from django.db import transaction
from django.db.models import Count, Sum
from django.utils import timezone

from sales.models import LedgerRecord, Sale, Transaction
from sales.services.checkout_request import CheckoutRequest

logger = logging.getLogger(__name__)


def _common_fields(request: CheckoutRequest, *, store_id) -> dict:
    return {
        "order_id": request.order_id,
        "user_id": request.acting_user_id,
        "store_id": store_id,
        "items": request.ledger_items(),
        "total_amount": request.total_amount,
        "total_items": request.total_item_count,
        "payment_method": request.payment_method,
        "status": LedgerRecord.STATUS_COMPLETED,
        "timestamp": request.created_at,
    }


def append_sale(request: CheckoutRequest, *, store_id=None) -> Sale:
    with transaction.atomic():
        sale = Sale.objects.create(price=request.total_amount, **_common_fields(request, store_id=store_id))
    logger.info("Sale recorded", extra={"order_id": request.order_id, "sale_id": str(sale.id)})
    return sale


def append_transaction(request: CheckoutRequest, *, store_id=None) -> Transaction:
    with transaction.atomic():
        txn = Transaction.objects.create(
            total_profit=request.total_profit,
            **_common_fields(request, store_id=store_id),
        )
    logger.info("Transaction recorded", extra={"order_id": request.order_id, "transaction_id": str(txn.id)})
    return txn


def todays_revenue(*, store_id=None, user_id=None) -> dict:
    """
    Today's revenue from the Transaction view (server-local date).
    """
    today = timezone.localdate()
    qs = Transaction.objects.filter(timestamp__date=today)
    if store_id:
        qs = qs.filter(store_id=store_id)
    elif user_id:
        qs = qs.filter(user_id=user_id)

    agg = qs.aggregate(
        count=Count("id"),
        revenue=Sum("total_amount"),
        profit=Sum("total_profit"),
        items=Sum("total_items"),
    )

    return {
        "date": today.isoformat(),
        "transactions": agg["count"] or 0,
        "revenue": agg["revenue"] or 0,
        "profit": agg["profit"] or 0,
        "items_sold": agg["items"] or 0,
    }
