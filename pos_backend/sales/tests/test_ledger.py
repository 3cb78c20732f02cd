from datetime import timedelta

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.utils import timezone

from sales.models import LedgerImmutableError, Sale, Transaction
from sales.services.ledger import todays_revenue
from store.models import Store

User = get_user_model()


def _ledger_fields(**overrides):
    fields = {
        "order_id": "CASH-1",
        "items": [{"product_id": "p1", "name": "Kopi", "unit_price": 5000, "quantity": 1, "subtotal": 5000}],
        "total_amount": 5000,
        "total_items": 1,
        "payment_method": "cash",
        "timestamp": timezone.now(),
    }
    fields.update(overrides)
    return fields


class LedgerImmutabilityTests(TestCase):
    """
    GUARANTEES:
    - Ledger rows are append-only
    - Saved totals cannot be changed or deleted through the model
    """

    def setUp(self):
        self.sale = Sale.objects.create(price=5000, **_ledger_fields())
        self.txn = Transaction.objects.create(total_profit=2000, **_ledger_fields())

    def test_sale_cannot_be_updated(self):
        self.sale.total_amount = 1
        with self.assertRaises(LedgerImmutableError):
            self.sale.save()

        self.assertEqual(Sale.objects.get(id=self.sale.id).total_amount, 5000)

    def test_transaction_cannot_be_updated(self):
        self.txn.total_profit = 0
        with self.assertRaises(LedgerImmutableError):
            self.txn.save()

    def test_rows_cannot_be_deleted(self):
        with self.assertRaises(LedgerImmutableError):
            self.sale.delete()
        with self.assertRaises(LedgerImmutableError):
            self.txn.delete()

        self.assertTrue(Sale.objects.filter(id=self.sale.id).exists())


class TodaysRevenueTests(TestCase):
    def setUp(self):
        self.owner = User.objects.create_user(email="owner@example.com", password="pass")
        self.store = Store.objects.create(owner=self.owner, name="Toko A")
        self.other = Store.objects.create(owner=self.owner, name="Toko B")

    def test_counts_only_today_for_the_store(self):
        now = timezone.now()
        Transaction.objects.create(
            total_profit=2000, store=self.store, **_ledger_fields(order_id="A", timestamp=now)
        )
        Transaction.objects.create(
            total_profit=1000,
            store=self.store,
            **_ledger_fields(order_id="B", total_amount=3000, total_items=2, timestamp=now),
        )
        Transaction.objects.create(
            total_profit=9999,
            store=self.store,
            **_ledger_fields(order_id="C", timestamp=now - timedelta(days=2)),
        )
        Transaction.objects.create(
            total_profit=9999, store=self.other, **_ledger_fields(order_id="D", timestamp=now)
        )

        result = todays_revenue(store_id=self.store.id)

        self.assertEqual(result["date"], timezone.localdate().isoformat())
        self.assertEqual(result["transactions"], 2)
        self.assertEqual(result["revenue"], 8000)
        self.assertEqual(result["profit"], 3000)
        self.assertEqual(result["items_sold"], 3)

    def test_empty_day_is_zero(self):
        result = todays_revenue(store_id=self.store.id)

        self.assertEqual(result["transactions"], 0)
        self.assertEqual(result["revenue"], 0)
