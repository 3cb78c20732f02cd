# store/tests.py

"""
STORE TESTS

Run with:
    python manage.py test store -v 2
"""

from datetime import timedelta

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APIClient

from sales.models import Sale
from store.models import Store, StoreStats
from store.services.stats import apply_increment, resolve_store_id, store_summary

User = get_user_model()


class StoreStatsServiceTests(TestCase):
    """
    GUARANTEES:
    - Increments are relative (F expressions) and add up
    - apply_increment is NOT idempotent: a retry counts twice
    - The counter row is created on first use
    """

    def setUp(self):
        self.owner = User.objects.create_user(email="owner@example.com", password="pass")
        self.store = Store.objects.create(owner=self.owner, name="Toko A")

    def test_first_increment_creates_row(self):
        at = timezone.now()
        stats = apply_increment(self.store.id, sales_delta=1, revenue_delta=15000, profit_delta=5000, at=at)

        self.assertEqual(stats.total_sales, 1)
        self.assertEqual(stats.total_revenue, 15000)
        self.assertEqual(stats.total_profit, 5000)
        self.assertEqual(stats.last_sale_at, at)

    def test_increments_accumulate(self):
        apply_increment(self.store.id, sales_delta=1, revenue_delta=1000)
        stats = apply_increment(self.store.id, sales_delta=1, revenue_delta=2500)

        self.assertEqual(stats.total_sales, 2)
        self.assertEqual(stats.total_revenue, 3500)
        self.assertEqual(StoreStats.objects.count(), 1)

    def test_retry_double_counts(self):
        for _ in range(2):
            stats = apply_increment(self.store.id, sales_delta=1, revenue_delta=1000)

        self.assertEqual(stats.total_sales, 2)
        self.assertEqual(stats.total_revenue, 2000)


class ResolveStoreTests(TestCase):
    def setUp(self):
        self.owner = User.objects.create_user(email="owner@example.com", password="pass")
        self.first = Store.objects.create(owner=self.owner, name="Toko Lama")
        self.second = Store.objects.create(owner=self.owner, name="Toko Baru")

    def test_explicit_store_wins(self):
        self.assertEqual(resolve_store_id(store_id=self.second.id, user_id=self.owner.id), self.second.id)

    def test_defaults_to_oldest_active_owned_store(self):
        self.assertEqual(resolve_store_id(user_id=self.owner.id), self.first.id)

        Store.objects.filter(id=self.first.id).update(is_active=False)
        self.assertEqual(resolve_store_id(user_id=self.owner.id), self.second.id)

    def test_foreign_store_is_none_for_non_admin(self):
        rival_owner = User.objects.create_user(email="rival@example.com", password="pass")
        rival = Store.objects.create(owner=rival_owner, name="Toko Saingan")
        cashier = User.objects.create_user(email="kasir@example.com", password="pass", role=User.ROLE_CASHIER)

        self.assertIsNone(resolve_store_id(store_id=rival.id, user_id=self.owner.id))
        self.assertIsNone(resolve_store_id(store_id=rival.id, user_id=cashier.id))

    def test_admin_may_resolve_any_store(self):
        admin = User.objects.create_user(email="admin@example.com", password="pass", role=User.ROLE_ADMIN)
        self.assertEqual(resolve_store_id(store_id=self.first.id, user_id=admin.id), self.first.id)

    def test_stats_endpoint_hides_foreign_store(self):
        rival_owner = User.objects.create_user(email="rival@example.com", password="pass")
        rival = Store.objects.create(owner=rival_owner, name="Toko Saingan")
        client = APIClient()
        client.force_authenticate(user=self.owner)

        response = client.get(reverse("store-stats"), {"store_id": str(rival.id)})

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_unknown_or_malformed_store_is_none(self):
        self.assertIsNone(resolve_store_id(store_id="00000000-0000-0000-0000-000000000000"))
        self.assertIsNone(resolve_store_id(store_id="not-a-uuid"))

    def test_user_without_store_is_none(self):
        cashier = User.objects.create_user(email="kasir@example.com", password="pass", role=User.ROLE_CASHIER)
        self.assertIsNone(resolve_store_id(user_id=cashier.id))
        self.assertIsNone(resolve_store_id())


class StoreSummaryTests(TestCase):
    def setUp(self):
        self.owner = User.objects.create_user(email="owner@example.com", password="pass")
        self.store = Store.objects.create(owner=self.owner, name="Toko A")
        self.client = APIClient()

    def _sale(self, order_id, amount, when):
        return Sale.objects.create(
            order_id=order_id,
            store=self.store,
            items=[],
            total_amount=amount,
            price=amount,
            total_items=1,
            payment_method="cash",
            timestamp=when,
        )

    def test_summary_splits_today_and_all_time(self):
        now = timezone.now()
        self._sale("A", 1000, now)
        self._sale("B", 2000, now)
        self._sale("C", 4000, now - timedelta(days=3))

        summary = store_summary(self.store.id)

        self.assertEqual(summary["today_sales"], 2)
        self.assertEqual(summary["today_revenue"], 3000)
        self.assertEqual(summary["all_time_sales"], 3)
        self.assertEqual(summary["all_time_revenue"], 7000)

    def test_stats_endpoint(self):
        apply_increment(self.store.id, sales_delta=1, revenue_delta=1000)
        self._sale("A", 1000, timezone.now())

        self.client.force_authenticate(user=self.owner)
        response = self.client.get(reverse("store-stats"))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["counters"]["total_sales"], 1)
        self.assertEqual(response.data["summary"]["today_revenue"], 1000)

    def test_stats_endpoint_without_counters(self):
        self.client.force_authenticate(user=self.owner)
        response = self.client.get(reverse("store-stats"))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["counters"]["total_sales"], 0)

    def test_stats_endpoint_without_store_is_404(self):
        cashier = User.objects.create_user(email="kasir@example.com", password="pass", role=User.ROLE_CASHIER)
        self.client.force_authenticate(user=cashier)

        response = self.client.get(reverse("store-stats"))

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data["error"]["code"], "STORE_NOT_FOUND")


class StoreApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.owner = User.objects.create_user(email="owner@example.com", password="pass")
        self.client.force_authenticate(user=self.owner)

    def test_create_sets_owner(self):
        response = self.client.post(reverse("stores-list"), {"name": "Warung Sari"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(Store.objects.get(id=response.data["id"]).owner, self.owner)

    def test_cashier_cannot_manage_stores(self):
        cashier = User.objects.create_user(email="kasir@example.com", password="pass", role=User.ROLE_CASHIER)
        self.client.force_authenticate(user=cashier)

        response = self.client.get(reverse("stores-list"))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
