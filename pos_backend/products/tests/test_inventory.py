from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.test import SimpleTestCase, TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from notifications.models import MonitoringSettings
from products.models import Product
from products.services.inventory import (
    STOCK_LOW,
    STOCK_NORMAL,
    STOCK_OUT,
    STOCK_OVER,
    ProductNotFoundError,
    classify_stock,
    decrement_many,
    decrement_stock,
    read_stock,
)
from store.models import Store

User = get_user_model()


class ClassifyStockTests(SimpleTestCase):
    def test_zero_is_out(self):
        self.assertEqual(classify_stock(stock=0, batch_size=10), STOCK_OUT)

    def test_half_batch_or_less_is_low(self):
        self.assertEqual(classify_stock(stock=5, batch_size=10), STOCK_LOW)
        self.assertEqual(classify_stock(stock=1, batch_size=10), STOCK_LOW)

    def test_five_batches_or_more_is_overstock(self):
        self.assertEqual(classify_stock(stock=50, batch_size=10), STOCK_OVER)

    def test_in_between_is_normal(self):
        self.assertEqual(classify_stock(stock=6, batch_size=10), STOCK_NORMAL)
        self.assertEqual(classify_stock(stock=49, batch_size=10), STOCK_NORMAL)

    def test_bundles_are_never_flagged(self):
        self.assertEqual(classify_stock(stock=0, batch_size=10, is_bundle=True), STOCK_NORMAL)


class DecrementTests(TestCase):
    """
    GUARANTEES:
    - Decrements are relative and never read stock first
    - Every item is attempted; failures are collected, successes kept
    """

    def setUp(self):
        self.kopi = Product.objects.create(sku="KOPI-1", name="Kopi", unit_price=5000, stock=10)
        self.teh = Product.objects.create(sku="TEH-1", name="Teh", unit_price=3000, stock=1)

    def test_decrement_stock(self):
        decrement_stock(self.kopi.id, 3)
        self.assertEqual(read_stock(self.kopi.id), 7)

    def test_decrement_can_go_negative(self):
        decrement_stock(self.teh.id, 3)
        self.assertEqual(read_stock(self.teh.id), -2)

    def test_invalid_quantity(self):
        with self.assertRaises(ValidationError):
            decrement_stock(self.kopi.id, 0)

    def test_missing_product(self):
        with self.assertRaises(ProductNotFoundError):
            decrement_stock("00000000-0000-0000-0000-000000000000", 1)
        self.assertIsNone(read_stock("00000000-0000-0000-0000-000000000000"))

    def test_decrement_many_settles_all(self):
        missing = "00000000-0000-0000-0000-000000000000"

        result = decrement_many([(self.kopi.id, 2), (missing, 1), (self.teh.id, 1)])

        self.assertFalse(result.ok)
        self.assertEqual(result.succeeded, [str(self.kopi.id), str(self.teh.id)])
        self.assertEqual(result.failed_ids, [missing])
        self.assertEqual(read_stock(self.kopi.id), 8)
        self.assertEqual(read_stock(self.teh.id), 0)


class StockMonitorApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.owner = User.objects.create_user(email="owner@example.com", password="pass")
        self.store = Store.objects.create(owner=self.owner, name="Toko A")
        self.client.force_authenticate(user=self.owner)

        Product.objects.create(store=self.store, sku="OUT-1", name="Gula", unit_price=15000, stock=0, batch_size=10)
        Product.objects.create(store=self.store, sku="LOW-1", name="Kopi", unit_price=5000, stock=4, batch_size=10)
        Product.objects.create(store=self.store, sku="OK-1", name="Teh", unit_price=3000, stock=8, batch_size=10)
        Product.objects.create(
            store=self.store, sku="BND-1", name="Paket", unit_price=20000, stock=0, batch_size=1, is_bundle=True
        )

    def test_report_lists_products_needing_restock(self):
        response = self.client.get(reverse("stock-monitor"))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data["enabled"])
        self.assertEqual({p["sku"] for p in response.data["products"]}, {"OUT-1", "LOW-1"})
        self.assertEqual(
            response.data["stats"],
            {"total_products": 2, "out_of_stock": 1, "critical_stock": 1, "total_value": 20000},
        )

    def test_toggle_off_empties_report(self):
        response = self.client.post(reverse("stock-monitor-toggle"), {"enabled": False}, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, {"enabled": False})
        self.assertFalse(MonitoringSettings.load().stock_monitoring_enabled)

        report = self.client.get(reverse("stock-monitor")).data
        self.assertFalse(report["enabled"])
        self.assertEqual(report["products"], [])
        self.assertEqual(report["stats"]["total_products"], 0)

    def test_cashier_cannot_toggle(self):
        cashier = User.objects.create_user(email="kasir@example.com", password="pass", role=User.ROLE_CASHIER)
        self.client.force_authenticate(user=cashier)

        response = self.client.post(reverse("stock-monitor-toggle"), {"enabled": False}, format="json")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
