# products/tests/test_products.py

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.db import IntegrityError
from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from products.models import Product
from store.models import Store

User = get_user_model()


class ProductModelTests(TestCase):
    """
    Product model tests.

    GUARANTEES:
    - SKU uniqueness is enforced
    - Prices are positive whole amounts
    - unit_profit is price minus cost
    """

    def test_product_creation(self):
        product = Product.objects.create(name="Kopi Susu", sku="KS-1", unit_price=12000, cost_price=7000)

        self.assertEqual(product.stock, 0)
        self.assertEqual(product.unit, "pcs")
        self.assertEqual(product.batch_size, 1)
        self.assertEqual(product.unit_profit, 5000)

    def test_sku_must_be_unique(self):
        Product.objects.create(name="Teh", sku="TEH-1", unit_price=3000)

        with self.assertRaises(IntegrityError):
            Product.objects.create(name="Teh Duplicate", sku="TEH-1", unit_price=3500)

    def test_zero_price_fails_validation(self):
        product = Product(name="Gratis", sku="FREE-1", unit_price=0)

        with self.assertRaises(ValidationError):
            product.clean()

    def test_product_string_representation(self):
        product = Product.objects.create(name="Roti Bakar", sku="RB-1", unit_price=10000)
        self.assertIn("Roti Bakar", str(product))


class ProductApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.owner = User.objects.create_user(email="owner@example.com", password="pass", role=User.ROLE_OWNER)
        self.store = Store.objects.create(owner=self.owner, name="Toko A")
        self.client.force_authenticate(user=self.owner)

    def test_create_defaults_to_own_store_and_emits_notification(self):
        with self.assertLogs("notifications.emitters", level="INFO") as logs:
            response = self.client.post(
                reverse("products-list"),
                {"sku": "kopi-1", "name": "Kopi", "unit_price": 5000, "stock": 12},
                format="json",
            )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["sku"], "KOPI-1")
        self.assertEqual(response.data["stock_status"], "overstock")

        product = Product.objects.get(id=response.data["id"])
        self.assertEqual(product.store_id, self.store.id)
        self.assertTrue(any("Kopi was added to the catalog" in line for line in logs.output))

    def test_zero_price_rejected(self):
        response = self.client.post(
            reverse("products-list"),
            {"sku": "X-1", "name": "X", "unit_price": 0},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_stock_cannot_be_edited_after_create(self):
        product = Product.objects.create(store=self.store, sku="T-1", name="Teh", unit_price=3000, stock=5)

        response = self.client.patch(
            reverse("products-detail", args=[product.id]),
            {"stock": 50},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        product.refresh_from_db()
        self.assertEqual(product.stock, 5)

    def test_list_is_scoped_and_searchable(self):
        Product.objects.create(store=self.store, sku="KOPI-1", name="Kopi", unit_price=5000)
        Product.objects.create(store=self.store, sku="TEH-1", name="Teh", unit_price=3000)

        stranger = User.objects.create_user(email="z@example.com", password="pass")
        other = Store.objects.create(owner=stranger, name="Toko Z")
        Product.objects.create(store=other, sku="Z-1", name="Kopi Z", unit_price=1000)

        response = self.client.get(reverse("products-list"), {"q": "kopi"})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([p["sku"] for p in response.data["results"]], ["KOPI-1"])

    def test_store_filter_cannot_reach_another_owners_catalog(self):
        stranger = User.objects.create_user(email="z@example.com", password="pass")
        other = Store.objects.create(owner=stranger, name="Toko Z")
        foreign = Product.objects.create(store=other, sku="Z-1", name="Kopi Z", unit_price=1000)

        response = self.client.get(reverse("products-list"), {"store_id": str(other.id)})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["results"], [])

        response = self.client.patch(
            f"{reverse('products-detail', args=[foreign.id])}?store_id={other.id}",
            {"unit_price": 1},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        foreign.refresh_from_db()
        self.assertEqual(foreign.unit_price, 1000)

    def test_store_filter_narrows_own_stores(self):
        second = Store.objects.create(owner=self.owner, name="Toko B")
        Product.objects.create(store=self.store, sku="KOPI-1", name="Kopi", unit_price=5000)
        Product.objects.create(store=second, sku="TEH-1", name="Teh", unit_price=3000)

        response = self.client.get(reverse("products-list"), {"store_id": str(second.id)})

        self.assertEqual([p["sku"] for p in response.data["results"]], ["TEH-1"])

    def test_cannot_create_into_another_owners_store(self):
        stranger = User.objects.create_user(email="z@example.com", password="pass")
        other = Store.objects.create(owner=stranger, name="Toko Z")

        response = self.client.post(
            reverse("products-list"),
            {"sku": "X-1", "name": "X", "unit_price": 1000, "store": str(other.id)},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(Product.objects.filter(store=other).exists())
