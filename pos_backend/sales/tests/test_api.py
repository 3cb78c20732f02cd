from django.contrib.auth import get_user_model
from django.test import TestCase
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APIClient

from sales.models import Sale, Transaction
from store.models import Store

User = get_user_model()


def _record(model, **fields):
    base = {
        "items": [],
        "total_amount": 5000,
        "total_items": 1,
        "payment_method": "cash",
        "timestamp": timezone.now(),
    }
    base.update(fields)
    return model.objects.create(**base)


class SalesApiTests(TestCase):
    """
    GUARANTEES:
    - Owners see their stores' sales, cashiers the sales they rang up
    - History filters by payment method
    - /today/ reports today's revenue from the Transaction view
    """

    def setUp(self):
        self.client = APIClient()

        self.owner = User.objects.create_user(email="owner@example.com", password="pass", role=User.ROLE_OWNER)
        self.cashier = User.objects.create_user(email="kasir@example.com", password="pass", role=User.ROLE_CASHIER)
        self.stranger = User.objects.create_user(email="other@example.com", password="pass", role=User.ROLE_OWNER)

        self.store = Store.objects.create(owner=self.owner, name="Toko A")
        self.other_store = Store.objects.create(owner=self.stranger, name="Toko Z")

        self.cash_sale = _record(Sale, price=5000, order_id="CASH-1", store=self.store, user=self.cashier)
        self.qris_sale = _record(
            Sale, price=8000, order_id="ORDER-1", store=self.store, user=self.owner,
            total_amount=8000, payment_method="qris",
        )
        self.foreign_sale = _record(Sale, price=1000, order_id="CASH-9", store=self.other_store, user=self.stranger)

        _record(Transaction, total_profit=2000, order_id="CASH-1", store=self.store, user=self.cashier)
        _record(
            Transaction, total_profit=3000, order_id="ORDER-1", store=self.store, user=self.owner,
            total_amount=8000, payment_method="qris",
        )

    def _order_ids(self, response):
        return {row["order_id"] for row in response.data["results"]}

    def test_owner_sees_store_sales(self):
        self.client.force_authenticate(user=self.owner)
        response = self.client.get(reverse("sales-list"))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(self._order_ids(response), {"CASH-1", "ORDER-1"})

    def test_cashier_sees_own_sales(self):
        self.client.force_authenticate(user=self.cashier)
        response = self.client.get(reverse("sales-list"))

        self.assertEqual(self._order_ids(response), {"CASH-1"})

    def test_filter_by_payment_method(self):
        self.client.force_authenticate(user=self.owner)
        response = self.client.get(reverse("sales-list"), {"payment_method": "qris"})

        self.assertEqual(self._order_ids(response), {"ORDER-1"})

    def test_retrieve_foreign_sale_is_404(self):
        self.client.force_authenticate(user=self.owner)
        response = self.client.get(reverse("sales-detail", args=[self.foreign_sale.id]))

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_today(self):
        self.client.force_authenticate(user=self.owner)
        response = self.client.get(reverse("sales-today"))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["transactions"], 2)
        self.assertEqual(response.data["revenue"], 13000)
        self.assertEqual(response.data["profit"], 5000)

    def test_today_for_user_without_store_uses_own_transactions(self):
        self.client.force_authenticate(user=self.cashier)
        response = self.client.get(reverse("sales-today"))

        self.assertEqual(response.data["transactions"], 1)
        self.assertEqual(response.data["revenue"], 5000)

    def test_ledger_is_read_only(self):
        self.client.force_authenticate(user=self.owner)
        response = self.client.post(reverse("sales-list"), {}, format="json")

        self.assertEqual(response.status_code, status.HTTP_405_METHOD_NOT_ALLOWED)

    def test_requires_authentication(self):
        response = self.client.get(reverse("sales-list"))
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
