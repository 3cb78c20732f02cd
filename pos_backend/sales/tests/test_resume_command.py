from io import StringIO
from unittest import mock

from django.contrib.auth import get_user_model
from django.core.management import call_command
from django.core.management.base import CommandError
from django.db import DatabaseError
from django.test import TestCase

from pos.cart import AddItem, CartStore, ProductRef
from products.models import Product
from sales.models import CheckoutIntent, Transaction
from sales.services.checkout_orchestrator import PartialWriteError, checkout_cart
from store.models import Store, StoreStats

User = get_user_model()


class ResumeCheckoutCommandTests(TestCase):
    def setUp(self):
        self.owner = User.objects.create_user(email="owner@example.com", password="pass")
        self.store = Store.objects.create(owner=self.owner, name="Toko A")
        self.kopi = Product.objects.create(
            store=self.store, sku="KOPI-1", name="Kopi", unit_price=5000, stock=10
        )

        cart = CartStore()
        cart.dispatch(AddItem(product=ProductRef.from_product(self.kopi), live_stock=10))

        with mock.patch(
            "sales.services.checkout_orchestrator.append_transaction",
            side_effect=DatabaseError("connection reset"),
        ):
            with self.assertRaises(PartialWriteError):
                checkout_cart(cart=cart, payment_method="cash", user_id=self.owner.id, order_id="CASH-R1")

    def test_resumes_failed_intents(self):
        out = StringIO()
        call_command("resume_checkout", stdout=out)

        self.assertIn("CASH-R1: completed", out.getvalue())
        self.assertEqual(CheckoutIntent.objects.get(order_id="CASH-R1").status, CheckoutIntent.STATUS_COMPLETED)
        self.assertEqual(Transaction.objects.filter(order_id="CASH-R1").count(), 1)
        self.assertEqual(StoreStats.objects.get(store=self.store).total_sales, 1)

        self.kopi.refresh_from_db()
        self.assertEqual(self.kopi.stock, 9)

    def test_dry_run_changes_nothing(self):
        out = StringIO()
        call_command("resume_checkout", "--dry-run", stdout=out)

        self.assertIn("would resume CASH-R1", out.getvalue())
        self.assertEqual(CheckoutIntent.objects.get(order_id="CASH-R1").status, CheckoutIntent.STATUS_FAILED)
        self.assertFalse(Transaction.objects.exists())

    def test_named_order_id(self):
        out = StringIO()
        call_command("resume_checkout", "CASH-R1", stdout=out)

        self.assertIn("Resumed 1, still failing 0.", out.getvalue())

    def test_unknown_order_id(self):
        with self.assertRaises(CommandError):
            call_command("resume_checkout", "CASH-NOPE", stdout=StringIO())

    def test_completed_intents_are_skipped(self):
        call_command("resume_checkout", stdout=StringIO())

        out = StringIO()
        call_command("resume_checkout", "CASH-R1", stdout=out)

        self.assertIn("Resumed 0, still failing 0.", out.getvalue())
        self.assertEqual(Transaction.objects.count(), 1)
