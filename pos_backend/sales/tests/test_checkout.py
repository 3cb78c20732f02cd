from unittest import mock

from django.contrib.auth import get_user_model
from django.db import DatabaseError
from django.test import TestCase, override_settings

from payments.services.gateway import PaymentOutcome, PaymentSession
from payments.services.midtrans import MidtransError
from pos.cart import AddItem, CartStore, ProductRef
from products.models import Product
from sales.models import CheckoutIntent, Sale, Transaction
from sales.services.checkout_orchestrator import (
    CheckoutCancelled,
    CheckoutValidationError,
    GatewayError,
    PartialWriteError,
    ReceiptSummary,
    checkout_cart,
    resume_checkout,
)
from sales.services.exceptions import IntentAlreadyCompleted
from store.models import Store, StoreStats

User = get_user_model()


class FakeGateway:
    def __init__(self, order_id=None, error=None):
        self.order_id = order_id
        self.error = error
        self.calls = []

    def create_session(self, *, order_id, gross_amount, customer=None):
        self.calls.append((order_id, gross_amount))
        if self.error:
            raise self.error
        return PaymentSession(order_id=order_id, gross_amount=gross_amount, token="tok")


class FixedPrompt:
    def __init__(self, outcome):
        self.outcome = outcome

    def present(self, session):
        return PaymentOutcome(self.outcome)


class ExplodingEmitter:
    def emit(self, event):
        raise RuntimeError("push service down")


class RecordingEmitter:
    def __init__(self):
        self.events = []

    def emit(self, event):
        self.events.append(event)


class CheckoutTestBase(TestCase):
    def setUp(self):
        self.owner = User.objects.create_user(
            email="owner@example.com",
            password="pass",
            role=User.ROLE_OWNER,
        )
        self.store = Store.objects.create(owner=self.owner, name="Toko A")

        self.kopi = Product.objects.create(
            store=self.store,
            sku="KOPI-1",
            name="Kopi",
            unit_price=5000,
            cost_price=3000,
            stock=10,
        )
        self.teh = Product.objects.create(
            store=self.store,
            sku="TEH-1",
            name="Teh",
            unit_price=3000,
            cost_price=1000,
            stock=20,
        )

    def make_cart(self, *lines):
        cart = CartStore()
        for product, quantity in lines:
            for _ in range(quantity):
                cart.dispatch(AddItem(product=ProductRef.from_product(product), live_stock=product.stock))
        return cart

    def cash(self, cart, **kwargs):
        return checkout_cart(cart=cart, payment_method="cash", user_id=self.owner.id, **kwargs)


class CashCheckoutTests(CheckoutTestBase):
    """
    GUARANTEES:
    - Stock, both ledger views and store stats are written once per sale
    - Ledger rows carry the snapshot totals, items and timestamp
    - The cart is cleared only after a completed sale
    """

    def test_completed_sale_writes_every_store(self):
        cart = self.make_cart((self.kopi, 2), (self.teh, 1))

        receipt = self.cash(cart)

        self.assertIsInstance(receipt, ReceiptSummary)
        self.assertEqual(receipt.request.total_amount, 13000)
        self.assertTrue(receipt.order_id.startswith("CASH-"))

        sale = Sale.objects.get(id=receipt.sale_id)
        txn = Transaction.objects.get(id=receipt.transaction_id)

        self.assertEqual(sale.total_amount, 13000)
        self.assertEqual(sale.price, 13000)
        self.assertEqual(sale.total_items, 3)
        self.assertEqual(sale.payment_method, "cash")
        self.assertEqual(sale.store_id, self.store.id)
        self.assertEqual(sale.user_id, self.owner.id)
        self.assertEqual(sale.items, txn.items)
        self.assertEqual(sale.timestamp, txn.timestamp)
        self.assertEqual(txn.total_amount, sale.total_amount)
        self.assertEqual(txn.total_profit, 2 * (5000 - 3000) + (3000 - 1000))
        self.assertEqual(
            sale.items[0],
            {"product_id": str(self.kopi.id), "name": "Kopi", "unit_price": 5000, "quantity": 2, "subtotal": 10000},
        )

        self.kopi.refresh_from_db()
        self.teh.refresh_from_db()
        self.assertEqual(self.kopi.stock, 8)
        self.assertEqual(self.teh.stock, 19)

        stats = StoreStats.objects.get(store=self.store)
        self.assertEqual(stats.total_sales, 1)
        self.assertEqual(stats.total_revenue, 13000)
        self.assertEqual(stats.total_profit, 6000)
        self.assertEqual(stats.last_sale_at, sale.timestamp)

        intent = CheckoutIntent.objects.get(order_id=receipt.order_id)
        self.assertEqual(intent.status, CheckoutIntent.STATUS_COMPLETED)
        self.assertEqual(
            set(intent.completed_steps),
            {f"stock:{self.kopi.id}", f"stock:{self.teh.id}", "sale", "transaction", "stats"},
        )

        self.assertTrue(cart.state.is_empty)

    def test_prices_come_from_the_cart_snapshot(self):
        cart = self.make_cart((self.kopi, 1))
        Product.objects.filter(id=self.kopi.id).update(unit_price=9000)

        receipt = self.cash(cart)

        self.assertEqual(Sale.objects.get(id=receipt.sale_id).total_amount, 5000)

    def test_stock_is_not_rechecked_at_write_time(self):
        cart = self.make_cart((self.kopi, 3))
        Product.objects.filter(id=self.kopi.id).update(stock=1)

        self.cash(cart)

        self.kopi.refresh_from_db()
        self.assertEqual(self.kopi.stock, -2)

    def test_explicit_store_wins(self):
        other = Store.objects.create(owner=self.owner, name="Toko B")
        cart = self.make_cart((self.kopi, 1))

        receipt = self.cash(cart, store_id=other.id)

        self.assertEqual(Sale.objects.get(id=receipt.sale_id).store_id, other.id)
        self.assertTrue(StoreStats.objects.filter(store=other).exists())
        self.assertFalse(StoreStats.objects.filter(store=self.store).exists())

    def test_foreign_store_is_rejected_before_any_write(self):
        rival_owner = User.objects.create_user(email="rival@example.com", password="pass")
        rival = Store.objects.create(owner=rival_owner, name="Toko Saingan")
        cart = self.make_cart((self.kopi, 1))

        with self.assertRaises(CheckoutValidationError):
            self.cash(cart, store_id=rival.id)

        self.assertFalse(CheckoutIntent.objects.exists())
        self.assertFalse(Sale.objects.exists())
        self.assertFalse(StoreStats.objects.exists())
        self.kopi.refresh_from_db()
        self.assertEqual(self.kopi.stock, 10)
        self.assertEqual(cart.state.total_items, 1)

    def test_sale_without_store_skips_stats(self):
        cashier = User.objects.create_user(email="kasir@example.com", password="pass", role=User.ROLE_CASHIER)
        cart = self.make_cart((self.kopi, 1))

        with self.assertLogs("sales.services.checkout_orchestrator", level="WARNING"):
            receipt = checkout_cart(cart=cart, payment_method="cash", user_id=cashier.id)

        sale = Sale.objects.get(id=receipt.sale_id)
        self.assertIsNone(sale.store_id)
        self.assertFalse(StoreStats.objects.exists())
        self.assertIn("stats", CheckoutIntent.objects.get(order_id=receipt.order_id).completed_steps)

    def test_empty_cart_is_rejected(self):
        with self.assertRaises(CheckoutValidationError):
            self.cash(CartStore())

        self.assertFalse(CheckoutIntent.objects.exists())
        self.assertFalse(Sale.objects.exists())

    def test_unknown_payment_method_is_rejected(self):
        cart = self.make_cart((self.kopi, 1))

        with self.assertRaises(CheckoutValidationError):
            checkout_cart(cart=cart, payment_method="card", user_id=self.owner.id)

        self.assertFalse(cart.state.is_empty)

    def test_duplicate_order_id_is_rejected(self):
        self.cash(self.make_cart((self.kopi, 1)), order_id="CASH-1")

        with self.assertRaises(CheckoutValidationError):
            self.cash(self.make_cart((self.kopi, 1)), order_id="CASH-1")

        self.assertEqual(Sale.objects.filter(order_id="CASH-1").count(), 1)
        self.kopi.refresh_from_db()
        self.assertEqual(self.kopi.stock, 9)


class QrisCheckoutTests(CheckoutTestBase):
    """
    GUARANTEES:
    - Nothing is written before the payer's outcome is known
    - closed -> CheckoutCancelled (cart kept); error -> GatewayError
    - success and pending both complete the sale
    """

    def qris(self, cart, outcome, gateway=None):
        return checkout_cart(
            cart=cart,
            payment_method="qris",
            user_id=self.owner.id,
            gateway=gateway or FakeGateway(),
            prompt=FixedPrompt(outcome),
        )

    def assertNothingWritten(self):
        self.assertFalse(Sale.objects.exists())
        self.assertFalse(Transaction.objects.exists())
        self.assertFalse(CheckoutIntent.objects.exists())
        self.assertFalse(StoreStats.objects.exists())
        self.kopi.refresh_from_db()
        self.assertEqual(self.kopi.stock, 10)

    def test_success_completes_sale(self):
        gateway = FakeGateway()
        cart = self.make_cart((self.kopi, 2))

        receipt = self.qris(cart, "success", gateway=gateway)

        self.assertTrue(receipt.order_id.startswith("ORDER-"))
        self.assertEqual(gateway.calls, [(receipt.order_id, 10000)])
        self.assertEqual(Sale.objects.get(id=receipt.sale_id).payment_method, "qris")
        self.assertTrue(cart.state.is_empty)

    def test_pending_completes_sale(self):
        receipt = self.qris(self.make_cart((self.kopi, 1)), "pending")
        self.assertTrue(Sale.objects.filter(id=receipt.sale_id).exists())

    def test_closed_cancels_and_keeps_cart(self):
        cart = self.make_cart((self.kopi, 1))

        result = self.qris(cart, "closed")

        self.assertIsInstance(result, CheckoutCancelled)
        self.assertFalse(cart.state.is_empty)
        self.assertNothingWritten()

    def test_error_raises_gateway_error(self):
        with self.assertRaises(GatewayError):
            self.qris(self.make_cart((self.kopi, 1)), "error")

        self.assertNothingWritten()

    def test_session_failure_raises_gateway_error(self):
        gateway = FakeGateway(error=MidtransError("Access denied", http_status=401))

        with self.assertRaises(GatewayError) as ctx:
            self.qris(self.make_cart((self.kopi, 1)), "success", gateway=gateway)

        self.assertEqual(ctx.exception.gateway_status, 401)
        self.assertNothingWritten()

    def test_missing_prompt_is_rejected(self):
        with self.assertRaises(CheckoutValidationError):
            checkout_cart(
                cart=self.make_cart((self.kopi, 1)),
                payment_method="qris",
                user_id=self.owner.id,
                gateway=FakeGateway(),
            )

        self.assertNothingWritten()


@override_settings(LOW_STOCK_THRESHOLD=5)
class CheckoutNotificationTests(CheckoutTestBase):
    def test_depleted_and_low_stock_then_sale_completed(self):
        self.kopi.stock = 4
        self.kopi.save()
        self.teh.stock = 2
        self.teh.save()
        emitter = RecordingEmitter()

        receipt = self.cash(self.make_cart((self.kopi, 1), (self.teh, 2)), emitter=emitter)

        kinds = [e.kind for e in emitter.events]
        self.assertEqual(kinds, ["low_stock", "stock_depleted", "sale_completed"])
        self.assertEqual(emitter.events[0].remaining, 3)
        self.assertEqual([n["kind"] for n in receipt.notifications], kinds)

    def test_plenty_of_stock_only_reports_sale(self):
        emitter = RecordingEmitter()

        self.cash(self.make_cart((self.kopi, 1)), emitter=emitter)

        self.assertEqual([e.kind for e in emitter.events], ["sale_completed"])
        self.assertEqual(emitter.events[0].total_amount, 5000)

    def test_broken_emitter_does_not_fail_checkout(self):
        cart = self.make_cart((self.kopi, 1))

        receipt = self.cash(cart, emitter=ExplodingEmitter())

        self.assertTrue(Sale.objects.filter(id=receipt.sale_id).exists())
        self.assertTrue(cart.state.is_empty)


class PartialWriteTests(CheckoutTestBase):
    """
    GUARANTEES:
    - A failed step raises PartialWriteError and rolls nothing back
    - Every stock item is attempted even when one fails
    - resume_checkout runs only the missing steps (no double counting)
    """

    def test_failed_stock_item_does_not_stop_the_others(self):
        cart = self.make_cart((self.kopi, 1), (self.teh, 2))
        missing_id = str(self.kopi.id)
        self.kopi.delete()

        with self.assertRaises(PartialWriteError) as ctx:
            self.cash(cart)

        self.assertEqual(ctx.exception.step, "stock")
        self.assertEqual(ctx.exception.failed_products, [missing_id])

        self.teh.refresh_from_db()
        self.assertEqual(self.teh.stock, 18)
        self.assertFalse(Sale.objects.exists())
        self.assertFalse(cart.state.is_empty)

        intent = CheckoutIntent.objects.get(id=ctx.exception.intent_id)
        self.assertEqual(intent.status, CheckoutIntent.STATUS_FAILED)
        self.assertEqual(intent.completed_steps, [f"stock:{self.teh.id}"])

    def test_resume_after_stock_failure_decrements_only_missing_product(self):
        cart = self.make_cart((self.kopi, 1), (self.teh, 2))
        kopi_id = self.kopi.id
        self.kopi.delete()

        with self.assertRaises(PartialWriteError) as ctx:
            self.cash(cart)

        Product.objects.create(id=kopi_id, store=self.store, sku="KOPI-1", name="Kopi", unit_price=5000, stock=10)

        receipt = resume_checkout(intent=CheckoutIntent.objects.get(id=ctx.exception.intent_id))

        self.assertEqual(Product.objects.get(id=kopi_id).stock, 9)
        self.teh.refresh_from_db()
        self.assertEqual(self.teh.stock, 18)
        self.assertEqual(Sale.objects.filter(order_id=receipt.order_id).count(), 1)
        self.assertEqual(StoreStats.objects.get(store=self.store).total_sales, 1)

    def test_ledger_failure_then_resume(self):
        cart = self.make_cart((self.kopi, 2))

        with mock.patch(
            "sales.services.checkout_orchestrator.append_transaction",
            side_effect=DatabaseError("disk full"),
        ):
            with self.assertRaises(PartialWriteError) as ctx:
                self.cash(cart)

        self.assertEqual(ctx.exception.step, "transaction")
        self.assertEqual(Sale.objects.count(), 1)
        self.assertFalse(Transaction.objects.exists())
        self.assertFalse(StoreStats.objects.exists())

        intent = CheckoutIntent.objects.get(id=ctx.exception.intent_id)
        self.assertIn("disk full", intent.last_error)

        receipt = resume_checkout(intent=intent)

        self.assertEqual(Sale.objects.count(), 1)
        self.assertEqual(Transaction.objects.count(), 1)
        self.assertEqual(str(Sale.objects.get().id), receipt.sale_id)

        self.kopi.refresh_from_db()
        self.assertEqual(self.kopi.stock, 8)

        stats = StoreStats.objects.get(store=self.store)
        self.assertEqual(stats.total_sales, 1)
        self.assertEqual(stats.total_revenue, 10000)

        intent.refresh_from_db()
        self.assertEqual(intent.status, CheckoutIntent.STATUS_COMPLETED)
        self.assertEqual(intent.last_error, "")

    def test_completed_intent_is_never_reapplied(self):
        receipt = self.cash(self.make_cart((self.kopi, 1)))
        intent = CheckoutIntent.objects.get(order_id=receipt.order_id)

        with self.assertRaises(IntentAlreadyCompleted):
            resume_checkout(intent=intent)

        self.assertEqual(Sale.objects.count(), 1)
        self.assertEqual(StoreStats.objects.get(store=self.store).total_sales, 1)
