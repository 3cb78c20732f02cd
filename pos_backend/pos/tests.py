# pos/tests.py

"""
POS TESTS

Run with:
    python manage.py test pos -v 2

Covers:
- the pure cart reducer
- the session-backed cart API
- cash + QRIS checkout over HTTP (Snap HTTP call mocked)
"""

from __future__ import annotations

from unittest import mock

from django.contrib.auth import get_user_model
from django.test import SimpleTestCase, TestCase, override_settings
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from pos.cart import (
    EMPTY_CART,
    AddItem,
    Cart,
    CartCapacityError,
    CartStore,
    ClearCart,
    ProductRef,
    RemoveItem,
    SetQuantity,
    reduce,
)
from products.models import Product
from sales.models import CheckoutIntent, Sale, Transaction
from store.models import Store, StoreStats

User = get_user_model()

MIDTRANS_TEST_SETTINGS = {
    "MIDTRANS": {
        "SERVER_KEY": "SB-Mid-server-test",
        "CLIENT_KEY": "SB-Mid-client-test",
        "IS_PRODUCTION": False,
        "TIMEOUT": 5,
    }
}

SNAP_RESPONSE = {
    "token": "snap-token-123",
    "redirect_url": "https://app.sandbox.midtrans.com/snap/v2/vtweb/snap-token-123",
}


KOPI = ProductRef(product_id="p-kopi", name="Kopi", unit_price=5000)
TEH = ProductRef(product_id="p-teh", name="Teh", unit_price=3000)


class CartReducerTests(SimpleTestCase):
    """
    GUARANTEES:
    - One line per product, in the order products were first added
    - Quantities never exceed the live stock passed with the action
    - A rejected action leaves the state untouched
    - Totals are derived from the lines
    """

    def test_add_new_product_appends_line_with_quantity_one(self):
        state = reduce(EMPTY_CART, AddItem(product=KOPI, live_stock=10))

        self.assertEqual(len(state.items), 1)
        line = state.items[0]
        self.assertEqual(line.product_id, "p-kopi")
        self.assertEqual(line.quantity, 1)
        self.assertEqual(line.unit_price, 5000)
        self.assertEqual(line.available_stock, 10)

    def test_add_existing_product_increments_and_keeps_order(self):
        state = reduce(EMPTY_CART, AddItem(product=KOPI, live_stock=10))
        state = reduce(state, AddItem(product=TEH, live_stock=10))
        state = reduce(state, AddItem(product=KOPI, live_stock=10))

        self.assertEqual([i.product_id for i in state.items], ["p-kopi", "p-teh"])
        self.assertEqual(state.get("p-kopi").quantity, 2)
        self.assertEqual(state.get("p-teh").quantity, 1)

    def test_many_adds_never_duplicate_lines(self):
        state = EMPTY_CART
        for _ in range(5):
            state = reduce(state, AddItem(product=KOPI, live_stock=10))

        self.assertEqual(len(state.items), 1)
        self.assertEqual(state.total_items, 5)

    def test_add_beyond_live_stock_is_rejected(self):
        state = reduce(EMPTY_CART, AddItem(product=KOPI, live_stock=1))

        with self.assertRaises(CartCapacityError) as ctx:
            reduce(state, AddItem(product=KOPI, live_stock=1))

        self.assertEqual(ctx.exception.available, 1)
        self.assertEqual(ctx.exception.requested, 2)
        self.assertEqual(state.get("p-kopi").quantity, 1)

    def test_add_with_zero_stock_is_rejected(self):
        with self.assertRaises(CartCapacityError):
            reduce(EMPTY_CART, AddItem(product=KOPI, live_stock=0))

    def test_set_quantity_replaces(self):
        state = reduce(EMPTY_CART, AddItem(product=KOPI, live_stock=10))
        state = reduce(state, SetQuantity(product_id="p-kopi", quantity=4, live_stock=10))

        self.assertEqual(state.get("p-kopi").quantity, 4)
        self.assertEqual(state.total_price, 20000)

    def test_set_quantity_zero_or_less_removes_line(self):
        state = reduce(EMPTY_CART, AddItem(product=KOPI, live_stock=10))
        state = reduce(state, AddItem(product=TEH, live_stock=10))

        after_zero = reduce(state, SetQuantity(product_id="p-kopi", quantity=0, live_stock=10))
        after_negative = reduce(state, SetQuantity(product_id="p-teh", quantity=-3, live_stock=10))

        self.assertIsNone(after_zero.get("p-kopi"))
        self.assertIsNone(after_negative.get("p-teh"))
        self.assertEqual(len(after_zero.items), 1)

    def test_set_quantity_above_stock_is_rejected(self):
        state = reduce(EMPTY_CART, AddItem(product=KOPI, live_stock=3))

        with self.assertRaises(CartCapacityError):
            reduce(state, SetQuantity(product_id="p-kopi", quantity=4, live_stock=3))

    def test_set_quantity_for_unknown_product_is_noop(self):
        state = reduce(EMPTY_CART, AddItem(product=KOPI, live_stock=3))
        after = reduce(state, SetQuantity(product_id="missing", quantity=2, live_stock=3))

        self.assertEqual(after, state)

    def test_remove_absent_product_is_noop(self):
        state = reduce(EMPTY_CART, AddItem(product=KOPI, live_stock=3))
        self.assertEqual(reduce(state, RemoveItem(product_id="missing")), state)

    def test_clear_empties_cart(self):
        state = reduce(EMPTY_CART, AddItem(product=KOPI, live_stock=3))
        state = reduce(state, ClearCart())

        self.assertTrue(state.is_empty)
        self.assertEqual(state.total_price, 0)

    def test_totals(self):
        state = reduce(EMPTY_CART, AddItem(product=KOPI, live_stock=10))
        state = reduce(state, AddItem(product=KOPI, live_stock=10))
        state = reduce(state, AddItem(product=TEH, live_stock=10))

        self.assertEqual(state.total_items, 3)
        self.assertEqual(state.total_price, 2 * 5000 + 3000)

    def test_list_round_trip_keeps_lines(self):
        state = reduce(EMPTY_CART, AddItem(product=KOPI, live_stock=10))
        state = reduce(state, AddItem(product=TEH, live_stock=7))

        self.assertEqual(Cart.from_list(state.to_list()), state)

    def test_unknown_action_raises_type_error(self):
        with self.assertRaises(TypeError):
            reduce(EMPTY_CART, object())


class CartStoreTests(SimpleTestCase):
    def test_dispatch_applies_actions_in_order(self):
        store = CartStore()
        store.dispatch(AddItem(product=KOPI, live_stock=5))
        store.dispatch(AddItem(product=KOPI, live_stock=5))
        store.dispatch(RemoveItem(product_id="p-kopi"))

        self.assertTrue(store.state.is_empty)

    def test_failed_dispatch_keeps_previous_state(self):
        store = CartStore()
        store.dispatch(AddItem(product=KOPI, live_stock=1))

        with self.assertRaises(CartCapacityError):
            store.dispatch(AddItem(product=KOPI, live_stock=1))

        self.assertEqual(store.state.get("p-kopi").quantity, 1)


# =====================================================
# HTTP
# =====================================================

class PosApiTestBase(TestCase):
    def setUp(self):
        self.client = APIClient()

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
            stock=2,
        )

        self.client.force_authenticate(user=self.owner)

    def add(self, product, times=1):
        response = None
        for _ in range(times):
            response = self.client.post(
                reverse("pos:add-cart-item"),
                {"product_id": str(product.id)},
                format="json",
            )
        return response


class SessionCartApiTests(PosApiTestBase):
    """
    GUARANTEES:
    - The cart lives in the session and survives between requests
    - Live stock bounds every add / update (409 INSUFFICIENT_STOCK)
    """

    def test_cart_starts_empty(self):
        response = self.client.get(reverse("pos:cart"))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["items"], [])
        self.assertEqual(response.data["total_price"], 0)

    def test_add_item_persists_between_requests(self):
        self.add(self.kopi, times=2)
        response = self.client.get(reverse("pos:cart"))

        self.assertEqual(response.data["total_items"], 2)
        self.assertEqual(response.data["total_price"], 10000)
        self.assertEqual(response.data["items"][0]["subtotal"], 10000)

    def test_add_past_stock_returns_conflict(self):
        self.add(self.teh, times=2)
        response = self.add(self.teh)

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data["error"]["code"], "INSUFFICIENT_STOCK")
        self.assertEqual(response.data["error"]["available"], 2)

        cart = self.client.get(reverse("pos:cart")).data
        self.assertEqual(cart["total_items"], 2)

    def test_add_unknown_product_returns_404(self):
        response = self.client.post(
            reverse("pos:add-cart-item"),
            {"product_id": "00000000-0000-0000-0000-000000000000"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_update_quantity(self):
        self.add(self.kopi)
        response = self.client.post(
            reverse("pos:update-cart-item", args=[self.kopi.id]),
            {"quantity": 4},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["total_price"], 20000)

    def test_update_above_stock_returns_conflict(self):
        self.add(self.teh)
        response = self.client.post(
            reverse("pos:update-cart-item", args=[self.teh.id]),
            {"quantity": 3},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_update_to_zero_removes_line(self):
        self.add(self.kopi)
        response = self.client.post(
            reverse("pos:update-cart-item", args=[self.kopi.id]),
            {"quantity": 0},
            format="json",
        )
        self.assertEqual(response.data["items"], [])

    def test_remove_and_clear(self):
        self.add(self.kopi)
        self.add(self.teh)

        response = self.client.post(reverse("pos:remove-cart-item", args=[self.kopi.id]))
        self.assertEqual(len(response.data["items"]), 1)

        response = self.client.post(reverse("pos:clear-cart"))
        self.assertEqual(response.data["items"], [])

    def test_requires_authentication(self):
        self.client.force_authenticate(user=None)
        response = self.client.get(reverse("pos:cart"))
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


class CashCheckoutApiTests(PosApiTestBase):
    def test_cash_checkout_writes_sale_and_clears_cart(self):
        self.add(self.kopi, times=2)
        self.add(self.teh)

        response = self.client.post(reverse("pos:checkout"), {}, format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["status"], "completed")
        self.assertEqual(response.data["total_amount"], 13000)
        self.assertEqual(response.data["payment_method"], "cash")
        self.assertTrue(response.data["order_id"].startswith("CASH-"))

        sale = Sale.objects.get(order_id=response.data["order_id"])
        self.assertEqual(sale.total_amount, 13000)
        self.assertEqual(sale.store_id, self.store.id)
        self.assertEqual(Transaction.objects.filter(order_id=sale.order_id).count(), 1)

        self.kopi.refresh_from_db()
        self.teh.refresh_from_db()
        self.assertEqual(self.kopi.stock, 8)
        self.assertEqual(self.teh.stock, 1)

        stats = StoreStats.objects.get(store=self.store)
        self.assertEqual(stats.total_sales, 1)
        self.assertEqual(stats.total_revenue, 13000)

        cart = self.client.get(reverse("pos:cart")).data
        self.assertEqual(cart["items"], [])

    def test_receipt_lists_notifications(self):
        self.add(self.teh, times=2)

        response = self.client.post(reverse("pos:checkout"), {}, format="json")

        kinds = [n["kind"] for n in response.data["notifications"]]
        self.assertEqual(kinds, ["stock_depleted", "sale_completed"])

    def test_empty_cart_checkout_is_rejected(self):
        response = self.client.post(reverse("pos:checkout"), {}, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"]["code"], "CHECKOUT_INVALID")
        self.assertFalse(Sale.objects.exists())
        self.assertFalse(CheckoutIntent.objects.exists())

    def test_checkout_into_another_owners_store_is_rejected(self):
        rival_owner = User.objects.create_user(email="rival@example.com", password="pass")
        rival = Store.objects.create(owner=rival_owner, name="Toko Saingan")
        self.add(self.kopi)

        response = self.client.post(reverse("pos:checkout"), {"store_id": str(rival.id)}, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"]["code"], "CHECKOUT_INVALID")
        self.assertFalse(Sale.objects.exists())
        self.assertFalse(StoreStats.objects.filter(store=rival).exists())
        self.kopi.refresh_from_db()
        self.assertEqual(self.kopi.stock, 10)
        self.assertEqual(self.client.get(reverse("pos:cart")).data["total_items"], 1)

    def test_admin_may_book_into_any_store(self):
        admin = User.objects.create_user(email="admin@example.com", password="pass", role=User.ROLE_ADMIN)
        self.client.force_authenticate(user=admin)
        self.add(self.kopi)

        response = self.client.post(reverse("pos:checkout"), {"store_id": str(self.store.id)}, format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(Sale.objects.get().store_id, self.store.id)


@override_settings(PAYMENTS=MIDTRANS_TEST_SETTINGS)
class QrisCheckoutApiTests(PosApiTestBase):
    """
    GUARANTEES:
    - Nothing is written until the payer's outcome is reported
    - closed keeps the cart; error writes nothing
    - success books a QRIS sale under the issued order id
    """

    def start(self):
        with mock.patch("payments.services.midtrans._request_json", return_value=SNAP_RESPONSE):
            return self.client.post(reverse("pos:checkout-qris"), {}, format="json")

    def report(self, order_id, outcome):
        return self.client.post(
            reverse("pos:checkout-qris-result", args=[order_id]),
            {"outcome": outcome},
            format="json",
        )

    def test_start_issues_session_without_writing(self):
        self.add(self.kopi)
        response = self.start()

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["token"], "snap-token-123")
        self.assertEqual(response.data["gross_amount"], 5000)
        self.assertEqual(response.data["client_key"], "SB-Mid-client-test")
        self.assertTrue(response.data["order_id"].startswith("ORDER-"))

        self.assertFalse(Sale.objects.exists())
        self.kopi.refresh_from_db()
        self.assertEqual(self.kopi.stock, 10)

    def test_success_books_qris_sale(self):
        self.add(self.kopi)
        order_id = self.start().data["order_id"]

        response = self.report(order_id, "success")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        sale = Sale.objects.get(order_id=order_id)
        self.assertEqual(sale.payment_method, "qris")
        self.assertEqual(sale.total_amount, 5000)

    def test_pending_is_treated_as_paid(self):
        self.add(self.kopi)
        order_id = self.start().data["order_id"]

        response = self.report(order_id, "pending")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(Sale.objects.filter(order_id=order_id).exists())

    def test_closed_cancels_and_keeps_cart(self):
        self.add(self.kopi)
        order_id = self.start().data["order_id"]

        response = self.report(order_id, "closed")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["status"], "cancelled")
        self.assertFalse(Sale.objects.exists())
        self.assertEqual(self.client.get(reverse("pos:cart")).data["total_items"], 1)

    def test_error_writes_nothing(self):
        self.add(self.kopi)
        order_id = self.start().data["order_id"]

        response = self.report(order_id, "error")

        self.assertEqual(response.status_code, status.HTTP_502_BAD_GATEWAY)
        self.assertEqual(response.data["error"]["code"], "PAYMENT_FAILED")
        self.assertFalse(Sale.objects.exists())
        self.kopi.refresh_from_db()
        self.assertEqual(self.kopi.stock, 10)

    def test_unknown_order_returns_404(self):
        self.add(self.kopi)
        self.start()

        response = self.report("ORDER-does-not-exist", "success")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_cart_changed_after_start_returns_conflict(self):
        self.add(self.kopi)
        order_id = self.start().data["order_id"]
        self.add(self.kopi)

        response = self.report(order_id, "success")

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data["error"]["code"], "CART_CHANGED")
        self.assertFalse(Sale.objects.exists())

    def test_swapped_items_with_same_total_returns_conflict(self):
        susu = Product.objects.create(store=self.store, sku="SUSU-1", name="Susu", unit_price=5000, stock=10)
        self.add(self.kopi)
        order_id = self.start().data["order_id"]

        self.client.post(reverse("pos:remove-cart-item", args=[self.kopi.id]), {}, format="json")
        self.add(susu)
        self.assertEqual(self.client.get(reverse("pos:cart")).data["total_price"], 5000)

        response = self.report(order_id, "success")

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data["error"]["code"], "CART_CHANGED")
        self.assertFalse(Sale.objects.exists())
        susu.refresh_from_db()
        self.assertEqual(susu.stock, 10)

    def test_start_into_another_owners_store_is_rejected(self):
        rival_owner = User.objects.create_user(email="rival@example.com", password="pass")
        rival = Store.objects.create(owner=rival_owner, name="Toko Saingan")
        self.add(self.kopi)

        with mock.patch("payments.services.midtrans._request_json", return_value=SNAP_RESPONSE) as snap:
            response = self.client.post(reverse("pos:checkout-qris"), {"store_id": str(rival.id)}, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"]["code"], "CHECKOUT_INVALID")
        snap.assert_not_called()

    def test_gateway_failure_on_start_returns_502(self):
        from payments.services.midtrans import MidtransError

        self.add(self.kopi)
        with mock.patch(
            "payments.services.midtrans._request_json",
            side_effect=MidtransError("Access denied", http_status=401),
        ):
            response = self.client.post(reverse("pos:checkout-qris"), {}, format="json")

        self.assertEqual(response.status_code, status.HTTP_502_BAD_GATEWAY)
        self.assertEqual(response.data["error"]["code"], "PAYMENT_FAILED")
