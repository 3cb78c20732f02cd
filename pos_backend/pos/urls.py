"""
PATH: pos/urls.py

POS URLS

Purpose:
- Session cart
- Cart item operations (keyed by product id)
- Cash + QRIS checkout
"""

from django.urls import path

from pos.views.api import (
    AddCartItemView,
    CartView,
    CashCheckoutView,
    ClearCartView,
    QrisCheckoutResultView,
    QrisCheckoutStartView,
    RemoveCartItemView,
    UpdateCartItemView,
)

app_name = "pos"

urlpatterns = [
    path("cart/", CartView.as_view(), name="cart"),
    path("cart/clear/", ClearCartView.as_view(), name="clear-cart"),

    path("cart/items/add/", AddCartItemView.as_view(), name="add-cart-item"),
    path("cart/items/<uuid:product_id>/update/", UpdateCartItemView.as_view(), name="update-cart-item"),
    path("cart/items/<uuid:product_id>/remove/", RemoveCartItemView.as_view(), name="remove-cart-item"),

    path("checkout/", CashCheckoutView.as_view(), name="checkout"),
    path("checkout/qris/", QrisCheckoutStartView.as_view(), name="checkout-qris"),
    path("checkout/qris/<str:order_id>/result/", QrisCheckoutResultView.as_view(), name="checkout-qris-result"),
]
