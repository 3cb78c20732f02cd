# pos/serializers/cart.py

"""
CART SERIALIZER

Renders the session cart (pos.cart.Cart). Totals are derived server-side.
"""

from rest_framework import serializers


class LineItemSerializer(serializers.Serializer):
    product_id = serializers.CharField()
    name = serializers.CharField()
    unit_price = serializers.IntegerField()
    quantity = serializers.IntegerField()
    available_stock = serializers.IntegerField()
    subtotal = serializers.IntegerField()


class CartSerializer(serializers.Serializer):
    items = LineItemSerializer(many=True)
    total_items = serializers.IntegerField()
    total_price = serializers.IntegerField()
