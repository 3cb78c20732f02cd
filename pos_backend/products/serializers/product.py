# products/serializers/product.py

"""
PRODUCT SERIALIZER

- stock is writable on create (opening stock) and read-only afterwards;
  sales change it only through products.services.inventory.
- stock_status is the stock monitor classification.
"""

from rest_framework import serializers

from products.models import Product
from products.services.inventory import classify_stock
from store.services.stats import stores_for_user


class ProductSerializer(serializers.ModelSerializer):
    """
    Canonical Product Serializer.

    GUARANTEES:
    - SKU is normalised to upper case
    - unit_price is a positive whole amount
    - stock_status follows the stock monitor rules
    """

    stock_status = serializers.SerializerMethodField(read_only=True)

    class Meta:
        model = Product
        fields = [
            "id",
            "sku",
            "name",
            "store",
            "category",
            "unit_price",
            "cost_price",
            "stock",
            "unit",
            "batch_size",
            "is_bundle",
            "stock_status",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = [
            "id",
            "stock_status",
            "created_at",
            "updated_at",
        ]

    def validate_sku(self, value):
        value = (value or "").strip().upper()
        if not value:
            raise serializers.ValidationError("SKU is required")
        return value

    def validate_unit_price(self, value):
        if value is None or value <= 0:
            raise serializers.ValidationError("Unit price must be greater than zero")
        return value

    def validate_store(self, value):
        request = self.context.get("request")
        if value is None or request is None:
            return value
        if not stores_for_user(request.user.id).filter(id=value.id).exists():
            raise serializers.ValidationError("Store not found for this user")
        return value

    def validate_stock(self, value):
        if self.instance is not None and value != self.instance.stock:
            raise serializers.ValidationError("Stock changes only through sales")
        if value < 0:
            raise serializers.ValidationError("Opening stock cannot be negative")
        return value

    def get_stock_status(self, obj):
        return classify_stock(stock=obj.stock, batch_size=obj.batch_size, is_bundle=obj.is_bundle)
