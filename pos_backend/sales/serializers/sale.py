# sales/serializers/sale.py

from rest_framework import serializers

from sales.models import Sale, Transaction

_LEDGER_FIELDS = [
    "id",
    "order_id",
    "user",
    "store",
    "items",
    "total_amount",
    "total_items",
    "payment_method",
    "status",
    "timestamp",
    "created_at",
]


class SaleSerializer(serializers.ModelSerializer):
    """Sales history row (read-only)."""

    class Meta:
        model = Sale
        fields = _LEDGER_FIELDS + ["price"]
        read_only_fields = fields


class TransactionSerializer(serializers.ModelSerializer):
    class Meta:
        model = Transaction
        fields = _LEDGER_FIELDS + ["total_profit"]
        read_only_fields = fields
