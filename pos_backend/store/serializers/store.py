from rest_framework import serializers

from store.models import Store, StoreStats


class StoreSerializer(serializers.ModelSerializer):
    class Meta:
        model = Store
        fields = [
            "id",
            "name",
            "code",
            "address",
            "phone",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = [
            "id",
            "created_at",
            "updated_at",
        ]


class StoreStatsSerializer(serializers.ModelSerializer):
    store_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = StoreStats
        fields = [
            "store_id",
            "total_sales",
            "total_revenue",
            "total_profit",
            "last_sale_at",
        ]
        read_only_fields = fields
