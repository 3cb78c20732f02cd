# products/views/stock_monitor.py

"""
STOCK MONITOR

GET  /api/products/stock-monitor/         products needing restock + stats
POST /api/products/stock-monitor/toggle/  {"enabled": bool}

While monitoring is off the report is empty.
"""

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import serializers, status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from notifications.models import MonitoringSettings
from products.models import Product
from products.services.inventory import stock_monitor_report
from store.services.stats import resolve_store_id
from users.permissions import IsStoreOwner, IsStoreStaff


class ToggleInputSerializer(serializers.Serializer):
    enabled = serializers.BooleanField()


class StockMonitorView(APIView):
    permission_classes = [IsAuthenticated, IsStoreStaff]

    @extend_schema(
        parameters=[OpenApiParameter("store_id", str, required=False)],
        responses={200: dict},
        description="Out-of-stock and low-stock products for the store",
    )
    def get(self, request):
        raw = (request.query_params.get("store_id") or "").strip() or None
        store_id = resolve_store_id(store_id=raw, user_id=request.user.id)

        qs = Product.objects.filter(is_active=True, store_id=store_id).order_by("name")
        settings_row = MonitoringSettings.load()

        report = stock_monitor_report(qs, enabled=settings_row.stock_monitoring_enabled)
        return Response(report, status=status.HTTP_200_OK)


class StockMonitorToggleView(APIView):
    permission_classes = [IsAuthenticated, IsStoreOwner]

    @extend_schema(
        request=ToggleInputSerializer,
        responses={200: dict},
        description="Turn stock monitoring on or off",
    )
    def post(self, request):
        serializer = ToggleInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        row = MonitoringSettings.set_enabled(serializer.validated_data["enabled"])
        return Response({"enabled": row.stock_monitoring_enabled}, status=status.HTTP_200_OK)
