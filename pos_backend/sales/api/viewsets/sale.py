# sales/api/viewsets/sale.py

"""
======================================================
PATH: sales/api/viewsets/sale.py
======================================================
SALE VIEWSET (STAFF)

Purpose:
- Sales history (list + retrieve), filterable by payment_method and date.
- Today's revenue from the Transaction view.

Scope:
- Owners see their stores' sales; cashiers see the sales they rang up.
- Admins see everything.
======================================================
"""

from __future__ import annotations

import django_filters
from django.db.models import Q
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from sales.models import LedgerRecord, Sale
from sales.serializers import SaleSerializer
from sales.services.ledger import todays_revenue
from store.services.stats import resolve_store_id
from users.models import User
from users.permissions import IsStoreStaff


class SaleFilter(django_filters.FilterSet):
    payment_method = django_filters.ChoiceFilter(choices=LedgerRecord.PAYMENT_CHOICES)
    date = django_filters.DateFilter(field_name="timestamp", lookup_expr="date")
    store = django_filters.UUIDFilter(field_name="store_id")

    class Meta:
        model = Sale
        fields = ["payment_method", "date", "store"]


class SaleViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = SaleSerializer
    permission_classes = [IsAuthenticated, IsStoreStaff]
    filterset_class = SaleFilter

    def get_queryset(self):
        user = self.request.user
        qs = Sale.objects.all().order_by("-timestamp")
        if user.role == User.ROLE_ADMIN:
            return qs
        return qs.filter(Q(store__owner=user) | Q(user=user))

    @extend_schema(
        parameters=[OpenApiParameter("store_id", str, required=False)],
        responses={200: dict},
        description="Today's transaction count, revenue and profit",
    )
    @action(detail=False, methods=["get"], url_path="today")
    def today(self, request):
        raw = (request.query_params.get("store_id") or "").strip() or None
        store_id = resolve_store_id(store_id=raw, user_id=request.user.id)

        if store_id is None:
            return Response(todays_revenue(user_id=request.user.id))
        return Response(todays_revenue(store_id=store_id))
