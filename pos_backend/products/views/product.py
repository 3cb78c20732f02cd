# products/views/product.py

"""
PRODUCT VIEWSET

Purpose:
- Catalog management for the caller's store (list / create / update)
- Creating a product emits a ProductAdded notification

Scope:
- The caller's stores (plus unassigned products); ?store_id=<uuid> narrows to one of them.
- Admins see every product.
"""

import logging

from django.db.models import Q
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import viewsets
from rest_framework.permissions import IsAuthenticated

from notifications.emitters import LoggingEmitter, safe_emit
from notifications.events import ProductAdded
from products.models import Product
from products.serializers import ProductSerializer
from store.services.stats import resolve_store_id
from users.models import User
from users.permissions import IsStoreStaff

logger = logging.getLogger(__name__)


class ProductViewSet(viewsets.ModelViewSet):
    serializer_class = ProductSerializer
    permission_classes = [IsAuthenticated, IsStoreStaff]
    http_method_names = ["get", "post", "patch", "head", "options"]

    def _get_store_id(self):
        return (self.request.query_params.get("store_id") or "").strip() or None

    def get_queryset(self):
        user = self.request.user
        qs = Product.objects.select_related("store")

        if user.role != User.ROLE_ADMIN:
            qs = qs.filter(Q(store__owner=user) | Q(store__isnull=True))

        store_id = self._get_store_id()
        if store_id:
            qs = qs.filter(store_id=store_id)

        q = (self.request.query_params.get("q") or "").strip()
        if q:
            qs = qs.filter(Q(name__icontains=q) | Q(sku__icontains=q))

        return qs.order_by("-created_at")

    @extend_schema(
        parameters=[
            OpenApiParameter("store_id", str, required=False),
            OpenApiParameter("q", str, required=False, description="Search name or sku"),
        ]
    )
    def list(self, request, *args, **kwargs):
        return super().list(request, *args, **kwargs)

    def perform_create(self, serializer):
        store = serializer.validated_data.get("store")
        if store is None:
            store_id = resolve_store_id(store_id=None, user_id=self.request.user.id)
            product = serializer.save(store_id=store_id)
        else:
            product = serializer.save()

        logger.info(
            "Product created",
            extra={"product_id": str(product.id), "sku": product.sku, "store_id": str(product.store_id)},
        )
        safe_emit(LoggingEmitter(), ProductAdded(product_id=str(product.id), product_name=product.name))
