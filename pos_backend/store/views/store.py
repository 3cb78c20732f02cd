# store/views/store.py

"""
STORE VIEWSET

- Owners see and manage the stores they own.
- Admins see every store.
"""

from rest_framework import viewsets
from rest_framework.permissions import IsAuthenticated

from store.models import Store
from store.serializers import StoreSerializer
from users.models import User
from users.permissions import IsStoreOwner


class StoreViewSet(viewsets.ModelViewSet):
    serializer_class = StoreSerializer
    permission_classes = [IsAuthenticated, IsStoreOwner]
    http_method_names = ["get", "post", "patch", "head", "options"]

    def get_queryset(self):
        user = self.request.user
        qs = Store.objects.all().order_by("name")
        if user.role == User.ROLE_ADMIN:
            return qs
        return qs.filter(owner=user)

    def perform_create(self, serializer):
        serializer.save(owner=self.request.user)
