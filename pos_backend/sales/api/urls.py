# sales/api/urls.py

"""
SALES API URLS

- GET /api/sales/              sales history (?payment_method=cash|qris&date=YYYY-MM-DD)
- GET /api/sales/<uuid>/       one sale
- GET /api/sales/today/        today's revenue
"""

from django.urls import include, path
from rest_framework.routers import SimpleRouter

from sales.api.viewsets.sale import SaleViewSet

router = SimpleRouter()
router.register(r"", SaleViewSet, basename="sales")

urlpatterns = [
    path("", include(router.urls)),
]
