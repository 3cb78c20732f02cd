# products/urls.py

"""
PRODUCTS URLS

- /api/products/                       list / create
- /api/products/<id>/                  retrieve / update
- /api/products/stock-monitor/         restock report
- /api/products/stock-monitor/toggle/  monitoring switch
"""

from django.urls import include, path
from rest_framework.routers import SimpleRouter

from products.views import ProductViewSet, StockMonitorToggleView, StockMonitorView

router = SimpleRouter()
router.register(r"", ProductViewSet, basename="products")

urlpatterns = [
    path("stock-monitor/", StockMonitorView.as_view(), name="stock-monitor"),
    path("stock-monitor/toggle/", StockMonitorToggleView.as_view(), name="stock-monitor-toggle"),
    path("", include(router.urls)),
]
