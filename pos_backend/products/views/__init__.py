# products/views/__init__.py

from .product import ProductViewSet
from .stock_monitor import StockMonitorToggleView, StockMonitorView

__all__ = [
    "ProductViewSet",
    "StockMonitorToggleView",
    "StockMonitorView",
]
