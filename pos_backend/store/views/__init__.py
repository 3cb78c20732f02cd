from .stats import StoreStatsView
from .store import StoreViewSet

__all__ = ["StoreStatsView", "StoreViewSet"]
