from .stats import StoreStats
from .store import Store

__all__ = ["Store", "StoreStats"]
