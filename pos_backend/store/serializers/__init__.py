from .store import StoreSerializer, StoreStatsSerializer

__all__ = ["StoreSerializer", "StoreStatsSerializer"]
