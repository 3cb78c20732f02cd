from .sale import SaleSerializer, TransactionSerializer

__all__ = [
    "SaleSerializer",
    "TransactionSerializer",
]
