# sales/models/__init__.py

"""
SALES MODELS PACKAGE EXPORTS
"""

from .intent import CheckoutIntent
from .ledger import LedgerImmutableError, LedgerRecord, Sale, Transaction

__all__ = [
    "CheckoutIntent",
    "LedgerImmutableError",
    "LedgerRecord",
    "Sale",
    "Transaction",
]
