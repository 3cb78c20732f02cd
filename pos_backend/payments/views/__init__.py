from .notification import MidtransNotificationView
from .snap import CreateTransactionView, SnapCheckoutView

__all__ = [
    "CreateTransactionView",
    "MidtransNotificationView",
    "SnapCheckoutView",
]
