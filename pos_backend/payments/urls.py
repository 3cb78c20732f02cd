# payments/urls.py

"""
PAYMENTS URLS

Mounted at /api/ (backend/urls.py):
- POST /api/create-transaction/
- POST /api/checkout/
- POST /api/midtrans/notification/
- POST /api/notification/
"""

from django.urls import path

from payments.views import CreateTransactionView, MidtransNotificationView, SnapCheckoutView

app_name = "payments"

urlpatterns = [
    path("create-transaction/", CreateTransactionView.as_view(), name="create-transaction"),
    path("checkout/", SnapCheckoutView.as_view(), name="snap-checkout"),
    path("midtrans/notification/", MidtransNotificationView.as_view(), name="midtrans-notification"),
    path("notification/", MidtransNotificationView.as_view(), name="notification"),
]
