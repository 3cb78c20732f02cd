# payments/apps.py

"""
PAYMENTS APP CONFIG

Midtrans Snap integration:
- Snap transaction creation (QRIS / e-wallet popup token)
- Payment notification webhook (SHA-512 signature verification)
"""

from django.apps import AppConfig


class PaymentsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "payments"
    verbose_name = "Payments (Midtrans)"
