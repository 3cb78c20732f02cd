# notifications/apps.py

"""
NOTIFICATIONS APP CONFIG

Domain events raised by checkout and catalog changes (stock depleted,
low stock, sale completed, product added) and the emitters that deliver
them. Also holds the stock monitoring switch.
"""

from django.apps import AppConfig


class NotificationsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "notifications"
    verbose_name = "Notifications"
