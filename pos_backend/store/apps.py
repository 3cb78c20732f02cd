# store/apps.py

"""
STORE APP CONFIG

Stores (one per owner) and their running sales counters.
"""

from django.apps import AppConfig


class StoreConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "store"
    verbose_name = "Stores & Statistics"
