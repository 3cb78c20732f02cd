# sales/apps.py

"""
SALES APP CONFIG

Sales ledger (Sale + Transaction views), checkout orchestration and
checkout recovery.
"""

from django.apps import AppConfig


class SalesConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "sales"
    verbose_name = "Sales"
