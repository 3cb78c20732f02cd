# store/models/stats.py

from django.db import models

from .store import Store


class StoreStats(models.Model):
    """
    Running per-store counters.

    Only ever changed through store.services.stats.apply_increment, which
    issues a single relative UPDATE. Increments are not idempotent: applying
    the same sale twice counts it twice.
    """

    store = models.OneToOneField(
        Store,
        on_delete=models.CASCADE,
        primary_key=True,
        related_name="stats",
    )

    total_sales = models.PositiveIntegerField(default=0)
    total_revenue = models.BigIntegerField(default=0)
    total_profit = models.BigIntegerField(default=0)

    last_sale_at = models.DateTimeField(null=True, blank=True)

    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name_plural = "store stats"

    def __str__(self):
        return f"{self.store_id}: {self.total_sales} sales / {self.total_revenue}"
