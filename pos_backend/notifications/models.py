# notifications/models.py

from django.db import models


class MonitoringSettings(models.Model):
    """
    Process-wide stock monitoring switch (single row, pk=1).

    Loaded with load() when a monitor report is built and written only when
    the switch changes. Monitoring is on until someone turns it off.
    """

    SINGLETON_ID = 1

    id = models.PositiveSmallIntegerField(primary_key=True, default=SINGLETON_ID, editable=False)
    stock_monitoring_enabled = models.BooleanField(default=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "monitoring settings"
        verbose_name_plural = "monitoring settings"

    @classmethod
    def load(cls) -> "MonitoringSettings":
        obj, _ = cls.objects.get_or_create(id=cls.SINGLETON_ID)
        return obj

    @classmethod
    def set_enabled(cls, enabled: bool) -> "MonitoringSettings":
        obj = cls.load()
        if obj.stock_monitoring_enabled != bool(enabled):
            obj.stock_monitoring_enabled = bool(enabled)
            obj.save(update_fields=["stock_monitoring_enabled", "updated_at"])
        return obj

    def __str__(self):
        state = "on" if self.stock_monitoring_enabled else "off"
        return f"Stock monitoring {state}"
