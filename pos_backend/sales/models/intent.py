# sales/models/intent.py

import uuid

from django.conf import settings
from django.db import models


class CheckoutIntent(models.Model):
    """
    Durable record of a checkout in flight, written before the first
    business write and keyed by order id.

    completed_steps lists what already happened:
    - "stock:<product_id>" per decremented product
    - "sale", "transaction", "stats"

    A failed checkout can be resumed: only the missing steps run again.
    A completed intent is never re-applied.
    """

    STATUS_PENDING = "pending"
    STATUS_FAILED = "failed"
    STATUS_COMPLETED = "completed"

    STATUS_CHOICES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_FAILED, "Failed"),
        (STATUS_COMPLETED, "Completed"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    order_id = models.CharField(max_length=64, unique=True)

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )

    payload = models.JSONField(help_text="Checkout request snapshot")
    completed_steps = models.JSONField(default=list, blank=True)

    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_PENDING)
    last_error = models.TextField(blank=True, default="")

    sale_id = models.UUIDField(null=True, blank=True)
    transaction_id = models.UUIDField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status", "created_at"], name="intent_status_idx"),
        ]

    def has_step(self, step: str) -> bool:
        return step in (self.completed_steps or [])

    def mark_steps(self, steps, **fields):
        steps = [s for s in steps if not self.has_step(s)]
        if not steps and not fields:
            return
        self.completed_steps = list(self.completed_steps or []) + steps
        for name, value in fields.items():
            setattr(self, name, value)
        self.save(update_fields=["completed_steps", "updated_at", *fields.keys()])

    def mark_failed(self, error: str):
        self.status = self.STATUS_FAILED
        self.last_error = str(error)[:2000]
        self.save(update_fields=["status", "last_error", "updated_at"])

    def mark_completed(self):
        self.status = self.STATUS_COMPLETED
        self.last_error = ""
        self.save(update_fields=["status", "last_error", "updated_at"])

    def __str__(self):
        return f"{self.order_id} [{self.status}]"
