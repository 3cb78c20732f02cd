# sales/models/ledger.py

import uuid

from django.conf import settings
from django.db import models

User = settings.AUTH_USER_MODEL


class LedgerImmutableError(ValueError):
    pass


class LedgerRecord(models.Model):
    """
    One completed sale as written to a ledger view.

    GUARANTEES:
    - Append-only: rows are inserted once, never updated or deleted
    - items is a snapshot [{product_id, name, unit_price, quantity, subtotal}]
      taken at checkout; later price changes do not touch it
    - Money is whole Rupiah
    """

    STATUS_COMPLETED = "completed"
    STATUS_CHOICES = [
        (STATUS_COMPLETED, "Completed"),
    ]

    PAYMENT_CASH = "cash"
    PAYMENT_QRIS = "qris"
    PAYMENT_CHOICES = [
        (PAYMENT_CASH, "Cash"),
        (PAYMENT_QRIS, "QRIS"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    user = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
        help_text="Cashier who rang up the sale",
    )
    store = models.ForeignKey(
        "store.Store",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )

    order_id = models.CharField(max_length=64, db_index=True)

    items = models.JSONField(default=list)
    total_amount = models.PositiveBigIntegerField()
    total_items = models.PositiveIntegerField()

    payment_method = models.CharField(max_length=16, choices=PAYMENT_CHOICES)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_COMPLETED)

    timestamp = models.DateTimeField(db_index=True, help_text="When the sale happened")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        abstract = True
        ordering = ["-timestamp"]

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise LedgerImmutableError(
                f"{self.__class__.__name__} rows are append-only and cannot be changed."
            )
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise LedgerImmutableError(
            f"{self.__class__.__name__} rows are append-only and cannot be deleted."
        )

    def __str__(self):
        return f"{self.order_id} | {self.total_amount} ({self.payment_method})"


class Sale(LedgerRecord):
    """General sales record (history, store summary)."""

    # Kept alongside total_amount for clients that read the sale price.
    price = models.PositiveBigIntegerField()

    class Meta(LedgerRecord.Meta):
        indexes = [
            models.Index(fields=["store", "timestamp"], name="sale_store_ts_idx"),
            models.Index(fields=["payment_method"], name="sale_payment_idx"),
        ]


class Transaction(LedgerRecord):
    """Revenue record (today's revenue, profit)."""

    total_profit = models.BigIntegerField(default=0)

    class Meta(LedgerRecord.Meta):
        indexes = [
            models.Index(fields=["store", "timestamp"], name="txn_store_ts_idx"),
        ]
