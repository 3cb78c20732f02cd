# products/models/product.py

import uuid

from django.core.exceptions import ValidationError
from django.db import models

from store.models import Store


class Product(models.Model):
    """
    Represents a sellable product.

    STOCK MODEL:
    - stock is a plain counter on the product row (authoritative).
    - Sales decrement it with a relative UPDATE (products.services.inventory),
      never read-modify-write. Racing checkouts can drive it below zero.

    MONEY:
    - unit_price / cost_price are whole Rupiah.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    store = models.ForeignKey(
        Store,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="products",
    )

    sku = models.CharField(max_length=128, unique=True, db_index=True)
    name = models.CharField(max_length=255, db_index=True)
    category = models.CharField(max_length=100, blank=True)

    unit_price = models.PositiveIntegerField()
    cost_price = models.PositiveIntegerField(default=0)

    stock = models.IntegerField(default=0)
    unit = models.CharField(max_length=32, default="pcs")

    # Restock unit used by the stock monitor (e.g. one carton = 24 pcs)
    batch_size = models.PositiveIntegerField(default=1)
    is_bundle = models.BooleanField(default=False)

    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["sku"], name="product_sku_idx"),
            models.Index(fields=["name"], name="product_name_idx"),
        ]

    def __str__(self):
        return f"{self.name} ({self.sku})"

    def clean(self):
        if self.unit_price is None or int(self.unit_price) <= 0:
            raise ValidationError("Unit price must be greater than zero")

        if self.batch_size is None or int(self.batch_size) <= 0:
            raise ValidationError("batch_size must be at least 1")

    @property
    def unit_profit(self) -> int:
        return int(self.unit_price or 0) - int(self.cost_price or 0)
