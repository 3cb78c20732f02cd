import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


def _ledger_fields():
    return [
        ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
        ("order_id", models.CharField(db_index=True, max_length=64)),
        ("items", models.JSONField(default=list)),
        ("total_amount", models.PositiveBigIntegerField()),
        ("total_items", models.PositiveIntegerField()),
        ("payment_method", models.CharField(choices=[("cash", "Cash"), ("qris", "QRIS")], max_length=16)),
        ("status", models.CharField(choices=[("completed", "Completed")], default="completed", max_length=16)),
        ("timestamp", models.DateTimeField(db_index=True, help_text="When the sale happened")),
        ("created_at", models.DateTimeField(auto_now_add=True)),
        (
            "store",
            models.ForeignKey(
                blank=True,
                null=True,
                on_delete=django.db.models.deletion.SET_NULL,
                related_name="+",
                to="store.store",
            ),
        ),
        (
            "user",
            models.ForeignKey(
                blank=True,
                help_text="Cashier who rang up the sale",
                null=True,
                on_delete=django.db.models.deletion.SET_NULL,
                related_name="+",
                to=settings.AUTH_USER_MODEL,
            ),
        ),
    ]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("store", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Sale",
            fields=_ledger_fields() + [
                ("price", models.PositiveBigIntegerField()),
            ],
            options={
                "ordering": ["-timestamp"],
                "abstract": False,
                "indexes": [
                    models.Index(fields=["store", "timestamp"], name="sale_store_ts_idx"),
                    models.Index(fields=["payment_method"], name="sale_payment_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Transaction",
            fields=_ledger_fields() + [
                ("total_profit", models.BigIntegerField(default=0)),
            ],
            options={
                "ordering": ["-timestamp"],
                "abstract": False,
                "indexes": [
                    models.Index(fields=["store", "timestamp"], name="txn_store_ts_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="CheckoutIntent",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("order_id", models.CharField(max_length=64, unique=True)),
                ("payload", models.JSONField(help_text="Checkout request snapshot")),
                ("completed_steps", models.JSONField(blank=True, default=list)),
                (
                    "status",
                    models.CharField(
                        choices=[("pending", "Pending"), ("failed", "Failed"), ("completed", "Completed")],
                        default="pending",
                        max_length=16,
                    ),
                ),
                ("last_error", models.TextField(blank=True, default="")),
                ("sale_id", models.UUIDField(blank=True, null=True)),
                ("transaction_id", models.UUIDField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "user",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["status", "created_at"], name="intent_status_idx"),
                ],
            },
        ),
    ]
