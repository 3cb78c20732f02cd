# sales/admin.py

from django.contrib import admin

from sales.models import CheckoutIntent, Sale, Transaction


# ======================================================
# LEDGER (READ-ONLY)
# ======================================================


class _LedgerAdmin(admin.ModelAdmin):
    list_display = ("order_id", "store", "total_amount", "total_items", "payment_method", "timestamp")
    list_filter = ("payment_method", "timestamp")
    search_fields = ("order_id",)
    ordering = ("-timestamp",)

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    def has_add_permission(self, request):
        return False


@admin.register(Sale)
class SaleAdmin(_LedgerAdmin):
    pass


@admin.register(Transaction)
class TransactionAdmin(_LedgerAdmin):
    list_display = _LedgerAdmin.list_display + ("total_profit",)


# ======================================================
# CHECKOUT INTENTS
# ======================================================


@admin.register(CheckoutIntent)
class CheckoutIntentAdmin(admin.ModelAdmin):
    list_display = ("order_id", "status", "created_at", "updated_at")
    list_filter = ("status",)
    search_fields = ("order_id",)
    readonly_fields = (
        "order_id",
        "user",
        "payload",
        "completed_steps",
        "status",
        "last_error",
        "sale_id",
        "transaction_id",
        "created_at",
        "updated_at",
    )
