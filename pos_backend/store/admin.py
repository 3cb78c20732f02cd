from django.contrib import admin

from store.models import Store, StoreStats


@admin.register(Store)
class StoreAdmin(admin.ModelAdmin):
    list_display = ("name", "code", "owner", "is_active", "created_at")
    search_fields = ("name", "code")
    list_filter = ("is_active",)


@admin.register(StoreStats)
class StoreStatsAdmin(admin.ModelAdmin):
    list_display = ("store", "total_sales", "total_revenue", "total_profit", "last_sale_at")
    readonly_fields = ("total_sales", "total_revenue", "total_profit", "last_sale_at")
