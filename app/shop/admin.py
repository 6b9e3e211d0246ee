"""
Django admin configuration for shop models.
"""

from django.contrib import admin

from shop.models import ShopOrder


@admin.register(ShopOrder)
class ShopOrderAdmin(admin.ModelAdmin):
    list_display = ("id", "user", "total", "status", "confirmed_at", "created_at")
    list_filter = ("status",)
    readonly_fields = ("status", "confirmed_at", "created_at", "updated_at")
    raw_id_fields = ("user",)
