"""
Django admin configuration for fundraising models.
"""

from django.contrib import admin

from fundraising.models import Donation, FundraisingProject


@admin.register(FundraisingProject)
class FundraisingProjectAdmin(admin.ModelAdmin):
    list_display = ("title", "goal", "raised", "is_active")
    prepopulated_fields = {"slug": ("title",)}
    readonly_fields = ("raised",)


@admin.register(Donation)
class DonationAdmin(admin.ModelAdmin):
    list_display = ("id", "project", "user", "amount", "status", "confirmed_at")
    list_filter = ("status", "project")
    readonly_fields = ("status", "confirmed_at", "created_at", "updated_at")
    raw_id_fields = ("user",)
