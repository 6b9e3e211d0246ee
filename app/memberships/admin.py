"""
Django admin configuration for membership models.
"""

from django.contrib import admin

from memberships.models import Membership, MembershipPlan


@admin.register(MembershipPlan)
class MembershipPlanAdmin(admin.ModelAdmin):
    list_display = ("name", "price", "duration_days", "is_active")
    list_filter = ("is_active",)
    search_fields = ("name",)


@admin.register(Membership)
class MembershipAdmin(admin.ModelAdmin):
    list_display = ("id", "user", "plan", "status", "started_at", "expires_at")
    list_filter = ("status", "plan")
    search_fields = ("user__email", "user__phone_number")
    readonly_fields = ("status", "started_at", "expires_at", "created_at", "updated_at")
    raw_id_fields = ("user",)
