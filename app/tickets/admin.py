"""
Django admin configuration for ticketing models.

Pass state and token hashes are read-only here: passes change state only
through PassService so every transition is logged and broadcast.
"""

from django.contrib import admin

from tickets.models import GateScan, Match, TicketOrder, TicketOrderItem, TicketPass


@admin.register(Match)
class MatchAdmin(admin.ModelAdmin):
    list_display = ("opponent", "kickoff", "venue", "competition", "status")
    list_filter = ("status", "competition")
    search_fields = ("opponent", "venue")
    date_hierarchy = "kickoff"


class TicketOrderItemInline(admin.TabularInline):
    model = TicketOrderItem
    extra = 0
    readonly_fields = ("zone", "quantity", "unit_price")
    can_delete = False


@admin.register(TicketOrder)
class TicketOrderAdmin(admin.ModelAdmin):
    list_display = ("id", "match", "user", "total", "channel", "status", "expires_at", "created_at")
    list_filter = ("status", "channel", "match")
    search_fields = ("id", "sms_reference", "user__email", "user__phone_number")
    readonly_fields = ("status", "total", "payment_code", "sms_reference", "expires_at", "created_at", "updated_at")
    raw_id_fields = ("user",)
    inlines = [TicketOrderItemInline]


@admin.register(TicketPass)
class TicketPassAdmin(admin.ModelAdmin):
    list_display = ("id", "order", "zone", "gate", "state", "holder", "consumed_at")
    list_filter = ("state", "zone", "gate")
    search_fields = ("id", "order__id", "holder__email")
    readonly_fields = (
        "state",
        "token_hash",
        "transfer_token_hash",
        "consumed_at",
        "rotated_at",
        "refunded_at",
        "transferred_at",
        "created_at",
        "updated_at",
    )
    raw_id_fields = ("order", "holder", "transfer_target")


@admin.register(GateScan)
class GateScanAdmin(admin.ModelAdmin):
    list_display = ("ticket_pass", "result", "steward_id", "created_at")
    list_filter = ("result",)
    search_fields = ("ticket_pass__id", "steward_id")
    readonly_fields = ("ticket_pass", "result", "steward_id", "created_at", "updated_at")

    def has_change_permission(self, request, obj=None):
        return False
