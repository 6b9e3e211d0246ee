"""
Model mixins shared by domain models.

Available Mixins:
    UUIDPrimaryKeyMixin: Use UUID as primary key

Usage:
    from core.models import BaseModel
    from core.model_mixins import UUIDPrimaryKeyMixin

    class TicketPass(UUIDPrimaryKeyMixin, BaseModel):
        zone = models.CharField(max_length=32)

Note:
    - Always list mixins before BaseModel in inheritance
    - Mixins are abstract and don't create database tables
"""

from __future__ import annotations

import uuid

from django.db import models


class UUIDPrimaryKeyMixin(models.Model):
    """
    Use UUID as primary key instead of auto-increment integer.

    Order, pass and obligation ids travel to fans inside payment codes,
    QR payloads and operator dashboards, so they must not be guessable
    or reveal sales volume.

    Fields:
        id: UUIDField as primary key (auto-generated)

    Usage:
        order = TicketOrder.objects.create(match=match, total=50000)
        print(order.id)  # UUID like: 550e8400-e29b-41d4-a716-446655440000
    """

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        help_text="Unique identifier for this record",
    )

    class Meta:
        abstract = True
