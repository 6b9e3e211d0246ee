import uuid

import django.db.models.deletion
import django_fsm
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Match",
            fields=[
                (
                    "created_at",
                    models.DateTimeField(auto_now_add=True, db_index=True, help_text="Timestamp when this record was created"),
                ),
                ("updated_at", models.DateTimeField(auto_now=True, help_text="Timestamp when this record was last modified")),
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier for this record",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                ("opponent", models.CharField(max_length=120)),
                ("kickoff", models.DateTimeField(db_index=True)),
                ("venue", models.CharField(max_length=120)),
                ("competition", models.CharField(blank=True, default="", max_length=120)),
                (
                    "status",
                    django_fsm.FSMField(
                        choices=[
                            ("scheduled", "Scheduled"),
                            ("live", "Live"),
                            ("finished", "Finished"),
                            ("postponed", "Postponed"),
                        ],
                        db_index=True,
                        default="scheduled",
                        help_text="Current match status (managed by FSM)",
                        max_length=50,
                    ),
                ),
            ],
            options={
                "verbose_name": "Match",
                "verbose_name_plural": "Matches",
                "ordering": ["kickoff"],
            },
        ),
        migrations.CreateModel(
            name="TicketOrder",
            fields=[
                (
                    "created_at",
                    models.DateTimeField(auto_now_add=True, db_index=True, help_text="Timestamp when this record was created"),
                ),
                ("updated_at", models.DateTimeField(auto_now=True, help_text="Timestamp when this record was last modified")),
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier for this record",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                ("total", models.PositiveIntegerField(help_text="Order total in whole RWF")),
                ("payment_code", models.CharField(help_text="USSD payment dial string", max_length=64)),
                (
                    "channel",
                    models.CharField(
                        choices=[("mtn", "MTN MoMo"), ("airtel", "Airtel Money")],
                        default="mtn",
                        max_length=10,
                    ),
                ),
                (
                    "sms_reference",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Reference of the confirming payment notification",
                        max_length=128,
                    ),
                ),
                (
                    "status",
                    django_fsm.FSMField(
                        choices=[
                            ("pending", "Pending"),
                            ("paid", "Paid"),
                            ("cancelled", "Cancelled"),
                            ("expired", "Expired"),
                        ],
                        db_index=True,
                        default="pending",
                        help_text="Stored order status (managed by FSM)",
                        max_length=50,
                    ),
                ),
                ("expires_at", models.DateTimeField(db_index=True, help_text="End of the seat hold")),
                (
                    "match",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="ticket_orders",
                        to="tickets.match",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        blank=True,
                        help_text="Purchaser (null for anonymous checkouts)",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="ticket_orders",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Ticket Order",
                "verbose_name_plural": "Ticket Orders",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["match", "status"], name="tickets_tic_match_i_5c3a1e_idx"),
                    models.Index(fields=["user", "created_at"], name="tickets_tic_user_id_8d2f4b_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("total__gt", 0)), name="ticket_order_total_positive"),
                ],
            },
        ),
        migrations.CreateModel(
            name="TicketOrderItem",
            fields=[
                (
                    "created_at",
                    models.DateTimeField(auto_now_add=True, db_index=True, help_text="Timestamp when this record was created"),
                ),
                ("updated_at", models.DateTimeField(auto_now=True, help_text="Timestamp when this record was last modified")),
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier for this record",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                ("zone", models.CharField(db_index=True, max_length=32)),
                ("unit_price", models.PositiveIntegerField(help_text="Canonical zone price at checkout, whole RWF")),
                ("quantity", models.PositiveIntegerField()),
                (
                    "order",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="items",
                        to="tickets.ticketorder",
                    ),
                ),
            ],
            options={
                "ordering": ["created_at"],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("quantity__gte", 1)), name="ticket_order_item_quantity_min_1"),
                ],
            },
        ),
        migrations.CreateModel(
            name="TicketPass",
            fields=[
                (
                    "created_at",
                    models.DateTimeField(auto_now_add=True, db_index=True, help_text="Timestamp when this record was created"),
                ),
                ("updated_at", models.DateTimeField(auto_now=True, help_text="Timestamp when this record was last modified")),
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier for this record",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                ("zone", models.CharField(max_length=32)),
                ("gate", models.CharField(blank=True, max_length=64, null=True)),
                ("token_hash", models.CharField(max_length=64, unique=True)),
                (
                    "state",
                    django_fsm.FSMField(
                        choices=[("active", "Active"), ("used", "Used"), ("refunded", "Refunded")],
                        db_index=True,
                        default="active",
                        help_text="Pass state (managed by FSM and conditional updates)",
                        max_length=50,
                    ),
                ),
                ("consumed_at", models.DateTimeField(blank=True, null=True)),
                ("rotated_at", models.DateTimeField(blank=True, null=True)),
                ("refunded_at", models.DateTimeField(blank=True, null=True)),
                ("transfer_token_hash", models.CharField(blank=True, max_length=64, null=True)),
                ("transferred_at", models.DateTimeField(blank=True, null=True)),
                (
                    "holder",
                    models.ForeignKey(
                        blank=True,
                        help_text="User currently holding the pass",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="ticket_passes",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "order",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="passes",
                        to="tickets.ticketorder",
                    ),
                ),
                (
                    "transfer_target",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="incoming_pass_transfers",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Ticket Pass",
                "verbose_name_plural": "Ticket Passes",
                "ordering": ["created_at"],
                "indexes": [
                    models.Index(fields=["holder", "state"], name="tickets_tic_holder__3b7e90_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="GateScan",
            fields=[
                (
                    "created_at",
                    models.DateTimeField(auto_now_add=True, db_index=True, help_text="Timestamp when this record was created"),
                ),
                ("updated_at", models.DateTimeField(auto_now=True, help_text="Timestamp when this record was last modified")),
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier for this record",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                ("steward_id", models.CharField(blank=True, default="", max_length=64)),
                (
                    "result",
                    models.CharField(
                        choices=[("verified", "Verified"), ("used", "Already used"), ("refunded", "Refunded")],
                        db_index=True,
                        max_length=16,
                    ),
                ),
                (
                    "ticket_pass",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="scans",
                        to="tickets.ticketpass",
                    ),
                ),
            ],
            options={
                "verbose_name": "Gate Scan",
                "verbose_name_plural": "Gate Scans",
                "ordering": ["-created_at"],
            },
        ),
    ]
