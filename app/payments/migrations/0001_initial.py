import uuid

import django.db.models.deletion
import django_fsm
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("fundraising", "0001_initial"),
        ("memberships", "0001_initial"),
        ("shop", "0001_initial"),
        ("tickets", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="ParsedPayment",
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
                ("amount", models.PositiveIntegerField(help_text="Amount in whole currency units")),
                ("currency", models.CharField(default="RWF", max_length=3)),
                ("reference", models.CharField(blank=True, default="", max_length=255)),
                ("confidence", models.FloatField(help_text="Parser confidence between 0 and 1")),
                ("source_message_id", models.CharField(max_length=128, unique=True)),
                ("matched_entity", models.CharField(blank=True, max_length=128, null=True)),
            ],
            options={
                "verbose_name": "Parsed Payment",
                "verbose_name_plural": "Parsed Payments",
                "ordering": ["-created_at"],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("amount__gt", 0)), name="parsed_payment_amount_positive"),
                    models.CheckConstraint(
                        condition=models.Q(("confidence__gte", 0), ("confidence__lte", 1)),
                        name="parsed_payment_confidence_range",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="PaymentObligation",
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
                (
                    "kind",
                    models.CharField(
                        choices=[
                            ("ticket", "Ticket"),
                            ("membership", "Membership"),
                            ("shop", "Shop"),
                            ("donation", "Donation"),
                        ],
                        db_index=True,
                        max_length=16,
                    ),
                ),
                ("amount", models.PositiveIntegerField(help_text="Expected amount in whole currency units")),
                ("currency", models.CharField(default="RWF", max_length=3)),
                (
                    "status",
                    django_fsm.FSMField(
                        choices=[
                            ("pending", "Pending"),
                            ("confirmed", "Confirmed"),
                            ("manual_review", "Manual Review"),
                            ("failed", "Failed"),
                        ],
                        db_index=True,
                        default="pending",
                        help_text="Obligation status (managed by FSM)",
                        max_length=50,
                    ),
                ),
                ("confirmed_at", models.DateTimeField(blank=True, null=True)),
                ("metadata", models.JSONField(blank=True, default=dict)),
                (
                    "parsed_payment",
                    models.OneToOneField(
                        blank=True,
                        help_text="Payment notification that resolved or flagged this obligation",
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="obligation",
                        to="payments.parsedpayment",
                    ),
                ),
                (
                    "ticket_order",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="obligations",
                        to="tickets.ticketorder",
                    ),
                ),
                (
                    "membership",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="obligations",
                        to="memberships.membership",
                    ),
                ),
                (
                    "shop_order",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="obligations",
                        to="shop.shoporder",
                    ),
                ),
                (
                    "donation",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="obligations",
                        to="fundraising.donation",
                    ),
                ),
            ],
            options={
                "verbose_name": "Payment Obligation",
                "verbose_name_plural": "Payment Obligations",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["kind", "status", "amount", "created_at"], name="payments_pa_kind_7f3c21_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("amount__gt", 0)), name="payment_obligation_amount_positive"),
                ],
            },
        ),
    ]
