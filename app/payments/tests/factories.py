"""
Factory Boy factories for payment test data.

Usage:
    from payments.tests.factories import ParsedPaymentFactory, TicketObligationFactory

    # Pending ticket obligation with its order
    obligation = TicketObligationFactory(amount=50000)

    # Parsed SMS for the same amount
    parsed = ParsedPaymentFactory(amount=50000, confidence=0.9)
"""

from datetime import timedelta

import factory
from django.utils import timezone

from authentication.tests.factories import UserFactory
from fundraising.models import Donation, FundraisingProject
from memberships.tests.factories import MembershipFactory
from payments.metadata import ObligationMetadata
from payments.models import ParsedPayment, PaymentObligation
from payments.state_machines import ObligationKind, ObligationStatus
from shop.models import ShopOrder
from tickets.tests.factories import TicketOrderFactory


class ParsedPaymentFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = ParsedPayment

    amount = 25000
    currency = "RWF"
    reference = factory.Sequence(lambda n: f"MP240118.{n:04d}.A12345")
    confidence = 0.9
    source_message_id = factory.Sequence(lambda n: f"sms-{n}")


# =============================================================================
# Domain Entities
# =============================================================================


class ShopOrderFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = ShopOrder

    user = factory.SubFactory(UserFactory)
    total = 15000
    items = factory.LazyFunction(lambda: [{"sku": "JERSEY-HOME", "quantity": 1, "price": 15000}])


class FundraisingProjectFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = FundraisingProject

    title = factory.Sequence(lambda n: f"Academy Pitch {n}")
    slug = factory.Sequence(lambda n: f"academy-pitch-{n}")
    goal = 10_000_000


class DonationFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Donation

    project = factory.SubFactory(FundraisingProjectFactory)
    user = factory.SubFactory(UserFactory)
    amount = 10000


# =============================================================================
# Obligations
# =============================================================================


class PaymentObligationFactory(factory.django.DjangoModelFactory):
    """Base factory; use one of the per-kind subclasses."""

    class Meta:
        model = PaymentObligation
        skip_postgeneration_save = True

    status = ObligationStatus.PENDING
    currency = "RWF"
    metadata = factory.LazyAttribute(lambda o: ObligationMetadata.for_kind(o.kind).to_json())


class TicketObligationFactory(PaymentObligationFactory):
    """Pending ticket obligation; the order has one VIP item worth the amount."""

    kind = ObligationKind.TICKET
    amount = 25000
    ticket_order = factory.SubFactory(
        TicketOrderFactory,
        total=factory.SelfAttribute("..amount"),
        expires_at=factory.LazyFunction(lambda: timezone.now() + timedelta(minutes=5)),
    )

    @factory.post_generation
    def seats(obj, create, extracted, **kwargs):
        """Seat count of the order's single VIP line (default 1)."""
        if not create:
            return
        from tickets.models import TicketOrderItem

        quantity = extracted or 1
        TicketOrderItem.objects.create(
            order=obj.ticket_order,
            zone="VIP",
            unit_price=obj.amount // quantity,
            quantity=quantity,
        )


class MembershipObligationFactory(PaymentObligationFactory):
    kind = ObligationKind.MEMBERSHIP
    amount = 30000
    membership = factory.SubFactory(MembershipFactory, plan__price=factory.SelfAttribute("...amount"))


class ShopObligationFactory(PaymentObligationFactory):
    kind = ObligationKind.SHOP
    amount = 15000
    shop_order = factory.SubFactory(ShopOrderFactory, total=factory.SelfAttribute("..amount"))


class DonationObligationFactory(PaymentObligationFactory):
    kind = ObligationKind.DONATION
    amount = 10000
    donation = factory.SubFactory(DonationFactory, amount=factory.SelfAttribute("..amount"))
