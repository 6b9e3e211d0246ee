"""
Factory Boy factories for membership test data.

Usage:
    from memberships.tests.factories import MembershipFactory, MembershipPlanFactory

    plan = MembershipPlanFactory(price=30000, duration_days=90)
    membership = MembershipFactory(plan=plan)
"""

import factory

from authentication.tests.factories import UserFactory
from memberships.models import Membership, MembershipPlan


class MembershipPlanFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = MembershipPlan

    name = factory.Sequence(lambda n: f"Gold {n}")
    price = 30000
    duration_days = 90
    perks = factory.LazyFunction(lambda: ["Priority gate", "Season discount"])


class MembershipFactory(factory.django.DjangoModelFactory):
    """Pending membership; set status=MembershipStatus.ACTIVE for a paid one."""

    class Meta:
        model = Membership

    user = factory.SubFactory(UserFactory)
    plan = factory.SubFactory(MembershipPlanFactory)
