"""
Match model.

Usage:
    match = Match.objects.create(opponent="APR FC", kickoff=kickoff, venue="Amahoro")
    match.postpone()
    match.save()
"""

from __future__ import annotations

from django.db import models
from django_fsm import FSMField, transition

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel
from tickets.state_machines import MatchStatus


class Match(UUIDPrimaryKeyMixin, BaseModel):
    """
    A fixture with ticketed seating.

    Checkout locks the Match row (select_for_update) so that every
    capacity check for the same match is serialized.

    State Flow:
        SCHEDULED -> LIVE -> FINISHED
        SCHEDULED -> POSTPONED -> SCHEDULED
    """

    opponent = models.CharField(max_length=120)
    kickoff = models.DateTimeField(db_index=True)
    venue = models.CharField(max_length=120)
    competition = models.CharField(max_length=120, blank=True, default="")

    status = FSMField(
        default=MatchStatus.SCHEDULED,
        choices=MatchStatus.choices,
        db_index=True,
        help_text="Current match status (managed by FSM)",
    )

    class Meta:
        ordering = ["kickoff"]
        verbose_name = "Match"
        verbose_name_plural = "Matches"

    def __str__(self) -> str:
        return f"Match({self.opponent}, {self.kickoff:%Y-%m-%d})"

    @property
    def is_on_sale(self) -> bool:
        return self.status not in (MatchStatus.FINISHED, MatchStatus.POSTPONED)

    # ==========================================================================
    # State Transitions (django-fsm)
    # ==========================================================================

    @transition(field=status, source=MatchStatus.SCHEDULED, target=MatchStatus.LIVE)
    def kick_off(self):
        pass

    @transition(field=status, source=MatchStatus.LIVE, target=MatchStatus.FINISHED)
    def finish(self):
        pass

    @transition(field=status, source=MatchStatus.SCHEDULED, target=MatchStatus.POSTPONED)
    def postpone(self):
        pass

    @transition(field=status, source=MatchStatus.POSTPONED, target=MatchStatus.SCHEDULED)
    def reschedule(self):
        pass
