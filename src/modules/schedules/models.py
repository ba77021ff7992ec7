"""Delivery ScheduleSlot model.

A slot is one bookable delivery time on a given date.  A slot offered to
clients is neither blocked nor booked; booking stores the order it
belongs to, and cancelling that order releases it again.
"""

from __future__ import annotations

from django.db import models

from modules.core.models import BaseModel


class ScheduleSlot(BaseModel):
    """One delivery time (``HH:MM``) on a date."""

    date: models.DateField = models.DateField()
    time: models.CharField = models.CharField(max_length=5)
    is_booked: models.BooleanField = models.BooleanField(default=False)
    is_blocked: models.BooleanField = models.BooleanField(default=False)
    booked_by_order: models.UUIDField = models.UUIDField(null=True, blank=True)
    booked_by_client: models.CharField = models.CharField(
        max_length=200, blank=True, default=""
    )

    class Meta:
        db_table = "schedule_slots"
        ordering = ["date", "time"]
        constraints = [
            models.UniqueConstraint(
                fields=["date", "time"], name="schedule_slots_unique_date_time"
            ),
        ]

    @property
    def is_available(self) -> bool:
        return not self.is_booked and not self.is_blocked

    def __str__(self) -> str:
        return f"{self.date} {self.time}"
