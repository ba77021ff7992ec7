"""Django ORM implementation of the schedule slot repository."""

from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction

from modules.schedules.exceptions import SlotNotFound
from modules.schedules.models import ScheduleSlot
from modules.schedules.repositories.interfaces import IScheduleRepository

logger = structlog.get_logger(__name__)


class ScheduleDjangoRepository(IScheduleRepository):
    """Concrete slot repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[ScheduleSlot]:
        """Returns ``None`` for non-existent or invalid IDs."""
        try:
            return ScheduleSlot.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_for_update(self, id: str) -> Optional[ScheduleSlot]:
        try:
            return ScheduleSlot.objects.select_for_update().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def create(self, data: Dict[str, Any]) -> ScheduleSlot:
        slot = ScheduleSlot.objects.create(**data)
        logger.info("schedule.slot_created", slot_id=str(slot.id), date=str(slot.date))
        return slot

    @transaction.atomic
    def bulk_create(self, day: date, times: List[str]) -> List[ScheduleSlot]:
        slots = ScheduleSlot.objects.bulk_create(
            [ScheduleSlot(date=day, time=time) for time in times]
        )
        logger.info("schedule.slots_created", date=str(day), count=len(slots))
        return slots

    @transaction.atomic
    def update(self, id: Any, data: Dict[str, Any]) -> ScheduleSlot:
        slot = ScheduleSlot.objects.select_for_update().filter(id=id).first()
        if not slot:
            raise SlotNotFound(f"Schedule slot {id} not found.")
        for field, value in data.items():
            setattr(slot, field, value)
        slot.save()
        logger.info("schedule.slot_updated", slot_id=str(id), fields=sorted(data))
        return slot

    def delete(self, id: str) -> bool:
        slot = self.get_by_id(id)
        if not slot:
            return False
        slot.delete()
        logger.info("schedule.slot_deleted", slot_id=str(id))
        return True

    def times_for_date(self, day: date) -> List[str]:
        times = ScheduleSlot.objects.filter(date=day).values_list("time", flat=True)
        return list(times)

    def list_available(self, from_date: Optional[date] = None) -> List[ScheduleSlot]:
        queryset = ScheduleSlot.objects.filter(is_booked=False, is_blocked=False)
        if from_date:
            queryset = queryset.filter(date__gte=from_date)
        return list(queryset.order_by("date", "time"))

    def filter(self, **criteria: Any) -> List[ScheduleSlot]:
        return list(ScheduleSlot.objects.filter(**criteria))

    def list(self, sort_key: Optional[str] = None) -> List[ScheduleSlot]:
        queryset = ScheduleSlot.objects.all()
        if sort_key:
            queryset = queryset.order_by(sort_key, "time")
        return list(queryset)
