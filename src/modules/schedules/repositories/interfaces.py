"""Schedule slot repository interface."""

from __future__ import annotations

from abc import abstractmethod
from datetime import date
from typing import TYPE_CHECKING, List, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.schedules.models import ScheduleSlot


class IScheduleRepository(IRepository["ScheduleSlot"]):
    """Repository contract for delivery slots."""

    @abstractmethod
    def get_for_update(self, id: str) -> Optional[ScheduleSlot]:
        """Retrieve a slot with a row-level lock (SELECT FOR UPDATE)."""

    @abstractmethod
    def times_for_date(self, day: date) -> List[str]:
        """Times already registered for ``day``."""

    @abstractmethod
    def bulk_create(self, day: date, times: List[str]) -> List[ScheduleSlot]:
        """Create one open slot per time on ``day``."""

    @abstractmethod
    def list_available(self, from_date: Optional[date] = None) -> List[ScheduleSlot]:
        """Open (not booked, not blocked) slots ordered by date and time."""

    @abstractmethod
    def delete(self, id: str) -> bool:
        """Physically delete a slot; ``False`` if it does not exist."""
