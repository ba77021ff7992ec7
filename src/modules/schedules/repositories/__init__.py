"""Schedule repositories package."""

from modules.schedules.repositories.django_repository import ScheduleDjangoRepository
from modules.schedules.repositories.interfaces import IScheduleRepository

__all__ = ["IScheduleRepository", "ScheduleDjangoRepository"]
