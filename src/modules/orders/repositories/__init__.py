"""Order repositories package."""

from modules.orders.repositories.django_repository import (
    ActionLogDjangoRepository,
    OrderDjangoRepository,
)
from modules.orders.repositories.interfaces import (
    IActionLogRepository,
    IOrderRepository,
)

__all__ = [
    "ActionLogDjangoRepository",
    "IActionLogRepository",
    "IOrderRepository",
    "OrderDjangoRepository",
]
