"""Order repository interfaces.

``IOrderRepository`` extends ``IRepository[Order]`` with the look-ups the
workflow needs (tracking code, locked stage update).
``IActionLogRepository`` is the append-only audit store.

The workflow engine and the Service Layer depend exclusively on these
contracts (DIP).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List, Optional
from uuid import UUID

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.orders.models import ActionLog, Order


class IOrderRepository(IRepository["Order"]):
    """Repository contract for the Order aggregate root."""

    @abstractmethod
    def update(
        self,
        id: UUID,
        data: Dict[str, Any],
        expected_status: Optional[str] = None,
    ) -> Order:
        """Write ``data`` on the order and return the stored order.

        When ``expected_status`` is given the write only happens if the
        stored ``current_status`` still equals it; otherwise
        ``StaleOrderState`` is raised and nothing is written.
        """

    @abstractmethod
    def get_by_tracking_code(self, code: str) -> Optional[Order]:
        """Retrieve an order by its public tracking code."""

    @abstractmethod
    def tracking_code_exists(self, code: str) -> bool:
        """Return ``True`` if ``code`` is already assigned."""


class IActionLogRepository(ABC):
    """Append-only audit log of order actions."""

    @abstractmethod
    def create(self, entry: Dict[str, Any]) -> ActionLog:
        """Append an entry.

        ``entry`` keys: ``order_id``, ``tracking_code``, ``action``,
        ``actor_email``, ``actor_name``, ``details`` (JSON string).
        """

    @abstractmethod
    def for_order(self, order_id: UUID) -> List[ActionLog]:
        """Entries of one order, newest first."""
