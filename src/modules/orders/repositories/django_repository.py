"""Django ORM implementation of the Order and ActionLog repositories.

Satisfies ``IOrderRepository`` / ``IActionLogRepository`` using Django's
QuerySet API.  Updates run inside ``transaction.atomic()`` and lock the
order row with ``select_for_update()``; stage transitions additionally
compare the locked row's stage with the one the caller read
(optimistic check), so two concurrent transitions cannot both commit.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional
from uuid import UUID

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import QuerySet

from modules.orders.exceptions import OrderNotFound, StaleOrderState
from modules.orders.models import ActionLog, Order
from modules.orders.repositories.interfaces import (
    IActionLogRepository,
    IOrderRepository,
)

logger = structlog.get_logger(__name__)


class OrderDjangoRepository(IOrderRepository):
    """Concrete Order repository backed by Django ORM."""

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create(self, data: Dict[str, Any]) -> Order:
        order = Order(**data)
        order.save()
        logger.info(
            "order.created",
            order_id=str(order.id),
            tracking_code=order.tracking_code,
        )
        return order

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------

    @transaction.atomic
    def update(
        self,
        id: UUID,
        data: Dict[str, Any],
        expected_status: Optional[str] = None,
    ) -> Order:
        """Update order fields on a row locked with ``select_for_update``."""
        order = Order.objects.select_for_update().filter(id=id).first()
        if not order:
            raise OrderNotFound(f"Order {id} not found.")

        if expected_status is not None and order.current_status != expected_status:
            logger.warning(
                "order.stale_state",
                order_id=str(id),
                expected_status=expected_status,
                stored_status=order.current_status,
            )
            raise StaleOrderState(
                f"Order {order.tracking_code} moved to {order.current_status} "
                f"since it was read (expected {expected_status})."
            )

        for field, value in data.items():
            setattr(order, field, value)

        order.save()
        logger.info("order.updated", order_id=str(id), fields=sorted(data))
        return order

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_by_id(self, id: str) -> Optional[Order]:
        """Returns ``None`` for non-existent or invalid IDs."""
        try:
            return Order.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_by_tracking_code(self, code: str) -> Optional[Order]:
        return Order.objects.filter(tracking_code=code.strip().upper()).first()

    def tracking_code_exists(self, code: str) -> bool:
        return Order.objects.filter(tracking_code=code).exists()

    def filter(self, **criteria: Any) -> List[Order]:
        return list(Order.objects.filter(**criteria))

    def list(self, sort_key: Optional[str] = None) -> List[Order]:
        queryset = Order.objects.all()
        if sort_key:
            queryset = queryset.order_by(sort_key)
        return list(queryset)

    def queryset(self) -> QuerySet[Order]:
        """Unevaluated queryset for the API filter backends."""
        return Order.objects.all()


class ActionLogDjangoRepository(IActionLogRepository):
    """Concrete audit-log repository backed by Django ORM."""

    def create(self, entry: Dict[str, Any]) -> ActionLog:
        log_entry = ActionLog.objects.create(**entry)
        logger.info(
            "order.action_logged",
            order_id=str(entry["order_id"]),
            action=entry["action"],
        )
        return log_entry

    def for_order(self, order_id: UUID) -> List[ActionLog]:
        return list(ActionLog.objects.filter(order_id=order_id))
