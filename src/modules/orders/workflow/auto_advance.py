"""Suggested next stage once the current stage's criteria are met.

``next_auto_stage`` is pure: it reads the order and the clock and never
writes anything.  Callers consult it on demand (e.g. after a field
update) to offer a default next action; nothing in this module moves
an order by itself.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from django.utils import timezone

from modules.orders.constants import FinancingStatus, OrderType, Stage
from modules.orders.workflow.applicability import is_applicable
from modules.orders.workflow.catalog import parse_stage
from modules.orders.workflow.validators import Ready, check_stage


def _when_ready(stage: Stage, order: Any, target: Stage) -> Optional[Stage]:
    return target if isinstance(check_stage(stage, order), Ready) else None


def _evaluation_closed(order: Any, now: datetime) -> bool:
    if order.avaliacao_data:
        return True
    deadline = order.avaliacao_prazo_limite
    return bool(deadline) and now > deadline


def next_auto_stage(order: Any, now: Optional[datetime] = None) -> Optional[Stage]:
    """Return the stage ``order`` can move to next, or ``None``.

    ``None`` means a manual decision is required (awaiting manufacturer,
    financing approval, delivery day) or the order is terminal.
    """
    stage = parse_stage(order.current_status)
    if stage is None:
        return None
    now = now or timezone.now()

    match stage:
        case Stage.CREATED:
            if order.order_type == OrderType.FACTORY_ORDERED:
                return Stage.FACTORY_DOCUMENTATION
            if is_applicable(order, Stage.INTERNAL_FINANCING_REVIEW):
                return Stage.INTERNAL_FINANCING_REVIEW
            return Stage.CLIENT_DOCUMENTATION
        case Stage.INTERNAL_FINANCING_REVIEW:
            if order.financiamento_status == FinancingStatus.APPROVED:
                return Stage.CLIENT_DOCUMENTATION
            return None
        case Stage.FACTORY_DOCUMENTATION:
            return _when_ready(stage, order, Stage.FACTORY_ORDERED)
        case Stage.FACTORY_ORDERED:
            return None
        case Stage.FACTORY_INVOICED:
            return Stage.PAYMENT
        case Stage.CLIENT_DOCUMENTATION:
            return _when_ready(stage, order, Stage.INVOICE)
        case Stage.INVOICE:
            return _when_ready(stage, order, Stage.PAYMENT)
        case Stage.PAYMENT:
            return _when_ready(stage, order, Stage.REGISTRATION)
        case Stage.REGISTRATION:
            return _when_ready(stage, order, Stage.SCHEDULING)
        case Stage.SCHEDULING:
            return _when_ready(stage, order, Stage.YARD)
        case Stage.YARD:
            return None
        case Stage.DELIVERY:
            return _when_ready(stage, order, Stage.EVALUATION)
        case Stage.EVALUATION:
            return Stage.COMPLETED if _evaluation_closed(order, now) else None
        case Stage.COMPLETED | Stage.CANCELLED:
            return None
    return None
