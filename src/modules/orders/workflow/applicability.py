"""Which stages apply to which order variant."""

from __future__ import annotations

from typing import Any, List, Optional

from modules.orders.constants import (
    FACTORY_STAGE_PREFIX,
    FinancingType,
    OrderType,
    PaymentMethod,
    Stage,
)
from modules.orders.workflow.catalog import PROGRESSION, StageInfo, get_stage_info


def is_applicable(order: Any, stage_id: str) -> bool:
    """Return ``True`` if ``stage_id`` is relevant for ``order``.

    Rules, in precedence order:

    - internal financing review only for ``financing`` + ``internal``;
    - ``factory-*`` stages only for factory-ordered vehicles;
    - client documentation only for orders that are *not* factory-ordered
      (factory orders collect documents in the factory track);
    - every other stage always applies.
    """
    if stage_id == Stage.INTERNAL_FINANCING_REVIEW:
        return (
            order.payment_method == PaymentMethod.FINANCING
            and order.financiamento_tipo == FinancingType.INTERNAL
        )

    if stage_id.startswith(FACTORY_STAGE_PREFIX):
        return order.order_type == OrderType.FACTORY_ORDERED

    if stage_id == Stage.CLIENT_DOCUMENTATION:
        return order.order_type != OrderType.FACTORY_ORDERED

    return True


def applicable_stages(order: Any) -> List[StageInfo]:
    """Timeline of the stages that apply to ``order``, in canonical order.

    ``cancelled`` is only listed for cancelled orders.
    """
    stages = [info for info in PROGRESSION if is_applicable(order, info.id)]
    if order.current_status == Stage.CANCELLED:
        stages.append(get_stage_info(Stage.CANCELLED))
    return stages


def next_applicable_stage(order: Any, current: str) -> Optional[StageInfo]:
    """First applicable stage after ``current`` on the forward line."""
    ids = [info.id for info in PROGRESSION]
    start = ids.index(current) + 1 if current in ids else len(ids)
    for info in PROGRESSION[start:]:
        if is_applicable(order, info.id):
            return info
    return None
