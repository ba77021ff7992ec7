"""Stage catalog: the ordered fulfillment stages with display metadata."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from modules.orders.constants import Stage


@dataclass(frozen=True)
class StageInfo:
    id: str
    label: str
    icon: str


_ICONS: dict[str, str] = {
    Stage.CREATED: "📋",
    Stage.INTERNAL_FINANCING_REVIEW: "🏦",
    Stage.FACTORY_DOCUMENTATION: "📄",
    Stage.FACTORY_ORDERED: "🏭",
    Stage.FACTORY_INVOICED: "🚚",
    Stage.CLIENT_DOCUMENTATION: "📄",
    Stage.INVOICE: "🧾",
    Stage.PAYMENT: "💳",
    Stage.REGISTRATION: "🔧",
    Stage.SCHEDULING: "📅",
    Stage.YARD: "🅿️",
    Stage.DELIVERY: "🚗",
    Stage.EVALUATION: "⭐",
    Stage.COMPLETED: "✅",
    Stage.CANCELLED: "❌",
}

STAGE_CATALOG: tuple[StageInfo, ...] = tuple(
    StageInfo(id=stage.value, label=stage.label, icon=_ICONS[stage])
    for stage in Stage
)

STAGE_IDS: frozenset[str] = frozenset(info.id for info in STAGE_CATALOG)

# Cancellation is a side exit, never a point on the forward line.
PROGRESSION: tuple[StageInfo, ...] = tuple(
    info for info in STAGE_CATALOG if info.id != Stage.CANCELLED
)


def parse_stage(stage_id: str) -> Optional[Stage]:
    """Return the ``Stage`` for ``stage_id`` or ``None`` if it is unknown."""
    try:
        return Stage(stage_id)
    except ValueError:
        return None


def get_stage_info(stage_id: str) -> Optional[StageInfo]:
    for info in STAGE_CATALOG:
        if info.id == stage_id:
            return info
    return None


def public_label(stage_id: str) -> str:
    """Client-facing label for a stage (the catalog display name)."""
    info = get_stage_info(stage_id)
    return info.label if info else stage_id
