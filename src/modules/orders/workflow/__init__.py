"""Order workflow: stage catalog, applicability, validators and engine."""

from modules.orders.workflow.applicability import (
    applicable_stages,
    is_applicable,
    next_applicable_stage,
)
from modules.orders.workflow.auto_advance import next_auto_stage
from modules.orders.workflow.catalog import STAGE_CATALOG, StageInfo, get_stage_info
from modules.orders.workflow.engine import WorkflowEngine
from modules.orders.workflow.validators import (
    NotReady,
    Ready,
    check_stage,
    validate_stage,
)

__all__ = [
    "STAGE_CATALOG",
    "NotReady",
    "Ready",
    "StageInfo",
    "WorkflowEngine",
    "applicable_stages",
    "check_stage",
    "get_stage_info",
    "is_applicable",
    "next_applicable_stage",
    "next_auto_stage",
    "validate_stage",
]
