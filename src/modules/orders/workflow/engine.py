"""Workflow transition engine.

Orchestrates the three ways an order changes stage:

- ``advance``: the generic, validator-gated forward move to an applicable stage;
- ``complete``: the dedicated ``evaluation -> completed`` path;
- ``cancel``: the side exit to ``cancelled`` from any non-terminal stage.

Each transition builds a partial update (stage, public label, last-updated
metadata, history record), persists it through the order repository,
appends an audit entry and then tries to notify the client.  Store and
audit failures propagate to the caller; notification and schedule-release
failures are logged and swallowed.  The order passed in is never mutated:
the stored order returned by the repository is the result.
"""

from __future__ import annotations

import json
from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, List, Optional

import structlog
from django.db import transaction
from django.utils import timezone

from modules.orders.constants import EVALUATION_RESPONSE_WINDOW, TERMINAL_STAGES, Stage
from modules.orders.dtos import SYSTEM_ACTOR, Actor
from modules.orders.exceptions import (
    InapplicableStageError,
    OrderNotCancellable,
    StageValidationError,
    UnknownStageError,
)
from modules.orders.notifications import (
    build_cancellation_email,
    build_stage_change_email,
    dispatch_best_effort,
)
from modules.orders.workflow.applicability import is_applicable, next_applicable_stage
from modules.orders.workflow.auto_advance import next_auto_stage
from modules.orders.workflow.catalog import PROGRESSION, parse_stage, public_label
from modules.orders.workflow.validators import NotReady, check_stage

if TYPE_CHECKING:
    from modules.orders.models import Order
    from modules.orders.notifications import INotificationSender
    from modules.orders.repositories.interfaces import (
        IActionLogRepository,
        IOrderRepository,
    )
    from modules.schedules.repositories.interfaces import IScheduleRepository

logger = structlog.get_logger(__name__)


def build_history_entry(
    order: Any,
    stage: str,
    actor: Actor,
    now: datetime,
    reason: Optional[str] = None,
) -> Dict[str, Any]:
    entry: Dict[str, Any] = {
        "stage": str(stage),
        "timestamp": now.isoformat(),
        "user": actor.email,
        "from": str(order.current_status),
    }
    if reason is not None:
        entry["reason"] = reason
    return entry


class WorkflowEngine:
    """Applies stage transitions to orders.

    Receives its collaborators via constructor injection (DIP).
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        action_log_repository: IActionLogRepository,
        schedule_repository: IScheduleRepository,
        notification_sender: INotificationSender,
    ) -> None:
        self._order_repo = order_repository
        self._action_log_repo = action_log_repository
        self._schedule_repo = schedule_repository
        self._notifier = notification_sender

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def advance(self, order: Order, target: str, actor: Actor = SYSTEM_ACTOR) -> Order:
        """Move ``order`` forward to ``target`` once its current stage is complete.

        A target other than the suggested or next applicable stage must also
        meet its own requirements, so stages cannot be skipped unchecked.

        Raises:
            InapplicableStageError: ``target`` does not apply to the order.
            UnknownStageError: ``target`` is not a catalog stage.
            StageValidationError: the current stage's requirements (or those of
                a skipped-to ``target``) are unmet, ``target`` is not ahead of
                the current stage, the order is terminal, or ``target`` is
                terminal.
            StaleOrderState: the stored stage changed since ``order`` was read.
        """
        log = logger.bind(
            order_id=str(order.id),
            tracking_code=order.tracking_code,
            from_stage=order.current_status,
            to_stage=target,
        )

        if not is_applicable(order, target):
            log.warning("order.inapplicable_stage")
            raise InapplicableStageError(
                "Esta etapa não se aplica a este tipo de pedido"
            )

        stage = parse_stage(target)
        if stage is None:
            log.warning("order.unknown_stage")
            raise UnknownStageError(f"Status inválido: {target}")

        for gate in self._gate_stages(order, stage):
            result = check_stage(gate, order)
            if isinstance(result, NotReady):
                log.info("order.stage_not_ready", gate=str(gate), reason=result.reason)
                raise StageValidationError(gate, result.reason)

        now = timezone.now()
        extra: Dict[str, Any] = {}
        if stage == Stage.EVALUATION:
            extra["avaliacao_prazo_limite"] = now + EVALUATION_RESPONSE_WINDOW

        updated = self._commit(
            order,
            stage,
            actor,
            now,
            extra,
            action=f"Avanço: {order.current_status!s} → {stage!s}",
        )
        log.info("order.stage_advanced")

        dispatch_best_effort(
            self._notifier,
            build_stage_change_email(updated, stage),
            order_id=str(order.id),
            stage=str(stage),
        )
        return updated

    def complete(self, order: Order, actor: Actor = SYSTEM_ACTOR) -> Order:
        """Close an order in ``evaluation`` once it was evaluated or timed out.

        Raises:
            StageValidationError: the order is not in ``evaluation`` or its
                evaluation is still open.
        """
        log = logger.bind(order_id=str(order.id), tracking_code=order.tracking_code)

        if order.current_status != Stage.EVALUATION:
            log.warning("order.complete_not_allowed", stage=order.current_status)
            raise StageValidationError(
                Stage.COMPLETED, "Pedido não está na etapa de avaliação"
            )
        if next_auto_stage(order) != Stage.COMPLETED:
            raise StageValidationError(
                Stage.COMPLETED,
                "Avaliação ainda não foi enviada e o prazo não expirou",
            )

        updated = self._commit(
            order,
            Stage.COMPLETED,
            actor,
            timezone.now(),
            action=f"Avanço: {order.current_status!s} → {Stage.COMPLETED!s}",
        )
        log.info("order.completed")
        return updated

    def cancel(self, order: Order, reason: str, actor: Actor = SYSTEM_ACTOR) -> Order:
        """Cancel ``order`` from any non-terminal stage.

        Releases the booked delivery slot (best-effort) and notifies the
        client (best-effort).

        Raises:
            OrderNotCancellable: the order is completed or already cancelled.
            StaleOrderState: the stored stage changed since ``order`` was read.
        """
        log = logger.bind(
            order_id=str(order.id),
            tracking_code=order.tracking_code,
            from_stage=order.current_status,
        )

        if order.current_status in TERMINAL_STAGES:
            log.warning("order.cancel_not_allowed")
            raise OrderNotCancellable(
                f"Cannot cancel order in stage {order.current_status}."
            )

        now = timezone.now()
        updated = self._commit(
            order,
            Stage.CANCELLED,
            actor,
            now,
            {
                "cancelled_at": now,
                "cancelled_by": actor.email,
                "cancel_reason": reason,
            },
            reason=reason,
            action="Pedido cancelado",
            details={"reason": reason},
        )
        self._release_schedule(order)
        log.info("order.cancelled", reason=reason)

        dispatch_best_effort(
            self._notifier,
            build_cancellation_email(updated, reason),
            order_id=str(order.id),
        )
        return updated

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _gate_stages(order: Order, target: Stage) -> List[Stage]:
        """Stages whose criteria must hold for ``order`` to move to ``target``.

        Leaving a stage requires that stage to be complete, so the current
        stage always gates.  A target beyond the expected next step gates as
        well.  Terminal targets are their own gate (never ready through
        ``advance``).
        """
        if target in TERMINAL_STAGES:
            return [target]
        current = parse_stage(order.current_status)
        if current is None:
            raise UnknownStageError(f"Status inválido: {order.current_status}")
        if current in TERMINAL_STAGES:
            raise StageValidationError(current, "Pedido encerrado não pode avançar")

        line = [info.id for info in PROGRESSION]
        if target == current:
            raise StageValidationError(target, "Pedido já está nesta etapa")
        if line.index(target) < line.index(current):
            raise StageValidationError(
                target, "Pedido não pode voltar para uma etapa anterior"
            )

        following = next_applicable_stage(order, current)
        expected = {next_auto_stage(order), following.id if following else None}
        if target in expected:
            return [current]
        return [current, target]

    def _commit(
        self,
        order: Order,
        stage: Stage,
        actor: Actor,
        now: datetime,
        extra: Optional[Dict[str, Any]] = None,
        *,
        action: str,
        reason: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> Order:
        """Persist the stage change and its audit entry in one transaction."""
        if details is None:
            details = {
                "old_status": str(order.current_status),
                "new_status": str(stage),
            }
        history = list(order.status_history or [])
        history.append(build_history_entry(order, stage, actor, now, reason))

        data: Dict[str, Any] = {
            "current_status": stage,
            "status_publico": public_label(stage),
            "last_updated_at": now,
            "last_updated_by": actor.email,
            "status_history": history,
        }
        data.update(extra or {})

        with transaction.atomic():
            updated = self._order_repo.update(
                order.id, data, expected_status=order.current_status
            )
            self._action_log_repo.create(
                {
                    "order_id": order.id,
                    "tracking_code": order.tracking_code,
                    "action": action,
                    "actor_email": actor.email,
                    "actor_name": actor.name,
                    "details": json.dumps(details, ensure_ascii=False),
                }
            )
        return updated

    def _release_schedule(self, order: Order) -> None:
        if not order.previous_schedule_id:
            return
        try:
            self._schedule_repo.update(
                order.previous_schedule_id,
                {
                    "is_booked": False,
                    "booked_by_order": None,
                    "booked_by_client": "",
                },
            )
        except Exception:
            logger.warning(
                "order.schedule_release_failed",
                order_id=str(order.id),
                schedule_id=str(order.previous_schedule_id),
                exc_info=True,
            )
        else:
            logger.info(
                "order.schedule_released",
                order_id=str(order.id),
                schedule_id=str(order.previous_schedule_id),
            )
