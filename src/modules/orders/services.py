"""Order service layer (Use Cases).

Orchestrates order creation, the generic field update used by the
document/finance/delivery forms, trade-in approval, client evaluation
and the stage commands (which delegate to the ``WorkflowEngine``).

Business rules enforced:
- tracking codes are unique; generation retries a bounded number of
  times on collision.
- new orders start at ``created`` with an empty history; internal
  financing starts ``pendente``.
- a bonus trade-in owned by a third party requires manager approval;
  the manager is alerted by e-mail (best-effort).
- the field update never writes workflow, classification or
  cancellation fields; stage changes only happen through the engine.
- evaluations are accepted once, only while the order is in
  ``evaluation``, and complete the order.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any, Dict, List, Optional
import structlog
from django.db import transaction
from django.utils import timezone

from modules.orders.constants import (
    TRACKING_CODE_MAX_RETRIES,
    FinancingStatus,
    PaymentStatus,
    Stage,
)
from modules.orders.dtos import SYSTEM_ACTOR, Actor
from modules.orders.exceptions import (
    EvaluationNotAllowed,
    OrderNotFound,
    ReadOnlyOrderField,
    TrackingCodeUnavailable,
    TradeInApprovalNotRequired,
    WorkflowError,
)
from modules.orders.notifications import (
    build_stage_change_email,
    build_trade_in_approval_email,
    dispatch_best_effort,
)
from modules.orders.workflow.applicability import next_applicable_stage
from modules.orders.workflow.auto_advance import next_auto_stage
from modules.orders.workflow.catalog import get_stage_info, public_label
from modules.orders.workflow.tracking import generate_tracking_code

if TYPE_CHECKING:
    from modules.orders.dtos import CreateOrderDTO, SubmitEvaluationDTO
    from modules.orders.models import ActionLog, Order
    from modules.orders.notifications import INotificationSender
    from modules.orders.repositories.interfaces import (
        IActionLogRepository,
        IOrderRepository,
    )
    from modules.orders.workflow.catalog import StageInfo
    from modules.orders.workflow.engine import WorkflowEngine

logger = structlog.get_logger(__name__)

# Fields the operational forms may write.  Anything else is owned by the
# workflow engine or fixed at creation.
UPDATABLE_FIELDS: frozenset[str] = frozenset(
    {
        # client / vehicle
        "client_name",
        "client_email",
        "client_phone",
        "client_document",
        "vehicle_model",
        "vehicle_color",
        "vehicle_year",
        # documents
        "docs_rg",
        "docs_cnh",
        "docs_cpf",
        "docs_comprovante_residencia",
        "docs_contrato_social",
        "docs_cnpj",
        "docs_coaf_montadora",
        "docs_coaf_toriba",
        "docs_sinal",
        "docs_recibo",
        "docs_vianuvem_criado",
        "docs_laudo_cautelar",
        "docs_pesquisa_multas",
        "docs_dut_aptv_separado",
        # factory
        "fabrica_data_pedido",
        "fabrica_nf_montadora",
        "fabrica_data_faturamento",
        # invoice
        "nf_emitida",
        "nf_numero",
        "nf_chave_acesso",
        "nf_data_emissao",
        # payment / financing
        "payment_status",
        "financiamento_status",
        "financiamento_valor_total",
        "financiamento_entrada",
        "financiamento_parcelas",
        "has_entrada",
        "entrada_valor",
        "entrada_recebida",
        "comprovante_banco_recebido",
        "financiamento_pago",
        "pagamento_total_confirmado",
        # registration / delivery
        "emplacamento_concluido",
        "vehicle_plate",
        "delivery_scheduling_released",
        "scheduled_date",
        "scheduled_time",
        "entrega_confirmada",
    }
)


class OrderService:
    """Application service for Order use-cases.

    Receives repositories, the workflow engine and the notification
    sender via constructor injection (DIP).
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        action_log_repository: IActionLogRepository,
        engine: WorkflowEngine,
        notification_sender: INotificationSender,
    ) -> None:
        self._order_repo = order_repository
        self._action_log_repo = action_log_repository
        self._engine = engine
        self._notifier = notification_sender

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_order(self, dto: CreateOrderDTO, actor: Actor = SYSTEM_ACTOR) -> Order:
        """Create an order at ``created`` with a fresh tracking code.

        Raises:
            TrackingCodeUnavailable: every generated code was taken.
        """
        tracking_code = self._new_tracking_code()
        log = logger.bind(tracking_code=tracking_code)

        data = dto.to_order_fields()
        data.update(
            tracking_code=tracking_code,
            current_status=Stage.CREATED,
            status_publico=public_label(Stage.CREATED),
            status_history=[],
            payment_status=PaymentStatus.AWAITING,
            financiamento_status=(
                FinancingStatus.PENDING if dto.uses_internal_financing else None
            ),
            last_updated_at=timezone.now(),
            last_updated_by=actor.email,
        )
        order = self._order_repo.create(data)

        self._log_action(
            order, "Pedido criado", actor, {"tracking_code": tracking_code}
        )
        log.info("order.creation_completed", order_id=str(order.id))

        dispatch_best_effort(
            self._notifier,
            build_stage_change_email(order, Stage.CREATED),
            order_id=str(order.id),
        )
        if order.trade_in_requires_manager_approval:
            log.info("order.trade_in_approval_requested", order_id=str(order.id))
            dispatch_best_effort(
                self._notifier,
                build_trade_in_approval_email(order),
                order_id=str(order.id),
            )
        return order

    @transaction.atomic
    def update_fields(
        self,
        order_id: str,
        data: Dict[str, Any],
        actor: Actor = SYSTEM_ACTOR,
    ) -> Order:
        """Write operational fields (documents, finance, delivery data).

        Raises:
            OrderNotFound: order does not exist.
            ReadOnlyOrderField: ``data`` names a field outside the whitelist.
        """
        order = self.get_order(order_id)

        forbidden = sorted(set(data) - UPDATABLE_FIELDS)
        if forbidden:
            logger.warning(
                "order.read_only_fields", order_id=str(order.id), fields=forbidden
            )
            raise ReadOnlyOrderField(
                f"Fields cannot be updated directly: {', '.join(forbidden)}."
            )

        changes = dict(data)
        if changes.get("vehicle_plate"):
            changes["vehicle_plate"] = changes["vehicle_plate"].strip().upper()
        changes.update(last_updated_at=timezone.now(), last_updated_by=actor.email)

        updated = self._order_repo.update(order.id, changes)
        self._log_action(order, "Pedido atualizado", actor, data)
        return updated

    @transaction.atomic
    def approve_trade_in(self, order_id: str, actor: Actor) -> Order:
        """Record the manager's approval of a bonus trade-in.

        Raises:
            OrderNotFound: order does not exist.
            TradeInApprovalNotRequired: the order needs no approval or was
                already approved.
        """
        order = self.get_order(order_id)
        if not order.awaiting_trade_in_approval:
            raise TradeInApprovalNotRequired(
                f"Order {order.tracking_code} has no pending trade-in approval."
            )

        now = timezone.now()
        updated = self._order_repo.update(
            order.id,
            {
                "trade_in_manager_approved": True,
                "trade_in_approved_by": actor.email,
                "trade_in_approved_at": now,
                "last_updated_at": now,
                "last_updated_by": actor.email,
            },
        )
        self._log_action(
            order,
            "Trade-in aprovado pelo gerente",
            actor,
            {"trade_in_plate": order.trade_in_plate},
        )
        logger.info("order.trade_in_approved", order_id=str(order.id))
        return updated

    @transaction.atomic
    def submit_evaluation(self, dto: SubmitEvaluationDTO) -> Order:
        """Store the client's rating and complete the order.

        Raises:
            OrderNotFound: unknown tracking code.
            EvaluationNotAllowed: the order is not awaiting an evaluation.
        """
        order = self.get_by_tracking_code(dto.tracking_code)
        if order.current_status != Stage.EVALUATION or order.avaliacao_data:
            raise EvaluationNotAllowed(
                f"Order {order.tracking_code} is not awaiting an evaluation."
            )

        client = Actor(
            email=order.client_email or SYSTEM_ACTOR.email,
            name=order.client_name or SYSTEM_ACTOR.name,
        )
        evaluated = self._order_repo.update(
            order.id,
            {
                "avaliacao_estrelas": dto.rating,
                "avaliacao_comentario": dto.comment,
                "avaliacao_data": timezone.now(),
            },
            expected_status=Stage.EVALUATION,
        )
        self._log_action(
            order,
            f"[AVALIAÇÃO] Cliente avaliou com {dto.rating} estrelas",
            client,
            {"rating": dto.rating, "comment": dto.comment},
        )
        logger.info(
            "order.evaluation_submitted", order_id=str(order.id), rating=dto.rating
        )
        return self._engine.complete(evaluated, client)

    def advance(self, order_id: str, target: str, actor: Actor = SYSTEM_ACTOR) -> Order:
        return self._engine.advance(self.get_order(order_id), target, actor)

    def complete(self, order_id: str, actor: Actor = SYSTEM_ACTOR) -> Order:
        return self._engine.complete(self.get_order(order_id), actor)

    def cancel(self, order_id: str, reason: str, actor: Actor = SYSTEM_ACTOR) -> Order:
        return self._engine.cancel(self.get_order(order_id), reason, actor)

    def complete_expired_evaluations(self) -> List[Order]:
        """Complete every order whose evaluation window has elapsed.

        An order that cannot be completed (e.g. moved by a concurrent
        request) is logged and skipped; the rest of the batch still runs.
        """
        completed = []
        now = timezone.now()
        for order in self._order_repo.filter(
            current_status=Stage.EVALUATION,
            avaliacao_data__isnull=True,
            avaliacao_prazo_limite__lt=now,
        ):
            try:
                completed.append(self._engine.complete(order, SYSTEM_ACTOR))
            except WorkflowError as exc:
                logger.warning(
                    "order.expired_evaluation_skipped",
                    order_id=str(order.id),
                    tracking_code=order.tracking_code,
                    reason=str(exc),
                )
        logger.info("order.expired_evaluations_completed", count=len(completed))
        return completed

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_order(self, order_id: str) -> Order:
        """Raises ``OrderNotFound`` if the order does not exist."""
        order = self._order_repo.get_by_id(order_id)
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")
        return order

    def get_by_tracking_code(self, code: str) -> Order:
        """Raises ``OrderNotFound`` for unknown codes."""
        order = self._order_repo.get_by_tracking_code(code)
        if not order:
            raise OrderNotFound(f"Order {code} not found.")
        return order

    def list_orders(self) -> List[Order]:
        return self._order_repo.list("-created_at")

    def pending_trade_in_approvals(self) -> List[Order]:
        return self._order_repo.filter(
            trade_in_requires_manager_approval=True,
            trade_in_manager_approved=False,
        )

    def action_logs(self, order_id: str) -> List[ActionLog]:
        order = self.get_order(order_id)
        return self._action_log_repo.for_order(order.id)

    def suggest_next(self, order_id: str) -> Dict[str, Optional[StageInfo]]:
        """Suggested stage (criteria met) and next applicable stage."""
        order = self.get_order(order_id)
        suggested = next_auto_stage(order)
        return {
            "suggested": get_stage_info(suggested) if suggested else None,
            "next_applicable": next_applicable_stage(order, order.current_status),
        }

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _new_tracking_code(self) -> str:
        for attempt in range(1, TRACKING_CODE_MAX_RETRIES + 1):
            code = generate_tracking_code()
            if not self._order_repo.tracking_code_exists(code):
                return code
            logger.warning("order.tracking_code_collision", attempt=attempt)
        raise TrackingCodeUnavailable("Could not allocate a unique tracking code.")

    def _log_action(
        self,
        order: Order,
        action: str,
        actor: Actor,
        details: Dict[str, Any],
    ) -> None:
        self._action_log_repo.create(
            {
                "order_id": order.id,
                "tracking_code": order.tracking_code,
                "action": action,
                "actor_email": actor.email,
                "actor_name": actor.name,
                "details": json.dumps(details, ensure_ascii=False, default=str),
            }
        )
