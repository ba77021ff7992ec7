"""Integration tests for the order services against the database.

Covers:
- Full stock order lifecycle from creation to completion by evaluation.
- Factory order track through the manufacturer stages.
- Client e-mails delivered through the eager Celery task.
- Cancellation releasing the booked delivery slot.
- Stale stage rejected by the repository.
- Stage change rolled back when the audit entry cannot be written.
- Expired evaluations completed by the periodic task.
"""

from __future__ import annotations

from datetime import timedelta
from unittest.mock import patch

import pytest
from django.core import mail
from django.utils import timezone

from modules.orders.constants import OrderType, PaymentStatus, Stage
from modules.orders.dtos import Actor, SubmitEvaluationDTO
from modules.orders.exceptions import (
    EvaluationNotAllowed,
    StageValidationError,
    StaleOrderState,
)
from modules.orders.models import ActionLog, Order
from modules.orders.tasks import complete_expired_evaluations
from modules.schedules.dtos import BookSlotDTO
from modules.schedules.models import ScheduleSlot

pytestmark = pytest.mark.integration

ACTOR = Actor(email="vendedor@example.com", name="Vera Vendas")


class TestStockLifecycle:
    def test_created_to_completed(self, order_service, create_order, all_documents):
        order = create_order()
        oid = str(order.id)

        order_service.update_fields(oid, all_documents, ACTOR)
        order_service.advance(oid, Stage.CLIENT_DOCUMENTATION, ACTOR)
        order_service.advance(oid, Stage.INVOICE, ACTOR)
        order_service.update_fields(
            oid,
            {
                "nf_emitida": True,
                "nf_numero": "1001",
                "nf_chave_acesso": "3" * 44,
                "nf_data_emissao": timezone.localdate(),
            },
            ACTOR,
        )
        order_service.advance(oid, Stage.PAYMENT, ACTOR)
        order_service.update_fields(
            oid,
            {
                "payment_status": PaymentStatus.PAID,
                "comprovante_banco_recebido": True,
                "pagamento_total_confirmado": True,
            },
            ACTOR,
        )
        order_service.advance(oid, Stage.REGISTRATION, ACTOR)
        order_service.update_fields(
            oid, {"emplacamento_concluido": True, "vehicle_plate": "abc1d23"}, ACTOR
        )
        order_service.advance(oid, Stage.SCHEDULING, ACTOR)
        order_service.update_fields(
            oid,
            {
                "scheduled_date": timezone.localdate() + timedelta(days=3),
                "scheduled_time": "10:00",
            },
            ACTOR,
        )
        order_service.advance(oid, Stage.YARD, ACTOR)
        order_service.advance(oid, Stage.DELIVERY, ACTOR)
        order_service.update_fields(oid, {"entrega_confirmada": True}, ACTOR)
        order = order_service.advance(oid, Stage.EVALUATION, ACTOR)

        assert order.avaliacao_prazo_limite is not None

        order = order_service.submit_evaluation(
            SubmitEvaluationDTO(tracking_code=order.tracking_code, rating=5)
        )

        order.refresh_from_db()
        assert order.current_status == Stage.COMPLETED
        assert order.avaliacao_estrelas == 5
        assert order.vehicle_plate == "ABC1D23"
        stages = [entry["stage"] for entry in order.status_history]
        assert stages == [
            Stage.CLIENT_DOCUMENTATION,
            Stage.INVOICE,
            Stage.PAYMENT,
            Stage.REGISTRATION,
            Stage.SCHEDULING,
            Stage.YARD,
            Stage.DELIVERY,
            Stage.EVALUATION,
            Stage.COMPLETED,
        ]
        for previous, entry in zip(order.status_history, order.status_history[1:]):
            assert entry["from"] == previous["stage"]
        assert order.status_history[0]["from"] == Stage.CREATED

        subjects = [message.subject for message in mail.outbox]
        assert subjects == [
            "Pedido Confirmado",
            "Nota Fiscal Emitida",
            "Pagamento Confirmado",
            "Veículo Pronto!",
            "Entrega Agendada",
            "Entrega Realizada",
        ]

    def test_blocked_advance_leaves_order_untouched(self, order_service, create_order):
        order = create_order()
        oid = str(order.id)
        order_service.advance(oid, Stage.CLIENT_DOCUMENTATION)

        with pytest.raises(StageValidationError):
            order_service.advance(oid, Stage.INVOICE)

        stored = Order.objects.get(id=order.id)
        assert stored.current_status == Stage.CLIENT_DOCUMENTATION
        assert len(stored.status_history) == 1

    def test_evaluation_only_once(self, order_service, order_at):
        order = order_at(Stage.EVALUATION)
        dto = SubmitEvaluationDTO(tracking_code=order.tracking_code, rating=4)
        order_service.submit_evaluation(dto)

        with pytest.raises(EvaluationNotAllowed):
            order_service.submit_evaluation(dto)


class TestFactoryTrack:
    def test_factory_stages(self, order_service, create_order, all_documents):
        order = create_order(order_type=OrderType.FACTORY_ORDERED)
        oid = str(order.id)

        order_service.advance(oid, Stage.FACTORY_DOCUMENTATION)
        order_service.update_fields(oid, all_documents)
        order_service.advance(oid, Stage.FACTORY_ORDERED)
        order_service.update_fields(oid, {"fabrica_data_pedido": timezone.localdate()})
        order_service.advance(oid, Stage.FACTORY_INVOICED)
        order_service.update_fields(
            oid,
            {
                "fabrica_nf_montadora": "NF-9",
                "fabrica_data_faturamento": timezone.localdate(),
            },
        )
        order = order_service.advance(oid, Stage.PAYMENT)

        assert order.current_status == Stage.PAYMENT
        assert [e["stage"] for e in order.status_history] == [
            Stage.FACTORY_DOCUMENTATION,
            Stage.FACTORY_ORDERED,
            Stage.FACTORY_INVOICED,
            Stage.PAYMENT,
        ]


class TestCancellation:
    def test_cancel_releases_booked_slot(
        self, order_service, schedule_service, order_at
    ):
        slot = ScheduleSlot.objects.create(
            date=timezone.localdate() + timedelta(days=2), time="09:00"
        )
        order = order_at(Stage.SCHEDULING, delivery_scheduling_released=True)
        schedule_service.book_slot(
            BookSlotDTO(tracking_code=order.tracking_code, slot_id=slot.id)
        )
        slot.refresh_from_db()
        assert slot.is_booked

        order_service.cancel(str(order.id), "Cliente desistiu")

        slot.refresh_from_db()
        order.refresh_from_db()
        assert not slot.is_booked
        assert slot.booked_by_order is None
        assert order.current_status == Stage.CANCELLED
        assert order.cancel_reason == "Cliente desistiu"
        assert ActionLog.objects.filter(
            order_id=order.id, action="Pedido cancelado"
        ).exists()
        assert mail.outbox[-1].subject == "Pedido Cancelado"


class TestStaleState:
    def test_transition_from_outdated_copy_rejected(self, order_service, create_order):
        order = create_order()
        outdated = Order.objects.get(id=order.id)
        order_service.advance(str(order.id), Stage.CLIENT_DOCUMENTATION)

        with pytest.raises(StaleOrderState):
            order_service._engine.advance(outdated, Stage.CLIENT_DOCUMENTATION)

        stored = Order.objects.get(id=order.id)
        assert len(stored.status_history) == 1


class TestAuditFailure:
    def test_stage_change_rolled_back(self, order_service, create_order):
        order = create_order()
        audit = order_service._engine._action_log_repo

        with patch.object(audit, "create", side_effect=RuntimeError("audit down")):
            with pytest.raises(RuntimeError):
                order_service.advance(str(order.id), Stage.CLIENT_DOCUMENTATION)

        stored = Order.objects.get(id=order.id)
        assert stored.current_status == Stage.CREATED
        assert stored.status_history == []
        assert not ActionLog.objects.filter(
            order_id=order.id, action__startswith="Avanço"
        ).exists()


class TestExpiredEvaluations:
    def test_task_completes_expired_only(self, order_at):
        now = timezone.now()
        expired = order_at(
            Stage.EVALUATION, avaliacao_prazo_limite=now - timedelta(hours=1)
        )
        open_ = order_at(
            Stage.EVALUATION, avaliacao_prazo_limite=now + timedelta(days=2)
        )

        result = complete_expired_evaluations.delay().get()

        assert result["completed"] == [expired.tracking_code]
        assert Order.objects.get(id=expired.id).current_status == Stage.COMPLETED
        assert Order.objects.get(id=open_.id).current_status == Stage.EVALUATION
