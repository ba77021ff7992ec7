"""Unit tests for OrderService with mocked dependencies."""

from __future__ import annotations

import json
from unittest.mock import MagicMock, patch
from uuid import uuid4

import pytest

from modules.orders.constants import (
    FinancingStatus,
    FinancingType,
    KinshipType,
    PaymentMethod,
    Stage,
)
from modules.orders.dtos import Actor, CreateOrderDTO, SubmitEvaluationDTO
from modules.orders.exceptions import (
    EvaluationNotAllowed,
    OrderNotFound,
    ReadOnlyOrderField,
    StaleOrderState,
    TrackingCodeUnavailable,
    TradeInApprovalNotRequired,
)
from modules.orders.models import Order
from modules.orders.services import OrderService

pytestmark = pytest.mark.unit

ACTOR = Actor(email="vendedor@example.com", name="Vera Vendas")

BASE = {
    "client_name": "Maria Silva",
    "client_email": "maria@example.com",
    "client_phone": "(11) 99999-0000",
    "vehicle_model": "Onix LT",
    "vehicle_color": "Branco",
}


@pytest.fixture()
def service_and_mocks():
    order_repo = MagicMock()
    action_log_repo = MagicMock()
    engine = MagicMock()
    sender = MagicMock()
    order_repo.tracking_code_exists.return_value = False
    order_repo.create.side_effect = lambda data: Order(**data)
    service = OrderService(order_repo, action_log_repo, engine, sender)
    return service, order_repo, action_log_repo, engine, sender


class TestCreateOrder:
    def test_starts_at_created(self, service_and_mocks):
        service, order_repo, action_log_repo, _, sender = service_and_mocks

        order = service.create_order(CreateOrderDTO(**BASE), ACTOR)

        assert order.current_status == Stage.CREATED
        assert order.status_history == []
        assert order.tracking_code.startswith("VEH-")
        assert order.last_updated_by == ACTOR.email
        assert order.financiamento_status is None
        entry = action_log_repo.create.call_args.args[0]
        assert entry["action"] == "Pedido criado"
        assert sender.send_email.call_args.args[0].subject == "Pedido Confirmado"

    def test_internal_financing_starts_pending(self, service_and_mocks):
        service, *_ = service_and_mocks
        dto = CreateOrderDTO(
            **BASE,
            payment_method=PaymentMethod.FINANCING,
            financiamento_tipo=FinancingType.INTERNAL,
        )

        order = service.create_order(dto, ACTOR)

        assert order.financiamento_status == FinancingStatus.PENDING

    def test_bonus_trade_in_alerts_manager(self, service_and_mocks):
        service, _, _, _, sender = service_and_mocks
        dto = CreateOrderDTO(
            **BASE,
            has_trade_in=True,
            trade_in_plate="ABC1234",
            trade_in_owner_is_buyer=False,
            trade_in_has_bonus=True,
            trade_in_parentesco_type=KinshipType.SPOUSE,
            trade_in_no_recent_transfer=True,
        )

        order = service.create_order(dto, ACTOR)

        assert order.trade_in_requires_manager_approval
        subjects = [c.args[0].subject for c in sender.send_email.call_args_list]
        assert "URGENTE: Aprovação de Trade-In Necessária" in subjects

    def test_retries_on_tracking_code_collision(self, service_and_mocks):
        service, order_repo, *_ = service_and_mocks
        order_repo.tracking_code_exists.side_effect = [True, True, False]

        service.create_order(CreateOrderDTO(**BASE), ACTOR)

        assert order_repo.tracking_code_exists.call_count == 3

    def test_gives_up_after_retry_budget(self, service_and_mocks):
        service, order_repo, *_ = service_and_mocks
        order_repo.tracking_code_exists.return_value = True

        with pytest.raises(TrackingCodeUnavailable):
            service.create_order(CreateOrderDTO(**BASE), ACTOR)
        order_repo.create.assert_not_called()

    def test_notification_failure_does_not_fail_creation(self, service_and_mocks):
        service, order_repo, _, _, sender = service_and_mocks
        sender.send_email.side_effect = RuntimeError("smtp down")

        order = service.create_order(CreateOrderDTO(**BASE), ACTOR)

        assert order.current_status == Stage.CREATED
        order_repo.create.assert_called_once()


class TestUpdateFields:
    def test_rejects_workflow_fields(self, service_and_mocks, make_order):
        service, order_repo, *_ = service_and_mocks
        order_repo.get_by_id.return_value = make_order()

        with pytest.raises(ReadOnlyOrderField):
            service.update_fields("id", {"current_status": Stage.COMPLETED}, ACTOR)
        order_repo.update.assert_not_called()

    def test_normalises_plate_and_stamps_actor(self, service_and_mocks, make_order):
        service, order_repo, action_log_repo, *_ = service_and_mocks
        order = make_order()
        order_repo.get_by_id.return_value = order

        service.update_fields("id", {"vehicle_plate": " abc1d23 "}, ACTOR)

        _, changes = order_repo.update.call_args.args
        assert changes["vehicle_plate"] == "ABC1D23"
        assert changes["last_updated_by"] == ACTOR.email
        entry = action_log_repo.create.call_args.args[0]
        assert entry["action"] == "Pedido atualizado"
        assert json.loads(entry["details"]) == {"vehicle_plate": " abc1d23 "}

    def test_missing_order(self, service_and_mocks):
        service, order_repo, *_ = service_and_mocks
        order_repo.get_by_id.return_value = None

        with pytest.raises(OrderNotFound):
            service.update_fields(str(uuid4()), {"docs_rg": True}, ACTOR)


class TestTradeInApproval:
    def test_approves_pending(self, service_and_mocks, make_order):
        service, order_repo, *_ = service_and_mocks
        order_repo.get_by_id.return_value = make_order(
            trade_in_requires_manager_approval=True
        )

        service.approve_trade_in("id", ACTOR)

        _, data = order_repo.update.call_args.args
        assert data["trade_in_manager_approved"] is True
        assert data["trade_in_approved_by"] == ACTOR.email

    def test_not_required(self, service_and_mocks, make_order):
        service, order_repo, *_ = service_and_mocks
        order_repo.get_by_id.return_value = make_order()

        with pytest.raises(TradeInApprovalNotRequired):
            service.approve_trade_in("id", ACTOR)


class TestEvaluation:
    def test_stores_rating_and_completes(self, service_and_mocks, make_order):
        service, order_repo, _, engine, _ = service_and_mocks
        order = make_order(current_status=Stage.EVALUATION)
        order_repo.get_by_tracking_code.return_value = order
        order_repo.update.return_value = order

        service.submit_evaluation(
            SubmitEvaluationDTO(tracking_code=order.tracking_code, rating=5)
        )

        _, data = order_repo.update.call_args.args
        assert data["avaliacao_estrelas"] == 5
        assert order_repo.update.call_args.kwargs["expected_status"] == (
            Stage.EVALUATION
        )
        engine.complete.assert_called_once()
        assert engine.complete.call_args.args[1].email == "maria@example.com"

    def test_outside_evaluation(self, service_and_mocks, make_order):
        service, order_repo, _, engine, _ = service_and_mocks
        order_repo.get_by_tracking_code.return_value = make_order(
            current_status=Stage.DELIVERY
        )

        with pytest.raises(EvaluationNotAllowed):
            service.submit_evaluation(
                SubmitEvaluationDTO(tracking_code="VEH-TEST0001", rating=4)
            )
        engine.complete.assert_not_called()


class TestDelegation:
    def test_advance_loads_order_and_delegates(self, service_and_mocks, make_order):
        service, order_repo, _, engine, _ = service_and_mocks
        order = make_order()
        order_repo.get_by_id.return_value = order

        service.advance("id", Stage.CLIENT_DOCUMENTATION, ACTOR)

        engine.advance.assert_called_once_with(
            order, Stage.CLIENT_DOCUMENTATION, ACTOR
        )

    def test_cancel_delegates(self, service_and_mocks, make_order):
        service, order_repo, _, engine, _ = service_and_mocks
        order = make_order()
        order_repo.get_by_id.return_value = order

        service.cancel("id", "motivo", ACTOR)

        engine.cancel.assert_called_once_with(order, "motivo", ACTOR)

    def test_expired_evaluations_completed(self, service_and_mocks, make_order):
        service, order_repo, _, engine, _ = service_and_mocks
        expired = [make_order(current_status=Stage.EVALUATION) for _ in range(2)]
        order_repo.filter.return_value = expired

        with patch("modules.orders.services.logger") as logger:
            completed = service.complete_expired_evaluations()

        assert len(completed) == 2
        assert engine.complete.call_count == 2
        logger.info.assert_called_once_with(
            "order.expired_evaluations_completed", count=2
        )

    def test_expired_evaluation_failure_does_not_stop_batch(
        self, service_and_mocks, make_order
    ):
        service, order_repo, _, engine, _ = service_and_mocks
        moved, expired = (
            make_order(current_status=Stage.EVALUATION) for _ in range(2)
        )
        order_repo.filter.return_value = [moved, expired]
        engine.complete.side_effect = [StaleOrderState("moved"), expired]

        with patch("modules.orders.services.logger") as logger:
            completed = service.complete_expired_evaluations()

        assert completed == [expired]
        assert engine.complete.call_count == 2
        logger.warning.assert_called_once()
        assert logger.warning.call_args.args == ("order.expired_evaluation_skipped",)
        logger.info.assert_called_once_with(
            "order.expired_evaluations_completed", count=1
        )


def test_suggest_next(service_and_mocks, make_order):
    service, order_repo, *_ = service_and_mocks
    order_repo.get_by_id.return_value = make_order()

    suggestion = service.suggest_next("id")

    assert suggestion["suggested"].id == Stage.CLIENT_DOCUMENTATION
    assert suggestion["next_applicable"].id == Stage.CLIENT_DOCUMENTATION
