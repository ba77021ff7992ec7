"""Unit tests for the suggested next stage.

Covers:
- created: factory track, internal financing review, client documentation.
- Financing review waits for approval.
- Each criteria-gated stage suggests its successor only when ready.
- Manual stages (factory ordered, yard) and terminal stages return None.
- Evaluation completes once rated or after the response deadline.
"""

from __future__ import annotations

from datetime import date, timedelta

import pytest
from django.utils import timezone

from modules.orders.constants import (
    FinancingStatus,
    FinancingType,
    OrderType,
    PaymentMethod,
    PaymentStatus,
    Stage,
)
from modules.orders.workflow.auto_advance import next_auto_stage

pytestmark = pytest.mark.unit


class TestCreated:
    def test_factory_order_goes_to_factory_documentation(self, make_order):
        order = make_order(order_type=OrderType.FACTORY_ORDERED)
        assert next_auto_stage(order) == Stage.FACTORY_DOCUMENTATION

    def test_internal_financing_goes_to_review(self, make_order):
        order = make_order(
            payment_method=PaymentMethod.FINANCING,
            financiamento_tipo=FinancingType.INTERNAL,
        )
        assert next_auto_stage(order) == Stage.INTERNAL_FINANCING_REVIEW

    def test_stock_order_goes_to_client_documentation(self, make_order):
        assert next_auto_stage(make_order()) == Stage.CLIENT_DOCUMENTATION


class TestFinancingReview:
    def test_waits_for_approval(self, make_order):
        order = make_order(
            current_status=Stage.INTERNAL_FINANCING_REVIEW,
            financiamento_status=FinancingStatus.PENDING,
        )
        assert next_auto_stage(order) is None

    def test_approved_goes_to_client_documentation(self, make_order):
        order = make_order(
            current_status=Stage.INTERNAL_FINANCING_REVIEW,
            financiamento_status=FinancingStatus.APPROVED,
        )
        assert next_auto_stage(order) == Stage.CLIENT_DOCUMENTATION


class TestCriteriaGated:
    def test_documentation_ready(self, make_order, all_documents):
        order = make_order(current_status=Stage.CLIENT_DOCUMENTATION, **all_documents)
        assert next_auto_stage(order) == Stage.INVOICE

    def test_documentation_incomplete(self, make_order):
        order = make_order(current_status=Stage.CLIENT_DOCUMENTATION)
        assert next_auto_stage(order) is None

    def test_factory_documentation_ready(self, make_order, all_documents):
        order = make_order(
            order_type=OrderType.FACTORY_ORDERED,
            current_status=Stage.FACTORY_DOCUMENTATION,
            **all_documents,
        )
        assert next_auto_stage(order) == Stage.FACTORY_ORDERED

    def test_factory_invoiced_always_goes_to_payment(self, make_order):
        order = make_order(
            order_type=OrderType.FACTORY_ORDERED,
            current_status=Stage.FACTORY_INVOICED,
        )
        assert next_auto_stage(order) == Stage.PAYMENT

    def test_invoice_ready(self, make_order):
        order = make_order(
            current_status=Stage.INVOICE,
            nf_emitida=True,
            nf_numero="1001",
            nf_chave_acesso="3" * 44,
            nf_data_emissao=date(2026, 3, 1),
        )
        assert next_auto_stage(order) == Stage.PAYMENT

    def test_payment_ready(self, make_order):
        order = make_order(
            current_status=Stage.PAYMENT,
            payment_status=PaymentStatus.PAID,
            comprovante_banco_recebido=True,
            pagamento_total_confirmado=True,
        )
        assert next_auto_stage(order) == Stage.REGISTRATION

    def test_payment_pending(self, make_order):
        assert next_auto_stage(make_order(current_status=Stage.PAYMENT)) is None

    def test_registration_ready(self, make_order):
        order = make_order(
            current_status=Stage.REGISTRATION,
            emplacamento_concluido=True,
            vehicle_plate="ABC1D23",
        )
        assert next_auto_stage(order) == Stage.SCHEDULING

    def test_scheduling_ready(self, make_order):
        order = make_order(
            current_status=Stage.SCHEDULING,
            scheduled_date=timezone.localdate() + timedelta(days=2),
            scheduled_time="09:00",
        )
        assert next_auto_stage(order) == Stage.YARD

    def test_scheduling_in_the_past(self, make_order):
        order = make_order(
            current_status=Stage.SCHEDULING,
            scheduled_date=timezone.localdate() - timedelta(days=2),
            scheduled_time="09:00",
        )
        assert next_auto_stage(order) is None

    def test_delivery_confirmed(self, make_order):
        order = make_order(current_status=Stage.DELIVERY, entrega_confirmada=True)
        assert next_auto_stage(order) == Stage.EVALUATION


class TestManualAndTerminal:
    @pytest.mark.parametrize(
        "stage",
        [Stage.FACTORY_ORDERED, Stage.YARD, Stage.COMPLETED, Stage.CANCELLED],
    )
    def test_no_suggestion(self, make_order, stage):
        order = make_order(
            order_type=OrderType.FACTORY_ORDERED,
            current_status=stage,
            fabrica_data_pedido=date(2026, 1, 10),
            scheduled_date=timezone.localdate(),
        )
        assert next_auto_stage(order) is None

    def test_unknown_stored_stage(self, make_order):
        assert next_auto_stage(make_order(current_status="shipping")) is None


class TestEvaluation:
    def test_open_evaluation(self, make_order):
        now = timezone.now()
        order = make_order(
            current_status=Stage.EVALUATION,
            avaliacao_prazo_limite=now + timedelta(days=3),
        )
        assert next_auto_stage(order, now=now) is None

    def test_rated_evaluation_completes(self, make_order):
        now = timezone.now()
        order = make_order(
            current_status=Stage.EVALUATION,
            avaliacao_data=now,
            avaliacao_prazo_limite=now + timedelta(days=3),
        )
        assert next_auto_stage(order, now=now) == Stage.COMPLETED

    def test_expired_deadline_completes(self, make_order):
        now = timezone.now()
        order = make_order(
            current_status=Stage.EVALUATION,
            avaliacao_prazo_limite=now - timedelta(seconds=1),
        )
        assert next_auto_stage(order, now=now) == Stage.COMPLETED

    def test_deadline_not_yet_passed_at_exact_instant(self, make_order):
        now = timezone.now()
        order = make_order(current_status=Stage.EVALUATION, avaliacao_prazo_limite=now)
        assert next_auto_stage(order, now=now) is None
