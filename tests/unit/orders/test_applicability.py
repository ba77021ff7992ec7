"""Unit tests for stage applicability.

Covers:
- Internal financing review only for internal financing.
- Factory stages only for factory-ordered vehicles.
- Client documentation only for non-factory orders.
- Timeline listing and next applicable stage.
"""

from __future__ import annotations

import pytest

from modules.orders.constants import (
    FinancingType,
    OrderType,
    PaymentMethod,
    Stage,
)
from modules.orders.workflow.applicability import (
    applicable_stages,
    is_applicable,
    next_applicable_stage,
)

pytestmark = pytest.mark.unit

FACTORY_STAGES = [
    Stage.FACTORY_DOCUMENTATION,
    Stage.FACTORY_ORDERED,
    Stage.FACTORY_INVOICED,
]


class TestIsApplicable:
    def test_internal_financing_review_for_internal_financing(self, make_order):
        order = make_order(
            payment_method=PaymentMethod.FINANCING,
            financiamento_tipo=FinancingType.INTERNAL,
        )
        assert is_applicable(order, Stage.INTERNAL_FINANCING_REVIEW)

    def test_internal_financing_review_not_for_external_financing(self, make_order):
        order = make_order(
            payment_method=PaymentMethod.FINANCING,
            financiamento_tipo=FinancingType.EXTERNAL,
        )
        assert not is_applicable(order, Stage.INTERNAL_FINANCING_REVIEW)

    def test_internal_financing_review_not_for_pix(self, make_order):
        assert not is_applicable(make_order(), Stage.INTERNAL_FINANCING_REVIEW)

    @pytest.mark.parametrize("stage", FACTORY_STAGES)
    def test_factory_stages_only_for_factory_orders(self, make_order, stage):
        assert is_applicable(make_order(order_type=OrderType.FACTORY_ORDERED), stage)
        assert not is_applicable(make_order(order_type=OrderType.STOCK), stage)

    def test_client_documentation_not_for_factory_orders(self, make_order):
        factory = make_order(order_type=OrderType.FACTORY_ORDERED)
        stock = make_order(order_type=OrderType.STOCK)
        assert not is_applicable(factory, Stage.CLIENT_DOCUMENTATION)
        assert is_applicable(stock, Stage.CLIENT_DOCUMENTATION)

    @pytest.mark.parametrize(
        "stage",
        [Stage.CREATED, Stage.INVOICE, Stage.PAYMENT, Stage.YARD, Stage.COMPLETED],
    )
    def test_common_stages_always_apply(self, make_order, stage):
        assert is_applicable(make_order(), stage)
        assert is_applicable(make_order(order_type=OrderType.FACTORY_ORDERED), stage)

    def test_unknown_stage_is_not_rejected_here(self, make_order):
        assert is_applicable(make_order(), "shipping")


class TestApplicableStages:
    def test_stock_pix_timeline(self, make_order):
        ids = [info.id for info in applicable_stages(make_order())]
        assert ids == [
            "created",
            "client-documentation",
            "invoice",
            "payment",
            "registration",
            "scheduling",
            "yard",
            "delivery",
            "evaluation",
            "completed",
        ]

    def test_factory_internal_financing_timeline(self, make_order):
        order = make_order(
            order_type=OrderType.FACTORY_ORDERED,
            payment_method=PaymentMethod.FINANCING,
            financiamento_tipo=FinancingType.INTERNAL,
        )
        ids = [info.id for info in applicable_stages(order)]
        assert ids[:5] == [
            "created",
            "internal-financing-review",
            "factory-documentation",
            "factory-ordered",
            "factory-invoiced",
        ]
        assert "client-documentation" not in ids

    def test_cancelled_listed_only_for_cancelled_orders(self, make_order):
        active = [info.id for info in applicable_stages(make_order())]
        cancelled = [
            info.id
            for info in applicable_stages(make_order(current_status=Stage.CANCELLED))
        ]
        assert "cancelled" not in active
        assert cancelled[-1] == "cancelled"


class TestNextApplicableStage:
    def test_skips_inapplicable_stages_for_stock_order(self, make_order):
        info = next_applicable_stage(make_order(), Stage.CREATED)
        assert info.id == Stage.CLIENT_DOCUMENTATION

    def test_factory_order_goes_to_factory_track(self, make_order):
        order = make_order(order_type=OrderType.FACTORY_ORDERED)
        assert next_applicable_stage(order, Stage.CREATED).id == (
            Stage.FACTORY_DOCUMENTATION
        )
        assert next_applicable_stage(order, Stage.FACTORY_INVOICED).id == (
            Stage.INVOICE
        )

    def test_completed_has_no_next_stage(self, make_order):
        assert next_applicable_stage(make_order(), Stage.COMPLETED) is None

    def test_never_yields_cancelled(self, make_order):
        assert next_applicable_stage(make_order(), Stage.EVALUATION).id == (
            Stage.COMPLETED
        )

    def test_unknown_current_stage(self, make_order):
        assert next_applicable_stage(make_order(), "shipping") is None
