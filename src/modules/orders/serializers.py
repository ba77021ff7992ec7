"""Order DRF serializers for API input/output.

The serializer operates at the Interface layer (API Views).
Business logic lives in the Service Layer, which receives
Pydantic DTOs from ``dtos.py``.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.orders.constants import (
    TERMINAL_STAGES,
    ClientType,
    FinancingType,
    KinshipType,
    OrderType,
    PaymentMethod,
    Stage,
)
from modules.orders.models import ActionLog, Order
from modules.orders.services import UPDATABLE_FIELDS
from modules.orders.workflow.applicability import applicable_stages

# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class CreateOrderSerializer(serializers.Serializer):
    """Validates the order creation request payload."""

    order_type = serializers.ChoiceField(
        choices=OrderType.choices, default=OrderType.STOCK
    )
    client_type = serializers.ChoiceField(
        choices=ClientType.choices, default=ClientType.INDIVIDUAL
    )
    client_name = serializers.CharField(max_length=200)
    client_email = serializers.EmailField()
    client_phone = serializers.CharField(max_length=30)
    client_document = serializers.CharField(
        max_length=20, required=False, default="", allow_blank=True
    )
    vehicle_model = serializers.CharField(max_length=120)
    vehicle_color = serializers.CharField(max_length=60)
    vehicle_year = serializers.CharField(
        max_length=9, required=False, default="", allow_blank=True
    )

    payment_method = serializers.ChoiceField(
        choices=PaymentMethod.choices, default=PaymentMethod.PIX
    )
    financiamento_tipo = serializers.ChoiceField(
        choices=FinancingType.choices, required=False, allow_null=True
    )
    financiamento_valor_total = serializers.DecimalField(
        max_digits=12, decimal_places=2, required=False, allow_null=True
    )
    financiamento_entrada = serializers.DecimalField(
        max_digits=12, decimal_places=2, required=False, allow_null=True
    )
    financiamento_parcelas = serializers.IntegerField(
        min_value=1, required=False, allow_null=True
    )
    has_entrada = serializers.BooleanField(default=False)
    entrada_valor = serializers.DecimalField(
        max_digits=12, decimal_places=2, required=False, allow_null=True
    )

    has_trade_in = serializers.BooleanField(default=False)
    trade_in_plate = serializers.CharField(
        max_length=10, required=False, allow_null=True, allow_blank=True
    )
    trade_in_owner_is_buyer = serializers.BooleanField(
        required=False, allow_null=True, default=None
    )
    trade_in_has_bonus = serializers.BooleanField(
        required=False, allow_null=True, default=None
    )
    trade_in_parentesco_type = serializers.ChoiceField(
        choices=KinshipType.choices, required=False, allow_null=True
    )
    trade_in_no_recent_transfer = serializers.BooleanField(default=False)


class UpdateOrderFieldsSerializer(serializers.ModelSerializer):
    """Partial update of the operational (form) fields.

    Workflow fields are rejected here; stage changes go through
    ``/advance/`` and ``/cancel/``.
    """

    class Meta:
        model = Order
        fields = sorted(UPDATABLE_FIELDS)

    def validate(self, attrs):
        unknown = sorted(set(self.initial_data) - set(self.fields))
        if unknown:
            raise serializers.ValidationError(
                {field: "This field cannot be updated." for field in unknown}
            )
        return attrs


class AdvanceSerializer(serializers.Serializer):
    target = serializers.CharField(max_length=40)


class CancelSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=1000)


class EvaluationSerializer(serializers.Serializer):
    tracking_code = serializers.CharField(max_length=12)
    rating = serializers.IntegerField(min_value=1, max_value=5)
    comment = serializers.CharField(required=False, default="", allow_blank=True)


# ---------------------------------------------------------------------------
# Output Serializers (Read)
# ---------------------------------------------------------------------------


class StageInfoSerializer(serializers.Serializer):
    id = serializers.CharField()
    label = serializers.CharField()
    icon = serializers.CharField()


class ActionLogSerializer(serializers.ModelSerializer):
    class Meta:
        model = ActionLog
        fields = [
            "id",
            "action",
            "actor_email",
            "actor_name",
            "details",
            "created_at",
        ]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    """Full read serializer, including the applicable stage timeline."""

    stages = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = "__all__"
        read_only_fields = [f.name for f in Order._meta.fields]

    def get_stages(self, obj: Order) -> list[dict]:
        return StageInfoSerializer(applicable_stages(obj), many=True).data


class OrderListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for order list."""

    class Meta:
        model = Order
        fields = [
            "id",
            "tracking_code",
            "client_name",
            "vehicle_model",
            "order_type",
            "payment_method",
            "current_status",
            "status_publico",
            "trade_in_requires_manager_approval",
            "trade_in_manager_approved",
            "created_at",
        ]
        read_only_fields = fields


class PublicTrackingSerializer(serializers.ModelSerializer):
    """What the client sees on the public tracking page."""

    stages = serializers.SerializerMethodField()
    can_schedule = serializers.SerializerMethodField()
    can_evaluate = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = [
            "tracking_code",
            "client_name",
            "vehicle_model",
            "vehicle_color",
            "current_status",
            "status_publico",
            "status_history",
            "scheduled_date",
            "scheduled_time",
            "avaliacao_estrelas",
            "avaliacao_prazo_limite",
            "stages",
            "can_schedule",
            "can_evaluate",
        ]
        read_only_fields = fields

    def get_stages(self, obj: Order) -> list[dict]:
        return StageInfoSerializer(applicable_stages(obj), many=True).data

    def get_can_schedule(self, obj: Order) -> bool:
        return bool(
            obj.delivery_scheduling_released
            and not obj.scheduled_date
            and obj.current_status not in TERMINAL_STAGES
        )

    def get_can_evaluate(self, obj: Order) -> bool:
        return obj.current_status == Stage.EVALUATION and not obj.avaliacao_data
