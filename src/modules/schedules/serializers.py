"""Schedule DRF serializers for API input/output."""

from __future__ import annotations

from rest_framework import serializers

from modules.schedules.constants import DEFAULT_TIME_SLOTS
from modules.schedules.models import ScheduleSlot


class ScheduleSlotSerializer(serializers.ModelSerializer):
    class Meta:
        model = ScheduleSlot
        fields = [
            "id",
            "date",
            "time",
            "is_booked",
            "is_blocked",
            "booked_by_order",
            "booked_by_client",
            "created_at",
        ]
        read_only_fields = fields


class AvailableSlotSerializer(serializers.ModelSerializer):
    """Public view of an open slot (no booking details)."""

    class Meta:
        model = ScheduleSlot
        fields = ["id", "date", "time"]
        read_only_fields = fields


class CreateSlotSerializer(serializers.Serializer):
    date = serializers.DateField()
    time = serializers.CharField(max_length=5)
    is_blocked = serializers.BooleanField(default=False)


class BulkCreateSlotsSerializer(serializers.Serializer):
    date = serializers.DateField()
    times = serializers.ListField(
        child=serializers.CharField(max_length=5),
        required=False,
        default=list(DEFAULT_TIME_SLOTS),
        allow_empty=False,
    )


class BlockSlotSerializer(serializers.Serializer):
    blocked = serializers.BooleanField()


class BookSlotSerializer(serializers.Serializer):
    tracking_code = serializers.CharField(max_length=12)
    slot_id = serializers.UUIDField()
