"""Schedule API views.

Staff manage the delivery calendar through ``ScheduleSlotViewSet``;
clients list open slots and book one with their tracking code through
the public views.
"""

from __future__ import annotations

from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework.viewsets import GenericViewSet

from modules.orders.exceptions import OrderNotFound, WorkflowError
from modules.orders.repositories import OrderDjangoRepository
from modules.orders.serializers import PublicTrackingSerializer
from modules.orders.views import build_workflow_engine, workflow_error_response
from modules.schedules.dtos import BookSlotDTO, BulkCreateSlotsDTO, CreateSlotDTO
from modules.schedules.exceptions import (
    BookingNotAllowed,
    DuplicateSlots,
    SlotNotFound,
    SlotUnavailable,
)
from modules.schedules.models import ScheduleSlot
from modules.schedules.repositories import ScheduleDjangoRepository
from modules.schedules.serializers import (
    AvailableSlotSerializer,
    BlockSlotSerializer,
    BookSlotSerializer,
    BulkCreateSlotsSerializer,
    CreateSlotSerializer,
    ScheduleSlotSerializer,
)
from modules.schedules.services import ScheduleService


def build_schedule_service() -> ScheduleService:
    return ScheduleService(
        schedule_repository=ScheduleDjangoRepository(),
        order_repository=OrderDjangoRepository(),
        engine=build_workflow_engine(),
    )


def _slot_not_found() -> Response:
    return Response(
        {"detail": "Schedule slot not found."}, status=status.HTTP_404_NOT_FOUND
    )


class ScheduleSlotViewSet(GenericViewSet):
    """Delivery calendar administration."""

    queryset = ScheduleSlot.objects.all()
    serializer_class = ScheduleSlotSerializer

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = build_schedule_service()

    def list(self, request: Request) -> Response:
        """GET /api/v1/schedules/"""
        slots = self._service.list_slots()
        return Response(ScheduleSlotSerializer(slots, many=True).data)

    def create(self, request: Request) -> Response:
        """POST /api/v1/schedules/"""
        serializer = CreateSlotSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            dto = CreateSlotDTO(**serializer.validated_data)
        except (PydanticValidationError, ValueError) as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        try:
            slot = self._service.create_slot(dto)
        except DuplicateSlots as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_409_CONFLICT)

        return Response(
            ScheduleSlotSerializer(slot).data, status=status.HTTP_201_CREATED
        )

    @action(detail=False, methods=["post"])
    def bulk(self, request: Request) -> Response:
        """POST /api/v1/schedules/bulk/ ``{"date": ..., "times": [...]}``"""
        serializer = BulkCreateSlotsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            dto = BulkCreateSlotsDTO(
                date=serializer.validated_data["date"],
                times=tuple(serializer.validated_data["times"]),
            )
        except (PydanticValidationError, ValueError) as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        try:
            slots = self._service.bulk_create(dto)
        except DuplicateSlots as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_409_CONFLICT)

        return Response(
            ScheduleSlotSerializer(slots, many=True).data,
            status=status.HTTP_201_CREATED,
        )

    @action(detail=True, methods=["post"])
    def block(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/schedules/{pk}/block/ ``{"blocked": true|false}``"""
        serializer = BlockSlotSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            slot = self._service.set_blocked(pk, serializer.validated_data["blocked"])
        except SlotNotFound:
            return _slot_not_found()
        return Response(ScheduleSlotSerializer(slot).data)

    def destroy(self, request: Request, pk: str | None = None) -> Response:
        """DELETE /api/v1/schedules/{pk}/"""
        try:
            self._service.delete_slot(pk)
        except SlotNotFound:
            return _slot_not_found()
        except SlotUnavailable as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_409_CONFLICT)
        return Response(status=status.HTTP_204_NO_CONTENT)


class AvailableSlotsView(APIView):
    """GET /api/v1/public/schedules/available/"""

    permission_classes = [AllowAny]
    authentication_classes: list = []
    throttle_scope = "public_tracking"

    def get(self, request: Request) -> Response:
        slots = build_schedule_service().list_available()
        return Response(AvailableSlotSerializer(slots, many=True).data)


class BookSlotView(APIView):
    """POST /api/v1/public/schedules/book/ ``{"tracking_code", "slot_id"}``"""

    permission_classes = [AllowAny]
    authentication_classes: list = []
    throttle_scope = "public_tracking"

    def post(self, request: Request) -> Response:
        serializer = BookSlotSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            dto = BookSlotDTO(**serializer.validated_data)
        except (PydanticValidationError, ValueError) as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        try:
            order = build_schedule_service().book_slot(dto)
        except OrderNotFound:
            return Response(
                {"detail": "Order not found."}, status=status.HTTP_404_NOT_FOUND
            )
        except SlotNotFound:
            return _slot_not_found()
        except BookingNotAllowed as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        except SlotUnavailable as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_409_CONFLICT)
        except WorkflowError as exc:
            return workflow_error_response(exc)

        return Response(PublicTrackingSerializer(order).data)
