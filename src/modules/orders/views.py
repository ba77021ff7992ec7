"""Order API views.

Exposes the ``OrderService`` via HTTP using DRF ViewSets.
Domain exceptions are caught and translated into appropriate
HTTP status codes; the view never swallows generic exceptions.

Staff endpoints (JWT) live on ``OrderViewSet``; the client-facing
tracking lookup and evaluation are public.
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter, SearchFilter
from rest_framework.permissions import AllowAny
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.views import APIView
from rest_framework.viewsets import GenericViewSet

from modules.core.pagination import StandardResultsSetPagination
from modules.orders.dtos import Actor, CreateOrderDTO, SubmitEvaluationDTO
from modules.orders.exceptions import (
    EvaluationNotAllowed,
    InapplicableStageError,
    OrderNotCancellable,
    OrderNotFound,
    ReadOnlyOrderField,
    StageValidationError,
    StaleOrderState,
    TradeInApprovalNotRequired,
    UnknownStageError,
    WorkflowError,
)
from modules.orders.filters import OrderFilter
from modules.orders.models import Order
from modules.orders.notifications import CeleryEmailSender
from modules.orders.repositories import ActionLogDjangoRepository, OrderDjangoRepository
from modules.orders.serializers import (
    ActionLogSerializer,
    AdvanceSerializer,
    CancelSerializer,
    CreateOrderSerializer,
    EvaluationSerializer,
    OrderListSerializer,
    OrderSerializer,
    PublicTrackingSerializer,
    StageInfoSerializer,
    UpdateOrderFieldsSerializer,
)
from modules.orders.services import OrderService
from modules.orders.workflow.engine import WorkflowEngine
from modules.schedules.repositories import ScheduleDjangoRepository


def build_workflow_engine() -> WorkflowEngine:
    """Engine wired with the Django repositories and Celery e-mail sender."""
    return WorkflowEngine(
        order_repository=OrderDjangoRepository(),
        action_log_repository=ActionLogDjangoRepository(),
        schedule_repository=ScheduleDjangoRepository(),
        notification_sender=CeleryEmailSender(),
    )


def build_order_service() -> OrderService:
    return OrderService(
        order_repository=OrderDjangoRepository(),
        action_log_repository=ActionLogDjangoRepository(),
        engine=build_workflow_engine(),
        notification_sender=CeleryEmailSender(),
    )


def _not_found() -> Response:
    return Response({"detail": "Order not found."}, status=status.HTTP_404_NOT_FOUND)


def workflow_error_response(exc: WorkflowError) -> Response:
    """Translate a rejected transition into an HTTP response."""
    if isinstance(exc, StageValidationError):
        return Response(
            {"detail": exc.reason, "stage": str(exc.stage)},
            status=status.HTTP_400_BAD_REQUEST,
        )
    if isinstance(exc, (InapplicableStageError, UnknownStageError)):
        return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
    if isinstance(exc, (StaleOrderState, OrderNotCancellable)):
        return Response({"detail": str(exc)}, status=status.HTTP_409_CONFLICT)
    raise exc


class OrderViewSet(GenericViewSet):
    """ViewSet for Order operations.

    Uses ``OrderService`` with injected repositories (DIP).
    Does **not** extend ``ModelViewSet``; all ORM access goes through
    the service/repository layer.
    """

    queryset = Order.objects.all()
    filterset_class = OrderFilter
    search_fields = ["tracking_code", "client_name", "vehicle_model"]
    ordering_fields = ["created_at", "current_status", "scheduled_date"]
    ordering = ["-created_at", "-id"]
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = build_order_service()

    def get_throttles(self) -> list[BaseThrottle]:
        """Define escopos de throttling por ação."""
        throttle_scope: str | None
        if self.action == "create":
            throttle_scope = "order_creation"
        elif self.action in {"list", "retrieve"}:
            throttle_scope = "order_listing"
        else:
            throttle_scope = None
        self.throttle_scope = throttle_scope
        return super().get_throttles()

    def _actor(self, request: Request) -> Actor:
        return Actor.from_user(request.user)

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create(self, request: Request) -> Response:
        """POST /api/v1/orders/"""
        create_serializer = CreateOrderSerializer(data=request.data)
        create_serializer.is_valid(raise_exception=True)

        try:
            dto = CreateOrderDTO(**create_serializer.validated_data)
        except (PydanticValidationError, ValueError) as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        order = self._service.create_order(dto, self._actor(request))
        out = OrderSerializer(order)
        return Response(out.data, status=status.HTTP_201_CREATED)

    # ------------------------------------------------------------------
    # List / Retrieve
    # ------------------------------------------------------------------

    def get_queryset(self):
        return OrderDjangoRepository().queryset()

    def list(self, request: Request) -> Response:
        """GET /api/v1/orders/

        Filtering (stage, type, payment method, dates) is handled by
        ``OrderFilter``; ordering by ``OrderingFilter``.  Results are
        paginated.
        """
        queryset = self.filter_queryset(self.get_queryset())

        paginator = StandardResultsSetPagination()
        page = paginator.paginate_queryset(queryset, request)
        serializer = OrderListSerializer(page, many=True)
        return paginator.get_paginated_response(serializer.data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/"""
        try:
            order = self._service.get_order(pk)
        except OrderNotFound:
            return _not_found()
        return Response(OrderSerializer(order).data)

    # ------------------------------------------------------------------
    # Field update (forms)
    # ------------------------------------------------------------------

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/orders/{pk}/

        Updates operational fields only.  Stage changes use
        ``/advance/``, ``/complete/`` and ``/cancel/``.
        """
        serializer = UpdateOrderFieldsSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        try:
            order = self._service.update_fields(
                pk, dict(serializer.validated_data), self._actor(request)
            )
        except OrderNotFound:
            return _not_found()
        except ReadOnlyOrderField as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(OrderSerializer(order).data)

    # ------------------------------------------------------------------
    # Workflow
    # ------------------------------------------------------------------

    @action(detail=True, methods=["post"])
    def advance(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/advance/ ``{"target": "<stage id>"}``"""
        serializer = AdvanceSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            order = self._service.advance(
                pk, serializer.validated_data["target"], self._actor(request)
            )
        except OrderNotFound:
            return _not_found()
        except WorkflowError as exc:
            return workflow_error_response(exc)

        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["post"])
    def complete(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/complete/"""
        try:
            order = self._service.complete(pk, self._actor(request))
        except OrderNotFound:
            return _not_found()
        except WorkflowError as exc:
            return workflow_error_response(exc)

        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["post"])
    def cancel(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/cancel/ ``{"reason": "..."}``

        Releases the booked delivery slot, if any.
        """
        serializer = CancelSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            order = self._service.cancel(
                pk, serializer.validated_data["reason"], self._actor(request)
            )
        except OrderNotFound:
            return _not_found()
        except WorkflowError as exc:
            return workflow_error_response(exc)

        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["get"], url_path="next-stage")
    def next_stage(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/next-stage/"""
        try:
            suggestion = self._service.suggest_next(pk)
        except OrderNotFound:
            return _not_found()

        return Response(
            {
                key: StageInfoSerializer(info).data if info else None
                for key, info in suggestion.items()
            }
        )

    @action(detail=True, methods=["get"])
    def actions(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/actions/ (audit trail)"""
        try:
            logs = self._service.action_logs(pk)
        except OrderNotFound:
            return _not_found()
        return Response(ActionLogSerializer(logs, many=True).data)

    # ------------------------------------------------------------------
    # Trade-in approval
    # ------------------------------------------------------------------

    @action(detail=True, methods=["post"], url_path="approve-trade-in")
    def approve_trade_in(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/approve-trade-in/"""
        try:
            order = self._service.approve_trade_in(pk, self._actor(request))
        except OrderNotFound:
            return _not_found()
        except TradeInApprovalNotRequired as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(OrderSerializer(order).data)

    @action(detail=False, methods=["get"], url_path="pending-approvals")
    def pending_approvals(self, request: Request) -> Response:
        """GET /api/v1/orders/pending-approvals/"""
        orders = self._service.pending_trade_in_approvals()
        return Response(OrderListSerializer(orders, many=True).data)


# ---------------------------------------------------------------------------
# Public (client-facing) endpoints
# ---------------------------------------------------------------------------


class PublicTrackingView(APIView):
    """GET /api/v1/public/tracking/{code}/"""

    permission_classes = [AllowAny]
    authentication_classes: list = []
    throttle_scope = "public_tracking"

    def get(self, request: Request, code: str) -> Response:
        try:
            order = build_order_service().get_by_tracking_code(code)
        except OrderNotFound:
            return _not_found()
        return Response(PublicTrackingSerializer(order).data)


class EvaluationView(APIView):
    """POST /api/v1/public/evaluations/

    ``{"tracking_code": "VEH-...", "rating": 1-5, "comment": "..."}``
    """

    permission_classes = [AllowAny]
    authentication_classes: list = []
    throttle_scope = "public_tracking"

    def post(self, request: Request) -> Response:
        serializer = EvaluationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            dto = SubmitEvaluationDTO(**serializer.validated_data)
        except (PydanticValidationError, ValueError) as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        try:
            order = build_order_service().submit_evaluation(dto)
        except OrderNotFound:
            return _not_found()
        except EvaluationNotAllowed as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        except WorkflowError as exc:
            return workflow_error_response(exc)

        return Response(PublicTrackingSerializer(order).data)
