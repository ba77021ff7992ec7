"""Schedule service layer (Use Cases).

Slot administration for the delivery calendar and client booking.

Business rules enforced:
- a date/time pair exists at most once; bulk creation skips existing
  times and fails when nothing is left to create.
- booked slots cannot be deleted.
- booking requires an open (not terminal) order released for
  scheduling and still without a delivery date; the slot must be open
  and not in the past.  Booking stores date/time/slot on the order and,
  when the order is at ``scheduling``, advances it to ``yard`` through
  the workflow engine, all in one transaction.
"""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING, List, Optional

import structlog
from django.db import transaction
from django.utils import timezone

from modules.orders.constants import TERMINAL_STAGES, Stage
from modules.orders.dtos import SYSTEM_ACTOR, Actor
from modules.orders.exceptions import OrderNotFound
from modules.schedules.exceptions import (
    BookingNotAllowed,
    DuplicateSlots,
    SlotNotFound,
    SlotUnavailable,
)

if TYPE_CHECKING:
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.orders.workflow.engine import WorkflowEngine
    from modules.schedules.dtos import BookSlotDTO, BulkCreateSlotsDTO, CreateSlotDTO
    from modules.schedules.models import ScheduleSlot
    from modules.schedules.repositories.interfaces import IScheduleRepository

logger = structlog.get_logger(__name__)


class ScheduleService:
    """Application service for delivery slots.

    Receives its repositories and the workflow engine via constructor
    injection (DIP).
    """

    def __init__(
        self,
        schedule_repository: IScheduleRepository,
        order_repository: Optional[IOrderRepository] = None,
        engine: Optional[WorkflowEngine] = None,
    ) -> None:
        self._repo = schedule_repository
        self._order_repo = order_repository
        self._engine = engine

    # ------------------------------------------------------------------
    # Slot administration
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_slot(self, dto: CreateSlotDTO) -> ScheduleSlot:
        """Raises ``DuplicateSlots`` if the date/time already exists."""
        if dto.time in self._repo.times_for_date(dto.date):
            raise DuplicateSlots(f"Slot {dto.date} {dto.time} already exists.")
        return self._repo.create(
            {"date": dto.date, "time": dto.time, "is_blocked": dto.is_blocked}
        )

    @transaction.atomic
    def bulk_create(self, dto: BulkCreateSlotsDTO) -> List[ScheduleSlot]:
        """Create the missing times for a date.

        Raises:
            DuplicateSlots: every time already exists for the date.
        """
        existing = set(self._repo.times_for_date(dto.date))
        new_times = [t for t in dto.times if t not in existing]
        if not new_times:
            raise DuplicateSlots("Todos os horários já existem para esta data")
        return self._repo.bulk_create(dto.date, new_times)

    def set_blocked(self, slot_id: str, blocked: bool) -> ScheduleSlot:
        self.get_slot(slot_id)
        slot = self._repo.update(slot_id, {"is_blocked": blocked})
        event = "schedule.slot_blocked" if blocked else "schedule.slot_unblocked"
        logger.info(event, slot_id=str(slot_id))
        return slot

    @transaction.atomic
    def delete_slot(self, slot_id: str) -> None:
        """Raises ``SlotUnavailable`` for booked slots."""
        slot = self.get_slot(slot_id)
        if slot.is_booked:
            raise SlotUnavailable("Booked slots cannot be removed.")
        self._repo.delete(slot_id)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_slot(self, slot_id: str) -> ScheduleSlot:
        slot = self._repo.get_by_id(slot_id)
        if not slot:
            raise SlotNotFound(f"Schedule slot {slot_id} not found.")
        return slot

    def list_slots(self) -> List[ScheduleSlot]:
        return self._repo.list("date")

    def list_available(self, from_date: Optional[date] = None) -> List[ScheduleSlot]:
        """Open slots from ``from_date`` (default: today) onwards."""
        return self._repo.list_available(from_date or timezone.localdate())

    # ------------------------------------------------------------------
    # Booking
    # ------------------------------------------------------------------

    @transaction.atomic
    def book_slot(self, dto: BookSlotDTO, actor: Actor = SYSTEM_ACTOR) -> Order:
        """Book a delivery slot for the order identified by its tracking code.

        Raises:
            OrderNotFound: unknown tracking code.
            BookingNotAllowed: the order cannot be scheduled now.
            SlotNotFound: unknown slot.
            SlotUnavailable: the slot is booked, blocked or in the past.
            StageValidationError / StaleOrderState: from the engine.
        """
        order = self._order_repo.get_by_tracking_code(dto.tracking_code)
        if not order:
            raise OrderNotFound(f"Order {dto.tracking_code} not found.")

        log = logger.bind(order_id=str(order.id), tracking_code=order.tracking_code)

        if not order.delivery_scheduling_released:
            raise BookingNotAllowed("Agendamento ainda não foi liberado")
        if order.scheduled_date:
            raise BookingNotAllowed("Entrega já está agendada")
        if order.current_status in TERMINAL_STAGES:
            raise BookingNotAllowed("Pedido encerrado")

        slot = self._repo.get_for_update(str(dto.slot_id))
        if not slot:
            raise SlotNotFound(f"Schedule slot {dto.slot_id} not found.")
        if not slot.is_available or slot.date < timezone.localdate():
            log.warning("schedule.slot_unavailable", slot_id=str(slot.id))
            raise SlotUnavailable("Horário indisponível")

        self._repo.update(
            slot.id,
            {
                "is_booked": True,
                "booked_by_order": order.id,
                "booked_by_client": dto.client_name or order.client_name,
            },
        )
        order = self._order_repo.update(
            order.id,
            {
                "scheduled_date": slot.date,
                "scheduled_time": slot.time,
                "previous_schedule_id": slot.id,
            },
            expected_status=order.current_status,
        )
        log.info("schedule.slot_booked", slot_id=str(slot.id))
        if order.current_status == Stage.SCHEDULING:
            return self._engine.advance(order, Stage.YARD, actor)
        return order
