"""Outbound e-mail notifications for order events.

Message builders turn an order into an ``EmailMessage`` (or ``None``
when nothing should be sent).  Senders deliver messages:

- ``CeleryEmailSender`` enqueues ``orders.send_notification_email``
  (default for the API).
- ``DjangoEmailSender`` sends synchronously through ``send_mail``
  (used by the task itself).

Callers treat every send as best-effort.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Protocol

import structlog
from django.conf import settings
from django.core.mail import send_mail

from modules.orders.constants import Stage

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class EmailMessage:
    to: str
    subject: str
    body: str


class INotificationSender(Protocol):
    """Delivers e-mail messages.  Implementations may raise on failure."""

    def send_email(self, message: EmailMessage) -> None: ...


# ---------------------------------------------------------------------------
# Senders
# ---------------------------------------------------------------------------


class DjangoEmailSender:
    def send_email(self, message: EmailMessage) -> None:
        send_mail(
            subject=message.subject,
            message=message.body,
            from_email=settings.DEFAULT_FROM_EMAIL,
            recipient_list=[message.to],
            fail_silently=False,
        )
        logger.info("notification.sent", to=message.to, subject=message.subject)


class CeleryEmailSender:
    def send_email(self, message: EmailMessage) -> None:
        from modules.orders.tasks import send_notification_email

        send_notification_email.delay(message.to, message.subject, message.body)
        logger.info("notification.enqueued", to=message.to, subject=message.subject)


# ---------------------------------------------------------------------------
# Message builders
# ---------------------------------------------------------------------------


def _tracking_url(path: str, order: Any) -> str:
    return f"{settings.APP_BASE_URL}/{path}?code={order.tracking_code}"


def build_stage_change_email(order: Any, stage: str) -> Optional[EmailMessage]:
    """Client e-mail announcing ``stage``; ``None`` for silent stages."""
    if not order.client_email:
        return None

    greeting = f"Olá {order.client_name},\n\n"
    if stage == Stage.CREATED:
        subject = "Pedido Confirmado"
        body = (
            f"{greeting}Seu pedido foi confirmado!\n\n"
            f"Veículo: {order.vehicle_model}\nCódigo: {order.tracking_code}\n\n"
            f"Acompanhe: {_tracking_url('tracking', order)}"
        )
    elif stage == Stage.INVOICE:
        subject = "Nota Fiscal Emitida"
        body = (
            f"{greeting}A nota fiscal foi emitida!\n\n"
            f"Número: {order.nf_numero}\nChave: {order.nf_chave_acesso}"
        )
    elif stage == Stage.PAYMENT:
        subject = "Pagamento Confirmado"
        body = (
            f"{greeting}Seu pagamento foi confirmado!\n\n"
            f"Acompanhe: {_tracking_url('tracking', order)}"
        )
    elif stage == Stage.SCHEDULING:
        subject = "Veículo Pronto!"
        body = (
            f"{greeting}Seu {order.vehicle_model} está pronto!\n\n"
            f"Agende: {_tracking_url('pedido', order)}"
        )
    elif stage == Stage.YARD:
        subject = "Entrega Agendada"
        body = (
            f"{greeting}Sua entrega foi agendada!\n\n"
            f"Data: {order.scheduled_date}\nHorário: {order.scheduled_time}"
        )
    elif stage == Stage.DELIVERY:
        subject = "Entrega Realizada"
        body = (
            f"{greeting}Parabéns! Seu veículo foi entregue!\n\n"
            f"Avalie: {_tracking_url('avaliacao', order)}"
        )
    else:
        return None

    return EmailMessage(to=order.client_email, subject=subject, body=body)


def build_cancellation_email(order: Any, reason: str) -> Optional[EmailMessage]:
    if not order.client_email:
        return None
    return EmailMessage(
        to=order.client_email,
        subject="Pedido Cancelado",
        body=(
            f"Olá {order.client_name},\n\nSeu pedido foi cancelado.\n\n"
            f"Motivo: {reason}\nCódigo: {order.tracking_code}"
        ),
    )


def build_trade_in_approval_email(order: Any) -> EmailMessage:
    """Manager alert for a bonus trade-in owned by a relative of the buyer."""
    return EmailMessage(
        to=settings.MANAGER_NOTIFICATION_EMAIL,
        subject="URGENTE: Aprovação de Trade-In Necessária",
        body=(
            "Olá Gerente,\n\n"
            "Um novo pedido requer sua aprovação urgente:\n\n"
            f"Pedido: {order.tracking_code}\n"
            f"Cliente: {order.client_name}\n"
            f"Veículo: {order.vehicle_model}\n\n"
            "MOTIVO: Veículo usado com bônus em nome de terceiro\n\n"
            f"Parentesco: {order.trade_in_parentesco_type}\n"
            f"Placa usado: {order.trade_in_plate}\n\n"
            f"Acesse: {settings.APP_BASE_URL}/orderdetails?id={order.id}"
        ),
    )


def dispatch_best_effort(
    sender: INotificationSender, message: Optional[EmailMessage], **context: Any
) -> bool:
    """Send ``message`` swallowing any failure; return whether it was sent."""
    if message is None:
        return False
    try:
        sender.send_email(message)
    except Exception:
        logger.warning(
            "order.notification_failed",
            subject=message.subject,
            exc_info=True,
            **context,
        )
        return False
    return True
