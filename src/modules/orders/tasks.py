"""Tarefas assíncronas do módulo de pedidos."""

import structlog
from celery import shared_task

from modules.orders.notifications import DjangoEmailSender, EmailMessage

logger = structlog.get_logger(__name__)


@shared_task(name="orders.send_notification_email")
def send_notification_email(to: str, subject: str, body: str) -> dict:
    """Envia um e-mail de notificação de pedido."""
    DjangoEmailSender().send_email(EmailMessage(to=to, subject=subject, body=body))
    logger.info("send_notification_email.executed", to=to)
    return {"status": "sent", "to": to}


@shared_task(name="orders.complete_expired_evaluations")
def complete_expired_evaluations() -> dict:
    """Conclui pedidos cujo prazo de avaliação expirou sem resposta."""
    from modules.orders.views import build_order_service

    completed = build_order_service().complete_expired_evaluations()
    logger.info("complete_expired_evaluations.executed", count=len(completed))
    return {"status": "ok", "completed": [o.tracking_code for o in completed]}
