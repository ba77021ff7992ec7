"""Testes de integração para configuração do Celery e tasks de pedidos."""

import pytest
from django.core import mail

pytestmark = pytest.mark.integration


@pytest.fixture(autouse=True)
def _celery_eager(settings):
    """Executa tasks de forma síncrona no processo de teste."""
    settings.CELERY_TASK_ALWAYS_EAGER = True
    settings.CELERY_TASK_EAGER_PROPAGATES = True


class TestCeleryConfig:
    """Verifica que o Celery carrega corretamente via Django."""

    def test_celery_app_is_importable(self):
        from config.celery import app

        assert app.main == "veiculo_track"

    def test_celery_app_exported_from_init(self):
        from config import celery_app

        assert celery_app.main == "veiculo_track"

    def test_celery_serializer_is_json(self, settings):
        assert settings.CELERY_TASK_SERIALIZER == "json"
        assert settings.CELERY_RESULT_SERIALIZER == "json"
        assert settings.CELERY_ACCEPT_CONTENT == ["json"]

    def test_celery_timezone_matches_django(self, settings):
        assert settings.CELERY_TIMEZONE == settings.TIME_ZONE

    def test_expired_evaluations_scheduled(self, settings):
        tasks = {
            entry["task"] for entry in settings.CELERY_BEAT_SCHEDULE.values()
        }
        assert "orders.complete_expired_evaluations" in tasks


class TestNotificationTask:
    """Verifica o envio de e-mail em modo eager."""

    def test_sends_email(self):
        from modules.orders.tasks import send_notification_email

        result = send_notification_email.delay(
            "cliente@example.com", "Pedido Confirmado", "Olá"
        )

        assert result.get() == {"status": "sent", "to": "cliente@example.com"}
        assert len(mail.outbox) == 1
        assert mail.outbox[0].to == ["cliente@example.com"]
        assert mail.outbox[0].subject == "Pedido Confirmado"

    def test_registered_name(self):
        from modules.orders.tasks import send_notification_email

        assert send_notification_email.name == "orders.send_notification_email"
