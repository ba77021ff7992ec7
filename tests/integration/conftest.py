import pytest

from modules.orders.dtos import Actor, CreateOrderDTO
from modules.orders.views import build_order_service
from modules.schedules.views import build_schedule_service

STAFF_ACTOR = Actor(email="vendedor@example.com", name="Vera Vendas")


@pytest.fixture()
def order_service():
    return build_order_service()


@pytest.fixture()
def schedule_service():
    return build_schedule_service()


@pytest.fixture()
def order_payload():
    return {
        "client_name": "Maria Silva",
        "client_email": "maria@example.com",
        "client_phone": "(11) 99999-0000",
        "vehicle_model": "Onix LT",
        "vehicle_color": "Branco",
    }


@pytest.fixture()
def create_order(order_service, order_payload):
    """Persist an order through the service; overrides go to the DTO."""

    def _create(**overrides):
        dto = CreateOrderDTO(**{**order_payload, **overrides})
        return order_service.create_order(dto, STAFF_ACTOR)

    return _create


@pytest.fixture()
def order_at(create_order):
    """Persist an order and force it into ``stage`` with extra field values.

    Bypasses the engine; used to set up a stage without walking the
    whole workflow.
    """
    from modules.orders.models import Order

    def _at(stage, **fields):
        order = create_order()
        Order.objects.filter(id=order.id).update(
            current_status=stage, status_publico=stage.label, **fields
        )
        return Order.objects.get(id=order.id)

    return _at
