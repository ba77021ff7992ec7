import pytest

from django.contrib.auth import get_user_model
from django.core.cache import cache
from rest_framework.test import APIClient

from modules.orders.constants import Stage
from modules.orders.models import Order

User = get_user_model()


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture(autouse=True)
def _clear_cache():
    cache.clear()


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def api_client_with_correlation(api_client):
    """APIClient pre-configured with a known correlation ID header."""
    cid = "test-correlation-id-fixture"
    api_client.defaults["HTTP_X_REQUEST_ID"] = cid
    return api_client, cid


@pytest.fixture()
def staff_user():
    return User.objects.create_user(
        username="vendedor",
        email="vendedor@example.com",
        password="testpass123",
        first_name="Vera",
        last_name="Vendas",
    )


@pytest.fixture()
def auth_client(staff_user):
    """APIClient with a force-authenticated staff user."""
    client = APIClient()
    client.force_authenticate(user=staff_user)
    return client


@pytest.fixture()
def make_order():
    """Build an unsaved ``Order`` (stock, individual, PIX) with overrides."""

    def _make(**overrides) -> Order:
        fields = {
            "tracking_code": "VEH-TEST0001",
            "client_name": "Maria Silva",
            "client_email": "maria@example.com",
            "client_phone": "(11) 99999-0000",
            "vehicle_model": "Onix LT",
            "vehicle_color": "Branco",
            "current_status": Stage.CREATED,
            "status_publico": Stage.CREATED.label,
            "status_history": [],
        }
        fields.update(overrides)
        return Order(**fields)

    return _make


@pytest.fixture()
def all_documents():
    """Document flags satisfying every document check (individual client)."""
    return {
        "docs_rg": True,
        "docs_cpf": True,
        "docs_comprovante_residencia": True,
        "docs_coaf_montadora": True,
        "docs_coaf_toriba": True,
        "docs_sinal": True,
        "docs_recibo": True,
        "docs_vianuvem_criado": True,
    }
