from __future__ import annotations

import random
from datetime import timedelta

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.utils import timezone

from modules.orders.constants import (
    ClientType,
    FinancingType,
    OrderType,
    PaymentMethod,
    Stage,
)
from modules.orders.dtos import Actor, CreateOrderDTO
from modules.orders.models import Order
from modules.orders.notifications import EmailMessage
from modules.orders.repositories import ActionLogDjangoRepository, OrderDjangoRepository
from modules.orders.services import OrderService
from modules.orders.workflow.engine import WorkflowEngine
from modules.schedules.dtos import BulkCreateSlotsDTO
from modules.schedules.exceptions import DuplicateSlots
from modules.schedules.repositories import ScheduleDjangoRepository
from modules.schedules.services import ScheduleService

SEED_ACTOR = Actor(email="admin@veiculotrack.local", name="Admin")

CLIENTS = [
    ("Ana Souza", "ana@example.com", ClientType.INDIVIDUAL),
    ("Bruno Lima Transportes", "bruno@example.com", ClientType.BUSINESS),
    ("Carla Mendes", "carla@example.com", ClientType.INDIVIDUAL),
    ("Daniel Costa", "daniel@example.com", ClientType.INDIVIDUAL),
    ("Eduardo Alves ME", "eduardo@example.com", ClientType.BUSINESS),
    ("Fernanda Rocha", "fernanda@example.com", ClientType.INDIVIDUAL),
]

VEHICLES = [
    ("Onix LT 1.0", "Branco"),
    ("Tracker Premier", "Prata"),
    ("S10 High Country", "Preto"),
    ("Spin Activ", "Cinza"),
    ("Montana LTZ", "Vermelho"),
]

ORDER_TYPES = [OrderType.STOCK, OrderType.STOCK, OrderType.FACTORY_ORDERED]

DOCUMENT_FLAGS = {
    "docs_rg": True,
    "docs_cpf": True,
    "docs_comprovante_residencia": True,
    "docs_contrato_social": True,
    "docs_cnpj": True,
    "docs_coaf_montadora": True,
    "docs_coaf_toriba": True,
    "docs_sinal": True,
    "docs_recibo": True,
    "docs_vianuvem_criado": True,
}


class _LogOnlySender:
    """Seed data never e-mails the demo clients."""

    def send_email(self, message: EmailMessage) -> None:
        return None


class Command(BaseCommand):
    help = "Seed database with demo users, delivery slots and vehicle orders."

    def handle(self, *args, **options):
        random.seed(42)
        self.stdout.write("Seeding development data...")

        sender = _LogOnlySender()
        order_repo = OrderDjangoRepository()
        engine = WorkflowEngine(
            order_repository=order_repo,
            action_log_repository=ActionLogDjangoRepository(),
            schedule_repository=ScheduleDjangoRepository(),
            notification_sender=sender,
        )
        service = OrderService(
            order_repository=order_repo,
            action_log_repository=ActionLogDjangoRepository(),
            engine=engine,
            notification_sender=sender,
        )

        users_created = self._seed_users()
        slots_created = self._seed_slots(ScheduleService(ScheduleDjangoRepository()))
        orders_created = self._seed_orders(service)

        self.stdout.write(
            self.style.SUCCESS(
                "Seed completed: "
                f"users={users_created}, "
                f"slots={slots_created}, "
                f"orders={orders_created}"
            )
        )

    def _seed_users(self) -> int:
        User = get_user_model()
        created = 0
        if not User.objects.filter(username="admin").exists():
            User.objects.create_superuser(
                "admin", email="admin@veiculotrack.local", password="admin123"
            )
            created += 1
        if not User.objects.filter(username="gerente").exists():
            User.objects.create_user(
                "gerente",
                email="gerente@veiculotrack.local",
                password="gerente123",
                is_staff=True,
            )
            created += 1
        return created

    def _seed_slots(self, schedules: ScheduleService) -> int:
        self.stdout.write("Creating delivery slots...")
        created = 0
        today = timezone.localdate()
        for offset in range(1, 15):
            try:
                created += len(
                    schedules.bulk_create(
                        BulkCreateSlotsDTO(date=today + timedelta(days=offset))
                    )
                )
            except DuplicateSlots:
                continue
        self.stdout.write(self.style.SUCCESS("Creating delivery slots... Done!"))
        return created

    def _seed_orders(self, service: OrderService) -> int:
        self.stdout.write("Creating orders...")
        if Order.objects.exists():
            self.stdout.write(self.style.WARNING("Skipping orders (already seeded)."))
            return 0

        created = 0
        for i in range(20):
            name, email, client_type = random.choice(CLIENTS)
            model, color = random.choice(VEHICLES)
            payment = random.choice(list(PaymentMethod))
            dto = CreateOrderDTO(
                order_type=random.choice(ORDER_TYPES),
                client_type=client_type,
                client_name=name,
                client_email=email,
                client_phone=f"(11) 9{random.randint(1000, 9999)}-{i:04d}",
                vehicle_model=model,
                vehicle_color=color,
                payment_method=payment,
                financiamento_tipo=(
                    random.choice(list(FinancingType))
                    if payment == PaymentMethod.FINANCING
                    else None
                ),
            )
            order = service.create_order(dto, SEED_ACTOR)
            created += 1
            if i % 3 == 0:
                self._advance_stock_order(service, order)
        self.stdout.write(self.style.SUCCESS("Creating orders... Done!"))
        return created

    def _advance_stock_order(self, service: OrderService, order: Order) -> None:
        """Walk a stock order to ``invoice`` so the board shows some progress."""
        if order.order_type != OrderType.STOCK or order.uses_internal_financing:
            return
        order_id = str(order.id)
        service.update_fields(order_id, DOCUMENT_FLAGS, SEED_ACTOR)
        service.advance(order_id, Stage.CLIENT_DOCUMENTATION, SEED_ACTOR)
        service.update_fields(
            order_id,
            {
                "nf_emitida": True,
                "nf_numero": f"{random.randint(10000, 99999)}",
                "nf_chave_acesso": "".join(random.choices("0123456789", k=44)),
                "nf_data_emissao": timezone.localdate(),
            },
            SEED_ACTOR,
        )
        service.advance(order_id, Stage.INVOICE, SEED_ACTOR)
