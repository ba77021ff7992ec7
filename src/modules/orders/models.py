"""Vehicle sales Order and ActionLog models.

Business rules implemented:
- ``tracking_code`` is a unique, immutable, human-readable identifier
  (format: ``VEH-XXXXXXXX``) assigned at creation.
- ``current_status`` is always a ``Stage`` value; it only changes through
  the workflow engine (advance / complete / cancel).
- ``status_history`` is an append-only JSON list of transition records
  (``stage``, ``timestamp``, ``user``, ``from`` and, for cancellations,
  ``reason``).
- Classification fields (order type, client type, payment method,
  financing type) are fixed at creation.
- ``avaliacao_estrelas`` is an integer between 1 and 5 when present.
- Orders are never physically deleted.
"""

from __future__ import annotations

from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models

from modules.core.models import BaseModel
from modules.orders.constants import (
    TERMINAL_STAGES,
    ClientType,
    FinancingStatus,
    FinancingType,
    KinshipType,
    OrderType,
    PaymentMethod,
    PaymentStatus,
    Stage,
)


class Order(BaseModel):
    """Order aggregate root, tracked through the fulfillment stages."""

    tracking_code: models.CharField = models.CharField(
        max_length=12, unique=True, editable=False
    )

    # ------------------------------------------------------------------
    # Classification
    # ------------------------------------------------------------------

    order_type: models.CharField = models.CharField(
        max_length=20, choices=OrderType.choices, default=OrderType.STOCK
    )
    client_type: models.CharField = models.CharField(
        max_length=20, choices=ClientType.choices, default=ClientType.INDIVIDUAL
    )
    payment_method: models.CharField = models.CharField(
        max_length=20, choices=PaymentMethod.choices, default=PaymentMethod.PIX
    )
    financiamento_tipo: models.CharField = models.CharField(  # noqa: DJ01
        max_length=20, choices=FinancingType.choices, null=True, blank=True
    )

    # ------------------------------------------------------------------
    # Client / vehicle
    # ------------------------------------------------------------------

    client_name: models.CharField = models.CharField(max_length=200)
    client_email: models.EmailField = models.EmailField(blank=True, default="")
    client_phone: models.CharField = models.CharField(
        max_length=30, blank=True, default=""
    )
    client_document: models.CharField = models.CharField(
        max_length=20, blank=True, default=""
    )
    vehicle_model: models.CharField = models.CharField(max_length=120)
    vehicle_color: models.CharField = models.CharField(
        max_length=60, blank=True, default=""
    )
    vehicle_year: models.CharField = models.CharField(
        max_length=9, blank=True, default=""
    )

    # ------------------------------------------------------------------
    # Workflow state
    # ------------------------------------------------------------------

    current_status: models.CharField = models.CharField(
        max_length=30, choices=Stage.choices, default=Stage.CREATED
    )
    status_publico: models.CharField = models.CharField(
        max_length=60, default=Stage.CREATED.label
    )
    status_history: models.JSONField = models.JSONField(default=list, blank=True)
    last_updated_at: models.DateTimeField = models.DateTimeField(
        null=True, blank=True
    )
    last_updated_by: models.CharField = models.CharField(
        max_length=254, blank=True, default=""
    )

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    docs_rg: models.BooleanField = models.BooleanField(default=False)
    docs_cnh: models.BooleanField = models.BooleanField(default=False)
    docs_cpf: models.BooleanField = models.BooleanField(default=False)
    docs_comprovante_residencia: models.BooleanField = models.BooleanField(
        default=False
    )
    docs_contrato_social: models.BooleanField = models.BooleanField(default=False)
    docs_cnpj: models.BooleanField = models.BooleanField(default=False)
    docs_coaf_montadora: models.BooleanField = models.BooleanField(default=False)
    docs_coaf_toriba: models.BooleanField = models.BooleanField(default=False)
    docs_sinal: models.BooleanField = models.BooleanField(default=False)
    docs_recibo: models.BooleanField = models.BooleanField(default=False)
    docs_vianuvem_criado: models.BooleanField = models.BooleanField(default=False)
    docs_laudo_cautelar: models.BooleanField = models.BooleanField(default=False)
    docs_pesquisa_multas: models.BooleanField = models.BooleanField(default=False)
    docs_dut_aptv_separado: models.BooleanField = models.BooleanField(default=False)

    # ------------------------------------------------------------------
    # Factory track
    # ------------------------------------------------------------------

    fabrica_data_pedido: models.DateField = models.DateField(null=True, blank=True)
    fabrica_nf_montadora: models.CharField = models.CharField(
        max_length=60, blank=True, default=""
    )
    fabrica_data_faturamento: models.DateField = models.DateField(
        null=True, blank=True
    )

    # ------------------------------------------------------------------
    # Invoice
    # ------------------------------------------------------------------

    nf_emitida: models.BooleanField = models.BooleanField(default=False)
    nf_numero: models.CharField = models.CharField(
        max_length=60, blank=True, default=""
    )
    nf_chave_acesso: models.CharField = models.CharField(
        max_length=60, blank=True, default=""
    )
    nf_data_emissao: models.DateField = models.DateField(null=True, blank=True)

    # ------------------------------------------------------------------
    # Payment / financing
    # ------------------------------------------------------------------

    payment_status: models.CharField = models.CharField(
        max_length=20, choices=PaymentStatus.choices, default=PaymentStatus.AWAITING
    )
    financiamento_status: models.CharField = models.CharField(  # noqa: DJ01
        max_length=20, choices=FinancingStatus.choices, null=True, blank=True
    )
    financiamento_valor_total: models.DecimalField = models.DecimalField(
        max_digits=12, decimal_places=2, null=True, blank=True
    )
    financiamento_entrada: models.DecimalField = models.DecimalField(
        max_digits=12, decimal_places=2, null=True, blank=True
    )
    financiamento_parcelas: models.PositiveIntegerField = (
        models.PositiveIntegerField(null=True, blank=True)
    )
    has_entrada: models.BooleanField = models.BooleanField(default=False)
    entrada_valor: models.DecimalField = models.DecimalField(
        max_digits=12, decimal_places=2, null=True, blank=True
    )
    entrada_recebida: models.BooleanField = models.BooleanField(default=False)
    comprovante_banco_recebido: models.BooleanField = models.BooleanField(
        default=False
    )
    financiamento_pago: models.BooleanField = models.BooleanField(default=False)
    pagamento_total_confirmado: models.BooleanField = models.BooleanField(
        default=False
    )

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    emplacamento_concluido: models.BooleanField = models.BooleanField(default=False)
    vehicle_plate: models.CharField = models.CharField(
        max_length=8, blank=True, default=""
    )

    # ------------------------------------------------------------------
    # Scheduling / delivery
    # ------------------------------------------------------------------

    delivery_scheduling_released: models.BooleanField = models.BooleanField(
        default=False
    )
    scheduled_date: models.DateField = models.DateField(null=True, blank=True)
    scheduled_time: models.CharField = models.CharField(
        max_length=5, blank=True, default=""
    )
    previous_schedule_id: models.UUIDField = models.UUIDField(null=True, blank=True)
    entrega_confirmada: models.BooleanField = models.BooleanField(default=False)

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    avaliacao_estrelas: models.PositiveSmallIntegerField = (
        models.PositiveSmallIntegerField(
            null=True,
            blank=True,
            validators=[MinValueValidator(1), MaxValueValidator(5)],
        )
    )
    avaliacao_comentario: models.TextField = models.TextField(blank=True, default="")
    avaliacao_data: models.DateTimeField = models.DateTimeField(null=True, blank=True)
    avaliacao_prazo_limite: models.DateTimeField = models.DateTimeField(
        null=True, blank=True
    )

    # ------------------------------------------------------------------
    # Trade-in
    # ------------------------------------------------------------------

    has_trade_in: models.BooleanField = models.BooleanField(default=False)
    trade_in_plate: models.CharField = models.CharField(
        max_length=8, blank=True, default=""
    )
    trade_in_owner_is_buyer: models.BooleanField = models.BooleanField(
        null=True, blank=True
    )
    trade_in_has_bonus: models.BooleanField = models.BooleanField(
        null=True, blank=True
    )
    trade_in_parentesco_type: models.CharField = models.CharField(
        max_length=20, choices=KinshipType.choices, blank=True, default=""
    )
    trade_in_no_recent_transfer: models.BooleanField = models.BooleanField(
        default=False
    )
    trade_in_requires_manager_approval: models.BooleanField = models.BooleanField(
        default=False
    )
    trade_in_manager_approved: models.BooleanField = models.BooleanField(
        default=False
    )
    trade_in_approved_by: models.CharField = models.CharField(
        max_length=254, blank=True, default=""
    )
    trade_in_approved_at: models.DateTimeField = models.DateTimeField(
        null=True, blank=True
    )

    # ------------------------------------------------------------------
    # Cancellation
    # ------------------------------------------------------------------

    cancel_reason: models.TextField = models.TextField(blank=True, default="")
    cancelled_at: models.DateTimeField = models.DateTimeField(null=True, blank=True)
    cancelled_by: models.CharField = models.CharField(
        max_length=254, blank=True, default=""
    )

    class Meta:
        db_table = "orders"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["current_status"], name="orders_stage_idx"),
            models.Index(fields=["-created_at"], name="orders_created_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(avaliacao_estrelas__isnull=True)
                | models.Q(avaliacao_estrelas__gte=1, avaliacao_estrelas__lte=5),
                name="orders_rating_between_1_and_5",
            ),
        ]

    # ------------------------------------------------------------------
    # Workflow helpers
    # ------------------------------------------------------------------

    @property
    def is_terminal(self) -> bool:
        """Return ``True`` if the order is completed or cancelled."""
        return self.current_status in TERMINAL_STAGES

    @property
    def is_factory_order(self) -> bool:
        return self.order_type == OrderType.FACTORY_ORDERED

    @property
    def uses_internal_financing(self) -> bool:
        return (
            self.payment_method == PaymentMethod.FINANCING
            and self.financiamento_tipo == FinancingType.INTERNAL
        )

    @property
    def awaiting_trade_in_approval(self) -> bool:
        return (
            self.trade_in_requires_manager_approval
            and not self.trade_in_manager_approved
        )

    # ------------------------------------------------------------------
    # Display
    # ------------------------------------------------------------------

    def __str__(self) -> str:
        return f"{self.tracking_code} ({self.current_status})"


class ActionLog(BaseModel):
    """Append-only audit trail of actions performed on orders.

    ``details`` holds a JSON-serialized string describing the action
    (e.g. old/new stage, cancellation reason, changed fields).  Records
    are never edited or deleted.
    """

    order_id: models.UUIDField = models.UUIDField(db_index=True)
    tracking_code: models.CharField = models.CharField(max_length=12)
    action: models.CharField = models.CharField(max_length=255)
    actor_email: models.CharField = models.CharField(max_length=254)
    actor_name: models.CharField = models.CharField(max_length=200)
    details: models.TextField = models.TextField(blank=True, default="")

    class Meta:
        db_table = "order_action_logs"
        ordering = ["-created_at"]
        indexes = [
            models.Index(
                fields=["order_id", "-created_at"],
                name="oal_order_created_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.tracking_code}: {self.action}"
