"""Order domain constants.

Defines the fulfillment stages (in canonical progression order), the
order classification choices and the fixed values used by the
workflow engine.
"""

import re
from datetime import timedelta

from django.db import models


class Stage(models.TextChoices):
    """Fulfillment stages, declared in canonical progression order."""

    CREATED = "created", "Pedido Criado"
    INTERNAL_FINANCING_REVIEW = "internal-financing-review", "Financiamento em Análise"
    FACTORY_DOCUMENTATION = "factory-documentation", "Fábrica - Documentação"
    FACTORY_ORDERED = "factory-ordered", "Fábrica - Encomendado"
    FACTORY_INVOICED = "factory-invoiced", "Fábrica - Faturado"
    CLIENT_DOCUMENTATION = "client-documentation", "Documentação"
    INVOICE = "invoice", "Nota Fiscal"
    PAYMENT = "payment", "Pagamento"
    REGISTRATION = "registration", "Emplacamento"
    SCHEDULING = "scheduling", "Agendamento"
    YARD = "yard", "Pátio"
    DELIVERY = "delivery", "Entrega"
    EVALUATION = "evaluation", "Avaliação"
    COMPLETED = "completed", "Concluído"
    CANCELLED = "cancelled", "Cancelado"


class OrderType(models.TextChoices):
    STOCK = "stock", "Veículo em Estoque"
    FACTORY_ORDERED = "factory-ordered", "Encomendar de Fábrica"


class ClientType(models.TextChoices):
    INDIVIDUAL = "individual", "Pessoa Física"
    BUSINESS = "business", "Pessoa Jurídica"


class PaymentMethod(models.TextChoices):
    PIX = "pix", "PIX"
    BANK_SLIP = "bank-slip", "Boleto"
    FINANCING = "financing", "Financiamento"
    CASH = "cash", "À Vista"


class FinancingType(models.TextChoices):
    INTERNAL = "internal", "Interno"
    EXTERNAL = "external", "Externo"


class FinancingStatus(models.TextChoices):
    PENDING = "pendente", "Pendente"
    APPROVED = "aprovado", "Aprovado"
    REJECTED = "reprovado", "Reprovado"


class PaymentStatus(models.TextChoices):
    AWAITING = "aguardando", "Aguardando"
    PAID = "pago", "Pago"
    RELEASED = "liberado", "Liberado"


class KinshipType(models.TextChoices):
    """Kinship accepted when a bonus trade-in is owned by a third party."""

    SPOUSE = "conjuge", "Cônjuge"
    STABLE_UNION = "uniao_estavel", "União Estável"
    PARENT = "pai_mae", "Pai/Mãe"
    CHILD = "filho", "Filho(a)"


TERMINAL_STAGES: frozenset[str] = frozenset({Stage.COMPLETED, Stage.CANCELLED})

FACTORY_STAGE_PREFIX = "factory-"

SETTLED_PAYMENT_STATUSES: frozenset[str] = frozenset(
    {PaymentStatus.PAID, PaymentStatus.RELEASED}
)

EVALUATION_RESPONSE_WINDOW = timedelta(days=7)

# Mercosul-era plates: ABC1234 (old) or ABC1D23; I, O and Q are never used.
PLATE_PATTERN = re.compile(
    r"^[A-HJ-NPR-Z]{3}\d{4}$|^[A-HJ-NPR-Z]{3}\d[A-HJ-NPR-Z]\d{2}$"
)

TRACKING_CODE_PREFIX = "VEH-"
TRACKING_CODE_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"
TRACKING_CODE_LENGTH = 8
TRACKING_CODE_MAX_RETRIES = 5

SYSTEM_ACTOR_EMAIL = "system"
SYSTEM_ACTOR_NAME = "Sistema"
