"""Per-stage completion criteria.

Each stage has exactly one check, dispatched by ``check_stage``.  A check
returns ``Ready`` or ``NotReady(reason)`` and stops at the first unmet
requirement, in the order the requirements are listed below.  The
checks only read the order; they never mutate it.

``created``, ``internal-financing-review`` and ``evaluation`` are always
ready.  ``completed`` and ``cancelled`` are never ready: they are reached
only through the dedicated completion and cancellation paths.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Union

from django.utils import timezone

from modules.orders.constants import (
    PLATE_PATTERN,
    SETTLED_PAYMENT_STATUSES,
    ClientType,
    PaymentMethod,
    Stage,
)
from modules.orders.exceptions import StageValidationError, UnknownStageError
from modules.orders.workflow.catalog import parse_stage


@dataclass(frozen=True)
class Ready:
    ready: bool = True


@dataclass(frozen=True)
class NotReady:
    reason: str
    ready: bool = False


StageCheck = Union[Ready, NotReady]

READY = Ready()


# ---------------------------------------------------------------------------
# Individual checks
# ---------------------------------------------------------------------------


def check_documents(order: Any) -> StageCheck:
    """Client, general and (when present) trade-in documents."""
    if order.client_type == ClientType.INDIVIDUAL:
        if not order.docs_rg and not order.docs_cnh:
            return NotReady("Envie RG ou CNH")
        if not order.docs_cpf or not order.docs_comprovante_residencia:
            return NotReady("Documentos de pessoa física incompletos")
    else:
        if not order.docs_contrato_social or not order.docs_cnpj:
            return NotReady("Documentos de pessoa jurídica incompletos")

    general = (
        order.docs_coaf_montadora,
        order.docs_coaf_toriba,
        order.docs_sinal,
        order.docs_recibo,
        order.docs_vianuvem_criado,
    )
    if not all(general):
        return NotReady("Documentos gerais incompletos")

    if order.has_trade_in:
        trade_in = (
            order.docs_laudo_cautelar,
            order.docs_pesquisa_multas,
            order.docs_dut_aptv_separado,
        )
        if not all(trade_in):
            return NotReady("Documentos do usado incompletos")

    return READY


def check_factory_ordered(order: Any) -> StageCheck:
    if not order.fabrica_data_pedido:
        return NotReady("Data do pedido na montadora não informada")
    return READY


def check_factory_invoiced(order: Any) -> StageCheck:
    if not order.fabrica_nf_montadora or not order.fabrica_data_faturamento:
        return NotReady("Dados de faturamento da montadora incompletos")
    return READY


def check_invoice(order: Any) -> StageCheck:
    if not order.nf_emitida:
        return NotReady("Nota fiscal não foi emitida")
    if not order.nf_numero or not order.nf_chave_acesso or not order.nf_data_emissao:
        return NotReady("Dados da nota fiscal incompletos")
    return READY


def check_payment(order: Any) -> StageCheck:
    if order.payment_status not in SETTLED_PAYMENT_STATUSES:
        return NotReady("Pagamento ainda não foi confirmado")
    if (
        order.payment_method == PaymentMethod.PIX
        and not order.comprovante_banco_recebido
    ):
        return NotReady("Comprovante de pagamento PIX não foi recebido")
    if (
        order.payment_method == PaymentMethod.FINANCING
        and not order.financiamento_pago
    ):
        return NotReady("Pagamento do financiamento não foi confirmado")
    if order.has_entrada and not order.entrada_recebida:
        return NotReady("Entrada não foi recebida")
    if not order.pagamento_total_confirmado:
        return NotReady(
            "Pagamento total ainda não foi confirmado pelo setor financeiro"
        )
    return READY


def is_valid_plate(plate: str) -> bool:
    return bool(plate) and PLATE_PATTERN.match(plate.upper()) is not None


def check_registration(order: Any) -> StageCheck:
    if not order.emplacamento_concluido:
        return NotReady("Emplacamento ainda não foi concluído")
    if not order.vehicle_plate:
        return NotReady("Placa do veículo não foi informada")
    if not is_valid_plate(order.vehicle_plate):
        return NotReady("Formato de placa inválido. Use ABC1234 ou ABC1D23")
    return READY


def _as_date(value: date | datetime) -> date:
    if isinstance(value, datetime):
        if timezone.is_aware(value):
            return timezone.localtime(value).date()
        return value.date()
    return value


def check_scheduling(order: Any) -> StageCheck:
    if not order.scheduled_date or not order.scheduled_time:
        return NotReady("Entrega ainda não foi agendada")
    if _as_date(order.scheduled_date) < timezone.localdate():
        return NotReady("Data agendada está no passado. É necessário reagendar.")
    return READY


def check_yard(order: Any) -> StageCheck:
    if not order.scheduled_date:
        return NotReady("Não há data de entrega agendada")
    return READY


def check_delivery(order: Any) -> StageCheck:
    if not order.entrega_confirmada:
        return NotReady("Entrega ainda não foi confirmada")
    return READY


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------


def check_stage(stage: Stage, order: Any) -> StageCheck:
    """Evaluate the completion criteria of ``stage`` against ``order``."""
    match stage:
        case Stage.CREATED | Stage.INTERNAL_FINANCING_REVIEW | Stage.EVALUATION:
            return READY
        case Stage.FACTORY_DOCUMENTATION | Stage.CLIENT_DOCUMENTATION:
            return check_documents(order)
        case Stage.FACTORY_ORDERED:
            return check_factory_ordered(order)
        case Stage.FACTORY_INVOICED:
            return check_factory_invoiced(order)
        case Stage.INVOICE:
            return check_invoice(order)
        case Stage.PAYMENT:
            return check_payment(order)
        case Stage.REGISTRATION:
            return check_registration(order)
        case Stage.SCHEDULING:
            return check_scheduling(order)
        case Stage.YARD:
            return check_yard(order)
        case Stage.DELIVERY:
            return check_delivery(order)
        case Stage.COMPLETED:
            return NotReady("Pedido só pode ser concluído pela avaliação")
        case Stage.CANCELLED:
            return NotReady("Use o cancelamento para cancelar o pedido")
    raise UnknownStageError(f"Status inválido: {stage}")


def validate_stage(stage_id: str, order: Any) -> None:
    """Raise if ``order`` does not meet the requirements of ``stage_id``.

    Raises:
        UnknownStageError: ``stage_id`` is not in the catalog.
        StageValidationError: a requirement is unmet (first one found).
    """
    stage = parse_stage(stage_id)
    if stage is None:
        raise UnknownStageError(f"Status inválido: {stage_id}")
    result = check_stage(stage, order)
    if isinstance(result, NotReady):
        raise StageValidationError(stage, result.reason)
