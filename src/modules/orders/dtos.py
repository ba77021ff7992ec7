"""Order DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.
These are the contracts between the API layer (DRF Serializers)
and the Service layer.  DTOs are immutable (``frozen=True``).

- ``Actor``: who performs an action (e-mail + display name).
- ``CreateOrderDTO``: input for order creation, including the trade-in
  ownership/kinship rules.
- ``SubmitEvaluationDTO``: client evaluation (1-5 stars).
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, field_validator, model_validator

from modules.orders.constants import (
    SYSTEM_ACTOR_EMAIL,
    SYSTEM_ACTOR_NAME,
    ClientType,
    FinancingType,
    KinshipType,
    OrderType,
    PaymentMethod,
)


class Actor(BaseModel):
    """Identity recorded in history, audit log and last-updated metadata."""

    model_config = ConfigDict(frozen=True)

    email: str = SYSTEM_ACTOR_EMAIL
    name: str = SYSTEM_ACTOR_NAME

    @classmethod
    def from_user(cls, user: Any) -> Actor:
        """Build an actor from a Django user; anonymous users are the system."""
        if user is None or not getattr(user, "is_authenticated", False):
            return cls()
        email = getattr(user, "email", "") or getattr(user, "username", "")
        full_name = ""
        if hasattr(user, "get_full_name"):
            full_name = user.get_full_name()
        return cls(
            email=email or SYSTEM_ACTOR_EMAIL,
            name=full_name or email or SYSTEM_ACTOR_NAME,
        )


SYSTEM_ACTOR = Actor()


class CreateOrderDTO(BaseModel):
    """Immutable DTO for order creation requests.

    Validates:
    - financing orders must state the financing type.
    - trade-in: plate, owner-is-buyer answer; when the owner is not the
      buyer, the bonus answer; with a bonus, an accepted kinship type and
      the "no transfer in the last 3 months" confirmation.
    """

    model_config = ConfigDict(frozen=True)

    order_type: OrderType = OrderType.STOCK
    client_type: ClientType = ClientType.INDIVIDUAL
    client_name: str
    client_email: EmailStr
    client_phone: str
    client_document: str = ""
    vehicle_model: str
    vehicle_color: str
    vehicle_year: str = ""

    payment_method: PaymentMethod = PaymentMethod.PIX
    financiamento_tipo: Optional[FinancingType] = None
    financiamento_valor_total: Optional[Decimal] = None
    financiamento_entrada: Optional[Decimal] = None
    financiamento_parcelas: Optional[int] = None
    has_entrada: bool = False
    entrada_valor: Optional[Decimal] = None

    has_trade_in: bool = False
    trade_in_plate: Optional[str] = None
    trade_in_owner_is_buyer: Optional[bool] = None
    trade_in_has_bonus: Optional[bool] = None
    trade_in_parentesco_type: Optional[KinshipType] = None
    trade_in_no_recent_transfer: bool = False

    @field_validator("client_name", "client_phone", "vehicle_model", "vehicle_color")
    @classmethod
    def must_not_be_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Field is required.")
        return v.strip()

    @field_validator("trade_in_plate")
    @classmethod
    def normalize_plate(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        cleaned = "".join(ch for ch in v.upper() if ch.isalnum())
        return cleaned or None

    @model_validator(mode="after")
    def financing_type_required(self):
        financing = self.payment_method == PaymentMethod.FINANCING
        if financing and not self.financiamento_tipo:
            raise ValueError("Financing orders must state the financing type.")
        return self

    @model_validator(mode="after")
    def trade_in_rules(self):
        if not self.has_trade_in:
            return self
        if not self.trade_in_plate:
            raise ValueError("Trade-in plate is required.")
        if self.trade_in_owner_is_buyer is None:
            raise ValueError("State whether the trade-in is owned by the buyer.")
        if self.trade_in_owner_is_buyer:
            return self
        if self.trade_in_has_bonus is None:
            raise ValueError("State whether the trade-in carries a bonus.")
        if self.trade_in_has_bonus:
            if not self.trade_in_parentesco_type:
                raise ValueError("Kinship type is required for a bonus trade-in.")
            if not self.trade_in_no_recent_transfer:
                raise ValueError(
                    "Confirm the trade-in was not transferred in the last 3 months."
                )
        return self

    @property
    def uses_internal_financing(self) -> bool:
        return (
            self.payment_method == PaymentMethod.FINANCING
            and self.financiamento_tipo == FinancingType.INTERNAL
        )

    @property
    def requires_manager_approval(self) -> bool:
        """Bonus trade-in owned by someone other than the buyer."""
        return bool(
            self.has_trade_in
            and self.trade_in_owner_is_buyer is False
            and self.trade_in_has_bonus
        )

    def to_order_fields(self) -> dict[str, Any]:
        """Order field values; trade-in answers are cleared when not relevant."""
        data = self.model_dump()
        if self.payment_method != PaymentMethod.FINANCING:
            data["financiamento_tipo"] = None
        if not self.has_trade_in:
            data.update(
                trade_in_plate=None,
                trade_in_owner_is_buyer=None,
                trade_in_has_bonus=None,
                trade_in_parentesco_type=None,
                trade_in_no_recent_transfer=False,
            )
        elif self.trade_in_owner_is_buyer:
            data.update(
                trade_in_has_bonus=None,
                trade_in_parentesco_type=None,
                trade_in_no_recent_transfer=False,
            )
        elif not self.trade_in_has_bonus:
            data.update(
                trade_in_parentesco_type=None, trade_in_no_recent_transfer=False
            )

        data["trade_in_plate"] = data["trade_in_plate"] or ""
        data["trade_in_parentesco_type"] = data["trade_in_parentesco_type"] or ""
        data["trade_in_requires_manager_approval"] = self.requires_manager_approval
        return data


class SubmitEvaluationDTO(BaseModel):
    """Immutable DTO for a client evaluation."""

    model_config = ConfigDict(frozen=True)

    tracking_code: str
    rating: int
    comment: str = ""

    @field_validator("rating")
    @classmethod
    def rating_between_one_and_five(cls, v: int) -> int:
        if not 1 <= v <= 5:
            raise ValueError("Rating must be between 1 and 5.")
        return v

    @field_validator("tracking_code")
    @classmethod
    def normalize_code(cls, v: str) -> str:
        return v.strip().upper()
