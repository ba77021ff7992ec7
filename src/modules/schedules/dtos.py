"""Schedule DTOs for the Service Layer (Pydantic v2, immutable)."""

from __future__ import annotations

import re
from datetime import date
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator

from modules.schedules.constants import DEFAULT_TIME_SLOTS

_TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def _check_time(value: str) -> str:
    value = value.strip()
    if not _TIME_PATTERN.match(value):
        raise ValueError("Time must use the HH:MM format.")
    return value


class CreateSlotDTO(BaseModel):
    """A single delivery slot."""

    model_config = ConfigDict(frozen=True)

    date: date
    time: str
    is_blocked: bool = False

    @field_validator("time")
    @classmethod
    def time_format(cls, v: str) -> str:
        return _check_time(v)


class BulkCreateSlotsDTO(BaseModel):
    """Open a whole day; defaults to the standard time grid."""

    model_config = ConfigDict(frozen=True)

    date: date
    times: tuple[str, ...] = DEFAULT_TIME_SLOTS

    @field_validator("times")
    @classmethod
    def times_format(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        if not v:
            raise ValueError("At least one time is required.")
        return tuple(dict.fromkeys(_check_time(t) for t in v))


class BookSlotDTO(BaseModel):
    """Client booking of a delivery slot through the tracking code."""

    model_config = ConfigDict(frozen=True)

    tracking_code: str
    slot_id: UUID
    client_name: Optional[str] = None

    @field_validator("tracking_code")
    @classmethod
    def normalize_code(cls, v: str) -> str:
        return v.strip().upper()
