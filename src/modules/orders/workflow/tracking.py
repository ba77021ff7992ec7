"""Tracking code generation."""

from __future__ import annotations

import secrets

from modules.orders.constants import (
    TRACKING_CODE_ALPHABET,
    TRACKING_CODE_LENGTH,
    TRACKING_CODE_PREFIX,
)


def generate_tracking_code() -> str:
    """Generate a public tracking code: ``VEH-`` + 8 chars from ``A-Z0-9``."""
    suffix = "".join(
        secrets.choice(TRACKING_CODE_ALPHABET) for _ in range(TRACKING_CODE_LENGTH)
    )
    return f"{TRACKING_CODE_PREFIX}{suffix}"
