"""Delivery schedule domain exceptions.

Raised by the Service Layer; the API layer (Views) translates them into
HTTP responses.
"""

from __future__ import annotations


class SlotNotFound(Exception):
    """The requested schedule slot does not exist."""


class SlotUnavailable(Exception):
    """The slot is booked or blocked and cannot be taken or removed."""


class DuplicateSlots(Exception):
    """Every requested time already exists for the date."""


class BookingNotAllowed(Exception):
    """The order is not in a state that allows booking a delivery slot."""
