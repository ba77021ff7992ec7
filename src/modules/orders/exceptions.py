"""Order domain exceptions.

Raised by the workflow engine and the Service Layer when business rules
are violated.  The API layer (Views) catches these and translates them
into appropriate HTTP responses.
"""

from __future__ import annotations


class OrderNotFound(Exception):
    """The requested order does not exist."""


class WorkflowError(Exception):
    """Base class for rejected stage transitions."""


class InapplicableStageError(WorkflowError):
    """The target stage does not apply to this order's variant."""


class UnknownStageError(WorkflowError):
    """The target stage id is not part of the stage catalog."""


class StageValidationError(WorkflowError):
    """The order does not meet a stage's completion requirements."""

    def __init__(self, stage: str, reason: str) -> None:
        super().__init__(reason)
        self.stage = stage
        self.reason = reason


class StaleOrderState(WorkflowError):
    """The stored stage changed since the order was read."""


class OrderNotCancellable(WorkflowError):
    """The order is already in a terminal stage."""


class EvaluationNotAllowed(Exception):
    """An evaluation was submitted for an order outside the evaluation stage."""


class TradeInApprovalNotRequired(Exception):
    """Manager approval was requested for an order that does not need it."""


class ReadOnlyOrderField(Exception):
    """A field update tried to write a workflow or classification field."""


class TrackingCodeUnavailable(Exception):
    """No free tracking code was found within the retry budget."""
