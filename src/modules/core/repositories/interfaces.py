"""Generic repository interface (Dependency Inversion Principle).

Provides ``IRepository[T]``, the base abstract class that all
domain-specific repository interfaces extend.  Service-layer code and
the workflow engine depend on this abstraction, never on Django ORM
directly.

The contract mirrors the data-store operations the workflow needs:
``create``, partial ``update``, ``filter`` by field values and ``list``
ordered by a sort key (``"-field"`` for descending).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Generic, List, Optional, TypeVar

T = TypeVar("T")


class IRepository(ABC, Generic[T]):
    """Base generic repository contract.

    Type parameter ``T`` represents the domain entity managed by the
    repository (e.g. ``Order``, ``ScheduleSlot``).
    """

    @abstractmethod
    def get_by_id(self, id: str) -> Optional[T]:
        """Retrieve an entity by its primary key."""

    @abstractmethod
    def create(self, data: Dict[str, Any]) -> T:
        """Persist a new entity built from ``data``."""

    @abstractmethod
    def update(self, id: Any, data: Dict[str, Any]) -> T:
        """Write the given fields on an existing entity (last write wins)."""

    @abstractmethod
    def filter(self, **criteria: Any) -> List[T]:
        """Return entities whose fields match ``criteria``."""

    @abstractmethod
    def list(self, sort_key: Optional[str] = None) -> List[T]:
        """List entities ordered by ``sort_key``."""
