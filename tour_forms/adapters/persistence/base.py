from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Mapping


@dataclass(frozen=True)
class PersistenceResult:
    """Outcome of a single-row insert.

    Exactly one of ``data`` and ``error`` is set. ``data`` is the created row
    as returned by the backend, including ``id`` and ``created_at``.
    """

    data: dict[str, Any] | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.data is not None


class AbstractPersistence(ABC):
    """Interface for storage backends that hold submitted records."""

    @abstractmethod
    async def create(self, table: str, record: Mapping[str, Any]) -> PersistenceResult:
        """Insert one row and return it as stored.

        Args:
            table: Destination table name.
            record: Column values to insert.

        Returns:
            PersistenceResult; backend failures are reported in ``error``
            rather than raised.
        """
        ...

    @abstractmethod
    async def read(self, table: str, filters: Mapping[str, Any] | None = None) -> list[dict[str, Any]]:
        """Return rows whose columns equal every value in ``filters``.

        Raises:
            PersistenceAppError: If the backend cannot be queried.
        """
        ...
