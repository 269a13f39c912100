"""In-memory persistence backend.

Used in development and tests. Rows are kept per table in insertion order and
are lost on restart.
"""

from __future__ import annotations

import threading
import uuid
from copy import deepcopy
from datetime import datetime, timezone
from typing import Any, Mapping

from tour_forms.adapters.persistence.base import AbstractPersistence, PersistenceResult
from tour_forms.core.errors import PersistenceAppError


class InMemoryPersistence(AbstractPersistence):
    """Dict-of-lists storage that mimics a row-returning insert API.

    Attributes:
        fail_writes: When set, ``create`` reports this error instead of storing.
        fail_reads: When set, ``read`` raises PersistenceAppError with it.
    """

    def __init__(self, seed: Mapping[str, list[dict[str, Any]]] | None = None) -> None:
        self._tables: dict[str, list[dict[str, Any]]] = {
            name: [dict(row) for row in rows] for name, rows in (seed or {}).items()
        }
        self._lock = threading.RLock()
        self.fail_writes: str | None = None
        self.fail_reads: str | None = None

    def rows(self, table: str) -> list[dict[str, Any]]:
        """Snapshot of a table's rows (copies, safe to mutate)."""

        return deepcopy(self._tables.get(table, []))

    async def create(self, table: str, record: Mapping[str, Any]) -> PersistenceResult:
        if self.fail_writes:
            return PersistenceResult(error=self.fail_writes)

        row = dict(record)
        row["id"] = str(uuid.uuid4())
        row["created_at"] = datetime.now(timezone.utc).isoformat()

        with self._lock:
            self._tables.setdefault(table, []).append(row)

        return PersistenceResult(data=deepcopy(row))

    async def read(self, table: str, filters: Mapping[str, Any] | None = None) -> list[dict[str, Any]]:
        if self.fail_reads:
            raise PersistenceAppError(
                code="persistence_read_failed",
                message=self.fail_reads,
                details={"table": table},
            )

        filters = filters or {}
        with self._lock:
            matches = [
                row
                for row in self._tables.get(table, [])
                if all(row.get(column) == value for column, value in filters.items())
            ]
        return deepcopy(matches)
