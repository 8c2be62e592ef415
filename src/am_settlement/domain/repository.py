# src/am_settlement/domain/repository.py
"""Persistence contracts used by the settlement engine."""
from datetime import date
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.am_settlement.domain.models import ReconciliationMarker


class OrderNumberSequenceProtocol(Protocol):
    async def next_value(self, db: AsyncSession, day: date) -> int:
        """Atomically increment and return the counter for ``day`` (first value is 1)."""
        ...


class ReconciliationLogProtocol(Protocol):
    async def record(self, marker: ReconciliationMarker) -> None:
        """Persist in its OWN session and commit; independent of the failed transaction."""
        ...

    async def list_by_status(
        self, db: AsyncSession, status: str, limit: int
    ) -> list[ReconciliationMarker]: ...

    async def resolve(
        self, db: AsyncSession, marker_id: str, resolved_by: str, note: str | None
    ) -> ReconciliationMarker | None:
        """Mark an open marker resolved. Returns None when no open marker has that id."""
        ...
