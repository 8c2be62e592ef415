# src/am_settlement/infrastructure/reconciliation.py
"""ReconciliationLog: raw SQL access to ``settlement_reconciliations``.

``record`` runs in a fresh session from the session factory: it is called
after the settlement transaction's commit failed, when that session can no
longer be trusted.
"""
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.am_common.database import async_session_factory
from src.am_settlement.domain.models import ReconciliationMarker

_COLUMNS = """
    id, listing_id, bid_id, acting_user_id, order_id, order_number, error,
    status, resolved_by, resolution_note, resolved_at, created_at
"""

_INSERT_SQL = text("""
    INSERT INTO settlement_reconciliations (
        id, listing_id, bid_id, acting_user_id, order_id, order_number, error, status
    ) VALUES (
        :id, :listing_id, :bid_id, :acting_user_id, :order_id, :order_number, :error, :status
    )
""")

_LIST_BY_STATUS_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM settlement_reconciliations
    WHERE status = :status
    ORDER BY created_at ASC
    LIMIT :limit
""")

_RESOLVE_SQL = text(f"""
    UPDATE settlement_reconciliations
    SET status = 'resolved',
        resolved_by = :resolved_by,
        resolution_note = :note,
        resolved_at = NOW()
    WHERE id = :id AND status = 'open'
    RETURNING {_COLUMNS}
""")


def _row_to_marker(row: Any) -> ReconciliationMarker:
    return ReconciliationMarker(
        id=row.id,
        listing_id=row.listing_id,
        bid_id=row.bid_id,
        acting_user_id=row.acting_user_id,
        order_id=row.order_id,
        order_number=row.order_number,
        error=row.error,
        status=row.status,
        resolved_by=row.resolved_by,
        resolution_note=row.resolution_note,
        resolved_at=row.resolved_at,
        created_at=row.created_at,
    )


class ReconciliationLog:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession] | None = None) -> None:
        self._session_factory = session_factory or async_session_factory

    async def record(self, marker: ReconciliationMarker) -> None:
        async with self._session_factory() as session:
            await session.execute(
                _INSERT_SQL,
                {
                    "id": marker.id,
                    "listing_id": marker.listing_id,
                    "bid_id": marker.bid_id,
                    "acting_user_id": marker.acting_user_id,
                    "order_id": marker.order_id,
                    "order_number": marker.order_number,
                    "error": marker.error[:1000],
                    "status": marker.status,
                },
            )
            await session.commit()

    async def list_by_status(
        self, db: AsyncSession, status: str, limit: int
    ) -> list[ReconciliationMarker]:
        result = await db.execute(_LIST_BY_STATUS_SQL, {"status": status, "limit": limit})
        return [_row_to_marker(row) for row in result.fetchall()]

    async def resolve(
        self, db: AsyncSession, marker_id: str, resolved_by: str, note: str | None
    ) -> ReconciliationMarker | None:
        result = await db.execute(
            _RESOLVE_SQL, {"id": marker_id, "resolved_by": resolved_by, "note": note}
        )
        row = result.fetchone()
        return _row_to_marker(row) if row else None
