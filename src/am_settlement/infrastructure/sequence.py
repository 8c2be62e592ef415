# src/am_settlement/infrastructure/sequence.py
"""Per-day order-number counter backed by ``order_number_sequences``.

A single INSERT ... ON CONFLICT DO UPDATE ... RETURNING takes the row lock,
so concurrent settlements on the same day always observe distinct values.
The increment joins the caller's transaction.
"""
from datetime import date

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

_NEXT_VALUE_SQL = text("""
    INSERT INTO order_number_sequences (day, last_value)
    VALUES (:day, 1)
    ON CONFLICT (day) DO UPDATE
        SET last_value = order_number_sequences.last_value + 1,
            updated_at = NOW()
    RETURNING last_value
""")


class OrderNumberSequence:
    async def next_value(self, db: AsyncSession, day: date) -> int:
        result = await db.execute(_NEXT_VALUE_SQL, {"day": day})
        return int(result.scalar_one())
