"""Profile-address lookup.

Buy-direction bids take their delivery address from the listing owner's
profile, and orders snapshot both parties' addresses at settlement time.
"""

from typing import Any, Protocol

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.am_common.address import Address

_GET_ADDRESS_SQL = text("""
    SELECT address_street, address_city, address_state,
           address_postal_code, address_country
    FROM users
    WHERE id = CAST(:user_id AS UUID)
""")


class ProfileDirectoryProtocol(Protocol):
    async def get_address(self, db: AsyncSession, user_id: str) -> Address | None: ...


def _row_to_address(row: Any) -> Address:
    return Address(
        street=row.address_street or "",
        city=row.address_city or "",
        state=row.address_state or "",
        postal_code=row.address_postal_code or "",
        country=row.address_country or settings.DEFAULT_COUNTRY,
    )


class ProfileDirectory:
    """Reads profile addresses straight from the users table."""

    async def get_address(self, db: AsyncSession, user_id: str) -> Address | None:
        result = await db.execute(_GET_ADDRESS_SQL, {"user_id": user_id})
        row = result.fetchone()
        return _row_to_address(row) if row else None
