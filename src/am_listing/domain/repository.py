# src/am_listing/domain/repository.py
"""ListingRepository Protocol: interface contract for persistence layer.

Unit tests inject a mock that conforms to this Protocol.
"""
from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.am_listing.domain.models import Listing


class ListingRepositoryProtocol(Protocol):
    async def insert(self, db: AsyncSession, listing: Listing) -> None: ...

    async def get(self, db: AsyncSession, listing_id: str) -> Listing | None: ...

    async def save(self, db: AsyncSession, listing: Listing) -> None:
        """Persist listing row + every bid in one write guarded by ``listing.version``.

        Raises ConcurrencyConflictError when the stored version moved on.
        Bumps ``listing.version`` on success.
        """
        ...

    async def list_bid_on_by(
        self,
        db: AsyncSession,
        bidder_id: str,
        status: str | None,
        limit: int,
        cursor_id: str | None,
    ) -> list[Listing]: ...

    async def list_won_by(
        self,
        db: AsyncSession,
        bidder_id: str,
        limit: int,
        cursor_id: str | None,
    ) -> list[Listing]: ...

    async def expire_due(self, db: AsyncSession, now: datetime) -> list[str]: ...
