# src/am_order/domain/repository.py
"""OrderRepository Protocol: interface contract for persistence layer."""
from dataclasses import dataclass
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.am_order.domain.models import Order


@dataclass(frozen=True)
class OrderFilter:
    party_id: str | None = None  # seller OR buyer
    seller_id: str | None = None
    buyer_id: str | None = None
    order_status: str | None = None
    delivery_status: str | None = None
    payment_status: str | None = None


class OrderRepositoryProtocol(Protocol):
    async def insert(self, db: AsyncSession, order: Order) -> None:
        """Raises sqlalchemy IntegrityError on a duplicate order_number or listing_id."""
        ...

    async def get_by_id(self, db: AsyncSession, order_id: str) -> Order | None: ...

    async def get_by_listing_id(self, db: AsyncSession, listing_id: str) -> Order | None: ...

    async def update_lifecycle(self, db: AsyncSession, order: Order) -> None:
        """Persist status/tracking/review fields guarded by ``order.version``.

        Raises ConcurrencyConflictError when the stored version moved on.
        """
        ...

    async def list_orders(
        self,
        db: AsyncSession,
        flt: OrderFilter,
        limit: int,
        cursor_id: str | None,
    ) -> list[Order]: ...

    async def save_review(self, db: AsyncSession, order: Order) -> None:
        """Write-once review; raises OrderNotReviewableError when a review already exists."""
        ...
