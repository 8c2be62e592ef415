# src/am_listing/infrastructure/persistence.py
"""ListingRepository: raw SQL persistence for the listing aggregate.

The listing row is the aggregate root: every write goes through
``UPDATE listings ... WHERE id = :id AND version = :expected_version`` so that
bid submission and bid acceptance on the same listing are serialized
(optimistic concurrency). Bids are upserted in the same transaction.

Transaction ownership: the CALLER (application service) commits/rolls back.
asyncpg NULL parameter pattern: CAST(:param AS TYPE) IS NULL required for None values.
"""
import json
from datetime import datetime
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.am_common.address import Address
from src.am_common.errors import ConcurrencyConflictError
from src.am_listing.domain.models import Bid, Listing, WinningBid

# ---------------------------------------------------------------------------
# SQL statements
# ---------------------------------------------------------------------------

_LISTING_COLUMNS = """
    id, owner_id, title, description, category, direction,
    price_per_unit_cents, total_quantity, status,
    winning_bidder_id, winning_amount_cents, winning_accepted_at,
    settled_at, commission_earned_cents, expires_at, version,
    created_at, updated_at
"""

_BID_COLUMNS = """
    id, listing_id, bidder_id, amount_cents, status,
    CAST(delivery_address AS TEXT) AS delivery_address,
    payment_method, submitted_at
"""

_INSERT_LISTING_SQL = text("""
    INSERT INTO listings (id, owner_id, title, description, category, direction,
        price_per_unit_cents, total_quantity, status, expires_at, version)
    VALUES (:id, :owner_id, :title, :description, :category, :direction,
        :price_per_unit_cents, :total_quantity, :status, :expires_at, :version)
""")

_GET_LISTING_SQL = text(f"""
    SELECT {_LISTING_COLUMNS}
    FROM listings WHERE id = :id
""")

_UPDATE_LISTING_SQL = text("""
    UPDATE listings
    SET status = :status,
        winning_bidder_id = :winning_bidder_id,
        winning_amount_cents = :winning_amount_cents,
        winning_accepted_at = :winning_accepted_at,
        settled_at = :settled_at,
        commission_earned_cents = :commission_earned_cents,
        version = version + 1,
        updated_at = NOW()
    WHERE id = :id AND version = :expected_version
""")

_UPSERT_BID_SQL = text("""
    INSERT INTO bids (id, listing_id, bidder_id, amount_cents, status,
        delivery_address, payment_method, submitted_at)
    VALUES (:id, :listing_id, :bidder_id, :amount_cents, :status,
        CAST(:delivery_address AS JSONB), :payment_method, :submitted_at)
    ON CONFLICT (id) DO UPDATE
        SET status = EXCLUDED.status, updated_at = NOW()
        WHERE bids.status IS DISTINCT FROM EXCLUDED.status
""")

_BIDS_FOR_LISTINGS_SQL = text(f"""
    SELECT {_BID_COLUMNS}
    FROM bids
    WHERE listing_id = ANY(string_to_array(CAST(:listing_ids_csv AS TEXT), ','))
    ORDER BY submitted_at ASC, id ASC
""")

_LIST_BID_ON_BY_SQL = text(f"""
    SELECT {_LISTING_COLUMNS}
    FROM listings l
    WHERE EXISTS (
            SELECT 1 FROM bids b
            WHERE b.listing_id = l.id AND b.bidder_id = :bidder_id
        )
      AND (CAST(:status AS TEXT) IS NULL OR l.status = CAST(:status AS TEXT))
      AND (CAST(:cursor_id AS TEXT) IS NULL OR l.id < CAST(:cursor_id AS TEXT))
    ORDER BY l.id DESC
    LIMIT :limit
""")

_LIST_WON_BY_SQL = text(f"""
    SELECT {_LISTING_COLUMNS}
    FROM listings
    WHERE winning_bidder_id = :bidder_id
      AND (CAST(:cursor_id AS TEXT) IS NULL OR id < CAST(:cursor_id AS TEXT))
    ORDER BY id DESC
    LIMIT :limit
""")

_EXPIRE_DUE_SQL = text("""
    UPDATE listings
    SET status = 'expired', version = version + 1, updated_at = NOW()
    WHERE status = 'active' AND expires_at IS NOT NULL AND expires_at <= :now
    RETURNING id
""")

_REJECT_PENDING_BIDS_SQL = text("""
    UPDATE bids
    SET status = 'rejected', updated_at = NOW()
    WHERE listing_id = ANY(string_to_array(CAST(:listing_ids_csv AS TEXT), ','))
      AND status = 'pending'
""")


# ---------------------------------------------------------------------------
# Row mappers
# ---------------------------------------------------------------------------


def _row_to_bid(row: Any) -> Bid:
    raw_address = row.delivery_address
    address_data = json.loads(raw_address) if isinstance(raw_address, str) else raw_address
    return Bid(
        id=row.id,
        listing_id=row.listing_id,
        bidder_id=row.bidder_id,
        amount_cents=row.amount_cents,
        status=row.status,
        delivery_address=Address.from_dict(address_data, settings.DEFAULT_COUNTRY),
        payment_method=row.payment_method,
        submitted_at=row.submitted_at,
    )


def _row_to_listing(row: Any, bids: list[Bid]) -> Listing:
    winning = None
    if row.winning_bidder_id is not None:
        winning = WinningBid(
            bidder_id=row.winning_bidder_id,
            amount_cents=row.winning_amount_cents,
            accepted_at=row.winning_accepted_at,
        )
    return Listing(
        id=row.id,
        owner_id=row.owner_id,
        title=row.title,
        description=row.description,
        category=row.category,
        direction=row.direction,
        price_per_unit_cents=row.price_per_unit_cents,
        total_quantity=row.total_quantity,
        status=row.status,
        bids=bids,
        winning_bid=winning,
        settled_at=row.settled_at,
        commission_earned_cents=row.commission_earned_cents,
        expires_at=row.expires_at,
        version=row.version,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _bid_params(bid: Bid) -> dict[str, Any]:
    return {
        "id": bid.id,
        "listing_id": bid.listing_id,
        "bidder_id": bid.bidder_id,
        "amount_cents": bid.amount_cents,
        "status": bid.status,
        "delivery_address": json.dumps(bid.delivery_address.to_dict()),
        "payment_method": bid.payment_method,
        "submitted_at": bid.submitted_at,
    }


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class ListingRepository:
    """Concrete implementation of ListingRepositoryProtocol using raw SQL."""

    async def insert(self, db: AsyncSession, listing: Listing) -> None:
        await db.execute(
            _INSERT_LISTING_SQL,
            {
                "id": listing.id,
                "owner_id": listing.owner_id,
                "title": listing.title,
                "description": listing.description,
                "category": listing.category,
                "direction": listing.direction,
                "price_per_unit_cents": listing.price_per_unit_cents,
                "total_quantity": listing.total_quantity,
                "status": listing.status,
                "expires_at": listing.expires_at,
                "version": listing.version,
            },
        )

    async def get(self, db: AsyncSession, listing_id: str) -> Listing | None:
        result = await db.execute(_GET_LISTING_SQL, {"id": listing_id})
        row = result.fetchone()
        if row is None:
            return None
        bids = await self._load_bids(db, [listing_id])
        return _row_to_listing(row, bids.get(listing_id, []))

    async def save(self, db: AsyncSession, listing: Listing) -> None:
        winning = listing.winning_bid
        result = await db.execute(
            _UPDATE_LISTING_SQL,
            {
                "id": listing.id,
                "expected_version": listing.version,
                "status": listing.status,
                "winning_bidder_id": winning.bidder_id if winning else None,
                "winning_amount_cents": winning.amount_cents if winning else None,
                "winning_accepted_at": winning.accepted_at if winning else None,
                "settled_at": listing.settled_at,
                "commission_earned_cents": listing.commission_earned_cents,
            },
        )
        if result.rowcount == 0:
            raise ConcurrencyConflictError("Listing", listing.id)
        if listing.bids:
            await db.execute(_UPSERT_BID_SQL, [_bid_params(b) for b in listing.bids])
        listing.version += 1

    async def list_bid_on_by(
        self,
        db: AsyncSession,
        bidder_id: str,
        status: str | None,
        limit: int,
        cursor_id: str | None,
    ) -> list[Listing]:
        result = await db.execute(
            _LIST_BID_ON_BY_SQL,
            {"bidder_id": bidder_id, "status": status, "cursor_id": cursor_id, "limit": limit},
        )
        return await self._hydrate(db, result.fetchall())

    async def list_won_by(
        self,
        db: AsyncSession,
        bidder_id: str,
        limit: int,
        cursor_id: str | None,
    ) -> list[Listing]:
        result = await db.execute(
            _LIST_WON_BY_SQL,
            {"bidder_id": bidder_id, "cursor_id": cursor_id, "limit": limit},
        )
        return await self._hydrate(db, result.fetchall())

    async def expire_due(self, db: AsyncSession, now: datetime) -> list[str]:
        result = await db.execute(_EXPIRE_DUE_SQL, {"now": now})
        expired_ids = [row.id for row in result.fetchall()]
        if expired_ids:
            await db.execute(
                _REJECT_PENDING_BIDS_SQL, {"listing_ids_csv": ",".join(expired_ids)}
            )
        return expired_ids

    async def _hydrate(self, db: AsyncSession, rows: list[Any]) -> list[Listing]:
        if not rows:
            return []
        bids = await self._load_bids(db, [row.id for row in rows])
        return [_row_to_listing(row, bids.get(row.id, [])) for row in rows]

    async def _load_bids(self, db: AsyncSession, listing_ids: list[str]) -> dict[str, list[Bid]]:
        result = await db.execute(
            _BIDS_FOR_LISTINGS_SQL, {"listing_ids_csv": ",".join(listing_ids)}
        )
        grouped: dict[str, list[Bid]] = {}
        for row in result.fetchall():
            grouped.setdefault(row.listing_id, []).append(_row_to_bid(row))
        return grouped
