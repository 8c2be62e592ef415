"""ListingApplicationService: listings, bid submission and bid history.

Write operations (create, submit_bid, cancel, expire) own their transaction:
they commit on success and roll back before re-raising on any failure, so a
rejected bid never leaves a partial bid-list mutation behind. Bid submission
re-runs the whole read-validate-write sequence when the listing's version
guard reports a concurrent writer.
"""

import asyncio
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.am_common.datetime_utils import utc_now
from src.am_common.enums import ListingDirection, ListingStatus, PaymentMethod
from src.am_common.errors import (
    ConcurrencyConflictError,
    ListingAccessDeniedError,
    ListingNotFoundError,
    NotListingOwnerError,
    OperationTimeoutError,
)
from src.am_common.id_generator import generate_id
from src.am_common.pagination import cursor_decode, cursor_encode
from src.am_common.retry import retry_on_conflict
from src.am_gateway.user.profile import ProfileDirectory, ProfileDirectoryProtocol
from src.am_listing.application.schemas import (
    BidHistoryItem,
    BidHistoryResponse,
    BidOut,
    CreateListingRequest,
    ListingDetailResponse,
    ListingListResponse,
    ListingOut,
    ListingSummary,
    SubmitBidRequest,
    SubmitBidResponse,
    WinningBidOut,
)
from src.am_listing.domain.models import Bid, Listing
from src.am_listing.domain.repository import ListingRepositoryProtocol
from src.am_listing.domain.validator import BidRejected, validate_bid
from src.am_listing.infrastructure.persistence import ListingRepository
from src.am_notify.publisher import (
    BID_SUBMITTED,
    LISTING_CANCELLED,
    NotifierProtocol,
    RedisNotifier,
)

logger = logging.getLogger(__name__)


def _history_item(listing: Listing, user_id: str) -> BidHistoryItem | None:
    mine = listing.bids_by(user_id)
    if not mine:
        return None
    winning = listing.winning_bid
    return BidHistoryItem(
        listing=ListingSummary.from_domain(listing),
        my_bid=BidOut.from_domain(mine[-1]),
        all_my_bids=[BidOut.from_domain(b) for b in mine],
        is_winner=winning is not None and winning.bidder_id == user_id,
        winning_bid=(
            WinningBidOut(
                bidder_id=winning.bidder_id,
                amount_cents=winning.amount_cents,
                accepted_at=winning.accepted_at,
            )
            if winning
            else None
        ),
        total_bids_on_listing=len(listing.bids),
    )


class ListingApplicationService:
    def __init__(
        self,
        repo: ListingRepositoryProtocol | None = None,
        profiles: ProfileDirectoryProtocol | None = None,
        notifier: NotifierProtocol | None = None,
    ) -> None:
        self._repo: ListingRepositoryProtocol = repo or ListingRepository()
        self._profiles: ProfileDirectoryProtocol = profiles or ProfileDirectory()
        self._notifier: NotifierProtocol = notifier or RedisNotifier()

    # ------------------------------------------------------------------
    # Listings
    # ------------------------------------------------------------------

    async def create_listing(
        self, db: AsyncSession, owner_id: str, req: CreateListingRequest
    ) -> ListingOut:
        now = utc_now()
        listing = Listing(
            id=generate_id(),
            owner_id=owner_id,
            title=req.title,
            description=req.description,
            category=req.category.value,
            direction=req.direction,
            price_per_unit_cents=req.price_per_unit_cents,
            total_quantity=req.total_quantity,
            expires_at=req.expires_at,
            created_at=now,
            updated_at=now,
        )
        try:
            await self._repo.insert(db, listing)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info(
            "Listing %s created by %s (%s, %d units @ %d)",
            listing.id,
            owner_id,
            listing.direction,
            listing.total_quantity,
            listing.price_per_unit_cents,
        )
        return ListingOut.from_domain(listing)

    async def get_listing_with_bids(
        self, db: AsyncSession, listing_id: str, viewer_id: str
    ) -> ListingDetailResponse:
        """Owner sees every bid; a bidder may view the listing they bid on."""
        listing = await self._repo.get(db, listing_id)
        if listing is None:
            raise ListingNotFoundError(listing_id)
        is_owner = listing.owner_id == viewer_id
        mine = listing.bids_by(viewer_id)
        if not is_owner and not mine:
            raise ListingAccessDeniedError(listing_id)
        return ListingDetailResponse(
            listing=ListingOut.from_domain(listing),
            my_bid=BidOut.from_domain(mine[-1]) if mine else None,
            can_accept_bids=is_owner and listing.is_active,
        )

    async def cancel_listing(
        self, db: AsyncSession, listing_id: str, user_id: str
    ) -> ListingOut:
        async def attempt() -> Listing:
            try:
                listing = await self._repo.get(db, listing_id)
                if listing is None:
                    raise ListingNotFoundError(listing_id)
                if listing.owner_id != user_id:
                    raise NotListingOwnerError(listing_id)
                listing.close(ListingStatus.CANCELLED)
                await self._repo.save(db, listing)
                await db.commit()
            except Exception:
                await db.rollback()
                raise
            return listing

        listing = await retry_on_conflict(
            attempt, settings.OPTIMISTIC_RETRY_ATTEMPTS, f"cancel listing {listing_id}"
        )
        logger.info("Listing %s cancelled by owner", listing_id)
        await self._notifier.publish(
            LISTING_CANCELLED,
            {"listing_id": listing.id, "bidder_ids": sorted({b.bidder_id for b in listing.bids})},
        )
        return ListingOut.from_domain(listing)

    async def expire_due_listings(self, db: AsyncSession) -> list[str]:
        try:
            expired = await self._repo.expire_due(db, utc_now())
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        if expired:
            logger.info("Expired %d listings past their expiry date", len(expired))
        return expired

    # ------------------------------------------------------------------
    # Bids
    # ------------------------------------------------------------------

    async def submit_bid(
        self,
        db: AsyncSession,
        listing_id: str,
        bidder_id: str,
        req: SubmitBidRequest,
    ) -> SubmitBidResponse:
        supplied_address = (
            req.delivery_address.to_domain(settings.DEFAULT_COUNTRY)
            if req.delivery_address is not None
            else None
        )
        payment_method = (req.payment_method or PaymentMethod.CASH_ON_DELIVERY).value

        async def attempt() -> tuple[Listing, Bid]:
            try:
                listing = await self._repo.get(db, listing_id)
                if listing is None:
                    raise ListingNotFoundError(listing_id)

                owner_address = None
                if listing.direction == ListingDirection.OFFER_TO_BUY.value:
                    owner_address = await self._profiles.get_address(db, listing.owner_id)

                decision = validate_bid(
                    listing, bidder_id, req.amount_cents, supplied_address, owner_address
                )
                if isinstance(decision, BidRejected):
                    raise decision.error

                bid = Bid(
                    id=generate_id(),
                    listing_id=listing.id,
                    bidder_id=bidder_id,
                    amount_cents=req.amount_cents,
                    delivery_address=decision.delivery_address,
                    payment_method=payment_method,
                    submitted_at=utc_now(),
                )
                listing.bids.append(bid)
                try:
                    await self._repo.save(db, listing)
                except IntegrityError:
                    # Pending-bid unique index tripped by a racing writer.
                    raise ConcurrencyConflictError("Listing", listing_id) from None
                await db.commit()
            except Exception:
                await db.rollback()
                raise
            return listing, bid

        try:
            async with asyncio.timeout(settings.SETTLEMENT_TIMEOUT_SECONDS):
                listing, bid = await retry_on_conflict(
                    attempt,
                    settings.OPTIMISTIC_RETRY_ATTEMPTS,
                    f"submit bid on listing {listing_id}",
                )
        except TimeoutError:
            await db.rollback()
            raise OperationTimeoutError("bid submission", listing_id) from None

        logger.info(
            "Bid %s on listing %s by %s at %d", bid.id, listing_id, bidder_id, bid.amount_cents
        )
        await self._notifier.publish(
            BID_SUBMITTED,
            {
                "listing_id": listing.id,
                "bid_id": bid.id,
                "owner_id": listing.owner_id,
                "bidder_id": bidder_id,
                "amount_cents": bid.amount_cents,
            },
        )
        return SubmitBidResponse(
            bid=BidOut.from_domain(bid), listing=ListingOut.from_domain(listing)
        )

    async def list_bids_for_user(
        self,
        db: AsyncSession,
        user_id: str,
        status: str | None,
        cursor: str | None,
        limit: int,
    ) -> BidHistoryResponse:
        listings = await self._repo.list_bid_on_by(
            db, user_id, status, limit + 1, cursor_decode(cursor)
        )
        has_more = len(listings) > limit
        page = listings[:limit]
        items = [item for item in (_history_item(lst, user_id) for lst in page) if item]
        next_cursor = cursor_encode(page[-1].id) if has_more and page else None
        return BidHistoryResponse(items=items, next_cursor=next_cursor, has_more=has_more)

    async def list_wins(
        self,
        db: AsyncSession,
        user_id: str,
        cursor: str | None,
        limit: int,
    ) -> ListingListResponse:
        listings = await self._repo.list_won_by(db, user_id, limit + 1, cursor_decode(cursor))
        has_more = len(listings) > limit
        page = listings[:limit]
        next_cursor = cursor_encode(page[-1].id) if has_more and page else None
        return ListingListResponse(
            items=[ListingOut.from_domain(lst) for lst in page],
            next_cursor=next_cursor,
            has_more=has_more,
        )
