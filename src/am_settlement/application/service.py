"""SettlementService: turns an accepted bid into exactly one order.

Flow for accept_bid (bounded by SETTLEMENT_TIMEOUT_SECONDS):
  1. Load listing; check owner, active, target bid pending
  2. Apply acceptance to the aggregate (accept one, reject the rest)
  3. Versioned listing write (ConcurrencyConflictError → whole flow retried)
  4. Allocate order number from the per-day counter; insert order inside a
     SAVEPOINT so an order_number collision only rolls back the insert
  5. COMMIT. If the commit itself fails the outcome is unknown: a
     reconciliation marker is written out-of-band and ReconciliationError
     is raised
  6. Publish settlement.completed (post-commit, best effort)
"""

import asyncio
import logging
from datetime import date, datetime, timedelta

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.am_common.datetime_utils import calendar_day, utc_now
from src.am_common.errors import (
    ConcurrencyConflictError,
    ListingNotFoundError,
    NotListingOwnerError,
    OrderNumberExhaustedError,
    ReconciliationError,
    OperationTimeoutError,
)
from src.am_common.id_generator import generate_id
from src.am_common.retry import retry_on_conflict
from src.am_gateway.user.profile import ProfileDirectory, ProfileDirectoryProtocol
from src.am_listing.domain.models import Bid, Listing
from src.am_listing.domain.repository import ListingRepositoryProtocol
from src.am_listing.infrastructure.persistence import ListingRepository
from src.am_notify.publisher import (
    RECONCILIATION_REQUIRED,
    SETTLEMENT_COMPLETED,
    NotifierProtocol,
    RedisNotifier,
)
from src.am_order.domain.models import Order
from src.am_order.domain.repository import OrderRepositoryProtocol
from src.am_order.infrastructure.persistence import OrderRepository
from src.am_settlement.domain.models import ReconciliationMarker, SettlementResult
from src.am_settlement.domain.order_number import format_order_number
from src.am_settlement.domain.repository import (
    OrderNumberSequenceProtocol,
    ReconciliationLogProtocol,
)
from src.am_settlement.domain.settlement import FinancialSummary, counterparties, settle_listing
from src.am_settlement.infrastructure.reconciliation import ReconciliationLog
from src.am_settlement.infrastructure.sequence import OrderNumberSequence

logger = logging.getLogger(__name__)

ORDER_NUMBER_CONSTRAINT = "uq_orders_order_number"


class SettlementService:
    def __init__(
        self,
        listings: ListingRepositoryProtocol | None = None,
        orders: OrderRepositoryProtocol | None = None,
        sequence: OrderNumberSequenceProtocol | None = None,
        reconciliations: ReconciliationLogProtocol | None = None,
        profiles: ProfileDirectoryProtocol | None = None,
        notifier: NotifierProtocol | None = None,
    ) -> None:
        self._listings: ListingRepositoryProtocol = listings or ListingRepository()
        self._orders: OrderRepositoryProtocol = orders or OrderRepository()
        self._sequence: OrderNumberSequenceProtocol = sequence or OrderNumberSequence()
        self._reconciliations: ReconciliationLogProtocol = (
            reconciliations or ReconciliationLog()
        )
        self._profiles: ProfileDirectoryProtocol = profiles or ProfileDirectory()
        self._notifier: NotifierProtocol = notifier or RedisNotifier()

    async def accept_bid(
        self,
        db: AsyncSession,
        listing_id: str,
        bid_id: str,
        acting_user_id: str,
    ) -> SettlementResult:
        try:
            async with asyncio.timeout(settings.SETTLEMENT_TIMEOUT_SECONDS):
                result = await retry_on_conflict(
                    lambda: self._settle_once(db, listing_id, bid_id, acting_user_id),
                    settings.OPTIMISTIC_RETRY_ATTEMPTS,
                    f"accept bid {bid_id} on listing {listing_id}",
                )
        except TimeoutError:
            await db.rollback()
            logger.warning("Settlement of listing %s timed out before commit", listing_id)
            raise OperationTimeoutError("settlement", listing_id) from None
        except ReconciliationError as exc:
            await self._notifier.publish(
                RECONCILIATION_REQUIRED,
                {"listing_id": exc.listing_id, "bid_id": bid_id, "marker_id": exc.marker_id},
            )
            raise

        order, fin = result.order, result.financials
        logger.info(
            "Listing %s settled: bid %s accepted, order %s total=%d commission=%d seller_net=%d",
            listing_id,
            bid_id,
            order.order_number,
            fin.total_amount_cents,
            fin.commission_amount_cents,
            fin.seller_net_amount_cents,
        )
        await self._notifier.publish(
            SETTLEMENT_COMPLETED,
            {
                "listing_id": listing_id,
                "bid_id": bid_id,
                "order_id": order.id,
                "order_number": order.order_number,
                "seller_id": order.seller_id,
                "buyer_id": order.buyer_id,
                "total_amount_cents": fin.total_amount_cents,
                "rejected_bidder_ids": sorted(
                    {b.bidder_id for b in result.listing.bids if b.id != bid_id}
                ),
            },
        )
        return result

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _settle_once(
        self, db: AsyncSession, listing_id: str, bid_id: str, acting_user_id: str
    ) -> SettlementResult:
        try:
            listing = await self._listings.get(db, listing_id)
            if listing is None:
                raise ListingNotFoundError(listing_id)
            if listing.owner_id != acting_user_id:
                raise NotListingOwnerError(listing_id)

            now = utc_now()
            bid, financials = settle_listing(
                listing, bid_id, now, settings.COMMISSION_RATE_BPS
            )
            order = await self._build_order(db, listing, bid, financials, now)

            await self._listings.save(db, listing)
            await self._insert_order(db, order, calendar_day(now, settings.ORDER_NUMBER_TIMEZONE))
        except Exception:
            await db.rollback()
            raise

        try:
            await db.commit()
        except (Exception, asyncio.CancelledError) as exc:
            marker_id = await self._record_unknown_outcome(
                listing_id, bid_id, acting_user_id, order, exc
            )
            raise ReconciliationError(listing_id, marker_id) from exc

        return SettlementResult(order=order, financials=financials, listing=listing)

    async def _build_order(
        self,
        db: AsyncSession,
        listing: Listing,
        bid: Bid,
        financials: FinancialSummary,
        now: datetime,
    ) -> Order:
        seller_id, buyer_id = counterparties(listing, bid)
        return Order(
            id=generate_id(),
            order_number="",
            listing_id=listing.id,
            seller_id=seller_id,
            buyer_id=buyer_id,
            direction=listing.direction,
            quantity=listing.total_quantity,
            agreed_price_per_unit_cents=bid.amount_cents,
            total_amount_cents=financials.total_amount_cents,
            commission_amount_cents=financials.commission_amount_cents,
            seller_net_amount_cents=financials.seller_net_amount_cents,
            buyer_payment_amount_cents=financials.buyer_payment_amount_cents,
            commission_rate_bps=financials.commission_rate_bps,
            payment_method=bid.payment_method,
            delivery_address=bid.delivery_address,
            seller_location=await self._profiles.get_address(db, seller_id),
            buyer_location=await self._profiles.get_address(db, buyer_id),
            expected_delivery_at=now + timedelta(days=settings.EXPECTED_DELIVERY_DAYS),
            created_at=now,
            updated_at=now,
        )

    async def _insert_order(self, db: AsyncSession, order: Order, day: date) -> None:
        """Allocate a fresh order number per attempt; a number is never reused."""
        for attempt in range(1, settings.ORDER_NUMBER_MAX_ATTEMPTS + 1):
            order.order_number = format_order_number(
                day, await self._sequence.next_value(db, day)
            )
            try:
                async with db.begin_nested():
                    await self._orders.insert(db, order)
                return
            except IntegrityError as exc:
                if ORDER_NUMBER_CONSTRAINT not in str(exc.orig):
                    # UNIQUE(listing_id): another settlement of this listing won.
                    raise ConcurrencyConflictError("Listing", order.listing_id) from exc
                logger.warning(
                    "Order number %s already taken (attempt %d/%d)",
                    order.order_number,
                    attempt,
                    settings.ORDER_NUMBER_MAX_ATTEMPTS,
                )
        raise OrderNumberExhaustedError(settings.ORDER_NUMBER_MAX_ATTEMPTS)

    async def _record_unknown_outcome(
        self,
        listing_id: str,
        bid_id: str,
        acting_user_id: str,
        order: Order,
        exc: BaseException,
    ) -> str | None:
        marker = ReconciliationMarker(
            id=generate_id(),
            listing_id=listing_id,
            bid_id=bid_id,
            acting_user_id=acting_user_id,
            order_id=order.id,
            order_number=order.order_number,
            error=f"{type(exc).__name__}: {exc}",
        )
        try:
            await self._reconciliations.record(marker)
        except Exception:
            logger.exception(
                "Could not record reconciliation marker for listing %s (order %s)",
                listing_id,
                order.order_number,
            )
            return None
        logger.error(
            "Settlement commit for listing %s failed with unknown outcome; marker %s (order %s)",
            listing_id,
            marker.id,
            order.order_number,
        )
        return marker.id
