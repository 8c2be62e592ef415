"""Listing aggregate: pure dataclasses, no SQLAlchemy dependency.

A Listing owns its ordered sequence of Bids. All bid and listing mutations
are applied to the in-memory aggregate and persisted in a single versioned
write (see ListingRepositoryProtocol.save).
"""

from dataclasses import dataclass, field
from datetime import datetime

from src.am_common.address import Address
from src.am_common.enums import SETTLED_LISTING_STATUSES, BidStatus, ListingStatus
from src.am_common.errors import ListingNotActiveError


@dataclass
class Bid:
    id: str
    listing_id: str
    bidder_id: str
    amount_cents: int  # per-unit price offered
    delivery_address: Address
    payment_method: str = "cash_on_delivery"
    status: str = BidStatus.PENDING.value
    submitted_at: datetime | None = None

    @property
    def is_pending(self) -> bool:
        return self.status == BidStatus.PENDING.value


@dataclass
class WinningBid:
    bidder_id: str
    amount_cents: int
    accepted_at: datetime


@dataclass
class Listing:
    id: str
    owner_id: str
    title: str
    description: str
    category: str
    direction: str  # offer_to_sell / offer_to_buy
    price_per_unit_cents: int
    total_quantity: int
    status: str = ListingStatus.ACTIVE.value
    bids: list[Bid] = field(default_factory=list)
    winning_bid: WinningBid | None = None
    settled_at: datetime | None = None
    commission_earned_cents: int = 0
    expires_at: datetime | None = None
    version: int = 1
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_active(self) -> bool:
        return self.status == ListingStatus.ACTIVE.value

    @property
    def is_settled(self) -> bool:
        return self.status in SETTLED_LISTING_STATUSES

    def find_bid(self, bid_id: str) -> Bid | None:
        return next((b for b in self.bids if b.id == bid_id), None)

    def pending_bid_for(self, bidder_id: str) -> Bid | None:
        return next((b for b in self.bids if b.bidder_id == bidder_id and b.is_pending), None)

    def bids_by(self, bidder_id: str) -> list[Bid]:
        return [b for b in self.bids if b.bidder_id == bidder_id]

    def accepted_bids(self) -> list[Bid]:
        return [b for b in self.bids if b.status == BidStatus.ACCEPTED.value]

    def close(self, status: ListingStatus) -> None:
        """Move an active listing to cancelled/expired; pending bids are rejected."""
        if status not in (ListingStatus.CANCELLED, ListingStatus.EXPIRED):
            raise ValueError(f"close() only handles cancelled/expired, got {status}")
        if not self.is_active:
            raise ListingNotActiveError(self.id, self.status)
        for bid in self.bids:
            if bid.is_pending:
                bid.status = BidStatus.REJECTED.value
        self.status = status.value
