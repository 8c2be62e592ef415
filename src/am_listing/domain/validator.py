"""Bid validator: pure decision function, no I/O.

Rules are evaluated in order and the first failure wins:

  1. listing must be active                    → listing_not_active
  2. bidder must not own the listing           → self_bid_forbidden
  3. offer_to_sell: amount >  posted price     → bid_too_low
     offer_to_buy:  amount <  posted price     → bid_too_high
  4. bidder has no pending bid on the listing  → duplicate_pending_bid
  5. offer_to_sell: bidder supplies a complete delivery address
                                               → delivery_address_required
     offer_to_buy:  owner's profile address is complete (it becomes the
                    delivery address)          → owner_address_incomplete
"""

from dataclasses import dataclass

from src.am_common.address import Address
from src.am_common.enums import ListingDirection
from src.am_common.errors import (
    AppError,
    BidTooHighError,
    BidTooLowError,
    DeliveryAddressRequiredError,
    DuplicatePendingBidError,
    ListingNotActiveError,
    OwnerAddressIncompleteError,
    SelfBidError,
)
from src.am_listing.domain.models import Listing


@dataclass(frozen=True)
class BidAccepted:
    delivery_address: Address


@dataclass(frozen=True)
class BidRejected:
    error: AppError

    @property
    def reason(self) -> str:
        return self.error.reason


BidDecision = BidAccepted | BidRejected


def validate_bid(
    listing: Listing,
    bidder_id: str,
    amount_cents: int,
    delivery_address: Address | None,
    owner_address: Address | None,
) -> BidDecision:
    if not listing.is_active:
        return BidRejected(ListingNotActiveError(listing.id, listing.status))

    if bidder_id == listing.owner_id:
        return BidRejected(SelfBidError())

    if listing.direction == ListingDirection.OFFER_TO_SELL.value:
        if amount_cents <= listing.price_per_unit_cents:
            return BidRejected(BidTooLowError(listing.price_per_unit_cents))
    elif amount_cents >= listing.price_per_unit_cents:
        return BidRejected(BidTooHighError(listing.price_per_unit_cents))

    if listing.pending_bid_for(bidder_id) is not None:
        return BidRejected(DuplicatePendingBidError())

    if listing.direction == ListingDirection.OFFER_TO_SELL.value:
        if delivery_address is None or not delivery_address.is_complete:
            return BidRejected(DeliveryAddressRequiredError())
        return BidAccepted(delivery_address)

    # offer_to_buy: goods go to the listing owner
    if owner_address is None or not owner_address.is_complete:
        return BidRejected(OwnerAddressIncompleteError())
    return BidAccepted(owner_address)
