"""Pure settlement logic: applies an accepted bid to the listing aggregate.

No I/O here: the application service loads the listing, calls
``settle_listing`` and persists the mutated aggregate together with the
order in one transaction.
"""

from dataclasses import dataclass
from datetime import datetime

from src.am_common.enums import BidStatus, ListingDirection, ListingStatus
from src.am_common.errors import BidNotFoundError, ListingNotActiveError
from src.am_common.money import calculate_commission
from src.am_listing.domain.models import Bid, Listing, WinningBid


@dataclass(frozen=True)
class FinancialSummary:
    total_amount_cents: int
    commission_amount_cents: int
    seller_net_amount_cents: int
    buyer_payment_amount_cents: int
    commission_rate_bps: int


def compute_financials(quantity: int, amount_cents: int, rate_bps: int) -> FinancialSummary:
    """total = qty × agreed price; seller_net = total − commission; buyer pays total."""
    total = quantity * amount_cents
    commission = calculate_commission(total, rate_bps)
    return FinancialSummary(
        total_amount_cents=total,
        commission_amount_cents=commission,
        seller_net_amount_cents=total - commission,
        buyer_payment_amount_cents=total,
        commission_rate_bps=rate_bps,
    )


def settled_status_for(direction: str) -> ListingStatus:
    if direction == ListingDirection.OFFER_TO_SELL.value:
        return ListingStatus.SETTLED_AS_SALE
    return ListingStatus.SETTLED_AS_PURCHASE


def counterparties(listing: Listing, bid: Bid) -> tuple[str, str]:
    """Return (seller_id, buyer_id) for the accepted bid."""
    if listing.direction == ListingDirection.OFFER_TO_SELL.value:
        return listing.owner_id, bid.bidder_id
    return bid.bidder_id, listing.owner_id


def settle_listing(
    listing: Listing, bid_id: str, now: datetime, rate_bps: int
) -> tuple[Bid, FinancialSummary]:
    """Accept ``bid_id`` and reject every sibling bid in a single pass.

    Sets winning_bid, the settled status, settled_at and the commission on
    the listing. Raises before mutating anything when the listing is not
    active or the bid is not a pending bid of this listing.
    """
    if not listing.is_active:
        raise ListingNotActiveError(listing.id, listing.status)
    target = listing.find_bid(bid_id)
    if target is None or not target.is_pending:
        raise BidNotFoundError(bid_id)

    for bid in listing.bids:
        bid.status = BidStatus.ACCEPTED.value if bid.id == bid_id else BidStatus.REJECTED.value

    financials = compute_financials(listing.total_quantity, target.amount_cents, rate_bps)
    listing.winning_bid = WinningBid(
        bidder_id=target.bidder_id, amount_cents=target.amount_cents, accepted_at=now
    )
    listing.status = settled_status_for(listing.direction).value
    listing.settled_at = now
    listing.commission_earned_cents = financials.commission_amount_cents
    return target, financials
