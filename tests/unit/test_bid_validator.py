"""Unit tests for the bid validator decision function."""

import pytest

from src.am_common.address import Address
from src.am_common.errors import (
    BidTooHighError,
    DeliveryAddressRequiredError,
    SelfBidError,
)
from src.am_listing.domain.validator import BidAccepted, BidRejected, validate_bid
from tests.helpers import BUYER_ADDRESS, FARM_ADDRESS, make_bid, make_listing


def _reason(decision: object) -> str:
    assert isinstance(decision, BidRejected)
    return decision.reason


class TestSellListings:
    def test_higher_bid_with_address_is_accepted(self) -> None:
        listing = make_listing(direction="offer_to_sell", price_per_unit_cents=5000)
        decision = validate_bid(listing, "buyer-1", 5500, BUYER_ADDRESS, None)
        assert isinstance(decision, BidAccepted)
        assert decision.delivery_address == BUYER_ADDRESS

    @pytest.mark.parametrize("amount", [5000, 4999, 1])
    def test_bid_at_or_below_price_is_too_low(self, amount: int) -> None:
        listing = make_listing(direction="offer_to_sell", price_per_unit_cents=5000)
        decision = validate_bid(listing, "buyer-1", amount, BUYER_ADDRESS, None)
        assert _reason(decision) == "bid_too_low"

    def test_missing_address_rejected(self) -> None:
        listing = make_listing(direction="offer_to_sell")
        decision = validate_bid(listing, "buyer-1", 5500, None, None)
        assert isinstance(decision, BidRejected)
        assert isinstance(decision.error, DeliveryAddressRequiredError)

    def test_incomplete_address_rejected(self) -> None:
        listing = make_listing(direction="offer_to_sell")
        partial = Address(street="1 Main", city="Pune", state="", postal_code="411001")
        assert (
            _reason(validate_bid(listing, "buyer-1", 5500, partial, None))
            == "delivery_address_required"
        )


class TestBuyListings:
    def test_lower_bid_uses_owner_address(self) -> None:
        listing = make_listing(direction="offer_to_buy", price_per_unit_cents=5000)
        decision = validate_bid(listing, "farmer-2", 4500, None, FARM_ADDRESS)
        assert isinstance(decision, BidAccepted)
        assert decision.delivery_address == FARM_ADDRESS

    @pytest.mark.parametrize("amount", [5000, 5001])
    def test_bid_at_or_above_price_is_too_high(self, amount: int) -> None:
        listing = make_listing(direction="offer_to_buy", price_per_unit_cents=5000)
        decision = validate_bid(listing, "farmer-2", amount, None, FARM_ADDRESS)
        assert isinstance(decision, BidRejected)
        assert isinstance(decision.error, BidTooHighError)

    def test_incomplete_owner_address_rejected(self) -> None:
        listing = make_listing(direction="offer_to_buy", price_per_unit_cents=5000)
        assert (
            _reason(validate_bid(listing, "farmer-2", 4500, None, Address(city="Pune")))
            == "owner_address_incomplete"
        )

    def test_supplied_address_is_ignored(self) -> None:
        listing = make_listing(direction="offer_to_buy", price_per_unit_cents=5000)
        decision = validate_bid(listing, "farmer-2", 4500, BUYER_ADDRESS, FARM_ADDRESS)
        assert isinstance(decision, BidAccepted)
        assert decision.delivery_address == FARM_ADDRESS


class TestRuleOrdering:
    @pytest.mark.parametrize("amount", [1, 5000, 999_999])
    def test_self_bid_forbidden_regardless_of_amount(self, amount: int) -> None:
        listing = make_listing(owner_id="farmer-1")
        decision = validate_bid(listing, "farmer-1", amount, BUYER_ADDRESS, None)
        assert isinstance(decision, BidRejected)
        assert isinstance(decision.error, SelfBidError)

    @pytest.mark.parametrize("status", ["expired", "cancelled", "settled_as_sale"])
    def test_inactive_listing_checked_first(self, status: str) -> None:
        listing = make_listing(owner_id="farmer-1", status=status)
        # even a self-bid reports the listing state first
        assert _reason(validate_bid(listing, "farmer-1", 1, None, None)) == "listing_not_active"

    def test_duplicate_pending_bid(self) -> None:
        listing = make_listing()
        listing.bids.append(make_bid(bidder_id="buyer-1", status="pending"))
        assert (
            _reason(validate_bid(listing, "buyer-1", 6000, BUYER_ADDRESS, None))
            == "duplicate_pending_bid"
        )

    def test_rebid_allowed_when_previous_bid_not_pending(self) -> None:
        listing = make_listing()
        listing.bids.append(make_bid(bidder_id="buyer-1", status="rejected"))
        decision = validate_bid(listing, "buyer-1", 6000, BUYER_ADDRESS, None)
        assert isinstance(decision, BidAccepted)

    def test_price_rule_before_duplicate_rule(self) -> None:
        listing = make_listing(price_per_unit_cents=5000)
        listing.bids.append(make_bid(bidder_id="buyer-1", status="pending"))
        assert _reason(validate_bid(listing, "buyer-1", 100, BUYER_ADDRESS, None)) == "bid_too_low"

    def test_duplicate_rule_before_address_rule(self) -> None:
        listing = make_listing()
        listing.bids.append(make_bid(bidder_id="buyer-1", status="pending"))
        assert (
            _reason(validate_bid(listing, "buyer-1", 6000, None, None)) == "duplicate_pending_bid"
        )
