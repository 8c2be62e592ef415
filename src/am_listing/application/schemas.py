"""Pydantic schemas for the listing and bidding API."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from src.am_common.address import Address
from src.am_common.enums import ListingCategory, PaymentMethod
from src.am_common.money import cents_to_display
from src.am_listing.domain.models import Bid, Listing

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class AddressIn(BaseModel):
    street: str = ""
    city: str = ""
    state: str = ""
    postal_code: str = ""
    country: str | None = None

    def to_domain(self, default_country: str) -> Address:
        return Address(
            street=self.street.strip(),
            city=self.city.strip(),
            state=self.state.strip(),
            postal_code=self.postal_code.strip(),
            country=(self.country or default_country).strip(),
        )


class CreateListingRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=100)
    description: str = Field("", max_length=1000)
    category: ListingCategory = ListingCategory.OTHER
    direction: Literal["offer_to_sell", "offer_to_buy"]
    price_per_unit_cents: int = Field(..., gt=0)
    total_quantity: int = Field(..., gt=0)
    expires_at: datetime | None = None

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("title must not be blank")
        return v


class SubmitBidRequest(BaseModel):
    amount_cents: int = Field(..., gt=0, description="Offered price per unit in cents")
    delivery_address: AddressIn | None = Field(
        None, description="Required when bidding on an offer_to_sell listing"
    )
    payment_method: PaymentMethod | None = None


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class AddressOut(BaseModel):
    street: str
    city: str
    state: str
    postal_code: str
    country: str

    @classmethod
    def from_domain(cls, address: Address) -> "AddressOut":
        return cls(**address.to_dict())


class BidOut(BaseModel):
    id: str
    listing_id: str
    bidder_id: str
    amount_cents: int
    amount_display: str
    status: str
    delivery_address: AddressOut
    payment_method: str
    submitted_at: datetime | None

    @classmethod
    def from_domain(cls, bid: Bid) -> "BidOut":
        return cls(
            id=bid.id,
            listing_id=bid.listing_id,
            bidder_id=bid.bidder_id,
            amount_cents=bid.amount_cents,
            amount_display=cents_to_display(bid.amount_cents),
            status=bid.status,
            delivery_address=AddressOut.from_domain(bid.delivery_address),
            payment_method=bid.payment_method,
            submitted_at=bid.submitted_at,
        )


class WinningBidOut(BaseModel):
    bidder_id: str
    amount_cents: int
    accepted_at: datetime


class ListingSummary(BaseModel):
    id: str
    owner_id: str
    title: str
    category: str
    direction: str
    price_per_unit_cents: int
    price_per_unit_display: str
    total_quantity: int
    status: str

    @classmethod
    def from_domain(cls, listing: Listing) -> "ListingSummary":
        return cls(
            id=listing.id,
            owner_id=listing.owner_id,
            title=listing.title,
            category=listing.category,
            direction=listing.direction,
            price_per_unit_cents=listing.price_per_unit_cents,
            price_per_unit_display=cents_to_display(listing.price_per_unit_cents),
            total_quantity=listing.total_quantity,
            status=listing.status,
        )


class ListingOut(ListingSummary):
    description: str
    bids: list[BidOut]
    winning_bid: WinningBidOut | None
    settled_at: datetime | None
    commission_earned_cents: int
    expires_at: datetime | None
    version: int
    created_at: datetime | None

    @classmethod
    def from_domain(cls, listing: Listing) -> "ListingOut":
        winning = listing.winning_bid
        return cls(
            **ListingSummary.from_domain(listing).model_dump(),
            description=listing.description,
            bids=[BidOut.from_domain(b) for b in listing.bids],
            winning_bid=(
                WinningBidOut(
                    bidder_id=winning.bidder_id,
                    amount_cents=winning.amount_cents,
                    accepted_at=winning.accepted_at,
                )
                if winning
                else None
            ),
            settled_at=listing.settled_at,
            commission_earned_cents=listing.commission_earned_cents,
            expires_at=listing.expires_at,
            version=listing.version,
            created_at=listing.created_at,
        )


class ListingDetailResponse(BaseModel):
    listing: ListingOut
    my_bid: BidOut | None
    can_accept_bids: bool


class SubmitBidResponse(BaseModel):
    bid: BidOut
    listing: ListingOut


class BidHistoryItem(BaseModel):
    listing: ListingSummary
    my_bid: BidOut
    all_my_bids: list[BidOut]
    is_winner: bool
    winning_bid: WinningBidOut | None
    total_bids_on_listing: int


class BidHistoryResponse(BaseModel):
    items: list[BidHistoryItem]
    next_cursor: str | None
    has_more: bool


class ListingListResponse(BaseModel):
    items: list[ListingOut]
    next_cursor: str | None
    has_more: bool
