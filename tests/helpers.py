"""Domain object factories shared by unit tests."""

import uuid
from datetime import UTC, datetime
from typing import Any

from src.am_common.address import Address
from src.am_gateway.user.db_models import UserModel
from src.am_listing.domain.models import Bid, Listing
from src.am_order.domain.models import Order

FARM_ADDRESS = Address(
    street="12 Mandi Road", city="Nashik", state="Maharashtra", postal_code="422001"
)
BUYER_ADDRESS = Address(
    street="4 Market Lane", city="Pune", state="Maharashtra", postal_code="411001"
)


def make_listing(**kwargs: Any) -> Listing:
    defaults: dict[str, Any] = dict(
        id="L-1",
        owner_id="farmer-1",
        title="Red onions",
        description="Grade A",
        category="vegetables",
        direction="offer_to_sell",
        price_per_unit_cents=5000,
        total_quantity=100,
        created_at=datetime.now(UTC),
        updated_at=datetime.now(UTC),
    )
    defaults.update(kwargs)
    return Listing(**defaults)


def make_bid(**kwargs: Any) -> Bid:
    defaults: dict[str, Any] = dict(
        id="B-1",
        listing_id="L-1",
        bidder_id="buyer-1",
        amount_cents=5500,
        delivery_address=BUYER_ADDRESS,
        submitted_at=datetime.now(UTC),
    )
    defaults.update(kwargs)
    return Bid(**defaults)


def make_order(**kwargs: Any) -> Order:
    defaults: dict[str, Any] = dict(
        id="O-1",
        order_number="ORD-20260914-0001",
        listing_id="L-1",
        seller_id="farmer-1",
        buyer_id="buyer-1",
        direction="offer_to_sell",
        quantity=100,
        agreed_price_per_unit_cents=5500,
        total_amount_cents=550000,
        commission_amount_cents=11000,
        seller_net_amount_cents=539000,
        buyer_payment_amount_cents=550000,
        commission_rate_bps=200,
        payment_method="cash_on_delivery",
        delivery_address=BUYER_ADDRESS,
        seller_location=FARM_ADDRESS,
        buyer_location=BUYER_ADDRESS,
        created_at=datetime.now(UTC),
        updated_at=datetime.now(UTC),
    )
    defaults.update(kwargs)
    return Order(**defaults)


def make_user(role: str = "buyer", user_id: uuid.UUID | None = None) -> UserModel:
    return UserModel(
        id=user_id or uuid.uuid4(),
        name="Test User",
        email=f"{role}@example.com",
        role=role,
        is_active=True,
    )
