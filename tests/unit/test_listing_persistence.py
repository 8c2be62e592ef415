# tests/unit/test_listing_persistence.py
"""Unit tests for ListingRepository using MagicMock AsyncSession."""
import json
from datetime import UTC, datetime
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.am_common.errors import ConcurrencyConflictError
from src.am_listing.infrastructure.persistence import ListingRepository
from tests.helpers import BUYER_ADDRESS, make_bid, make_listing


def _make_listing_row(**kwargs: Any) -> MagicMock:
    row = MagicMock()
    row.id = kwargs.get("id", "L-1")
    row.owner_id = kwargs.get("owner_id", "farmer-1")
    row.title = kwargs.get("title", "Red onions")
    row.description = kwargs.get("description", "")
    row.category = kwargs.get("category", "vegetables")
    row.direction = kwargs.get("direction", "offer_to_sell")
    row.price_per_unit_cents = kwargs.get("price_per_unit_cents", 5000)
    row.total_quantity = kwargs.get("total_quantity", 100)
    row.status = kwargs.get("status", "active")
    row.winning_bidder_id = kwargs.get("winning_bidder_id")
    row.winning_amount_cents = kwargs.get("winning_amount_cents")
    row.winning_accepted_at = kwargs.get("winning_accepted_at")
    row.settled_at = kwargs.get("settled_at")
    row.commission_earned_cents = kwargs.get("commission_earned_cents", 0)
    row.expires_at = kwargs.get("expires_at")
    row.version = kwargs.get("version", 3)
    row.created_at = kwargs.get("created_at", datetime.now(UTC))
    row.updated_at = kwargs.get("updated_at", datetime.now(UTC))
    return row


def _make_bid_row(**kwargs: Any) -> MagicMock:
    row = MagicMock()
    row.id = kwargs.get("id", "B-1")
    row.listing_id = kwargs.get("listing_id", "L-1")
    row.bidder_id = kwargs.get("bidder_id", "buyer-1")
    row.amount_cents = kwargs.get("amount_cents", 5500)
    row.status = kwargs.get("status", "pending")
    row.delivery_address = kwargs.get("delivery_address", json.dumps(BUYER_ADDRESS.to_dict()))
    row.payment_method = kwargs.get("payment_method", "cash_on_delivery")
    row.submitted_at = kwargs.get("submitted_at", datetime.now(UTC))
    return row


def _result(
    fetchone: Any = None, fetchall: list[Any] | None = None, rowcount: int = 1
) -> MagicMock:
    result = MagicMock()
    result.fetchone.return_value = fetchone
    result.fetchall.return_value = fetchall or []
    result.rowcount = rowcount
    return result


class TestListingRepository:
    async def test_insert_executes_once(self) -> None:
        db = AsyncMock()
        await ListingRepository().insert(db, make_listing())
        db.execute.assert_awaited_once()
        params = db.execute.call_args[0][1]
        assert params["direction"] == "offer_to_sell"
        assert params["version"] == 1

    async def test_get_returns_none_when_missing(self) -> None:
        db = AsyncMock()
        db.execute.return_value = _result(fetchone=None)
        assert await ListingRepository().get(db, "L-404") is None

    async def test_get_hydrates_bids(self) -> None:
        db = AsyncMock()
        db.execute.side_effect = [
            _result(fetchone=_make_listing_row()),
            _result(fetchall=[_make_bid_row(id="B-1"), _make_bid_row(id="B-2", bidder_id="b2")]),
        ]
        listing = await ListingRepository().get(db, "L-1")
        assert listing is not None
        assert [b.id for b in listing.bids] == ["B-1", "B-2"]
        assert listing.bids[0].delivery_address == BUYER_ADDRESS
        assert listing.version == 3

    async def test_get_maps_winning_bid(self) -> None:
        accepted_at = datetime.now(UTC)
        db = AsyncMock()
        db.execute.side_effect = [
            _result(
                fetchone=_make_listing_row(
                    status="settled_as_sale",
                    winning_bidder_id="buyer-1",
                    winning_amount_cents=5500,
                    winning_accepted_at=accepted_at,
                )
            ),
            _result(fetchall=[]),
        ]
        listing = await ListingRepository().get(db, "L-1")
        assert listing is not None and listing.winning_bid is not None
        assert listing.winning_bid.amount_cents == 5500
        assert listing.winning_bid.accepted_at == accepted_at

    async def test_save_bumps_version_and_upserts_bids(self) -> None:
        db = AsyncMock()
        db.execute.return_value = _result(rowcount=1)
        listing = make_listing(version=3)
        listing.bids.append(make_bid())
        await ListingRepository().save(db, listing)
        assert listing.version == 4
        assert db.execute.await_count == 2
        update_params = db.execute.call_args_list[0][0][1]
        assert update_params["expected_version"] == 3
        bid_params = db.execute.call_args_list[1][0][1]
        assert json.loads(bid_params[0]["delivery_address"])["city"] == "Pune"

    async def test_save_stale_version_raises_conflict(self) -> None:
        db = AsyncMock()
        db.execute.return_value = _result(rowcount=0)
        listing = make_listing(version=3)
        with pytest.raises(ConcurrencyConflictError):
            await ListingRepository().save(db, listing)
        assert listing.version == 3
        db.execute.assert_awaited_once()

    async def test_expire_due_rejects_pending_bids(self) -> None:
        db = AsyncMock()
        expired_row = MagicMock()
        expired_row.id = "L-1"
        db.execute.side_effect = [_result(fetchall=[expired_row]), _result()]
        ids = await ListingRepository().expire_due(db, datetime.now(UTC))
        assert ids == ["L-1"]
        assert db.execute.await_count == 2
        assert db.execute.call_args_list[1][0][1] == {"listing_ids_csv": "L-1"}

    async def test_expire_due_nothing_due(self) -> None:
        db = AsyncMock()
        db.execute.return_value = _result(fetchall=[])
        assert await ListingRepository().expire_due(db, datetime.now(UTC)) == []
        db.execute.assert_awaited_once()
