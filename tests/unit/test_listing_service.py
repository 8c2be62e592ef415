"""Unit tests for ListingApplicationService using mock repository."""
import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import IntegrityError

from config.settings import settings
from src.am_common.errors import (
    ConcurrencyConflictError,
    DuplicatePendingBidError,
    ListingAccessDeniedError,
    ListingNotActiveError,
    ListingNotFoundError,
    NotListingOwnerError,
    OwnerAddressIncompleteError,
    SelfBidError,
    OperationTimeoutError,
)
from src.am_listing.application.schemas import (
    AddressIn,
    CreateListingRequest,
    SubmitBidRequest,
)
from src.am_listing.application.service import ListingApplicationService
from src.am_listing.domain.models import WinningBid
from src.am_notify.publisher import BID_SUBMITTED, LISTING_CANCELLED
from tests.helpers import FARM_ADDRESS, make_bid, make_listing

_ADDRESS_IN = AddressIn(street="4 Market Lane", city="Pune", state="MH", postal_code="411001")


@pytest.fixture
def repo() -> MagicMock:
    mock = MagicMock()
    mock.insert = AsyncMock()
    mock.save = AsyncMock()
    mock.get = AsyncMock(return_value=make_listing())
    return mock


@pytest.fixture
def profiles() -> MagicMock:
    mock = MagicMock()
    mock.get_address = AsyncMock(return_value=FARM_ADDRESS)
    return mock


@pytest.fixture
def notifier() -> MagicMock:
    mock = MagicMock()
    mock.publish = AsyncMock()
    return mock


@pytest.fixture
def svc(repo: MagicMock, profiles: MagicMock, notifier: MagicMock) -> ListingApplicationService:
    return ListingApplicationService(repo=repo, profiles=profiles, notifier=notifier)


class TestCreateListing:
    async def test_creates_active_listing(self, svc, repo, db) -> None:
        req = CreateListingRequest(
            title="  Basmati rice ",
            direction="offer_to_sell",
            price_per_unit_cents=9000,
            total_quantity=50,
            category="grains",
        )
        out = await svc.create_listing(db, "farmer-1", req)
        assert out.title == "Basmati rice"
        assert out.status == "active"
        assert out.owner_id == "farmer-1"
        assert out.bids == []
        repo.insert.assert_awaited_once()
        db.commit.assert_awaited_once()

    async def test_insert_failure_rolls_back(self, svc, repo, db) -> None:
        repo.insert.side_effect = RuntimeError("db down")
        req = CreateListingRequest(
            title="Rice", direction="offer_to_buy", price_per_unit_cents=9000, total_quantity=5
        )
        with pytest.raises(RuntimeError):
            await svc.create_listing(db, "buyer-1", req)
        db.rollback.assert_awaited_once()
        db.commit.assert_not_awaited()


class TestSubmitBid:
    async def test_appends_pending_bid_and_notifies(self, svc, repo, notifier, db) -> None:
        resp = await svc.submit_bid(
            db,
            "L-1",
            "buyer-1",
            SubmitBidRequest(amount_cents=5500, delivery_address=_ADDRESS_IN),
        )
        assert resp.bid.status == "pending"
        assert resp.bid.payment_method == "cash_on_delivery"
        assert resp.bid.delivery_address.city == "Pune"
        assert resp.bid.delivery_address.country == "India"
        assert len(resp.listing.bids) == 1
        repo.save.assert_awaited_once()
        db.commit.assert_awaited_once()
        event_type, payload = notifier.publish.call_args[0]
        assert event_type == BID_SUBMITTED
        assert payload["owner_id"] == "farmer-1"

    async def test_self_bid_rejected_without_write(self, svc, repo, notifier, db) -> None:
        with pytest.raises(SelfBidError):
            await svc.submit_bid(
                db,
                "L-1",
                "farmer-1",
                SubmitBidRequest(amount_cents=9999, delivery_address=_ADDRESS_IN),
            )
        repo.save.assert_not_awaited()
        db.rollback.assert_awaited()
        notifier.publish.assert_not_awaited()

    async def test_second_pending_bid_rejected(self, svc, repo, db) -> None:
        listing = make_listing()
        listing.bids.append(make_bid(bidder_id="buyer-1"))
        repo.get.return_value = listing
        with pytest.raises(DuplicatePendingBidError):
            await svc.submit_bid(
                db,
                "L-1",
                "buyer-1",
                SubmitBidRequest(amount_cents=6000, delivery_address=_ADDRESS_IN),
            )
        assert len(listing.bids) == 1

    async def test_buy_listing_takes_owner_profile_address(self, svc, repo, profiles, db) -> None:
        repo.get.return_value = make_listing(direction="offer_to_buy", owner_id="buyer-9")
        resp = await svc.submit_bid(db, "L-1", "farmer-2", SubmitBidRequest(amount_cents=4500))
        profiles.get_address.assert_awaited_once_with(db, "buyer-9")
        assert resp.bid.delivery_address.street == FARM_ADDRESS.street

    async def test_buy_listing_with_incomplete_owner_address(self, svc, repo, profiles, db) -> None:
        repo.get.return_value = make_listing(direction="offer_to_buy", owner_id="buyer-9")
        profiles.get_address.return_value = None
        with pytest.raises(OwnerAddressIncompleteError):
            await svc.submit_bid(db, "L-1", "farmer-2", SubmitBidRequest(amount_cents=4500))

    async def test_missing_listing(self, svc, repo, db) -> None:
        repo.get.return_value = None
        with pytest.raises(ListingNotFoundError):
            await svc.submit_bid(db, "L-404", "buyer-1", SubmitBidRequest(amount_cents=5500))

    async def test_version_conflict_rereads_and_retries(self, svc, repo, db) -> None:
        repo.get.side_effect = lambda *_: make_listing()
        repo.save.side_effect = [ConcurrencyConflictError("Listing", "L-1"), None]
        resp = await svc.submit_bid(
            db,
            "L-1",
            "buyer-1",
            SubmitBidRequest(amount_cents=5500, delivery_address=_ADDRESS_IN),
        )
        assert resp.bid.amount_cents == 5500
        assert repo.get.await_count == 2
        db.rollback.assert_awaited_once()
        db.commit.assert_awaited_once()

    async def test_pending_index_violation_treated_as_conflict(self, svc, repo, db) -> None:
        repo.get.side_effect = lambda *_: make_listing()
        repo.save.side_effect = IntegrityError("INSERT", {}, Exception("uq_bids_one_pending"))
        with pytest.raises(ConcurrencyConflictError):
            await svc.submit_bid(
                db,
                "L-1",
                "buyer-1",
                SubmitBidRequest(amount_cents=5500, delivery_address=_ADDRESS_IN),
            )
        assert repo.save.await_count == settings.OPTIMISTIC_RETRY_ATTEMPTS

    async def test_slow_storage_times_out(self, svc, repo, db, monkeypatch) -> None:
        monkeypatch.setattr(settings, "SETTLEMENT_TIMEOUT_SECONDS", 0.01)

        async def slow_get(*_args: object) -> None:
            await asyncio.sleep(1)

        repo.get.side_effect = slow_get
        with pytest.raises(OperationTimeoutError) as exc:
            await svc.submit_bid(
                db,
                "L-1",
                "buyer-1",
                SubmitBidRequest(amount_cents=5500, delivery_address=_ADDRESS_IN),
            )
        assert exc.value.operation == "bid submission"
        db.rollback.assert_awaited()
        db.commit.assert_not_awaited()

    async def test_rebid_after_listing_settled_hits_listing_state(self, svc, repo, db) -> None:
        listing = make_listing(status="settled_as_sale")
        listing.bids += [
            make_bid(id="B-1", bidder_id="buyer-1", status="rejected"),
            make_bid(id="B-2", bidder_id="buyer-2", status="accepted"),
        ]
        repo.get.return_value = listing
        with pytest.raises(ListingNotActiveError):
            await svc.submit_bid(
                db,
                "L-1",
                "buyer-1",
                SubmitBidRequest(amount_cents=6000, delivery_address=_ADDRESS_IN),
            )


class TestViewAndCancel:
    async def test_owner_sees_all_bids(self, svc, repo, db) -> None:
        listing = make_listing()
        listing.bids += [make_bid(id="B-1"), make_bid(id="B-2", bidder_id="buyer-2")]
        repo.get.return_value = listing
        resp = await svc.get_listing_with_bids(db, "L-1", "farmer-1")
        assert len(resp.listing.bids) == 2
        assert resp.can_accept_bids is True
        assert resp.my_bid is None

    async def test_bidder_sees_own_bid(self, svc, repo, db) -> None:
        listing = make_listing()
        listing.bids.append(make_bid(id="B-1", bidder_id="buyer-1"))
        repo.get.return_value = listing
        resp = await svc.get_listing_with_bids(db, "L-1", "buyer-1")
        assert resp.my_bid is not None and resp.my_bid.id == "B-1"
        assert resp.can_accept_bids is False

    async def test_stranger_denied(self, svc, db) -> None:
        with pytest.raises(ListingAccessDeniedError):
            await svc.get_listing_with_bids(db, "L-1", "someone-else")

    async def test_cancel_by_owner(self, svc, repo, notifier, db) -> None:
        listing = make_listing()
        listing.bids.append(make_bid())
        repo.get.return_value = listing
        out = await svc.cancel_listing(db, "L-1", "farmer-1")
        assert out.status == "cancelled"
        assert out.bids[0].status == "rejected"
        assert notifier.publish.call_args[0][0] == LISTING_CANCELLED

    async def test_cancel_by_non_owner(self, svc, db) -> None:
        with pytest.raises(NotListingOwnerError):
            await svc.cancel_listing(db, "L-1", "buyer-1")
        db.rollback.assert_awaited_once()


class TestBidHistory:
    async def test_lists_user_bids_with_winner_flag(self, svc, repo, db) -> None:
        won = make_listing(id="L-2", status="settled_as_sale")
        won.bids.append(
            make_bid(id="B-9", listing_id="L-2", bidder_id="buyer-1", status="accepted")
        )
        won.winning_bid = WinningBid(
            bidder_id="buyer-1", amount_cents=5500, accepted_at=won.created_at
        )
        open_listing = make_listing(id="L-1")
        open_listing.bids.append(make_bid(bidder_id="buyer-1"))
        repo.list_bid_on_by = AsyncMock(return_value=[won, open_listing])

        resp = await svc.list_bids_for_user(db, "buyer-1", None, None, 10)

        assert [i.listing.id for i in resp.items] == ["L-2", "L-1"]
        assert resp.items[0].is_winner is True
        assert resp.items[1].is_winner is False
        assert resp.has_more is False

    async def test_has_more_when_over_limit(self, svc, repo, db) -> None:
        listings = []
        for i in range(3):
            lst = make_listing(id=f"L-{i}")
            lst.bids.append(make_bid(listing_id=f"L-{i}", bidder_id="buyer-1"))
            listings.append(lst)
        repo.list_bid_on_by = AsyncMock(return_value=listings)
        resp = await svc.list_bids_for_user(db, "buyer-1", None, None, 2)
        assert resp.has_more is True
        assert len(resp.items) == 2
        assert resp.next_cursor is not None

    async def test_list_wins(self, svc, repo, db) -> None:
        repo.list_won_by = AsyncMock(return_value=[make_listing(status="settled_as_sale")])
        resp = await svc.list_wins(db, "buyer-1", None, 10)
        assert len(resp.items) == 1
        assert resp.has_more is False
