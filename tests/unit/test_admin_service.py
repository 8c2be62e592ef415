"""Unit tests for AdminService: statistics shape and reconciliation handling."""
from datetime import UTC, datetime
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.am_admin.application.service import AdminService, _first_of_month_months_ago
from src.am_common.enums import ReconciliationStatus
from src.am_common.errors import ReconciliationNotFoundError
from src.am_settlement.domain.models import ReconciliationMarker
from tests.helpers import make_order


def _result(rows: list[SimpleNamespace]) -> MagicMock:
    result = MagicMock()
    result.fetchall.return_value = rows
    result.fetchone.return_value = rows[0] if rows else None
    return result


def _marker(**kwargs) -> ReconciliationMarker:
    defaults = dict(
        id="M-1",
        listing_id="L-1",
        bid_id="B-1",
        acting_user_id="farmer-1",
        order_id="O-1",
        order_number="ORD-20260914-0001",
        error="ConnectionResetError",
    )
    defaults.update(kwargs)
    return ReconciliationMarker(**defaults)


@pytest.fixture
def reconciliations() -> MagicMock:
    mock = MagicMock()
    mock.list_by_status = AsyncMock(return_value=[_marker()])
    mock.resolve = AsyncMock(
        return_value=_marker(status="resolved", resolved_by="admin-1", resolution_note="ok")
    )
    return mock


@pytest.fixture
def order_repo() -> MagicMock:
    mock = MagicMock()
    mock.get_by_listing_id = AsyncMock(return_value=make_order())
    return mock


@pytest.fixture
def listings() -> MagicMock:
    mock = MagicMock()
    mock.expire_due_listings = AsyncMock(return_value=["L-1", "L-2"])
    return mock


@pytest.fixture
def svc(listings, order_repo, reconciliations) -> AdminService:
    return AdminService(
        orders=MagicMock(),
        listings=listings,
        order_repo=order_repo,
        reconciliations=reconciliations,
    )


def test_first_of_month_wraps_year() -> None:
    now = datetime(2026, 3, 17, 15, 30, tzinfo=UTC)
    assert _first_of_month_months_ago(now, 5) == datetime(2025, 10, 1, tzinfo=UTC)
    assert _first_of_month_months_ago(now, 0) == datetime(2026, 3, 1, tzinfo=UTC)


async def test_order_stats(svc, db) -> None:
    db.execute.side_effect = [
        _result([
            SimpleNamespace(order_status="completed", count=3),
            SimpleNamespace(order_status="processing", count=2),
            SimpleNamespace(order_status="cancelled", count=1),
        ]),
        _result([
            SimpleNamespace(
                completed_orders=3,
                total_sales=1650000,
                total_commission=33000,
                total_paid_to_sellers=1617000,
                average_order=550000.0,
            )
        ]),
        _result([SimpleNamespace(orders=1, sales=550000, commission=11000)]),
        _result([SimpleNamespace(month="2026-09", orders=3, sales=1650000, commission=33000)]),
    ]
    stats = await svc.get_order_stats(db)
    assert stats["orders"] == {
        "total": 6,
        "completed": 3,
        "processing": 2,
        "cancelled": 1,
        "refunded": 0,
    }
    assert stats["money"]["total_sales_display"] == "₹16,500.00"
    assert stats["money"]["commission_earned_cents"] == 33000
    assert stats["money"]["average_order_cents"] == 550000
    assert stats["today"]["sales_cents"] == 550000
    assert stats["last_6_months"] == [
        {"month": "2026-09", "orders": 3, "sales_cents": 1650000, "commission_cents": 33000}
    ]


async def test_expire_listings(svc, db) -> None:
    assert await svc.expire_listings(db) == {"expired_count": 2, "listing_ids": ["L-1", "L-2"]}


async def test_list_reconciliations(svc, reconciliations, db) -> None:
    items = await svc.list_reconciliations(db, ReconciliationStatus.OPEN, 50)
    reconciliations.list_by_status.assert_awaited_once_with(db, "open", 50)
    assert items[0]["id"] == "M-1"
    assert items[0]["resolved_at"] is None


async def test_resolve_reports_persisted_order(svc, db) -> None:
    out = await svc.resolve_reconciliation(db, "M-1", "admin-1", "ok")
    db.commit.assert_awaited_once()
    assert out["status"] == "resolved"
    assert out["order_persisted"] is True
    assert out["persisted_order_number"] == "ORD-20260914-0001"


async def test_resolve_when_order_never_landed(svc, order_repo, db) -> None:
    order_repo.get_by_listing_id.return_value = None
    out = await svc.resolve_reconciliation(db, "M-1", "admin-1", None)
    assert out["order_persisted"] is False
    assert out["persisted_order_number"] is None


async def test_resolve_unknown_marker(svc, reconciliations, db) -> None:
    reconciliations.resolve.return_value = None
    with pytest.raises(ReconciliationNotFoundError):
        await svc.resolve_reconciliation(db, "M-404", "admin-1", None)
    db.rollback.assert_awaited_once()
    db.commit.assert_not_awaited()
