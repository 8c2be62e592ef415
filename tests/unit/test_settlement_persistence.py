"""Unit tests for the settlement-side SQL adapters with a mocked session."""
from contextlib import asynccontextmanager
from datetime import date
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

from src.am_gateway.user.profile import ProfileDirectory
from src.am_settlement.domain.models import ReconciliationMarker
from src.am_settlement.infrastructure.reconciliation import ReconciliationLog
from src.am_settlement.infrastructure.sequence import OrderNumberSequence


async def test_sequence_returns_counter(db) -> None:
    result = MagicMock()
    result.scalar_one.return_value = 7
    db.execute.return_value = result
    assert await OrderNumberSequence().next_value(db, date(2026, 9, 14)) == 7
    assert db.execute.call_args[0][1] == {"day": date(2026, 9, 14)}


async def test_profile_address_defaults_country(db) -> None:
    result = MagicMock()
    result.fetchone.return_value = SimpleNamespace(
        address_street="12 Mandi Road",
        address_city="Nashik",
        address_state="Maharashtra",
        address_postal_code="422001",
        address_country=None,
    )
    db.execute.return_value = result
    address = await ProfileDirectory().get_address(db, "farmer-1")
    assert address is not None
    assert address.city == "Nashik"
    assert address.country == "India"


async def test_profile_unknown_user(db) -> None:
    result = MagicMock()
    result.fetchone.return_value = None
    db.execute.return_value = result
    assert await ProfileDirectory().get_address(db, "ghost") is None


async def test_reconciliation_record_uses_own_session() -> None:
    session = MagicMock()
    session.execute = AsyncMock()
    session.commit = AsyncMock()

    @asynccontextmanager
    async def factory():
        yield session

    marker = ReconciliationMarker(
        id="M-1",
        listing_id="L-1",
        bid_id="B-1",
        acting_user_id="farmer-1",
        order_id="O-1",
        order_number="ORD-20260914-0001",
        error="x" * 5000,
    )
    await ReconciliationLog(session_factory=factory).record(marker)
    params = session.execute.call_args[0][1]
    assert params["status"] == "open"
    assert len(params["error"]) == 1000
    session.commit.assert_awaited_once()


async def test_reconciliation_resolve_missing(db) -> None:
    result = MagicMock()
    result.fetchone.return_value = None
    db.execute.return_value = result
    assert await ReconciliationLog().resolve(db, "M-404", "admin-1", None) is None
