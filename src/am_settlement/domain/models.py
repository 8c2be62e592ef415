"""Settlement result and reconciliation marker."""

from dataclasses import dataclass
from datetime import datetime

from src.am_common.enums import ReconciliationStatus
from src.am_listing.domain.models import Listing
from src.am_order.domain.models import Order
from src.am_settlement.domain.settlement import FinancialSummary


@dataclass
class SettlementResult:
    order: Order
    financials: FinancialSummary
    listing: Listing


@dataclass
class ReconciliationMarker:
    """Written when a settlement commit failed or timed out with unknown outcome.

    An operator compares the listing and the orders table and resolves it.
    """
    id: str
    listing_id: str
    bid_id: str
    acting_user_id: str
    order_id: str | None
    order_number: str | None
    error: str
    status: str = ReconciliationStatus.OPEN.value
    resolved_by: str | None = None
    resolution_note: str | None = None
    resolved_at: datetime | None = None
    created_at: datetime | None = None
