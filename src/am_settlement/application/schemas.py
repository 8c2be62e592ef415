"""Pydantic schemas for the settlement API."""

from pydantic import BaseModel

from src.am_common.money import bps_to_rate, cents_to_display
from src.am_listing.application.schemas import ListingOut
from src.am_order.application.schemas import OrderOut
from src.am_settlement.domain.models import SettlementResult
from src.am_settlement.domain.settlement import FinancialSummary


class FinancialsOut(BaseModel):
    total_amount_cents: int
    total_amount_display: str
    commission_amount_cents: int
    commission_amount_display: str
    seller_net_amount_cents: int
    seller_net_amount_display: str
    commission_rate: float

    @classmethod
    def from_domain(cls, fin: FinancialSummary) -> "FinancialsOut":
        return cls(
            total_amount_cents=fin.total_amount_cents,
            total_amount_display=cents_to_display(fin.total_amount_cents),
            commission_amount_cents=fin.commission_amount_cents,
            commission_amount_display=cents_to_display(fin.commission_amount_cents),
            seller_net_amount_cents=fin.seller_net_amount_cents,
            seller_net_amount_display=cents_to_display(fin.seller_net_amount_cents),
            commission_rate=bps_to_rate(fin.commission_rate_bps),
        )


class AcceptBidResponse(BaseModel):
    order: OrderOut
    financials: FinancialsOut
    listing: ListingOut

    @classmethod
    def from_domain(cls, result: SettlementResult) -> "AcceptBidResponse":
        return cls(
            order=OrderOut.from_domain(result.order),
            financials=FinancialsOut.from_domain(result.financials),
            listing=ListingOut.from_domain(result.listing),
        )
