"""Pydantic schemas for the order API."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from src.am_common.enums import OrderStatus, PaymentStatus
from src.am_common.money import bps_to_rate, cents_to_display
from src.am_listing.application.schemas import AddressOut
from src.am_order.domain.models import Order

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class UpdateDeliveryStatusRequest(BaseModel):
    # cancellation goes through PUT /orders/{id}/cancel
    delivery_status: Literal["pending", "confirmed", "shipped", "out_for_delivery", "delivered"]
    tracking_number: str | None = Field(None, max_length=64)
    shipping_provider: str | None = Field(None, max_length=64)
    notes: str | None = Field(None, max_length=1000)


class UpdatePaymentStatusRequest(BaseModel):
    payment_status: PaymentStatus


class UpdateOrderStatusRequest(BaseModel):
    order_status: OrderStatus
    cancellation_reason: str | None = Field(None, max_length=500)
    notes: str | None = Field(None, max_length=1000)


class CancelOrderRequest(BaseModel):
    cancellation_reason: str | None = Field(None, max_length=500)


class ReviewOrderRequest(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    review: str | None = Field(None, max_length=1000)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class OrderOut(BaseModel):
    id: str
    order_number: str
    listing_id: str
    seller_id: str
    buyer_id: str
    direction: str
    quantity: int
    agreed_price_per_unit_cents: int
    total_amount_cents: int
    total_amount_display: str
    commission_amount_cents: int
    commission_amount_display: str
    seller_net_amount_cents: int
    seller_net_amount_display: str
    buyer_payment_amount_cents: int
    commission_rate: float
    payment_method: str
    delivery_address: AddressOut
    seller_location: AddressOut | None
    buyer_location: AddressOut | None
    expected_delivery_at: datetime | None
    notes: str | None
    order_status: str
    delivery_status: str
    payment_status: str
    tracking_number: str | None
    shipping_provider: str | None
    delivered_at: datetime | None
    cancelled_at: datetime | None
    cancellation_reason: str | None
    rating: int | None
    review: str | None
    reviewed_at: datetime | None
    version: int
    created_at: datetime | None

    @classmethod
    def from_domain(cls, order: Order) -> "OrderOut":
        return cls(
            id=order.id,
            order_number=order.order_number,
            listing_id=order.listing_id,
            seller_id=order.seller_id,
            buyer_id=order.buyer_id,
            direction=order.direction,
            quantity=order.quantity,
            agreed_price_per_unit_cents=order.agreed_price_per_unit_cents,
            total_amount_cents=order.total_amount_cents,
            total_amount_display=cents_to_display(order.total_amount_cents),
            commission_amount_cents=order.commission_amount_cents,
            commission_amount_display=cents_to_display(order.commission_amount_cents),
            seller_net_amount_cents=order.seller_net_amount_cents,
            seller_net_amount_display=cents_to_display(order.seller_net_amount_cents),
            buyer_payment_amount_cents=order.buyer_payment_amount_cents,
            commission_rate=bps_to_rate(order.commission_rate_bps),
            payment_method=order.payment_method,
            delivery_address=AddressOut.from_domain(order.delivery_address),
            seller_location=(
                AddressOut.from_domain(order.seller_location) if order.seller_location else None
            ),
            buyer_location=(
                AddressOut.from_domain(order.buyer_location) if order.buyer_location else None
            ),
            expected_delivery_at=order.expected_delivery_at,
            notes=order.notes,
            order_status=order.order_status,
            delivery_status=order.delivery_status,
            payment_status=order.payment_status,
            tracking_number=order.tracking_number,
            shipping_provider=order.shipping_provider,
            delivered_at=order.delivered_at,
            cancelled_at=order.cancelled_at,
            cancellation_reason=order.cancellation_reason,
            rating=order.rating,
            review=order.review,
            reviewed_at=order.reviewed_at,
            version=order.version,
            created_at=order.created_at,
        )


class OrderDetailResponse(BaseModel):
    order: OrderOut
    viewer_role: Literal["seller", "buyer", "admin"]


class OrderListResponse(BaseModel):
    items: list[OrderOut]
    next_cursor: str | None
    has_more: bool
