"""Order domain model: pure dataclass, no SQLAlchemy dependency.

Financial fields are fixed at settlement time. Only the status, tracking,
note and review fields change afterwards (see domain/lifecycle.py).
"""
from dataclasses import dataclass
from datetime import datetime

from src.am_common.address import Address
from src.am_common.enums import DeliveryStatus, OrderStatus, PaymentStatus


@dataclass
class Order:
    id: str
    order_number: str  # ORD-YYYYMMDD-NNNN
    listing_id: str
    seller_id: str
    buyer_id: str
    direction: str
    quantity: int
    # Financials (cents)
    agreed_price_per_unit_cents: int
    total_amount_cents: int
    commission_amount_cents: int
    seller_net_amount_cents: int
    buyer_payment_amount_cents: int
    commission_rate_bps: int
    payment_method: str
    delivery_address: Address
    seller_location: Address | None = None
    buyer_location: Address | None = None
    expected_delivery_at: datetime | None = None
    notes: str | None = None
    # Lifecycle
    order_status: str = OrderStatus.PROCESSING.value
    delivery_status: str = DeliveryStatus.PENDING.value
    payment_status: str = PaymentStatus.PENDING.value
    tracking_number: str | None = None
    shipping_provider: str | None = None
    delivered_at: datetime | None = None
    cancelled_at: datetime | None = None
    cancellation_reason: str | None = None
    rating: int | None = None
    review: str | None = None
    reviewed_at: datetime | None = None
    version: int = 1
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def role_of(self, user_id: str) -> str | None:
        if user_id == self.seller_id:
            return "seller"
        if user_id == self.buyer_id:
            return "buyer"
        return None

    @property
    def is_closed(self) -> bool:
        return self.order_status in (OrderStatus.CANCELLED.value, OrderStatus.REFUNDED.value)
