"""Global enums: must match DB CHECK constraints exactly."""

from enum import Enum


class UserRole(str, Enum):
    SELLER = "seller"
    BUYER = "buyer"
    ADMIN = "admin"


class ListingDirection(str, Enum):
    """Sell-offers are outbid (buyers bid higher), buy-offers are underbid."""
    OFFER_TO_SELL = "offer_to_sell"
    OFFER_TO_BUY = "offer_to_buy"


class ListingStatus(str, Enum):
    ACTIVE = "active"
    SETTLED_AS_SALE = "settled_as_sale"
    SETTLED_AS_PURCHASE = "settled_as_purchase"
    EXPIRED = "expired"
    CANCELLED = "cancelled"


SETTLED_LISTING_STATUSES: frozenset[str] = frozenset(
    {ListingStatus.SETTLED_AS_SALE.value, ListingStatus.SETTLED_AS_PURCHASE.value}
)


class ListingCategory(str, Enum):
    VEGETABLES = "vegetables"
    FRUITS = "fruits"
    GRAINS = "grains"
    DAIRY = "dairy"
    POULTRY = "poultry"
    OTHER = "other"


class BidStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class PaymentMethod(str, Enum):
    CASH_ON_DELIVERY = "cash_on_delivery"
    BANK_TRANSFER = "bank_transfer"
    UPI = "upi"
    CARD = "card"


class OrderStatus(str, Enum):
    PROCESSING = "processing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class DeliveryStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    SHIPPED = "shipped"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


class ReconciliationStatus(str, Enum):
    OPEN = "open"
    RESOLVED = "resolved"
