"""Post-settlement order transitions.

Each function checks the actor's relationship to the order, checks the
current state, then mutates the in-memory Order. The caller persists the
whole change in one versioned UPDATE, so coupled fields (e.g. delivered →
completed + delivered_at) are always written together.

Authorization matrix:
  delivery status   seller-of-record or admin
  payment status    seller-of-record or admin
  order status      admin only
  cancel            seller or buyer (admin cancels via order status)
  review            buyer only
"""
from dataclasses import dataclass
from datetime import datetime

from src.am_common.enums import DeliveryStatus, OrderStatus, PaymentStatus
from src.am_common.errors import (
    AdminRequiredError,
    InvalidRatingError,
    NotOrderPartyError,
    OrderNotCancellableError,
    OrderNotReviewableError,
    OrderNotUpdatableError,
)
from src.am_order.domain.models import Order


@dataclass(frozen=True)
class Actor:
    user_id: str
    is_admin: bool = False


def can_view(order: Order, actor: Actor) -> bool:
    return actor.is_admin or order.role_of(actor.user_id) is not None


def _require_seller_or_admin(order: Order, actor: Actor, action: str) -> None:
    if not actor.is_admin and actor.user_id != order.seller_id:
        raise NotOrderPartyError(action)


def apply_delivery_status(
    order: Order,
    actor: Actor,
    status: DeliveryStatus,
    now: datetime,
    tracking_number: str | None = None,
    shipping_provider: str | None = None,
    notes: str | None = None,
) -> None:
    _require_seller_or_admin(order, actor, "update delivery status of")
    if order.is_closed or order.delivery_status == DeliveryStatus.DELIVERED.value:
        raise OrderNotUpdatableError(order.id, f"{order.order_status}/{order.delivery_status}")
    if status == DeliveryStatus.CANCELLED:
        raise OrderNotUpdatableError(order.id, "cancel the order instead")

    order.delivery_status = status.value
    if tracking_number:
        order.tracking_number = tracking_number
    if shipping_provider:
        order.shipping_provider = shipping_provider
    if notes:
        order.notes = notes
    if status == DeliveryStatus.DELIVERED:
        order.order_status = OrderStatus.COMPLETED.value
        order.delivered_at = now


def apply_payment_status(order: Order, actor: Actor, status: PaymentStatus) -> None:
    _require_seller_or_admin(order, actor, "update payment status of")
    if order.is_closed:
        raise OrderNotUpdatableError(order.id, order.order_status)
    order.payment_status = status.value


def apply_order_status(
    order: Order,
    actor: Actor,
    status: OrderStatus,
    now: datetime,
    cancellation_reason: str | None = None,
    notes: str | None = None,
) -> None:
    if not actor.is_admin:
        raise AdminRequiredError()
    if order.is_closed:
        raise OrderNotUpdatableError(order.id, order.order_status)
    if status == OrderStatus.CANCELLED:
        _check_cancellable(order)

    order.order_status = status.value
    if notes:
        order.notes = notes
    if status == OrderStatus.COMPLETED and order.delivered_at is None:
        order.delivered_at = now
    elif status == OrderStatus.CANCELLED:
        _apply_cancellation(order, now, cancellation_reason or "Cancelled by admin")
    elif status == OrderStatus.REFUNDED:
        order.payment_status = PaymentStatus.REFUNDED.value


def cancel(order: Order, actor: Actor, now: datetime, reason: str | None = None) -> None:
    role = order.role_of(actor.user_id)
    if role is None:
        raise NotOrderPartyError("cancel")
    _check_cancellable(order)
    _apply_cancellation(order, now, reason or f"Cancelled by {role}")


def _check_cancellable(order: Order) -> None:
    if order.order_status in (OrderStatus.COMPLETED.value, OrderStatus.CANCELLED.value):
        raise OrderNotCancellableError(order.id, f"order is already {order.order_status}")
    if order.delivery_status == DeliveryStatus.DELIVERED.value:
        raise OrderNotCancellableError(order.id, "order has been delivered")


def _apply_cancellation(order: Order, now: datetime, reason: str) -> None:
    order.order_status = OrderStatus.CANCELLED.value
    order.delivery_status = DeliveryStatus.CANCELLED.value
    order.payment_status = PaymentStatus.REFUNDED.value
    order.cancelled_at = now
    order.cancellation_reason = reason


def attach_review(
    order: Order, actor: Actor, rating: int, review: str | None, now: datetime
) -> None:
    if actor.user_id != order.buyer_id:
        raise NotOrderPartyError("review")
    if order.order_status != OrderStatus.COMPLETED.value:
        raise OrderNotReviewableError(order.id, "only completed orders can be reviewed")
    if order.rating is not None or order.reviewed_at is not None:
        raise OrderNotReviewableError(order.id, "order already reviewed")
    if not (1 <= rating <= 5):
        raise InvalidRatingError(rating)

    order.rating = rating
    order.review = review
    order.reviewed_at = now
