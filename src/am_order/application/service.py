"""OrderApplicationService: order queries and post-settlement lifecycle.

Every lifecycle write follows the same shape: load the order, apply the
pure transition from domain/lifecycle.py, persist with the version guard,
commit. A version conflict re-runs the whole sequence against fresh state.
"""

import logging
from collections.abc import Callable

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.am_common.datetime_utils import utc_now
from src.am_common.enums import DeliveryStatus, OrderStatus, PaymentStatus
from src.am_common.errors import NotOrderPartyError, OrderNotFoundError
from src.am_common.pagination import cursor_decode, cursor_encode
from src.am_common.retry import retry_on_conflict
from src.am_notify.publisher import (
    ORDER_CANCELLED,
    ORDER_DELIVERED,
    NotifierProtocol,
    RedisNotifier,
)
from src.am_order.application.schemas import (
    CancelOrderRequest,
    OrderDetailResponse,
    OrderListResponse,
    OrderOut,
    ReviewOrderRequest,
    UpdateDeliveryStatusRequest,
    UpdateOrderStatusRequest,
    UpdatePaymentStatusRequest,
)
from src.am_order.domain import lifecycle
from src.am_order.domain.lifecycle import Actor
from src.am_order.domain.models import Order
from src.am_order.domain.repository import OrderFilter, OrderRepositoryProtocol
from src.am_order.infrastructure.persistence import OrderRepository

logger = logging.getLogger(__name__)


class OrderApplicationService:
    def __init__(
        self,
        repo: OrderRepositoryProtocol | None = None,
        notifier: NotifierProtocol | None = None,
    ) -> None:
        self._repo: OrderRepositoryProtocol = repo or OrderRepository()
        self._notifier: NotifierProtocol = notifier or RedisNotifier()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def list_my_orders(
        self,
        db: AsyncSession,
        user_id: str,
        role: str | None = None,
        order_status: str | None = None,
        delivery_status: str | None = None,
        payment_status: str | None = None,
        cursor: str | None = None,
        limit: int = 20,
    ) -> OrderListResponse:
        flt = OrderFilter(
            party_id=user_id if role is None else None,
            seller_id=user_id if role == "seller" else None,
            buyer_id=user_id if role == "buyer" else None,
            order_status=order_status,
            delivery_status=delivery_status,
            payment_status=payment_status,
        )
        return await self.list_orders(db, flt, cursor, limit)

    async def list_orders(
        self,
        db: AsyncSession,
        flt: OrderFilter,
        cursor: str | None,
        limit: int,
    ) -> OrderListResponse:
        orders = await self._repo.list_orders(db, flt, limit + 1, cursor_decode(cursor))
        has_more = len(orders) > limit
        page = orders[:limit]
        next_cursor = cursor_encode(page[-1].id) if has_more and page else None
        return OrderListResponse(
            items=[OrderOut.from_domain(o) for o in page],
            next_cursor=next_cursor,
            has_more=has_more,
        )

    async def get_order(
        self, db: AsyncSession, order_id: str, actor: Actor
    ) -> OrderDetailResponse:
        order = await self._repo.get_by_id(db, order_id)
        if order is None:
            raise OrderNotFoundError(order_id)
        if not lifecycle.can_view(order, actor):
            raise NotOrderPartyError("view")
        role = order.role_of(actor.user_id) or "admin"
        return OrderDetailResponse(order=OrderOut.from_domain(order), viewer_role=role)

    # ------------------------------------------------------------------
    # Lifecycle writes
    # ------------------------------------------------------------------

    async def update_delivery_status(
        self, db: AsyncSession, order_id: str, actor: Actor, req: UpdateDeliveryStatusRequest
    ) -> OrderOut:
        status = DeliveryStatus(req.delivery_status)
        order = await self._transition(
            db,
            order_id,
            lambda o: lifecycle.apply_delivery_status(
                o,
                actor,
                status,
                utc_now(),
                tracking_number=req.tracking_number,
                shipping_provider=req.shipping_provider,
                notes=req.notes,
            ),
            f"delivery status of order {order_id}",
        )
        logger.info("Order %s delivery status -> %s", order.order_number, status.value)
        if status == DeliveryStatus.DELIVERED:
            await self._notifier.publish(ORDER_DELIVERED, _event_payload(order))
        return OrderOut.from_domain(order)

    async def update_payment_status(
        self, db: AsyncSession, order_id: str, actor: Actor, req: UpdatePaymentStatusRequest
    ) -> OrderOut:
        status = PaymentStatus(req.payment_status)
        order = await self._transition(
            db,
            order_id,
            lambda o: lifecycle.apply_payment_status(o, actor, status),
            f"payment status of order {order_id}",
        )
        logger.info("Order %s payment status -> %s", order.order_number, status.value)
        return OrderOut.from_domain(order)

    async def update_order_status(
        self, db: AsyncSession, order_id: str, actor: Actor, req: UpdateOrderStatusRequest
    ) -> OrderOut:
        status = OrderStatus(req.order_status)
        order = await self._transition(
            db,
            order_id,
            lambda o: lifecycle.apply_order_status(
                o,
                actor,
                status,
                utc_now(),
                cancellation_reason=req.cancellation_reason,
                notes=req.notes,
            ),
            f"status of order {order_id}",
        )
        logger.info(
            "Order %s status -> %s by admin %s", order.order_number, status.value, actor.user_id
        )
        if status == OrderStatus.CANCELLED:
            await self._notifier.publish(ORDER_CANCELLED, _event_payload(order))
        return OrderOut.from_domain(order)

    async def cancel_order(
        self, db: AsyncSession, order_id: str, actor: Actor, req: CancelOrderRequest
    ) -> OrderOut:
        order = await self._transition(
            db,
            order_id,
            lambda o: lifecycle.cancel(o, actor, utc_now(), req.cancellation_reason),
            f"cancel order {order_id}",
        )
        logger.info("Order %s cancelled: %s", order.order_number, order.cancellation_reason)
        await self._notifier.publish(ORDER_CANCELLED, _event_payload(order))
        return OrderOut.from_domain(order)

    async def review_order(
        self, db: AsyncSession, order_id: str, actor: Actor, req: ReviewOrderRequest
    ) -> OrderOut:
        order = await self._transition(
            db,
            order_id,
            lambda o: lifecycle.attach_review(o, actor, req.rating, req.review, utc_now()),
            f"review order {order_id}",
            review=True,
        )
        logger.info("Order %s reviewed (rating=%d)", order.order_number, req.rating)
        return OrderOut.from_domain(order)

    async def _transition(
        self,
        db: AsyncSession,
        order_id: str,
        mutate: Callable[[Order], None],
        label: str,
        review: bool = False,
    ) -> Order:
        async def attempt() -> Order:
            try:
                order = await self._repo.get_by_id(db, order_id)
                if order is None:
                    raise OrderNotFoundError(order_id)
                mutate(order)
                if review:
                    await self._repo.save_review(db, order)
                else:
                    await self._repo.update_lifecycle(db, order)
                await db.commit()
            except Exception:
                await db.rollback()
                raise
            return order

        return await retry_on_conflict(attempt, settings.OPTIMISTIC_RETRY_ATTEMPTS, label)


def _event_payload(order: Order) -> dict[str, str | None]:
    return {
        "order_id": order.id,
        "order_number": order.order_number,
        "seller_id": order.seller_id,
        "buyer_id": order.buyer_id,
        "order_status": order.order_status,
        "delivery_status": order.delivery_status,
        "cancellation_reason": order.cancellation_reason,
    }
