# src/am_order/infrastructure/persistence.py
"""OrderRepository: raw SQL persistence for settled orders.

Financial columns are written once by ``insert`` and never appear in an
UPDATE statement. Lifecycle writes are guarded by ``version``; review writes
are additionally guarded by ``rating IS NULL`` (write-once).

Transaction ownership: the CALLER (application service) commits/rolls back.
asyncpg NULL parameter pattern: CAST(:param AS TYPE) IS NULL required for None values.
"""
import json
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.am_common.address import Address
from src.am_common.errors import ConcurrencyConflictError, OrderNotReviewableError
from src.am_order.domain.models import Order
from src.am_order.domain.repository import OrderFilter

_ORDER_COLUMNS = """
    id, order_number, listing_id, seller_id, buyer_id, direction, quantity,
    agreed_price_per_unit_cents, total_amount_cents, commission_amount_cents,
    seller_net_amount_cents, buyer_payment_amount_cents, commission_rate_bps,
    payment_method,
    CAST(delivery_address AS TEXT) AS delivery_address,
    CAST(seller_location AS TEXT) AS seller_location,
    CAST(buyer_location AS TEXT) AS buyer_location,
    expected_delivery_at, notes, order_status, delivery_status, payment_status,
    tracking_number, shipping_provider, delivered_at, cancelled_at,
    cancellation_reason, rating, review, reviewed_at, version,
    created_at, updated_at
"""

_INSERT_ORDER_SQL = text("""
    INSERT INTO orders (
        id, order_number, listing_id, seller_id, buyer_id, direction, quantity,
        agreed_price_per_unit_cents, total_amount_cents, commission_amount_cents,
        seller_net_amount_cents, buyer_payment_amount_cents, commission_rate_bps,
        payment_method, delivery_address, seller_location, buyer_location,
        expected_delivery_at, notes, order_status, delivery_status, payment_status,
        version
    ) VALUES (
        :id, :order_number, :listing_id, :seller_id, :buyer_id, :direction, :quantity,
        :agreed_price_per_unit_cents, :total_amount_cents, :commission_amount_cents,
        :seller_net_amount_cents, :buyer_payment_amount_cents, :commission_rate_bps,
        :payment_method, CAST(:delivery_address AS JSONB),
        CAST(:seller_location AS JSONB), CAST(:buyer_location AS JSONB),
        :expected_delivery_at, :notes, :order_status, :delivery_status, :payment_status,
        :version
    )
""")

_GET_ORDER_SQL = text(f"""
    SELECT {_ORDER_COLUMNS}
    FROM orders WHERE id = :id
""")

_GET_ORDER_BY_LISTING_SQL = text(f"""
    SELECT {_ORDER_COLUMNS}
    FROM orders WHERE listing_id = :listing_id
""")

_UPDATE_LIFECYCLE_SQL = text("""
    UPDATE orders
    SET order_status = :order_status,
        delivery_status = :delivery_status,
        payment_status = :payment_status,
        tracking_number = :tracking_number,
        shipping_provider = :shipping_provider,
        notes = :notes,
        delivered_at = :delivered_at,
        cancelled_at = :cancelled_at,
        cancellation_reason = :cancellation_reason,
        version = version + 1,
        updated_at = NOW()
    WHERE id = :id AND version = :expected_version
""")

_SAVE_REVIEW_SQL = text("""
    UPDATE orders
    SET rating = :rating,
        review = :review,
        reviewed_at = :reviewed_at,
        version = version + 1,
        updated_at = NOW()
    WHERE id = :id AND version = :expected_version AND rating IS NULL
""")

_LIST_ORDERS_SQL = text(f"""
    SELECT {_ORDER_COLUMNS}
    FROM orders
    WHERE (CAST(:party_id AS TEXT) IS NULL
           OR seller_id = CAST(:party_id AS TEXT) OR buyer_id = CAST(:party_id AS TEXT))
      AND (CAST(:seller_id AS TEXT) IS NULL OR seller_id = CAST(:seller_id AS TEXT))
      AND (CAST(:buyer_id AS TEXT) IS NULL OR buyer_id = CAST(:buyer_id AS TEXT))
      AND (CAST(:order_status AS TEXT) IS NULL OR order_status = CAST(:order_status AS TEXT))
      AND (CAST(:delivery_status AS TEXT) IS NULL
           OR delivery_status = CAST(:delivery_status AS TEXT))
      AND (CAST(:payment_status AS TEXT) IS NULL
           OR payment_status = CAST(:payment_status AS TEXT))
      AND (CAST(:cursor_id AS TEXT) IS NULL OR id < CAST(:cursor_id AS TEXT))
    ORDER BY id DESC
    LIMIT :limit
""")


def _load_address(raw: Any) -> Address | None:
    if raw is None:
        return None
    data = json.loads(raw) if isinstance(raw, str) else raw
    return Address.from_dict(data, settings.DEFAULT_COUNTRY)


def _dump_address(address: Address | None) -> str | None:
    return json.dumps(address.to_dict()) if address is not None else None


def _row_to_order(row: Any) -> Order:
    return Order(
        id=row.id,
        order_number=row.order_number,
        listing_id=row.listing_id,
        seller_id=row.seller_id,
        buyer_id=row.buyer_id,
        direction=row.direction,
        quantity=row.quantity,
        agreed_price_per_unit_cents=row.agreed_price_per_unit_cents,
        total_amount_cents=row.total_amount_cents,
        commission_amount_cents=row.commission_amount_cents,
        seller_net_amount_cents=row.seller_net_amount_cents,
        buyer_payment_amount_cents=row.buyer_payment_amount_cents,
        commission_rate_bps=row.commission_rate_bps,
        payment_method=row.payment_method,
        delivery_address=_load_address(row.delivery_address) or Address(),
        seller_location=_load_address(row.seller_location),
        buyer_location=_load_address(row.buyer_location),
        expected_delivery_at=row.expected_delivery_at,
        notes=row.notes,
        order_status=row.order_status,
        delivery_status=row.delivery_status,
        payment_status=row.payment_status,
        tracking_number=row.tracking_number,
        shipping_provider=row.shipping_provider,
        delivered_at=row.delivered_at,
        cancelled_at=row.cancelled_at,
        cancellation_reason=row.cancellation_reason,
        rating=row.rating,
        review=row.review,
        reviewed_at=row.reviewed_at,
        version=row.version,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class OrderRepository:
    """Concrete implementation of OrderRepositoryProtocol using raw SQL."""

    async def insert(self, db: AsyncSession, order: Order) -> None:
        await db.execute(
            _INSERT_ORDER_SQL,
            {
                "id": order.id,
                "order_number": order.order_number,
                "listing_id": order.listing_id,
                "seller_id": order.seller_id,
                "buyer_id": order.buyer_id,
                "direction": order.direction,
                "quantity": order.quantity,
                "agreed_price_per_unit_cents": order.agreed_price_per_unit_cents,
                "total_amount_cents": order.total_amount_cents,
                "commission_amount_cents": order.commission_amount_cents,
                "seller_net_amount_cents": order.seller_net_amount_cents,
                "buyer_payment_amount_cents": order.buyer_payment_amount_cents,
                "commission_rate_bps": order.commission_rate_bps,
                "payment_method": order.payment_method,
                "delivery_address": _dump_address(order.delivery_address),
                "seller_location": _dump_address(order.seller_location),
                "buyer_location": _dump_address(order.buyer_location),
                "expected_delivery_at": order.expected_delivery_at,
                "notes": order.notes,
                "order_status": order.order_status,
                "delivery_status": order.delivery_status,
                "payment_status": order.payment_status,
                "version": order.version,
            },
        )

    async def get_by_id(self, db: AsyncSession, order_id: str) -> Order | None:
        result = await db.execute(_GET_ORDER_SQL, {"id": order_id})
        row = result.fetchone()
        return _row_to_order(row) if row else None

    async def get_by_listing_id(self, db: AsyncSession, listing_id: str) -> Order | None:
        result = await db.execute(_GET_ORDER_BY_LISTING_SQL, {"listing_id": listing_id})
        row = result.fetchone()
        return _row_to_order(row) if row else None

    async def update_lifecycle(self, db: AsyncSession, order: Order) -> None:
        result = await db.execute(
            _UPDATE_LIFECYCLE_SQL,
            {
                "id": order.id,
                "expected_version": order.version,
                "order_status": order.order_status,
                "delivery_status": order.delivery_status,
                "payment_status": order.payment_status,
                "tracking_number": order.tracking_number,
                "shipping_provider": order.shipping_provider,
                "notes": order.notes,
                "delivered_at": order.delivered_at,
                "cancelled_at": order.cancelled_at,
                "cancellation_reason": order.cancellation_reason,
            },
        )
        if result.rowcount == 0:
            raise ConcurrencyConflictError("Order", order.id)
        order.version += 1

    async def save_review(self, db: AsyncSession, order: Order) -> None:
        result = await db.execute(
            _SAVE_REVIEW_SQL,
            {
                "id": order.id,
                "expected_version": order.version,
                "rating": order.rating,
                "review": order.review,
                "reviewed_at": order.reviewed_at,
            },
        )
        if result.rowcount == 0:
            # Either the version moved or a review already landed; re-read decides.
            current = await self.get_by_id(db, order.id)
            if current is not None and current.rating is not None:
                raise OrderNotReviewableError(order.id, "order already reviewed")
            raise ConcurrencyConflictError("Order", order.id)
        order.version += 1

    async def list_orders(
        self,
        db: AsyncSession,
        flt: OrderFilter,
        limit: int,
        cursor_id: str | None,
    ) -> list[Order]:
        result = await db.execute(
            _LIST_ORDERS_SQL,
            {
                "party_id": flt.party_id,
                "seller_id": flt.seller_id,
                "buyer_id": flt.buyer_id,
                "order_status": flt.order_status,
                "delivery_status": flt.delivery_status,
                "payment_status": flt.payment_status,
                "cursor_id": cursor_id,
                "limit": limit,
            },
        )
        return [_row_to_order(row) for row in result.fetchall()]
