# src/am_admin/application/service.py
"""Admin application service: platform-wide order views and operations."""
from datetime import datetime, time, timedelta
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.am_common.datetime_utils import utc_now
from src.am_common.enums import ReconciliationStatus
from src.am_common.errors import ReconciliationNotFoundError
from src.am_common.money import cents_to_display
from src.am_listing.application.service import ListingApplicationService
from src.am_order.application.service import OrderApplicationService
from src.am_order.domain.repository import OrderFilter, OrderRepositoryProtocol
from src.am_order.infrastructure.persistence import OrderRepository
from src.am_settlement.domain.models import ReconciliationMarker
from src.am_settlement.domain.repository import ReconciliationLogProtocol
from src.am_settlement.infrastructure.reconciliation import ReconciliationLog

_STATUS_COUNTS_SQL = text("""
    SELECT order_status, COUNT(*) AS count
    FROM orders
    GROUP BY order_status
""")

_COMPLETED_REVENUE_SQL = text("""
    SELECT
        COUNT(*) AS completed_orders,
        COALESCE(SUM(total_amount_cents), 0) AS total_sales,
        COALESCE(SUM(commission_amount_cents), 0) AS total_commission,
        COALESCE(SUM(seller_net_amount_cents), 0) AS total_paid_to_sellers,
        COALESCE(AVG(total_amount_cents), 0) AS average_order
    FROM orders
    WHERE order_status = 'completed'
""")

_WINDOW_REVENUE_SQL = text("""
    SELECT
        COUNT(*) AS orders,
        COALESCE(SUM(total_amount_cents), 0) AS sales,
        COALESCE(SUM(commission_amount_cents), 0) AS commission
    FROM orders
    WHERE order_status = 'completed'
      AND created_at >= :start AND created_at < :end
""")

_MONTHLY_REVENUE_SQL = text("""
    SELECT
        to_char(date_trunc('month', created_at AT TIME ZONE 'UTC'), 'YYYY-MM') AS month,
        COUNT(*) AS orders,
        COALESCE(SUM(total_amount_cents), 0) AS sales,
        COALESCE(SUM(commission_amount_cents), 0) AS commission
    FROM orders
    WHERE order_status = 'completed' AND created_at >= :since
    GROUP BY 1
    ORDER BY 1
""")


def _first_of_month_months_ago(now: datetime, months: int) -> datetime:
    year, month = now.year, now.month - months
    while month <= 0:
        month += 12
        year -= 1
    return now.replace(year=year, month=month, day=1, hour=0, minute=0, second=0, microsecond=0)


def _marker_to_dict(marker: ReconciliationMarker) -> dict[str, Any]:
    return {
        "id": marker.id,
        "listing_id": marker.listing_id,
        "bid_id": marker.bid_id,
        "acting_user_id": marker.acting_user_id,
        "order_id": marker.order_id,
        "order_number": marker.order_number,
        "error": marker.error,
        "status": marker.status,
        "resolved_by": marker.resolved_by,
        "resolution_note": marker.resolution_note,
        "resolved_at": marker.resolved_at.isoformat() if marker.resolved_at else None,
        "created_at": marker.created_at.isoformat() if marker.created_at else None,
    }


class AdminService:
    def __init__(
        self,
        orders: OrderApplicationService | None = None,
        listings: ListingApplicationService | None = None,
        order_repo: OrderRepositoryProtocol | None = None,
        reconciliations: ReconciliationLogProtocol | None = None,
    ) -> None:
        self._orders = orders or OrderApplicationService()
        self._listings = listings or ListingApplicationService()
        self._order_repo: OrderRepositoryProtocol = order_repo or OrderRepository()
        self._reconciliations: ReconciliationLogProtocol = (
            reconciliations or ReconciliationLog()
        )

    async def list_all_orders(
        self,
        db: AsyncSession,
        flt: OrderFilter,
        cursor: str | None,
        limit: int,
    ) -> dict[str, Any]:
        page = await self._orders.list_orders(db, flt, cursor, limit)
        counts = await self._status_counts(db)
        revenue = (await db.execute(_COMPLETED_REVENUE_SQL)).fetchone()
        return {
            **page.model_dump(mode="json"),
            "statistics": {
                "total_revenue_cents": int(revenue.total_sales) if revenue else 0,
                "order_status_counts": counts,
            },
        }

    async def get_order_stats(self, db: AsyncSession) -> dict[str, Any]:
        """Totals over completed orders, today's figures and the last 6 months."""
        now = utc_now()
        counts = await self._status_counts(db)
        revenue = (await db.execute(_COMPLETED_REVENUE_SQL)).fetchone()

        today_start = datetime.combine(now.date(), time.min, tzinfo=now.tzinfo)
        today = (
            await db.execute(
                _WINDOW_REVENUE_SQL, {"start": today_start, "end": today_start + timedelta(days=1)}
            )
        ).fetchone()

        monthly_rows = (
            await db.execute(
                _MONTHLY_REVENUE_SQL, {"since": _first_of_month_months_ago(now, 5)}
            )
        ).fetchall()

        total_sales = int(revenue.total_sales) if revenue else 0
        total_commission = int(revenue.total_commission) if revenue else 0
        return {
            "orders": {
                "total": sum(counts.values()),
                "completed": counts.get("completed", 0),
                "processing": counts.get("processing", 0),
                "cancelled": counts.get("cancelled", 0),
                "refunded": counts.get("refunded", 0),
            },
            "money": {
                "total_sales_cents": total_sales,
                "total_sales_display": cents_to_display(total_sales),
                "commission_earned_cents": total_commission,
                "commission_earned_display": cents_to_display(total_commission),
                "paid_to_sellers_cents": int(revenue.total_paid_to_sellers) if revenue else 0,
                "average_order_cents": int(round(revenue.average_order)) if revenue else 0,
            },
            "today": {
                "orders": int(today.orders) if today else 0,
                "sales_cents": int(today.sales) if today else 0,
                "commission_cents": int(today.commission) if today else 0,
            },
            "last_6_months": [
                {
                    "month": row.month,
                    "orders": int(row.orders),
                    "sales_cents": int(row.sales),
                    "commission_cents": int(row.commission),
                }
                for row in monthly_rows
            ],
        }

    async def expire_listings(self, db: AsyncSession) -> dict[str, Any]:
        expired = await self._listings.expire_due_listings(db)
        return {"expired_count": len(expired), "listing_ids": expired}

    async def list_reconciliations(
        self, db: AsyncSession, status: ReconciliationStatus, limit: int
    ) -> list[dict[str, Any]]:
        markers = await self._reconciliations.list_by_status(db, status.value, limit)
        return [_marker_to_dict(m) for m in markers]

    async def resolve_reconciliation(
        self, db: AsyncSession, marker_id: str, admin_id: str, note: str | None
    ) -> dict[str, Any]:
        """Close a marker; reports whether the settlement's order actually exists."""
        try:
            marker = await self._reconciliations.resolve(db, marker_id, admin_id, note)
            if marker is None:
                raise ReconciliationNotFoundError(marker_id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        order = await self._order_repo.get_by_listing_id(db, marker.listing_id)
        return {
            **_marker_to_dict(marker),
            "order_persisted": order is not None,
            "persisted_order_number": order.order_number if order else None,
        }

    async def _status_counts(self, db: AsyncSession) -> dict[str, int]:
        rows = (await db.execute(_STATUS_COUNTS_SQL)).fetchall()
        return {row.order_status: int(row.count) for row in rows}
