# src/am_admin/api/router.py
"""Admin REST API: every endpoint requires the admin role."""
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from src.am_admin.application.service import AdminService
from src.am_common.database import get_db_session
from src.am_common.enums import DeliveryStatus, OrderStatus, PaymentStatus, ReconciliationStatus
from src.am_common.response import ApiResponse, success_response
from src.am_gateway.auth.dependencies import require_admin
from src.am_gateway.user.db_models import UserModel
from src.am_order.domain.repository import OrderFilter

router = APIRouter(prefix="/admin", tags=["admin"])
_service = AdminService()


class ResolveReconciliationRequest(BaseModel):
    note: str | None = Field(None, max_length=1000)


def _respond(request: Request, data: object) -> ApiResponse:
    resp = success_response(data)
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.get("/orders")
async def list_all_orders(
    admin: Annotated[UserModel, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    order_status: OrderStatus | None = Query(None),
    delivery_status: DeliveryStatus | None = Query(None),
    payment_status: PaymentStatus | None = Query(None),
    seller_id: str | None = Query(None),
    buyer_id: str | None = Query(None),
    cursor: str | None = Query(None, description="Pagination cursor (opaque Base64)"),
    limit: int = Query(20, ge=1, le=100),
) -> ApiResponse:
    flt = OrderFilter(
        seller_id=seller_id,
        buyer_id=buyer_id,
        order_status=order_status.value if order_status else None,
        delivery_status=delivery_status.value if delivery_status else None,
        payment_status=payment_status.value if payment_status else None,
    )
    return _respond(request, await _service.list_all_orders(db, flt, cursor, limit))


@router.get("/orders/stats")
async def get_order_stats(
    admin: Annotated[UserModel, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    return _respond(request, await _service.get_order_stats(db))


@router.post("/listings/expire")
async def expire_listings(
    admin: Annotated[UserModel, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    return _respond(request, await _service.expire_listings(db))


@router.get("/reconciliations")
async def list_reconciliations(
    admin: Annotated[UserModel, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    status: ReconciliationStatus = Query(ReconciliationStatus.OPEN),
    limit: int = Query(50, ge=1, le=200),
) -> ApiResponse:
    return _respond(request, await _service.list_reconciliations(db, status, limit))


@router.post("/reconciliations/{marker_id}/resolve")
async def resolve_reconciliation(
    marker_id: str,
    admin: Annotated[UserModel, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    body: ResolveReconciliationRequest | None = None,
) -> ApiResponse:
    note = body.note if body else None
    return _respond(
        request, await _service.resolve_reconciliation(db, marker_id, str(admin.id), note)
    )
