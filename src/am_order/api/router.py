"""Order REST API: all endpoints require JWT authentication."""

from typing import Annotated, Literal

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.am_common.database import get_db_session
from src.am_common.enums import DeliveryStatus, OrderStatus, PaymentStatus
from src.am_common.response import ApiResponse, success_response
from src.am_gateway.auth.dependencies import get_current_user
from src.am_gateway.user.db_models import UserModel
from src.am_order.application.schemas import (
    CancelOrderRequest,
    ReviewOrderRequest,
    UpdateDeliveryStatusRequest,
    UpdateOrderStatusRequest,
    UpdatePaymentStatusRequest,
)
from src.am_order.application.service import OrderApplicationService
from src.am_order.domain.lifecycle import Actor

router = APIRouter(prefix="/orders", tags=["orders"])

_service = OrderApplicationService()


def _actor(user: UserModel) -> Actor:
    return Actor(user_id=str(user.id), is_admin=user.is_admin)


def _respond(request: Request, data: object) -> ApiResponse:
    resp = success_response(data)
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.get("")
async def list_my_orders(
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    role: Literal["seller", "buyer"] | None = Query(None, description="Only orders where I am"),
    order_status: OrderStatus | None = Query(None),
    delivery_status: DeliveryStatus | None = Query(None),
    payment_status: PaymentStatus | None = Query(None),
    cursor: str | None = Query(None, description="Pagination cursor (opaque Base64)"),
    limit: int = Query(20, ge=1, le=100, description="Items per page"),
) -> ApiResponse:
    data = await _service.list_my_orders(
        db,
        str(current_user.id),
        role=role,
        order_status=order_status.value if order_status else None,
        delivery_status=delivery_status.value if delivery_status else None,
        payment_status=payment_status.value if payment_status else None,
        cursor=cursor,
        limit=limit,
    )
    return _respond(request, data.model_dump(mode="json"))


@router.get("/{order_id}")
async def get_order(
    order_id: str,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.get_order(db, order_id, _actor(current_user))
    return _respond(request, data.model_dump(mode="json"))


@router.put("/{order_id}/delivery-status")
async def update_delivery_status(
    order_id: str,
    body: UpdateDeliveryStatusRequest,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.update_delivery_status(db, order_id, _actor(current_user), body)
    return _respond(request, data.model_dump(mode="json"))


@router.put("/{order_id}/payment-status")
async def update_payment_status(
    order_id: str,
    body: UpdatePaymentStatusRequest,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.update_payment_status(db, order_id, _actor(current_user), body)
    return _respond(request, data.model_dump(mode="json"))


@router.put("/{order_id}/status")
async def update_order_status(
    order_id: str,
    body: UpdateOrderStatusRequest,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.update_order_status(db, order_id, _actor(current_user), body)
    return _respond(request, data.model_dump(mode="json"))


@router.put("/{order_id}/cancel")
async def cancel_order(
    order_id: str,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    body: CancelOrderRequest | None = None,
) -> ApiResponse:
    data = await _service.cancel_order(
        db, order_id, _actor(current_user), body or CancelOrderRequest()
    )
    return _respond(request, data.model_dump(mode="json"))


@router.put("/{order_id}/review")
async def review_order(
    order_id: str,
    body: ReviewOrderRequest,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.review_order(db, order_id, _actor(current_user), body)
    return _respond(request, data.model_dump(mode="json"))
