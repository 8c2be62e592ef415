"""Bid acceptance endpoint: the listing owner settles a listing."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.am_common.database import get_db_session
from src.am_common.response import ApiResponse, success_response
from src.am_gateway.auth.dependencies import get_current_user
from src.am_gateway.user.db_models import UserModel
from src.am_settlement.application.schemas import AcceptBidResponse
from src.am_settlement.application.service import SettlementService

router = APIRouter(tags=["settlement"])

_service = SettlementService()


@router.post("/listings/{listing_id}/bids/{bid_id}/accept")
async def accept_bid(
    listing_id: str,
    bid_id: str,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    result = await _service.accept_bid(db, listing_id, bid_id, str(current_user.id))
    resp = success_response(AcceptBidResponse.from_domain(result).model_dump(mode="json"))
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp
