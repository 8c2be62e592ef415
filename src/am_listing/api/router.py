"""Listing and bidding REST API: all endpoints require JWT authentication."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.am_common.database import get_db_session
from src.am_common.enums import ListingStatus
from src.am_common.response import ApiResponse, success_response
from src.am_gateway.auth.dependencies import get_current_user
from src.am_gateway.user.db_models import UserModel
from src.am_listing.application.schemas import CreateListingRequest, SubmitBidRequest
from src.am_listing.application.service import ListingApplicationService

router = APIRouter(tags=["listings"])

_service = ListingApplicationService()


def _respond(request: Request, data: object) -> ApiResponse:
    resp = success_response(data)
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.post("/listings", status_code=201)
async def create_listing(
    body: CreateListingRequest,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.create_listing(db, str(current_user.id), body)
    return _respond(request, data.model_dump(mode="json"))


@router.get("/listings/{listing_id}")
async def get_listing_with_bids(
    listing_id: str,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.get_listing_with_bids(db, listing_id, str(current_user.id))
    return _respond(request, data.model_dump(mode="json"))


@router.post("/listings/{listing_id}/cancel")
async def cancel_listing(
    listing_id: str,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.cancel_listing(db, listing_id, str(current_user.id))
    return _respond(request, data.model_dump(mode="json"))


@router.post("/listings/{listing_id}/bids", status_code=201)
async def submit_bid(
    listing_id: str,
    body: SubmitBidRequest,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.submit_bid(db, listing_id, str(current_user.id), body)
    return _respond(request, data.model_dump(mode="json"))


@router.get("/bids/mine")
async def list_my_bids(
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    status: ListingStatus | None = Query(None, description="Filter by listing status"),
    cursor: str | None = Query(None, description="Pagination cursor (opaque Base64)"),
    limit: int = Query(10, ge=1, le=100, description="Items per page"),
) -> ApiResponse:
    data = await _service.list_bids_for_user(
        db, str(current_user.id), status.value if status else None, cursor, limit
    )
    return _respond(request, data.model_dump(mode="json"))


@router.get("/bids/wins")
async def list_my_wins(
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    cursor: str | None = Query(None, description="Pagination cursor (opaque Base64)"),
    limit: int = Query(10, ge=1, le=100, description="Items per page"),
) -> ApiResponse:
    data = await _service.list_wins(db, str(current_user.id), cursor, limit)
    return _respond(request, data.model_dump(mode="json"))
