"""fm_bid REST API — bids hang off their order."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.fm_bid.application.schemas import AcceptBidRequest, PlaceBidRequest
from src.fm_bid.application.service import BidApplicationService
from src.fm_common.database import get_db_session
from src.fm_common.response import ApiResponse, success_response

router = APIRouter(prefix="/orders/{order_id}/bids", tags=["bids"])

_service = BidApplicationService()


def get_bid_service() -> BidApplicationService:
    return _service


@router.post("", status_code=201)
async def place_bid(
    order_id: int,
    body: PlaceBidRequest,
    service: Annotated[BidApplicationService, Depends(get_bid_service)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await service.place_bid(db, order_id, body.writer_id, body.amount, body.message)
    return success_response(data.model_dump(), request)


@router.get("")
async def list_bids(
    order_id: int,
    service: Annotated[BidApplicationService, Depends(get_bid_service)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await service.list_bids(db, order_id)
    return success_response(data.model_dump(), request)


@router.post("/{bid_id}/accept")
async def accept_bid(
    order_id: int,
    bid_id: int,
    body: AcceptBidRequest,
    service: Annotated[BidApplicationService, Depends(get_bid_service)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await service.accept_bid(
        db, order_id, bid_id, body.actor.to_domain(), body.manager_id
    )
    return success_response(data.model_dump(), request)
