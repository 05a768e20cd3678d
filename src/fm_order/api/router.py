"""fm_order REST API — create, read and move orders through their lifecycle."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.fm_common.database import get_db_session
from src.fm_common.response import ApiResponse, success_response
from src.fm_order.application.schemas import CreateOrderRequest, TransitionRequest
from src.fm_order.application.service import OrderApplicationService
from src.fm_order.domain.models import TransitionMetadata

router = APIRouter(prefix="/orders", tags=["orders"])

_service = OrderApplicationService()


def get_order_service() -> OrderApplicationService:
    return _service


@router.post("", status_code=201)
async def create_order(
    body: CreateOrderRequest,
    service: Annotated[OrderApplicationService, Depends(get_order_service)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await service.create_order(db, body)
    return success_response(data.model_dump(), request)


@router.get("/{order_id}")
async def get_order(
    order_id: int,
    service: Annotated[OrderApplicationService, Depends(get_order_service)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await service.get_order(db, order_id)
    return success_response(data.model_dump(), request)


@router.post("/{order_id}/transitions")
async def transition_order(
    order_id: int,
    body: TransitionRequest,
    service: Annotated[OrderApplicationService, Depends(get_order_service)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    metadata = TransitionMetadata(
        writer_id=body.writer_id, manager_id=body.manager_id, note=body.note
    )
    data = await service.transition(
        db, order_id, body.from_status, body.to_status, body.actor.to_domain(), metadata
    )
    return success_response(data.model_dump(), request)


@router.get("/{order_id}/history")
async def status_history(
    order_id: int,
    service: Annotated[OrderApplicationService, Depends(get_order_service)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await service.status_history(db, order_id)
    return success_response(data.model_dump(), request)
