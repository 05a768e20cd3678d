"""fm_ledger REST API — balances and entries, read-only."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.fm_common.database import get_db_session
from src.fm_common.response import ApiResponse, success_response
from src.fm_ledger.application.service import LedgerApplicationService

router = APIRouter(prefix="/ledger", tags=["ledger"])

_service = LedgerApplicationService()


def get_ledger_service() -> LedgerApplicationService:
    return _service


@router.get("/users/{user_id}/balance")
async def get_balance(
    user_id: str,
    service: Annotated[LedgerApplicationService, Depends(get_ledger_service)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await service.get_balance(db, user_id)
    return success_response(data.model_dump(), request)


@router.get("/users/{user_id}/entries")
async def list_entries(
    user_id: str,
    service: Annotated[LedgerApplicationService, Depends(get_ledger_service)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    order_id: int | None = Query(None, description="Only entries for this order"),
    limit: int = Query(50, ge=1, le=200),
) -> ApiResponse:
    data = await service.list_entries(db, user_id, order_id, limit)
    return success_response(data.model_dump(), request)
