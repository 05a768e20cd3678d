# src/fm_admin/api/router.py
"""Admin REST API."""
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.fm_admin.application.service import AdminService
from src.fm_common.database import get_db_session
from src.fm_common.response import ApiResponse, success_response

router = APIRouter(prefix="/admin", tags=["admin"])
_service = AdminService()


def get_admin_service() -> AdminService:
    return _service


@router.get("/invariants")
async def verify_invariants(
    service: Annotated[AdminService, Depends(get_admin_service)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await service.verify_all_invariants(db)
    return success_response(result)


@router.post("/balances/{user_id}/rebuild")
async def rebuild_balance(
    user_id: str,
    service: Annotated[AdminService, Depends(get_admin_service)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await service.rebuild_balance(user_id, db)
    return success_response(result.model_dump())
