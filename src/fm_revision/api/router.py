"""fm_revision REST API."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from src.fm_common.database import get_db_session
from src.fm_common.response import ApiResponse, success_response
from src.fm_order.application.schemas import ActorIn
from src.fm_revision.application.service import RevisionApplicationService

router = APIRouter(prefix="/orders", tags=["revisions"])

_service = RevisionApplicationService()


def get_revision_service() -> RevisionApplicationService:
    return _service


class RevisionRequest(BaseModel):
    actor: ActorIn
    notes: str | None = Field(default=None, max_length=1000)


@router.post("/{order_id}/revisions")
async def request_revision(
    order_id: int,
    body: RevisionRequest,
    service: Annotated[RevisionApplicationService, Depends(get_revision_service)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await service.request_revision(db, order_id, body.actor.to_domain(), body.notes)
    return success_response(data.model_dump(), request)
