"""fm_payment REST API — manual confirmation and the provider callback.

Both endpoints call the same handler, so a callback retried after a manual
confirmation (or the reverse) is answered with already_paid=True.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.fm_common.database import get_db_session
from src.fm_common.response import ApiResponse, success_response
from src.fm_order.domain.models import SYSTEM_ACTOR
from src.fm_payment.application.schemas import ConfirmPaymentRequest, ProviderCallbackRequest
from src.fm_payment.application.service import PaymentConfirmationService

router = APIRouter(prefix="/payments", tags=["payments"])

_service = PaymentConfirmationService()


def get_payment_service() -> PaymentConfirmationService:
    return _service


@router.post("/orders/{order_id}/confirm")
async def confirm_payment(
    order_id: int,
    body: ConfirmPaymentRequest,
    service: Annotated[PaymentConfirmationService, Depends(get_payment_service)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await service.confirm_payment(
        db, order_id, body.actor.to_domain(), body.external_reference
    )
    return success_response(data.model_dump(), request)


@router.post("/callback")
async def provider_callback(
    body: ProviderCallbackRequest,
    service: Annotated[PaymentConfirmationService, Depends(get_payment_service)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    if body.result_code != 0:
        # Failed or cancelled payments leave the order untouched
        return success_response({"order_id": body.order_id, "accepted": False}, request)
    data = await service.confirm_payment(db, body.order_id, SYSTEM_ACTOR, body.external_reference)
    return success_response(data.model_dump(), request)
