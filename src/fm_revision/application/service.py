"""RevisionApplicationService — reopen delivered or paid work.

The order's current status is the expected status for the guarded
transition, so two concurrent revision requests resolve to one winner.
"""

import logging

from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from src.fm_common.enums import LedgerReason, OrderStatus
from src.fm_common.errors import InvalidTransitionError, OrderNotFoundError
from src.fm_order.application.schemas import TransitionResponse
from src.fm_order.application.service import build_state_machine, transition_response
from src.fm_order.domain.events import EventPublisherProtocol
from src.fm_order.domain.models import Actor, TransitionMetadata
from src.fm_order.domain.repository import OrderRepositoryProtocol
from src.fm_order.domain.state_machine import OrderStateMachine
from src.fm_order.domain.transitions import is_legal, valid_next_statuses
from src.fm_order.infrastructure.event_publisher import default_publisher, publish_events
from src.fm_order.infrastructure.persistence import OrderRepository

logger = logging.getLogger(__name__)


class RevisionResponse(BaseModel):
    clawback_amount: int
    transition: TransitionResponse


class RevisionApplicationService:
    def __init__(
        self,
        order_repo: OrderRepositoryProtocol | None = None,
        state_machine: OrderStateMachine | None = None,
        publisher: EventPublisherProtocol | None = None,
    ) -> None:
        self._orders: OrderRepositoryProtocol = order_repo or OrderRepository()
        self._machine = state_machine or build_state_machine(order_repo=self._orders)
        self._publisher: EventPublisherProtocol = publisher or default_publisher()

    async def request_revision(
        self, db: AsyncSession, order_id: int, actor: Actor, notes: str | None = None
    ) -> RevisionResponse:
        try:
            order = await self._orders.get_by_id(order_id, db)
            if order is None:
                raise OrderNotFoundError(order_id)
            current = OrderStatus(order.status)
            if not is_legal(current, OrderStatus.REVISION_PENDING):
                raise InvalidTransitionError(
                    order_id,
                    current.value,
                    OrderStatus.REVISION_PENDING.value,
                    f"valid next statuses: {', '.join(valid_next_statuses(current)) or 'none'}",
                )
            result = await self._machine.apply(
                order_id,
                current,
                OrderStatus.REVISION_PENDING,
                actor,
                db,
                TransitionMetadata(note=notes),
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        clawed = -sum(
            e.amount for e in result.entries if e.reason == LedgerReason.REVISION_CLAWBACK.value
        )
        logger.info(
            "Revision requested on order %d from %s, clawed back %d",
            order_id,
            result.previous_status,
            clawed,
        )
        await publish_events(self._publisher, result.events)
        return RevisionResponse(clawback_amount=clawed, transition=transition_response(result))
