"""BidApplicationService — placing bids and resolving them into an assignment.

accept_bid is a single unit of work: the order moves approved -> assigned
through the state machine, which quotes the order, credits the assignment fee,
accepts the named bid and rejects every other one. A concurrent accept on
the same order loses the status guard and nothing of its attempt is
committed.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.fm_bid.application.schemas import AcceptBidResponse, BidListResponse, BidResponse
from src.fm_bid.domain.repository import BidRepositoryProtocol
from src.fm_bid.infrastructure.persistence import BidRepository
from src.fm_common.enums import OrderStatus
from src.fm_common.errors import (
    BidNotFoundError,
    BidNotPendingError,
    DuplicateBidError,
    OrderNotBiddableError,
    OrderNotFoundError,
)
from src.fm_order.application.service import build_state_machine, transition_response
from src.fm_order.domain.events import EventPublisherProtocol
from src.fm_order.domain.models import Actor, TransitionMetadata
from src.fm_order.domain.repository import OrderRepositoryProtocol
from src.fm_order.domain.state_machine import OrderStateMachine
from src.fm_order.domain.transitions import BIDDABLE
from src.fm_order.infrastructure.event_publisher import default_publisher, publish_events
from src.fm_order.infrastructure.persistence import OrderRepository

logger = logging.getLogger(__name__)


class BidApplicationService:
    def __init__(
        self,
        bid_repo: BidRepositoryProtocol | None = None,
        order_repo: OrderRepositoryProtocol | None = None,
        state_machine: OrderStateMachine | None = None,
        publisher: EventPublisherProtocol | None = None,
    ) -> None:
        self._bids: BidRepositoryProtocol = bid_repo or BidRepository()
        self._orders: OrderRepositoryProtocol = order_repo or OrderRepository()
        self._machine = state_machine or build_state_machine(
            order_repo=self._orders, bid_repo=self._bids
        )
        self._publisher: EventPublisherProtocol = publisher or default_publisher()

    async def place_bid(
        self, db: AsyncSession, order_id: int, writer_id: str, amount: int, message: str = ""
    ) -> BidResponse:
        try:
            # Lock so a concurrent cancel cannot slip between the check and the insert
            order = await self._orders.get_for_update(order_id, db)
            if order is None:
                raise OrderNotFoundError(order_id)
            if OrderStatus(order.status) not in BIDDABLE:
                raise OrderNotBiddableError(order_id, order.status)
            if await self._bids.get_by_order_and_writer(order_id, writer_id, db) is not None:
                raise DuplicateBidError(order_id, writer_id)
            bid = await self._bids.insert(order_id, writer_id, amount, message, db)
            if bid is None:
                raise DuplicateBidError(order_id, writer_id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Bid %d placed on order %d by writer %s", bid.id, order_id, writer_id)
        return BidResponse.from_bid(bid)

    async def accept_bid(
        self,
        db: AsyncSession,
        order_id: int,
        bid_id: int,
        actor: Actor,
        manager_id: str | None = None,
    ) -> AcceptBidResponse:
        try:
            bid = await self._bids.get_by_id(bid_id, db)
            if bid is None or bid.order_id != order_id:
                raise BidNotFoundError(bid_id)
            if not bid.is_pending:
                raise BidNotPendingError(bid_id, bid.status)

            result = await self._machine.apply(
                order_id,
                OrderStatus.APPROVED,
                OrderStatus.ASSIGNED,
                actor,
                db,
                TransitionMetadata(
                    writer_id=bid.writer_id,
                    manager_id=manager_id,
                    bid_id=bid_id,
                    note=f"bid {bid_id} accepted",
                ),
            )
            rejected = result.rejected_bids
            accepted = await self._bids.get_by_id(bid_id, db)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info(
            "Bid %d accepted: order %d assigned to writer %s, %d other bids rejected",
            bid_id,
            order_id,
            bid.writer_id,
            rejected,
        )
        await publish_events(self._publisher, result.events)
        return AcceptBidResponse(
            bid=BidResponse.from_bid(accepted or bid),
            rejected_count=rejected,
            transition=transition_response(result),
        )

    async def list_bids(self, db: AsyncSession, order_id: int) -> BidListResponse:
        if await self._orders.get_by_id(order_id, db) is None:
            raise OrderNotFoundError(order_id)
        bids = await self._bids.list_by_order(order_id, db)
        return BidListResponse(order_id=order_id, items=[BidResponse.from_bid(b) for b in bids])
