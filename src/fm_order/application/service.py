"""OrderApplicationService — transaction owner for order operations.

Each public method is one unit of work: it opens nothing, runs the domain
logic on the request's session, commits on success and rolls back on any
exception. Domain events are published after the commit.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.fm_bid.domain.repository import BidRepositoryProtocol
from src.fm_bid.infrastructure.persistence import BidRepository
from src.fm_common.enums import OrderStatus
from src.fm_common.errors import (
    BelowMinimumPriceError,
    InvalidTransitionError,
    OrderNotFoundError,
)
from src.fm_common.id_generator import generate_display_code
from src.fm_ledger.application.schemas import LedgerEntryItem
from src.fm_ledger.domain.repository import LedgerRepositoryProtocol
from src.fm_ledger.domain.service import LedgerService
from src.fm_ledger.infrastructure.persistence import LedgerRepository
from src.fm_order.application.schemas import (
    CreateOrderRequest,
    OrderResponse,
    StatusHistoryResponse,
    StatusLogItem,
    TransitionResponse,
)
from src.fm_order.domain.events import EventPublisherProtocol
from src.fm_order.domain.models import Actor, Order, TransitionMetadata
from src.fm_order.domain.repository import OrderRepositoryProtocol
from src.fm_order.domain.state_machine import OrderStateMachine, TransitionResult
from src.fm_order.infrastructure.event_publisher import default_publisher, publish_events
from src.fm_order.infrastructure.persistence import OrderRepository
from src.fm_payout.domain.calculator import classify_work_type, minimum_client_amount
from src.fm_payout.domain.repository import TierRateProviderProtocol
from src.fm_payout.infrastructure.tier_provider import CompletedOrdersTierRateProvider

logger = logging.getLogger(__name__)


def build_state_machine(
    order_repo: OrderRepositoryProtocol | None = None,
    bid_repo: BidRepositoryProtocol | None = None,
    ledger_repo: LedgerRepositoryProtocol | None = None,
    tier_provider: TierRateProviderProtocol | None = None,
) -> OrderStateMachine:
    """Wire the state machine with the PostgreSQL-backed defaults."""
    return OrderStateMachine(
        order_repo or OrderRepository(),
        bid_repo or BidRepository(),
        LedgerService(ledger_repo or LedgerRepository()),
        tier_provider or CompletedOrdersTierRateProvider(),
    )


def transition_response(result: TransitionResult) -> TransitionResponse:
    return TransitionResponse(
        order=OrderResponse.from_order(result.order),
        previous_status=result.previous_status,
        ledger_entries=[LedgerEntryItem.from_entry(e) for e in result.entries],
    )


class OrderApplicationService:
    def __init__(
        self,
        order_repo: OrderRepositoryProtocol | None = None,
        state_machine: OrderStateMachine | None = None,
        publisher: EventPublisherProtocol | None = None,
    ) -> None:
        self._repo: OrderRepositoryProtocol = order_repo or OrderRepository()
        self._machine = state_machine or build_state_machine(order_repo=self._repo)
        self._publisher: EventPublisherProtocol = publisher or default_publisher()

    async def create_order(self, db: AsyncSession, req: CreateOrderRequest) -> OrderResponse:
        work_type = classify_work_type(req.work_type)
        if settings.ENFORCE_MINIMUM_PRICE:
            minimum = minimum_client_amount(req.pages, req.slides, req.problems, work_type)
            if req.total_amount < minimum:
                raise BelowMinimumPriceError(req.total_amount, minimum)

        draft = Order(
            id=0,
            display_code=generate_display_code(),
            client_id=req.client_id,
            title=req.title,
            work_type=work_type.value,
            total_amount=req.total_amount,
            pages=req.pages,
            slides=req.slides,
            problems=req.problems,
            status=OrderStatus.PENDING.value,
        )
        try:
            order = await self._repo.insert(draft, db)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info(
            "Order %d (%s) created by client %s: %s units=%d total=%d",
            order.id,
            order.display_code,
            order.client_id,
            order.work_type,
            order.units,
            order.total_amount,
        )
        return OrderResponse.from_order(order)

    async def get_order(self, db: AsyncSession, order_id: int) -> OrderResponse:
        order = await self._repo.get_by_id(order_id, db)
        if order is None:
            raise OrderNotFoundError(order_id)
        return OrderResponse.from_order(order)

    async def transition(
        self,
        db: AsyncSession,
        order_id: int,
        from_expected: OrderStatus | str,
        to: OrderStatus | str,
        actor: Actor,
        metadata: TransitionMetadata | None = None,
    ) -> TransitionResponse:
        target = OrderStatus(to)
        if target is OrderStatus.PAID:
            # Payment goes through confirm_payment only
            raise InvalidTransitionError(
                order_id,
                OrderStatus(from_expected).value,
                target.value,
                "payment must be confirmed through the payment handler",
            )
        try:
            result = await self._machine.apply(
                order_id, from_expected, target, actor, db, metadata
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        await publish_events(self._publisher, result.events)
        return transition_response(result)

    async def status_history(self, db: AsyncSession, order_id: int) -> StatusHistoryResponse:
        if await self._repo.get_by_id(order_id, db) is None:
            raise OrderNotFoundError(order_id)
        entries = await self._repo.list_status_logs(order_id, db)
        return StatusHistoryResponse(
            order_id=order_id, items=[StatusLogItem.from_entry(e) for e in entries]
        )
