"""PaymentConfirmationService — the single funnel for "the client has paid".

Manual confirmation by staff and the payment provider callback both land in
confirm_payment(). Duplicate confirmations (callback retries, a second click)
are a benign outcome: the stored distribution is returned with
already_paid=True and nothing is written.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.fm_common.enums import OrderStatus
from src.fm_common.errors import NotApprovedError, OrderNotFoundError
from src.fm_ledger.application.schemas import LedgerEntryItem
from src.fm_ledger.domain.models import LedgerEntry
from src.fm_ledger.domain.repository import LedgerRepositoryProtocol
from src.fm_ledger.domain.service import LedgerService
from src.fm_ledger.infrastructure.persistence import LedgerRepository
from src.fm_order.application.service import build_state_machine
from src.fm_order.domain.events import EventPublisherProtocol
from src.fm_order.domain.models import Actor, Order, TransitionMetadata
from src.fm_order.domain.repository import OrderRepositoryProtocol
from src.fm_order.domain.state_machine import OrderStateMachine
from src.fm_order.infrastructure.event_publisher import default_publisher, publish_events
from src.fm_order.infrastructure.persistence import OrderRepository
from src.fm_payment.application.schemas import DistributionResult

logger = logging.getLogger(__name__)


def _result(order: Order, entries: list[LedgerEntry], already_paid: bool) -> DistributionResult:
    breakdown = order.quote()
    return DistributionResult(
        order_id=order.id,
        already_paid=already_paid,
        status=order.status,
        total_amount=order.total_amount,
        writer_amount=breakdown.writer_amount,
        manager_amount=breakdown.manager_amount,
        platform_amount=breakdown.platform_margin,
        payout_round=order.payout_round,
        external_reference=order.payment_reference,
        entries=[LedgerEntryItem.from_entry(e) for e in entries],
    )


class PaymentConfirmationService:
    def __init__(
        self,
        order_repo: OrderRepositoryProtocol | None = None,
        ledger_repo: LedgerRepositoryProtocol | None = None,
        state_machine: OrderStateMachine | None = None,
        publisher: EventPublisherProtocol | None = None,
    ) -> None:
        self._orders: OrderRepositoryProtocol = order_repo or OrderRepository()
        ledger_repo = ledger_repo or LedgerRepository()
        self._ledger = LedgerService(ledger_repo)
        self._machine = state_machine or build_state_machine(
            order_repo=self._orders, ledger_repo=ledger_repo
        )
        self._publisher: EventPublisherProtocol = publisher or default_publisher()

    async def confirm_payment(
        self,
        db: AsyncSession,
        order_id: int,
        actor: Actor,
        external_reference: str | None = None,
    ) -> DistributionResult:
        try:
            order = await self._orders.get_for_update(order_id, db)
            if order is None:
                raise OrderNotFoundError(order_id)

            if order.payment_confirmed:
                # Every key already exists: this only reads the stored entries back
                breakdown = order.quote()
                entries = await self._ledger.apply_distribution(
                    order.id,
                    order.writer_id(),
                    order.manager_id(),
                    breakdown.writer_amount,
                    breakdown.manager_amount,
                    breakdown.platform_margin,
                    order.payout_round,
                    db,
                )
                await db.commit()
                logger.info(
                    "Payment for order %d already confirmed (round %d, ref=%s), ignoring ref=%s",
                    order_id,
                    order.payout_round,
                    order.payment_reference,
                    external_reference,
                )
                return _result(order, entries, already_paid=True)

            if order.status != OrderStatus.ACCEPTED_BY_CLIENT.value:
                raise NotApprovedError(order_id, order.status)

            paid = await self._machine.apply(
                order_id,
                OrderStatus.ACCEPTED_BY_CLIENT,
                OrderStatus.PAID,
                actor,
                db,
                TransitionMetadata(
                    external_reference=external_reference, note="payment confirmed"
                ),
            )
            completed = await self._machine.apply(
                order_id, OrderStatus.PAID, OrderStatus.COMPLETED, actor, db
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.info(
            "Payment confirmed for order %d (round %d, ref=%s)",
            order_id,
            completed.order.payout_round,
            external_reference,
        )
        await publish_events(self._publisher, paid.events + completed.events)
        return _result(completed.order, paid.entries, already_paid=False)
