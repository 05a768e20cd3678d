"""OrderStateMachine — guarded status changes with their money side effects.

apply() runs inside the caller's transaction and never commits:

  1. lock the order row (SELECT ... FOR UPDATE)
  2. check from_expected against the stored status, then the successor table
  3. run the side effect attached to this transition (ledger writes,
     claw-back, bid resolution), mutating the in-memory order
  4. write the status with UPDATE ... WHERE status = :from_expected
  5. append the status log row

Any exception in 3-5 propagates and the caller rolls the whole unit back, so
a status never lands without its side effect or the reverse. Events are
returned, not published: the caller publishes them after commit.
"""

import logging
from dataclasses import dataclass, field

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.fm_bid.domain.repository import BidRepositoryProtocol
from src.fm_common.datetime_utils import utc_now
from src.fm_common.enums import ActorRole, LedgerReason, OrderStatus
from src.fm_common.errors import (
    AssignmentIncompleteError,
    BidNotFoundError,
    BidNotPendingError,
    InvalidTransitionError,
    OrderNotFoundError,
)
from src.fm_ledger.domain.models import LedgerEntry
from src.fm_ledger.domain.service import LedgerService, entry_key
from src.fm_order.domain.events import (
    DomainEvent,
    OrderAssigned,
    OrderDelivered,
    PaymentConfirmed,
    RevisionRequested,
)
from src.fm_order.domain.models import (
    Actor,
    Assignee,
    AssignedTo,
    Order,
    StatusLogEntry,
    TransitionMetadata,
)
from src.fm_order.domain.repository import OrderRepositoryProtocol
from src.fm_order.domain.transitions import (
    BIDDABLE,
    PAID_STATES,
    is_legal,
    valid_next_statuses,
)
from src.fm_payout.domain.calculator import calculate, verify_conservation
from src.fm_payout.domain.models import FeeSchedule
from src.fm_payout.domain.repository import TierRateProviderProtocol
from src.fm_revision.domain.clawback import RevisionClawback

logger = logging.getLogger(__name__)


@dataclass
class TransitionResult:
    order: Order
    previous_status: str
    entries: list[LedgerEntry] = field(default_factory=list)
    events: list[DomainEvent] = field(default_factory=list)
    accepted_bid_id: int | None = None
    rejected_bids: int = 0


def fee_schedule_from_settings() -> FeeSchedule:
    return FeeSchedule(
        assign_fee=settings.MANAGER_ASSIGN_FEE,
        submit_base_fee=settings.MANAGER_SUBMIT_BASE_FEE,
        submit_per_unit_fee=settings.MANAGER_SUBMIT_PER_UNIT_FEE,
    )


class OrderStateMachine:
    def __init__(
        self,
        order_repo: OrderRepositoryProtocol,
        bid_repo: BidRepositoryProtocol,
        ledger: LedgerService,
        tier_provider: TierRateProviderProtocol,
        fees: FeeSchedule | None = None,
    ) -> None:
        self._orders = order_repo
        self._bids = bid_repo
        self._ledger = ledger
        self._tiers = tier_provider
        self._fees = fees or fee_schedule_from_settings()
        self._clawback = RevisionClawback(order_repo, ledger)

    @property
    def fees(self) -> FeeSchedule:
        return self._fees

    async def apply(
        self,
        order_id: int,
        from_expected: OrderStatus | str,
        to: OrderStatus | str,
        actor: Actor,
        db: AsyncSession,
        metadata: TransitionMetadata | None = None,
    ) -> TransitionResult:
        expected = OrderStatus(from_expected)
        target = OrderStatus(to)
        meta = metadata or TransitionMetadata()

        order = await self._orders.get_for_update(order_id, db)
        if order is None:
            raise OrderNotFoundError(order_id)
        current = OrderStatus(order.status)
        if current is not expected:
            raise InvalidTransitionError(
                order_id, current.value, target.value,
                f"expected status {expected.value}, order is {current.value}",
            )
        if not is_legal(current, target):
            raise InvalidTransitionError(
                order_id, current.value, target.value,
                f"valid next statuses: {', '.join(valid_next_statuses(current)) or 'none'}",
            )
        if target is OrderStatus.CANCELLED and not actor.is_admin:
            raise InvalidTransitionError(
                order_id, current.value, target.value, "only an admin can cancel an order"
            )

        result = TransitionResult(order=order, previous_status=current.value)
        now = utc_now()
        await self._run_side_effect(order, current, target, actor, meta, result, db)

        order.status = target.value
        order.updated_at = now
        if not await self._orders.save_transition(order, current.value, db):
            # Row lock makes this unreachable on PostgreSQL; kept as the CAS backstop
            raise InvalidTransitionError(
                order_id, current.value, target.value, "order was modified concurrently"
            )
        order.version += 1
        await self._orders.append_status_log(
            StatusLogEntry(
                order_id=order_id,
                old_status=current.value,
                new_status=target.value,
                actor_id=actor.user_id,
                actor_role=ActorRole(actor.role).value,
                note=meta.note,
                created_at=now,
            ),
            db,
        )
        logger.info(
            "Order %d: %s -> %s by %s(%s)",
            order_id, current.value, target.value, ActorRole(actor.role).value, actor.user_id,
        )
        return result

    # ------------------------------------------------------------------
    # Side effects, one per transition kind
    # ------------------------------------------------------------------

    async def _run_side_effect(
        self,
        order: Order,
        current: OrderStatus,
        target: OrderStatus,
        actor: Actor,
        meta: TransitionMetadata,
        result: TransitionResult,
        db: AsyncSession,
    ) -> None:
        now = utc_now()
        if target is OrderStatus.APPROVED:
            order.approved_at = now
        elif target is OrderStatus.ASSIGNED:
            await self._assign(order, actor, meta, result, db)
            order.assigned_at = now
        elif target is OrderStatus.DELIVERED and current is OrderStatus.EDITING:
            await self._credit_submission_fee(order, result, db)
            order.delivered_at = now
        elif target is OrderStatus.PAID:
            await self._distribute(order, meta, result, db)
            order.paid_at = now
        elif target is OrderStatus.REVISION_PENDING:
            clawed = await self._reverse_payout(order, current, result, db)
            result.events.append(
                RevisionRequested(
                    order_id=order.id,
                    client_id=order.client_id,
                    writer_id=_party(order.writer),
                    manager_id=_party(order.manager),
                    clawback_amount=clawed,
                    notes=meta.note,
                )
            )
        elif target is OrderStatus.CANCELLED:
            await self._reverse_payout(order, current, result, db)
            if current in BIDDABLE:
                rejected = await self._bids.reject_pending(order.id, db)
                logger.info("Order %d cancelled, %d pending bids rejected", order.id, rejected)

    async def _assign(
        self,
        order: Order,
        actor: Actor,
        meta: TransitionMetadata,
        result: TransitionResult,
        db: AsyncSession,
    ) -> None:
        writer_id = meta.writer_id or _party(order.writer)
        if not writer_id:
            raise AssignmentIncompleteError(order.id, "writer")
        manager_id = meta.manager_id or _party(order.manager)
        if not manager_id and actor.role == ActorRole.MANAGER:
            manager_id = actor.user_id
        if not manager_id:
            raise AssignmentIncompleteError(order.id, "manager")

        rates = meta.tier_rates or await self._tiers.get_tier_rates(writer_id, db)
        breakdown = calculate(order.units, order.work_type, rates, order.total_amount, self._fees)
        if breakdown.pricing_inconsistent:
            logger.warning(
                "PricingInconsistency: order=%d total=%d writer=%d manager=%d "
                "shortfall=%d, margin clamped to 0 and order flagged for review",
                order.id,
                order.total_amount,
                breakdown.writer_amount,
                breakdown.manager_amount,
                breakdown.pricing_shortfall,
            )
        order.writer = AssignedTo(writer_id)
        order.manager = AssignedTo(manager_id)
        order.apply_quote(breakdown)
        await self._resolve_bids(order, writer_id, meta.bid_id, result, db)

        if breakdown.manager_assign_fee > 0:
            result.entries.append(
                await self._ledger.credit(
                    manager_id,
                    order.id,
                    breakdown.manager_assign_fee,
                    LedgerReason.ASSIGNMENT_FEE,
                    db,
                    idempotency_key=entry_key(order.id, LedgerReason.ASSIGNMENT_FEE),
                )
            )
        result.events.append(
            OrderAssigned(
                order_id=order.id,
                client_id=order.client_id,
                writer_id=writer_id,
                manager_id=manager_id,
                writer_amount=breakdown.writer_amount,
                manager_assign_fee=breakdown.manager_assign_fee,
            )
        )

    async def _resolve_bids(
        self,
        order: Order,
        writer_id: str,
        bid_id: int | None,
        result: TransitionResult,
        db: AsyncSession,
    ) -> None:
        """Accept the assigned writer's bid, if any, and reject every other pending bid.

        With an explicit bid_id that bid must belong to this order and writer.
        Without one, the writer's own pending bid is accepted when it exists.
        """
        if bid_id is not None:
            bid = await self._bids.get_by_id(bid_id, db)
            if bid is None or bid.order_id != order.id:
                raise BidNotFoundError(bid_id)
            if bid.writer_id != writer_id:
                raise InvalidTransitionError(
                    order.id,
                    OrderStatus.APPROVED.value,
                    OrderStatus.ASSIGNED.value,
                    f"bid {bid_id} belongs to writer {bid.writer_id}, not {writer_id}",
                )
        else:
            bid = await self._bids.get_by_order_and_writer(order.id, writer_id, db)
            if bid is not None and not bid.is_pending:
                bid = None

        if bid is None:
            result.rejected_bids = await self._bids.reject_pending(order.id, db)
        else:
            if not await self._bids.mark_accepted(bid.id, db):
                current = await self._bids.get_by_id(bid.id, db)
                raise BidNotPendingError(bid.id, current.status if current else "missing")
            result.accepted_bid_id = bid.id
            result.rejected_bids = await self._bids.reject_others(order.id, bid.id, db)
        logger.info(
            "Order %d bids resolved: accepted=%s rejected=%d",
            order.id,
            result.accepted_bid_id,
            result.rejected_bids,
        )

    async def _credit_submission_fee(
        self, order: Order, result: TransitionResult, db: AsyncSession
    ) -> None:
        manager_id = order.manager_id()
        if order.manager_submit_fee > 0:
            # Keyed per order: re-delivery after a revision does not pay twice
            result.entries.append(
                await self._ledger.credit(
                    manager_id,
                    order.id,
                    order.manager_submit_fee,
                    LedgerReason.SUBMISSION_FEE,
                    db,
                    idempotency_key=entry_key(order.id, LedgerReason.SUBMISSION_FEE),
                )
            )
        result.events.append(
            OrderDelivered(
                order_id=order.id,
                client_id=order.client_id,
                writer_id=order.writer_id(),
                manager_id=manager_id,
                manager_submit_fee=order.manager_submit_fee,
            )
        )

    async def _distribute(
        self,
        order: Order,
        meta: TransitionMetadata,
        result: TransitionResult,
        db: AsyncSession,
    ) -> None:
        breakdown = order.quote()
        verify_conservation(breakdown, order.total_amount)
        result.entries.extend(
            await self._ledger.apply_distribution(
                order.id,
                order.writer_id(),
                order.manager_id(),
                breakdown.writer_amount,
                breakdown.manager_amount,
                breakdown.platform_margin,
                order.payout_round,
                db,
            )
        )
        order.payment_confirmed = True
        if meta.external_reference:
            order.payment_reference = meta.external_reference
        result.events.append(
            PaymentConfirmed(
                order_id=order.id,
                client_id=order.client_id,
                writer_id=order.writer_id(),
                manager_id=order.manager_id(),
                total_amount=order.total_amount,
                writer_amount=breakdown.writer_amount,
                manager_amount=breakdown.manager_amount,
                platform_amount=breakdown.platform_margin,
                external_reference=meta.external_reference,
            )
        )

    async def _reverse_payout(
        self,
        order: Order,
        current: OrderStatus,
        result: TransitionResult,
        db: AsyncSession,
    ) -> int:
        """Claw back the writer payout when leaving a paid state. Returns the amount."""
        if current not in PAID_STATES:
            return 0
        entry = await self._clawback.clawback(order.id, db)
        if order.payment_confirmed:
            order.payment_confirmed = False
            order.payout_round += 1
        if entry is None:
            return 0
        result.entries.append(entry)
        return -entry.amount


def _party(assignee: Assignee) -> str | None:
    return assignee.user_id if isinstance(assignee, AssignedTo) else None
