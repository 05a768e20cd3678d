"""Unit tests for revision requests and writer payout claw-back."""

import pytest

from src.fm_common.enums import LedgerReason, OrderStatus
from src.fm_common.errors import (
    InvalidTransitionError,
    LedgerWriteFailureError,
    OrderNotFoundError,
)
from src.fm_order.domain.events import RevisionRequested
from src.fm_revision.domain.clawback import RevisionClawback

from engine_fakes import CLIENT_ACTOR, MANAGER, MANAGER_ACTOR, PLATFORM, WRITER, World

S = OrderStatus


class TestClawback:
    async def test_unpaid_order_returns_none(self, world: World) -> None:
        oid = world.new_order()
        await world.advance(oid, S.DELIVERED)
        clawback = RevisionClawback(world.orders, world.ledger)

        assert await clawback.clawback(oid, world.session) is None
        assert world.entries(oid, LedgerReason.REVISION_CLAWBACK.value) == []

    async def test_missing_order(self, world: World) -> None:
        clawback = RevisionClawback(world.orders, world.ledger)
        with pytest.raises(OrderNotFoundError):
            await clawback.clawback(404, world.session)

    async def test_debits_exact_writer_payout(self, world: World) -> None:
        oid = world.new_order()
        await world.advance(oid, S.COMPLETED)
        clawback = RevisionClawback(world.orders, world.ledger)

        entry = await clawback.clawback(oid, world.session)

        assert entry is not None
        assert entry.user_id == WRITER
        assert entry.amount == -450
        assert entry.idempotency_key == f"order:{oid}:revision-clawback:r1"


class TestRequestRevision:
    async def test_after_completion_claws_back_writer_only(self, world: World) -> None:
        oid = world.new_order(pages=3, total_amount=900)
        await world.advance(oid, S.COMPLETED)

        result = await world.revision_service.request_revision(
            world.session, oid, CLIENT_ACTOR, "Citations missing"
        )

        assert result.clawback_amount == 450
        assert result.transition.order.status == "revision_pending"
        assert world.balance(WRITER) == 0
        assert world.balance(MANAGER) == 30
        assert world.balance(PLATFORM) == 420
        order = world.order(oid)
        assert order.payment_confirmed is False
        assert order.payout_round == 2
        [event] = world.publisher.events
        assert isinstance(event, RevisionRequested)
        assert event.clawback_amount == 450
        assert event.notes == "Citations missing"

    async def test_before_payment_moves_no_money(self, world: World) -> None:
        oid = world.new_order()
        await world.advance(oid, S.DELIVERED)

        result = await world.revision_service.request_revision(world.session, oid, CLIENT_ACTOR)

        assert result.clawback_amount == 0
        assert world.balance(MANAGER) == 30
        assert world.order(oid).payout_round == 1

    async def test_not_reachable_from_in_progress(self, world: World) -> None:
        oid = world.new_order()
        await world.advance(oid, S.IN_PROGRESS)
        with pytest.raises(InvalidTransitionError):
            await world.revision_service.request_revision(world.session, oid, CLIENT_ACTOR)

    async def test_missing_order(self, world: World) -> None:
        with pytest.raises(OrderNotFoundError):
            await world.revision_service.request_revision(world.session, 404, CLIENT_ACTOR)

    async def test_failed_debit_keeps_order_paid(self, world: World) -> None:
        oid = world.new_order()
        await world.advance(oid, S.COMPLETED)
        world.ledger_repo.fail_for_user = WRITER

        with pytest.raises(LedgerWriteFailureError):
            await world.revision_service.request_revision(world.session, oid, CLIENT_ACTOR)

        order = world.order(oid)
        assert order.status == "completed"
        assert order.payment_confirmed is True
        assert world.balance(WRITER) == 450

    async def test_rework_and_second_payment(self, world: World) -> None:
        oid = world.new_order(pages=3, total_amount=900)
        await world.advance(oid, S.COMPLETED)
        await world.revision_service.request_revision(world.session, oid, CLIENT_ACTOR)

        for current, nxt in (
            (S.REVISION_PENDING, S.EDITING),
            (S.EDITING, S.DELIVERED),
            (S.DELIVERED, S.ACCEPTED_BY_CLIENT),
        ):
            await world.order_service.transition(world.session, oid, current, nxt, MANAGER_ACTOR)
        result = await world.payment_service.confirm_payment(world.session, oid, CLIENT_ACTOR)

        assert result.already_paid is False
        assert result.payout_round == 2
        assert world.balance(WRITER) == 450
        assert world.balance(MANAGER) == 30
        assert world.balance(PLATFORM) == 420
        payouts = world.entries(oid, LedgerReason.WRITER_PAYOUT.value)
        assert [e.idempotency_key for e in payouts] == [
            f"order:{oid}:writer-payout:r1",
            f"order:{oid}:writer-payout:r2",
        ]
