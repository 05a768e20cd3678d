"""Unit tests for bid placement and resolution."""

from unittest.mock import AsyncMock

import pytest

from src.fm_common.enums import BidStatus, OrderStatus
from src.fm_common.errors import (
    BidNotFoundError,
    BidNotPendingError,
    DuplicateBidError,
    InvalidTransitionError,
    OrderNotBiddableError,
    OrderNotFoundError,
)
from src.fm_order.domain.models import AssignedTo, TransitionMetadata

from engine_fakes import MANAGER, MANAGER_ACTOR, World

S = OrderStatus


async def _place(world: World, order_id: int, writer_id: str, amount: int = 500) -> int:
    bid = await world.bid_service.place_bid(world.session, order_id, writer_id, amount, "hi")
    return bid.id


class TestPlaceBid:
    async def test_places_pending_bid(self, world: World) -> None:
        oid = world.new_order()
        result = await world.bid_service.place_bid(world.session, oid, "writer-a", 500, "ready")

        assert result.status == "pending"
        assert result.writer_id == "writer-a"
        assert world.session.commits == 1

    async def test_open_for_bids_while_approved(self, world: World) -> None:
        oid = world.new_order()
        await world.advance(oid, S.APPROVED)
        await _place(world, oid, "writer-a")
        assert len(world.store.bids) == 1

    async def test_second_bid_by_same_writer_rejected(self, world: World) -> None:
        oid = world.new_order()
        await _place(world, oid, "writer-a")

        with pytest.raises(DuplicateBidError):
            await _place(world, oid, "writer-a", 650)
        assert len(world.store.bids) == 1
        assert world.session.rollbacks == 1

    async def test_concurrent_duplicate_caught_by_constraint(self, world: World) -> None:
        oid = world.new_order()
        await _place(world, oid, "writer-a")
        world.bids.get_by_order_and_writer = AsyncMock(return_value=None)  # type: ignore[method-assign]

        with pytest.raises(DuplicateBidError):
            await _place(world, oid, "writer-a")

    async def test_assigned_order_not_biddable(self, world: World) -> None:
        oid = world.new_order()
        await world.advance(oid, S.ASSIGNED)
        with pytest.raises(OrderNotBiddableError):
            await _place(world, oid, "writer-a")

    async def test_missing_order(self, world: World) -> None:
        with pytest.raises(OrderNotFoundError):
            await _place(world, 404, "writer-a")


class TestAcceptBid:
    async def test_accepts_one_and_rejects_the_rest(self, world: World) -> None:
        oid = world.new_order(pages=3, total_amount=900)
        a = await _place(world, oid, "writer-a")
        b = await _place(world, oid, "writer-b")
        c = await _place(world, oid, "writer-c")
        await world.advance(oid, S.APPROVED)

        result = await world.bid_service.accept_bid(world.session, oid, b, MANAGER_ACTOR)

        assert result.bid.status == "accepted"
        assert result.rejected_count == 2
        assert world.store.bids[b].status == BidStatus.ACCEPTED.value
        assert world.store.bids[a].status == BidStatus.REJECTED.value
        assert world.store.bids[c].status == BidStatus.REJECTED.value
        order = world.order(oid)
        assert order.status == "assigned"
        assert order.writer == AssignedTo("writer-b")
        assert order.manager == AssignedTo(MANAGER)
        assert world.balance(MANAGER) == 10
        assert result.transition.order.writer_earnings == 450
        assert world.publisher.types() == ["OrderAssigned"]

    async def test_named_manager_used(self, world: World) -> None:
        oid = world.new_order()
        bid = await _place(world, oid, "writer-a")
        await world.advance(oid, S.APPROVED)

        await world.bid_service.accept_bid(
            world.session, oid, bid, MANAGER_ACTOR, manager_id="manager-9"
        )

        assert world.order(oid).manager == AssignedTo("manager-9")

    async def test_order_must_be_approved(self, world: World) -> None:
        oid = world.new_order()
        bid = await _place(world, oid, "writer-a")

        with pytest.raises(InvalidTransitionError):
            await world.bid_service.accept_bid(world.session, oid, bid, MANAGER_ACTOR)
        assert world.store.bids[bid].status == "pending"

    async def test_race_loser_persists_nothing(self, world: World) -> None:
        oid = world.new_order()
        bid_a = await _place(world, oid, "writer-a")
        bid_b = await _place(world, oid, "writer-b")
        await world.advance(oid, S.APPROVED)
        # Loser read its bid while still pending, before the winner committed
        stale_bid_b = await world.bids.get_by_id(bid_b, world.session)
        await world.machine.apply(
            oid,
            S.APPROVED,
            S.ASSIGNED,
            MANAGER_ACTOR,
            world.session,
            TransitionMetadata(writer_id="writer-a", manager_id=MANAGER),
        )
        await world.session.commit()
        entries_before = len(world.store.entries)
        world.bids.get_by_id = AsyncMock(return_value=stale_bid_b)  # type: ignore[method-assign]

        with pytest.raises(InvalidTransitionError):
            await world.bid_service.accept_bid(world.session, oid, bid_b, MANAGER_ACTOR)

        assert world.order(oid).writer == AssignedTo("writer-a")
        assert world.store.bids[bid_a].status == "accepted"
        assert world.store.bids[bid_b].status == "rejected"
        assert len(world.store.entries) == entries_before
        assert world.balance(MANAGER) == 10

    async def test_rejected_bid_cannot_be_accepted(self, world: World) -> None:
        oid = world.new_order()
        bid_a = await _place(world, oid, "writer-a")
        bid_b = await _place(world, oid, "writer-b")
        await world.advance(oid, S.APPROVED)
        await world.bid_service.accept_bid(world.session, oid, bid_a, MANAGER_ACTOR)

        with pytest.raises(BidNotPendingError):
            await world.bid_service.accept_bid(world.session, oid, bid_b, MANAGER_ACTOR)

    async def test_bid_must_belong_to_order(self, world: World) -> None:
        oid = world.new_order()
        other = world.new_order()
        bid = await _place(world, other, "writer-a")
        await world.advance(oid, S.APPROVED)

        with pytest.raises(BidNotFoundError):
            await world.bid_service.accept_bid(world.session, oid, bid, MANAGER_ACTOR)

    async def test_list_bids(self, world: World) -> None:
        oid = world.new_order()
        await _place(world, oid, "writer-a")
        await _place(world, oid, "writer-b")

        result = await world.bid_service.list_bids(world.session, oid)

        assert [b.writer_id for b in result.items] == ["writer-a", "writer-b"]

    async def test_list_bids_missing_order(self, world: World) -> None:
        with pytest.raises(OrderNotFoundError):
            await world.bid_service.list_bids(world.session, 404)
