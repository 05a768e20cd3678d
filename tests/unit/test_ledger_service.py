"""Unit tests for the ledger primitives and the ledger application service."""

import logging
from unittest.mock import AsyncMock

import pytest

from src.fm_common.enums import LedgerReason
from src.fm_common.errors import (
    InvalidAmountError,
    InvariantViolationError,
    LedgerWriteFailureError,
)
from src.fm_ledger.application.service import LedgerApplicationService
from src.fm_ledger.domain.models import UserBalance
from src.fm_ledger.domain.service import LedgerService, entry_key

from engine_fakes import MANAGER, PLATFORM, WRITER, World


class TestEntryKey:
    def test_order_scoped(self) -> None:
        assert entry_key(7, LedgerReason.ASSIGNMENT_FEE) == "order:7:assignment-fee"

    def test_round_scoped(self) -> None:
        assert entry_key(7, "writer-payout", 2) == "order:7:writer-payout:r2"

    def test_unknown_reason_rejected(self) -> None:
        with pytest.raises(ValueError):
            entry_key(7, "bonus")


class TestCreditDebit:
    async def test_credit_moves_balance_and_records_snapshot(self, world: World) -> None:
        first = await world.ledger.credit(WRITER, 1, 450, LedgerReason.WRITER_PAYOUT, world.session)
        second = await world.ledger.credit(WRITER, 2, 50, "writer-payout", world.session)

        assert first.amount == 450
        assert first.balance_after == 450
        assert second.balance_after == 500
        assert world.balance(WRITER) == 500
        assert world.store.balances[WRITER].lifetime_earned == 500

    @pytest.mark.parametrize("amount", [0, -10])
    async def test_credit_rejects_non_positive(self, world: World, amount: int) -> None:
        with pytest.raises(InvalidAmountError):
            await world.ledger.credit(WRITER, 1, amount, LedgerReason.WRITER_PAYOUT, world.session)
        assert world.store.entries == []

    async def test_debit_may_go_negative(self, world: World) -> None:
        entry = await world.ledger.debit(
            WRITER, 1, 300, LedgerReason.REVISION_CLAWBACK, world.session
        )

        assert entry.amount == -300
        assert entry.balance_after == -300
        assert world.store.balances[WRITER].lifetime_earned == 0

    async def test_debit_rejects_non_positive(self, world: World) -> None:
        with pytest.raises(InvalidAmountError):
            await world.ledger.debit(WRITER, 1, -5, LedgerReason.REVISION_CLAWBACK, world.session)

    async def test_keyed_write_happens_once(self, world: World) -> None:
        key = entry_key(1, LedgerReason.ASSIGNMENT_FEE)
        first = await world.ledger.credit(
            MANAGER, 1, 10, LedgerReason.ASSIGNMENT_FEE, world.session, idempotency_key=key
        )
        again = await world.ledger.credit(
            MANAGER, 1, 10, LedgerReason.ASSIGNMENT_FEE, world.session, idempotency_key=key
        )

        assert again.id == first.id
        assert world.balance(MANAGER) == 10
        assert len(world.store.entries) == 1

    async def test_storage_failure_becomes_ledger_write_failure(self, world: World) -> None:
        world.ledger_repo.fail_for_user = WRITER
        with pytest.raises(LedgerWriteFailureError) as exc_info:
            await world.ledger.credit(WRITER, 1, 450, LedgerReason.WRITER_PAYOUT, world.session)
        assert exc_info.value.code == 2002

    def test_platform_account_defaults_to_settings(self) -> None:
        assert LedgerService(AsyncMock()).platform_account_id == "PLATFORM"


class TestApplyDistribution:
    async def _seed_manager_fees(self, world: World, order_id: int) -> None:
        await world.ledger.credit(
            MANAGER, order_id, 10, LedgerReason.ASSIGNMENT_FEE, world.session,
            idempotency_key=entry_key(order_id, LedgerReason.ASSIGNMENT_FEE),
        )
        await world.ledger.credit(
            MANAGER, order_id, 20, LedgerReason.SUBMISSION_FEE, world.session,
            idempotency_key=entry_key(order_id, LedgerReason.SUBMISSION_FEE),
        )

    async def test_writes_payout_and_margin(self, world: World) -> None:
        await self._seed_manager_fees(world, 1)

        entries = await world.ledger.apply_distribution(
            1, WRITER, MANAGER, 450, 30, 420, 1, world.session
        )

        assert [e.reason for e in entries] == [
            "assignment-fee",
            "submission-fee",
            "writer-payout",
            "platform-margin",
        ]
        assert sum(e.amount for e in entries) == 900
        assert world.balance(WRITER) == 450
        assert world.balance(PLATFORM) == 420
        assert world.balance(MANAGER) == 30

    async def test_repeat_call_returns_same_entries(self, world: World) -> None:
        await self._seed_manager_fees(world, 1)
        first = await world.ledger.apply_distribution(
            1, WRITER, MANAGER, 450, 30, 420, 1, world.session
        )
        second = await world.ledger.apply_distribution(
            1, WRITER, MANAGER, 450, 30, 420, 1, world.session
        )

        assert [e.id for e in second] == [e.id for e in first]
        assert world.balance(WRITER) == 450
        assert world.balance(PLATFORM) == 420
        assert len(world.store.entries) == 4

    async def test_zero_margin_writes_no_margin_entry(self, world: World) -> None:
        await self._seed_manager_fees(world, 1)
        entries = await world.ledger.apply_distribution(
            1, WRITER, MANAGER, 450, 30, 0, 1, world.session
        )
        assert "platform-margin" not in {e.reason for e in entries}

    async def test_new_round_pays_writer_only(self, world: World) -> None:
        await self._seed_manager_fees(world, 1)
        await world.ledger.apply_distribution(1, WRITER, MANAGER, 450, 30, 420, 1, world.session)
        await world.ledger.apply_distribution(1, WRITER, MANAGER, 450, 30, 420, 2, world.session)

        assert world.balance(WRITER) == 900
        assert world.balance(PLATFORM) == 420

    async def test_manager_share_must_match_credited_fees(self, world: World) -> None:
        await self._seed_manager_fees(world, 1)
        with pytest.raises(InvariantViolationError):
            await world.ledger.apply_distribution(
                1, WRITER, MANAGER, 450, 40, 410, 1, world.session
            )
        assert world.balance(WRITER) == 0


class TestLedgerApplicationService:
    async def test_missing_balance_is_zero(self, world: World) -> None:
        svc = LedgerApplicationService(world.ledger_repo)
        result = await svc.get_balance(world.session, "nobody")
        assert result.balance == 0
        assert result.balance_display == "KSh 0"

    async def test_list_entries_filters_by_order(self, world: World) -> None:
        await world.ledger.credit(WRITER, 1, 450, LedgerReason.WRITER_PAYOUT, world.session)
        await world.ledger.credit(WRITER, 2, 300, LedgerReason.WRITER_PAYOUT, world.session)
        svc = LedgerApplicationService(world.ledger_repo)

        result = await svc.list_entries(world.session, WRITER, 2, 50)

        assert [i.amount for i in result.items] == [300]
        assert result.items[0].amount_display == "KSh 300"

    async def test_rebuild_balance_corrects_drift(
        self, world: World, caplog: pytest.LogCaptureFixture
    ) -> None:
        await world.ledger.credit(WRITER, 1, 450, LedgerReason.WRITER_PAYOUT, world.session)
        await world.ledger.debit(WRITER, 1, 450, LedgerReason.REVISION_CLAWBACK, world.session)
        world.store.balances[WRITER] = UserBalance(WRITER, balance=125, lifetime_earned=450)
        svc = LedgerApplicationService(world.ledger_repo)

        with caplog.at_level(logging.WARNING):
            result = await svc.rebuild_balance(world.session, WRITER)

        assert result.previous_balance == 125
        assert result.balance == 0
        assert result.lifetime_earned == 450
        assert result.drift == 125
        assert world.balance(WRITER) == 0
        assert world.session.commits == 1
        assert "drift" in caplog.text
