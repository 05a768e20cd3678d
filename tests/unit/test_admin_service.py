"""Unit tests for the admin invariant audit."""
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.fm_admin.application.service import AdminService
from src.fm_ledger.domain.models import BalanceDrift

from engine_fakes import WRITER, World


def _rows(*rows: MagicMock) -> MagicMock:
    result = MagicMock()
    result.fetchall.return_value = list(rows)
    return result


@pytest.mark.asyncio
async def test_verify_all_invariants_clean() -> None:
    db = AsyncMock()
    db.execute.side_effect = [_rows(), _rows()]
    ledger_repo = AsyncMock()
    ledger_repo.list_balance_drift.return_value = []

    result = await AdminService(ledger_repo).verify_all_invariants(db)

    assert result == {"ok": True, "violations": []}


@pytest.mark.asyncio
async def test_verify_all_invariants_reports_each_kind() -> None:
    quote_row = MagicMock(id=1, total_amount=900, allocated=880)
    ledger_row = MagicMock(id=2, total_amount=900, distributed=450)
    db = AsyncMock()
    db.execute.side_effect = [_rows(quote_row), _rows(ledger_row)]
    ledger_repo = AsyncMock()
    ledger_repo.list_balance_drift.return_value = [BalanceDrift("w1", 500, 450)]

    result = await AdminService(ledger_repo).verify_all_invariants(db)

    assert result["ok"] is False
    violations = result["violations"]
    assert isinstance(violations, list)
    assert len(violations) == 3
    assert "quote allocates 880" in violations[0]
    assert "ledger distributed 450" in violations[1]
    assert "drift 50" in violations[2]


@pytest.mark.asyncio
async def test_rebuild_balance_delegates_to_ledger(world: World) -> None:
    from src.fm_ledger.domain.models import UserBalance

    world.store.balances[WRITER] = UserBalance(WRITER, balance=99, lifetime_earned=0)

    result = await AdminService(world.ledger_repo).rebuild_balance(WRITER, world.session)

    assert result.previous_balance == 99
    assert result.balance == 0
