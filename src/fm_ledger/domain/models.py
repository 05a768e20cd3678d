"""Domain models for fm_ledger — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class LedgerEntry:
    id: int                      # BIGSERIAL
    user_id: str
    order_id: int
    amount: int                  # signed KSh, positive=credit negative=debit
    reason: str                  # LedgerReason value
    balance_after: int           # projection snapshot right after this entry
    idempotency_key: str | None = None
    created_at: datetime | None = None


@dataclass
class UserBalance:
    user_id: str
    balance: int                 # may be negative after a claw-back
    lifetime_earned: int         # sum of credits only
    version: int = 0
    updated_at: datetime | None = None


@dataclass
class BalanceDrift:
    user_id: str
    projected: int
    ledger_sum: int

    @property
    def delta(self) -> int:
        return self.projected - self.ledger_sum
