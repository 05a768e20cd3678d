"""Pydantic schemas for the fm_ledger API."""

from pydantic import BaseModel

from src.fm_common.datetime_utils import to_iso
from src.fm_common.money import amount_to_display
from src.fm_ledger.domain.models import LedgerEntry, UserBalance


class LedgerEntryItem(BaseModel):
    id: int
    user_id: str
    order_id: int
    amount: int
    amount_display: str
    reason: str
    balance_after: int
    created_at: str | None

    @classmethod
    def from_entry(cls, entry: LedgerEntry) -> "LedgerEntryItem":
        return cls(
            id=entry.id,
            user_id=entry.user_id,
            order_id=entry.order_id,
            amount=entry.amount,
            amount_display=amount_to_display(entry.amount),
            reason=entry.reason,
            balance_after=entry.balance_after,
            created_at=to_iso(entry.created_at),
        )


class BalanceResponse(BaseModel):
    user_id: str
    balance: int
    balance_display: str
    lifetime_earned: int
    lifetime_earned_display: str

    @classmethod
    def from_balance(cls, balance: UserBalance) -> "BalanceResponse":
        return cls(
            user_id=balance.user_id,
            balance=balance.balance,
            balance_display=amount_to_display(balance.balance),
            lifetime_earned=balance.lifetime_earned,
            lifetime_earned_display=amount_to_display(balance.lifetime_earned),
        )


class LedgerResponse(BaseModel):
    items: list[LedgerEntryItem]


class RebuildBalanceResponse(BaseModel):
    user_id: str
    previous_balance: int
    balance: int
    lifetime_earned: int
    drift: int
