# src/fm_payment/application/schemas.py
from pydantic import BaseModel, Field

from src.fm_ledger.application.schemas import LedgerEntryItem
from src.fm_order.application.schemas import ActorIn


class ConfirmPaymentRequest(BaseModel):
    actor: ActorIn
    external_reference: str | None = Field(default=None, max_length=128)


class ProviderCallbackRequest(BaseModel):
    """Payment provider notification. The reference is stored, never used as a key."""

    order_id: int
    external_reference: str = Field(min_length=1, max_length=128)
    result_code: int = Field(default=0, description="0 = success, anything else is ignored")


class DistributionResult(BaseModel):
    order_id: int
    already_paid: bool
    status: str
    total_amount: int
    writer_amount: int
    manager_amount: int
    platform_amount: int
    payout_round: int
    external_reference: str | None
    entries: list[LedgerEntryItem]
