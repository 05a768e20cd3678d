"""Bid domain model — pure dataclass, no SQLAlchemy dependency."""
from dataclasses import dataclass
from datetime import datetime

from src.fm_common.enums import BidStatus


@dataclass
class Bid:
    id: int
    order_id: int
    writer_id: str
    amount: int                 # whole KSh proposed by the writer
    message: str
    status: str = BidStatus.PENDING.value
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_pending(self) -> bool:
        return self.status == BidStatus.PENDING.value
