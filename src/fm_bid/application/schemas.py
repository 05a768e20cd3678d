# src/fm_bid/application/schemas.py
from pydantic import BaseModel, Field

from src.fm_bid.domain.models import Bid
from src.fm_common.datetime_utils import to_iso
from src.fm_common.money import amount_to_display
from src.fm_order.application.schemas import ActorIn, TransitionResponse


class PlaceBidRequest(BaseModel):
    writer_id: str = Field(min_length=1, max_length=64)
    amount: int = Field(gt=0, description="Whole currency units (KSh)")
    message: str = Field(default="", max_length=2000)


class AcceptBidRequest(BaseModel):
    actor: ActorIn
    manager_id: str | None = Field(
        default=None, description="Supervising manager; defaults to the actor if a manager"
    )


class BidResponse(BaseModel):
    id: int
    order_id: int
    writer_id: str
    amount: int
    amount_display: str
    message: str
    status: str
    created_at: str | None

    @classmethod
    def from_bid(cls, bid: Bid) -> "BidResponse":
        return cls(
            id=bid.id,
            order_id=bid.order_id,
            writer_id=bid.writer_id,
            amount=bid.amount,
            amount_display=amount_to_display(bid.amount),
            message=bid.message,
            status=bid.status,
            created_at=to_iso(bid.created_at),
        )


class BidListResponse(BaseModel):
    order_id: int
    items: list[BidResponse]


class AcceptBidResponse(BaseModel):
    bid: BidResponse
    rejected_count: int
    transition: TransitionResponse
