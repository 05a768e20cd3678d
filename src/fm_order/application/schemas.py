# src/fm_order/application/schemas.py
from pydantic import BaseModel, Field, field_validator, model_validator

from src.fm_common.datetime_utils import to_iso
from src.fm_common.enums import ActorRole, OrderStatus
from src.fm_common.money import amount_to_display
from src.fm_ledger.application.schemas import LedgerEntryItem
from src.fm_order.domain.models import Actor, Order, StatusLogEntry, assignee_to_column


class ActorIn(BaseModel):
    user_id: str = Field(min_length=1, max_length=64)
    role: ActorRole

    def to_domain(self) -> Actor:
        return Actor(user_id=self.user_id, role=self.role)


class CreateOrderRequest(BaseModel):
    client_id: str = Field(min_length=1, max_length=64)
    title: str = Field(min_length=1, max_length=255)
    work_type: str = Field(default="ordinary", description="Free text, e.g. 'SPSS analysis'")
    pages: int = Field(default=0, ge=0)
    slides: int = Field(default=0, ge=0)
    problems: int = Field(default=0, ge=0)
    total_amount: int = Field(gt=0, description="Whole currency units (KSh)")

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("title must not be blank")
        return v

    @model_validator(mode="after")
    def has_units(self) -> "CreateOrderRequest":
        if self.pages + self.slides + self.problems <= 0:
            raise ValueError("an order needs at least one page, slide or problem")
        return self


class TransitionRequest(BaseModel):
    from_status: OrderStatus
    to_status: OrderStatus
    actor: ActorIn
    writer_id: str | None = None
    manager_id: str | None = None
    note: str | None = Field(default=None, max_length=1000)


class OrderResponse(BaseModel):
    id: int
    display_code: str
    client_id: str
    writer_id: str | None
    manager_id: str | None
    title: str
    work_type: str
    pages: int
    slides: int
    problems: int
    total_amount: int
    total_amount_display: str
    status: str
    writer_earnings: int
    manager_assign_fee: int
    manager_submit_fee: int
    platform_margin: int
    pricing_review: bool
    payment_confirmed: bool
    payout_round: int
    payment_reference: str | None
    version: int
    created_at: str | None
    updated_at: str | None

    @classmethod
    def from_order(cls, order: Order) -> "OrderResponse":
        return cls(
            id=order.id,
            display_code=order.display_code,
            client_id=order.client_id,
            writer_id=assignee_to_column(order.writer),
            manager_id=assignee_to_column(order.manager),
            title=order.title,
            work_type=order.work_type,
            pages=order.pages,
            slides=order.slides,
            problems=order.problems,
            total_amount=order.total_amount,
            total_amount_display=amount_to_display(order.total_amount),
            status=order.status,
            writer_earnings=order.writer_earnings,
            manager_assign_fee=order.manager_assign_fee,
            manager_submit_fee=order.manager_submit_fee,
            platform_margin=order.platform_margin,
            pricing_review=order.pricing_review,
            payment_confirmed=order.payment_confirmed,
            payout_round=order.payout_round,
            payment_reference=order.payment_reference,
            version=order.version,
            created_at=to_iso(order.created_at),
            updated_at=to_iso(order.updated_at),
        )


class TransitionResponse(BaseModel):
    order: OrderResponse
    previous_status: str
    ledger_entries: list[LedgerEntryItem]


class StatusLogItem(BaseModel):
    old_status: str
    new_status: str
    actor_id: str
    actor_role: str
    note: str | None
    created_at: str | None

    @classmethod
    def from_entry(cls, entry: StatusLogEntry) -> "StatusLogItem":
        return cls(
            old_status=entry.old_status,
            new_status=entry.new_status,
            actor_id=entry.actor_id,
            actor_role=entry.actor_role,
            note=entry.note,
            created_at=to_iso(entry.created_at),
        )


class StatusHistoryResponse(BaseModel):
    order_id: int
    items: list[StatusLogItem]
