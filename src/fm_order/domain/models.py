"""Order domain model — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime

from src.fm_common.enums import ActorRole, OrderStatus
from src.fm_common.errors import InvariantViolationError
from src.fm_payout.domain.models import PayoutBreakdown, TierRates


@dataclass(frozen=True)
class Unassigned:
    """No party holds this role on the order yet."""


@dataclass(frozen=True)
class AssignedTo:
    user_id: str


Assignee = Unassigned | AssignedTo

UNASSIGNED = Unassigned()


def assignee_from_column(value: str | None) -> Assignee:
    return AssignedTo(value) if value else UNASSIGNED


def assignee_to_column(assignee: Assignee) -> str | None:
    return assignee.user_id if isinstance(assignee, AssignedTo) else None


@dataclass(frozen=True)
class Actor:
    user_id: str
    role: ActorRole

    @property
    def is_admin(self) -> bool:
        return self.role == ActorRole.ADMIN


SYSTEM_ACTOR = Actor(user_id="system", role=ActorRole.SYSTEM)


@dataclass(frozen=True)
class TransitionMetadata:
    """Optional inputs a transition may need; unused fields are ignored."""

    writer_id: str | None = None
    manager_id: str | None = None
    bid_id: int | None = None               # bid being accepted by this assignment
    tier_rates: TierRates | None = None     # overrides the tier provider lookup
    external_reference: str | None = None   # payment provider code, audit only
    note: str | None = None


@dataclass
class Order:
    id: int
    display_code: str
    client_id: str
    title: str
    work_type: str                  # WorkType value
    total_amount: int               # KSh, what the client pays
    pages: int = 0
    slides: int = 0
    problems: int = 0
    status: str = OrderStatus.PENDING.value
    writer: Assignee = UNASSIGNED
    manager: Assignee = UNASSIGNED
    # Quote, fixed at assignment
    writer_earnings: int = 0
    manager_assign_fee: int = 0
    manager_submit_fee: int = 0
    platform_margin: int = 0
    pricing_review: bool = False
    # Payment
    payment_confirmed: bool = False
    payout_round: int = 1
    payment_reference: str | None = None
    version: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None
    assigned_at: datetime | None = None
    delivered_at: datetime | None = None
    approved_at: datetime | None = None
    paid_at: datetime | None = None

    @property
    def units(self) -> int:
        return self.pages + self.slides + self.problems

    @property
    def manager_earnings(self) -> int:
        return self.manager_assign_fee + self.manager_submit_fee

    def writer_id(self) -> str:
        if not isinstance(self.writer, AssignedTo):
            raise InvariantViolationError(f"order {self.id} has no writer")
        return self.writer.user_id

    def manager_id(self) -> str:
        if not isinstance(self.manager, AssignedTo):
            raise InvariantViolationError(f"order {self.id} has no manager")
        return self.manager.user_id

    def apply_quote(self, breakdown: PayoutBreakdown) -> None:
        self.writer_earnings = breakdown.writer_amount
        self.manager_assign_fee = breakdown.manager_assign_fee
        self.manager_submit_fee = breakdown.manager_submit_fee
        self.platform_margin = breakdown.platform_margin
        self.pricing_review = breakdown.pricing_inconsistent

    def quote(self) -> PayoutBreakdown:
        """The breakdown stored at assignment; never recomputed from tier data."""
        allocated = self.writer_earnings + self.manager_earnings + self.platform_margin
        shortfall = allocated - self.total_amount if self.pricing_review else 0
        return PayoutBreakdown(
            writer_amount=self.writer_earnings,
            manager_assign_fee=self.manager_assign_fee,
            manager_submit_fee=self.manager_submit_fee,
            platform_margin=self.platform_margin,
            pricing_shortfall=max(shortfall, 0),
        )


@dataclass
class StatusLogEntry:
    order_id: int
    old_status: str
    new_status: str
    actor_id: str
    actor_role: str
    note: str | None = None
    created_at: datetime | None = None
