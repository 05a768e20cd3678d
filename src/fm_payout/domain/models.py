"""Domain models for fm_payout — frozen dataclasses, no I/O."""

from dataclasses import dataclass

from src.fm_common.enums import WorkType


@dataclass(frozen=True)
class TierRates:
    """A writer's per-unit payout rates for one progression tier."""

    ordinary: int
    technical: int

    def rate_for(self, work_type: WorkType | str) -> int:
        if WorkType(work_type) is WorkType.TECHNICAL:
            return self.technical
        return self.ordinary


@dataclass(frozen=True)
class Tier:
    level: int
    name: str
    completed_orders_required: int
    rates: TierRates


@dataclass(frozen=True)
class FeeSchedule:
    """Manager fees: a flat assignment fee and a unit-scaled submission fee."""

    assign_fee: int = 10
    submit_base_fee: int = 10
    submit_per_unit_fee: int = 5


@dataclass(frozen=True)
class PayoutBreakdown:
    writer_amount: int
    manager_assign_fee: int
    manager_submit_fee: int
    platform_margin: int        # post-clamp, never negative
    pricing_shortfall: int = 0  # how far below zero the margin was before clamping

    @property
    def manager_amount(self) -> int:
        return self.manager_assign_fee + self.manager_submit_fee

    @property
    def total(self) -> int:
        return self.writer_amount + self.manager_amount + self.platform_margin

    @property
    def pricing_inconsistent(self) -> bool:
        return self.pricing_shortfall > 0
