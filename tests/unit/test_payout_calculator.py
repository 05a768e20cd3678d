"""Unit tests for the payout calculator, tier table and work-type classifier."""

import pytest

from src.fm_common.enums import WorkType
from src.fm_common.errors import InvariantViolationError
from src.fm_payout.domain.calculator import (
    calculate,
    classify_work_type,
    minimum_client_amount,
    submission_fee,
    verify_conservation,
)
from src.fm_payout.domain.models import FeeSchedule, PayoutBreakdown, TierRates
from src.fm_payout.domain.tiers import TIERS, tier_for

STARTER = TierRates(ordinary=150, technical=170)
FEES = FeeSchedule()


class TestCalculate:
    def test_worked_example_three_ordinary_pages(self) -> None:
        b = calculate(3, WorkType.ORDINARY, STARTER, 900, FEES)
        assert b.writer_amount == 450
        assert b.manager_assign_fee == 10
        assert b.manager_submit_fee == 20
        assert b.manager_amount == 30
        assert b.platform_margin == 420
        assert b.pricing_shortfall == 0
        assert b.total == 900

    def test_technical_uses_technical_rate(self) -> None:
        b = calculate(2, "technical", STARTER, 1000, FEES)
        assert b.writer_amount == 340
        assert b.manager_submit_fee == 15
        assert b.platform_margin == 1000 - 340 - 10 - 15

    def test_single_unit_pays_base_submission_fee_only(self) -> None:
        b = calculate(1, WorkType.ORDINARY, STARTER, 300, FEES)
        assert b.manager_submit_fee == 10

    def test_zero_units(self) -> None:
        b = calculate(0, WorkType.ORDINARY, STARTER, 100, FEES)
        assert b.writer_amount == 0
        assert b.manager_submit_fee == 0
        assert b.manager_assign_fee == 10
        assert b.platform_margin == 90

    def test_negative_margin_is_clamped_and_reported(self) -> None:
        b = calculate(3, WorkType.ORDINARY, STARTER, 400, FEES)
        assert b.platform_margin == 0
        assert b.pricing_shortfall == 80
        assert b.pricing_inconsistent is True
        assert b.total == 400 + 80

    def test_margin_exactly_zero_is_consistent(self) -> None:
        b = calculate(3, WorkType.ORDINARY, STARTER, 480, FEES)
        assert b.platform_margin == 0
        assert b.pricing_inconsistent is False

    def test_negative_units_rejected(self) -> None:
        with pytest.raises(ValueError):
            calculate(-1, WorkType.ORDINARY, STARTER, 900, FEES)

    def test_deterministic(self) -> None:
        first = calculate(5, WorkType.TECHNICAL, STARTER, 2000, FEES)
        second = calculate(5, WorkType.TECHNICAL, STARTER, 2000, FEES)
        assert first == second

    def test_custom_fee_schedule(self) -> None:
        fees = FeeSchedule(assign_fee=20, submit_base_fee=15, submit_per_unit_fee=10)
        b = calculate(4, WorkType.ORDINARY, STARTER, 2000, fees)
        assert b.manager_assign_fee == 20
        assert b.manager_submit_fee == 15 + 10 * 3


class TestSubmissionFee:
    @pytest.mark.parametrize("units,expected", [(0, 0), (1, 10), (2, 15), (10, 55)])
    def test_scales_with_units(self, units: int, expected: int) -> None:
        assert submission_fee(units, FEES) == expected


class TestVerifyConservation:
    def test_balanced_breakdown_passes(self) -> None:
        verify_conservation(calculate(3, WorkType.ORDINARY, STARTER, 900, FEES), 900)

    def test_clamped_breakdown_checked_against_shortfall(self) -> None:
        verify_conservation(calculate(3, WorkType.ORDINARY, STARTER, 400, FEES), 400)

    def test_mismatch_raises(self) -> None:
        broken = PayoutBreakdown(
            writer_amount=450, manager_assign_fee=10, manager_submit_fee=20, platform_margin=400
        )
        with pytest.raises(InvariantViolationError) as exc_info:
            verify_conservation(broken, 900)
        assert exc_info.value.code == 9003


class TestMinimumClientAmount:
    def test_ordinary_pages(self) -> None:
        assert minimum_client_amount(3, 0, 0, WorkType.ORDINARY) == 720

    def test_technical_pages(self) -> None:
        assert minimum_client_amount(2, 0, 0, WorkType.TECHNICAL) == 540

    def test_slides_flat_rate(self) -> None:
        assert minimum_client_amount(0, 4, 0, WorkType.TECHNICAL) == 600

    def test_problems_priced_as_technical_pages(self) -> None:
        assert minimum_client_amount(0, 0, 2, WorkType.ORDINARY) == 540

    def test_mixed(self) -> None:
        assert minimum_client_amount(1, 1, 1, "ordinary") == 240 + 150 + 270


class TestClassifyWorkType:
    @pytest.mark.parametrize(
        "label",
        ["SPSS analysis", "Excel dashboard", "Python programming", "PowerPoint", "Analysis in R"],
    )
    def test_technical_labels(self, label: str) -> None:
        assert classify_work_type(label) is WorkType.TECHNICAL

    @pytest.mark.parametrize("label", ["Essay", "Research paper", "Book review", "", None])
    def test_ordinary_labels(self, label: str | None) -> None:
        assert classify_work_type(label) is WorkType.ORDINARY

    def test_enum_values_pass_through(self) -> None:
        assert classify_work_type("technical") is WorkType.TECHNICAL
        assert classify_work_type("ORDINARY") is WorkType.ORDINARY


class TestTiers:
    @pytest.mark.parametrize(
        "completed,name",
        [
            (0, "Starter"),
            (2, "Starter"),
            (3, "Rising"),
            (7, "Rising"),
            (8, "Established"),
            (23, "Expert"),
            (49, "Expert"),
            (50, "Master"),
            (500, "Master"),
        ],
    )
    def test_highest_threshold_reached(self, completed: int, name: str) -> None:
        assert tier_for(completed).name == name

    def test_rates_never_decrease(self) -> None:
        for lower, higher in zip(TIERS, TIERS[1:]):
            assert higher.rates.ordinary > lower.rates.ordinary
            assert higher.rates.technical > lower.rates.technical
            assert higher.completed_orders_required > lower.completed_orders_required

    def test_rate_for(self) -> None:
        assert STARTER.rate_for(WorkType.TECHNICAL) == 170
        assert STARTER.rate_for("ordinary") == 150
