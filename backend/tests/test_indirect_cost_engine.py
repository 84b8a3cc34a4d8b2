"""
test_indirect_cost_engine.py — Unit tests for cost-center allocation to lines.

Tests cover:
  - calculate_daily_indirect_cost: worked example, direct/inactive centers ignored
  - Configuration gaps degrade to zero (missing value, allocation, line entry)
  - Percentages applied independently per center (no normalisation)
  - IndirectCostResolver agrees with the free function
  - build_line_allocated_cost_summary: per-center breakdown, ordering, totals
"""

import pytest

from app.models.cost_models import (
    CostAllocation,
    CostCenter,
    CostCenterValue,
    CostConfiguration,
    LineAllocation,
)
from app.services.indirect_cost_engine import (
    IndirectCostResolver,
    build_line_allocated_cost_summary,
    calculate_daily_indirect_cost,
)


def _single_center_config(amount=30_000.0, allocations=None, month="2024-06"):
    return CostConfiguration(
        cost_centers=[CostCenter(id="C", name="C", type="indirect")],
        cost_center_values=[CostCenterValue(cost_center_id="C", month=month, amount=amount)],
        cost_allocations=(
            []
            if allocations is None
            else [CostAllocation(cost_center_id="C", month=month, allocations=allocations)]
        ),
    )


# ===========================================================================
# Daily indirect cost
# ===========================================================================

class TestDailyIndirectCost:

    def test_worked_example_line_one(self, june_config):
        """30 000 × 50 % / 30 days = 500 per day."""
        assert calculate_daily_indirect_cost("L1", "2024-06", june_config) == pytest.approx(500.0)

    def test_second_line_gets_its_own_percentage(self, june_config):
        """30 000 × 25 % / 30 days = 250 per day."""
        assert calculate_daily_indirect_cost("L2", "2024-06", june_config) == pytest.approx(250.0)

    def test_direct_and_inactive_centers_ignored(self, june_config):
        """DIR-1 (direct) and OLD-1 (inactive) both allocate 100 % to L1 but add nothing."""
        assert calculate_daily_indirect_cost("L1", "2024-06", june_config) == pytest.approx(500.0)

    def test_unallocated_line_is_zero(self, june_config):
        assert calculate_daily_indirect_cost("L9", "2024-06", june_config) == 0.0

    def test_other_month_is_zero(self, june_config):
        """No values or allocations are configured for July."""
        assert calculate_daily_indirect_cost("L1", "2024-07", june_config) == 0.0

    @pytest.mark.parametrize("month", ["", "junk", "2024-13", "2024"])
    def test_malformed_month_is_zero(self, june_config, month):
        assert calculate_daily_indirect_cost("L1", month, june_config) == 0.0

    def test_missing_allocation_contributes_zero(self):
        """A center with a monthly value but no allocation record is skipped, not an error."""
        config = _single_center_config(allocations=None)
        assert calculate_daily_indirect_cost("L1", "2024-06", config) == 0.0

    def test_zero_percentage_contributes_zero(self):
        config = _single_center_config(allocations=[LineAllocation(line_id="L1", percentage=0.0)])
        assert calculate_daily_indirect_cost("L1", "2024-06", config) == 0.0

    def test_non_positive_amount_contributes_zero(self):
        config = _single_center_config(
            amount=-500.0, allocations=[LineAllocation(line_id="L1", percentage=100.0)]
        )
        assert calculate_daily_indirect_cost("L1", "2024-06", config) == 0.0

    def test_percentages_are_not_normalised(self):
        """
        Two centers each allocate 80 % to L1 and 80 % to L2 (160 % per center).
        Each line still receives 80 % of each center: (3000 + 6000) × 0.8 / 30 = 240.
        """
        alloc = [LineAllocation(line_id="L1", percentage=80.0), LineAllocation(line_id="L2", percentage=80.0)]
        config = CostConfiguration(
            cost_centers=[
                CostCenter(id="A", type="indirect"),
                CostCenter(id="B", type="indirect"),
            ],
            cost_center_values=[
                CostCenterValue(cost_center_id="A", month="2024-06", amount=3000.0),
                CostCenterValue(cost_center_id="B", month="2024-06", amount=6000.0),
            ],
            cost_allocations=[
                CostAllocation(cost_center_id="A", month="2024-06", allocations=alloc),
                CostAllocation(cost_center_id="B", month="2024-06", allocations=alloc),
            ],
        )
        assert calculate_daily_indirect_cost("L1", "2024-06", config) == pytest.approx(240.0)
        assert calculate_daily_indirect_cost("L2", "2024-06", config) == pytest.approx(240.0)

    def test_february_leap_year_divisor(self):
        """29 000 × 100 % / 29 days (Feb 2024) = 1000."""
        config = _single_center_config(
            amount=29_000.0,
            allocations=[LineAllocation(line_id="L1", percentage=100.0)],
            month="2024-02",
        )
        assert calculate_daily_indirect_cost("L1", "2024-02", config) == pytest.approx(1000.0)

    def test_camel_case_records_accepted(self):
        """Records straight from the document store use camelCase field names."""
        config = CostConfiguration.model_validate({
            "costCenters": [{"id": "C", "name": "C", "type": "indirect", "isActive": True}],
            "costCenterValues": [{"costCenterId": "C", "month": "2024-06", "amount": 3000}],
            "costAllocations": [{
                "costCenterId": "C",
                "month": "2024-06",
                "allocations": [{"lineId": "L1", "percentage": 100}],
            }],
        })
        assert calculate_daily_indirect_cost("L1", "2024-06", config) == pytest.approx(100.0)

    def test_repeated_calls_are_identical(self, june_config):
        first = calculate_daily_indirect_cost("L1", "2024-06", june_config)
        second = calculate_daily_indirect_cost("L1", "2024-06", june_config)
        assert first == second


# ===========================================================================
# Resolver
# ===========================================================================

class TestIndirectCostResolver:

    @pytest.mark.parametrize("line_id,month", [
        ("L1", "2024-06"),
        ("L2", "2024-06"),
        ("L1", "2024-07"),
        ("L3", "bad"),
    ])
    def test_matches_free_function_exactly(self, june_config, line_id, month):
        resolver = IndirectCostResolver(june_config)
        expected = calculate_daily_indirect_cost(line_id, month, june_config)
        assert resolver.daily_indirect_cost(line_id, month) == expected
        # Second (memoised) lookup returns the same value
        assert resolver.daily_indirect_cost(line_id, month) == expected

    def test_resolvers_do_not_share_state(self, june_config, empty_config):
        assert IndirectCostResolver(june_config).daily_indirect_cost("L1", "2024-06") == pytest.approx(500.0)
        assert IndirectCostResolver(empty_config).daily_indirect_cost("L1", "2024-06") == 0.0


# ===========================================================================
# Allocated cost summary
# ===========================================================================

class TestLineAllocatedCostSummary:

    def test_single_center_summary(self, june_config):
        summary = build_line_allocated_cost_summary("L1", "2024-06", june_config)
        assert summary.days_in_month == 30
        assert summary.total_monthly_allocated == pytest.approx(15_000.0)
        assert summary.total_daily_allocated == pytest.approx(500.0)
        assert len(summary.centers) == 1
        center = summary.centers[0]
        assert center.cost_center_id == "OH-1"
        assert center.cost_center_name == "Factory overhead"
        assert center.percentage == 50.0
        assert center.daily_allocated == pytest.approx(500.0)

    def test_daily_total_matches_daily_indirect_cost(self, june_config):
        summary = build_line_allocated_cost_summary("L2", "2024-06", june_config)
        assert summary.total_daily_allocated == pytest.approx(
            calculate_daily_indirect_cost("L2", "2024-06", june_config)
        )

    def test_centers_sorted_largest_first(self):
        config = CostConfiguration(
            cost_centers=[
                CostCenter(id="small", type="indirect"),
                CostCenter(id="big", type="indirect"),
            ],
            cost_center_values=[
                CostCenterValue(cost_center_id="small", month="2024-06", amount=1000.0),
                CostCenterValue(cost_center_id="big", month="2024-06", amount=9000.0),
            ],
            cost_allocations=[
                CostAllocation(cost_center_id="small", month="2024-06",
                               allocations=[LineAllocation(line_id="L1", percentage=100.0)]),
                CostAllocation(cost_center_id="big", month="2024-06",
                               allocations=[LineAllocation(line_id="L1", percentage=10.0)]),
            ],
        )
        summary = build_line_allocated_cost_summary("L1", "2024-06", config)
        assert [c.cost_center_id for c in summary.centers] == ["small", "big"]
        assert summary.total_monthly_allocated == pytest.approx(1900.0)

    def test_empty_line_id_returns_empty_summary(self, june_config):
        summary = build_line_allocated_cost_summary("", "2024-06", june_config)
        assert summary.centers == []
        assert summary.days_in_month == 30
        assert summary.total_monthly_allocated == 0.0

    def test_malformed_month_returns_zero_days(self, june_config):
        summary = build_line_allocated_cost_summary("L1", "nope", june_config)
        assert summary.days_in_month == 0
        assert summary.centers == []
