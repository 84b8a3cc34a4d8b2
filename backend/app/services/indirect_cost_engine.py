"""
indirect_cost_engine.py — Cost-center allocation to production lines.

Covers:
  - Daily indirect cost of a line for a month (the single allocation primitive)
  - Call-scoped memo of that figure per (line, month)
  - Per-cost-center breakdown of what a line receives in a month

Allocation rule, per active indirect cost center:
    monthly_share = center_amount(month) × line_percentage(month) / 100
    daily_indirect = Σ monthly_share / days_in_month(month)

Percentages are applied independently per center and are never normalised to
100 across lines. Any configuration gap (missing value, missing allocation,
missing line entry, malformed month) contributes zero; nothing here raises.
"""

import logging
from typing import Dict, Iterator, Tuple

from app.config import INDIRECT_CENTER_TYPE
from app.models.cost_models import (
    CostAllocation,
    CostCenter,
    CostCenterValue,
    CostConfiguration,
    LineAllocatedCenterCost,
    LineAllocatedCostSummary,
)
from app.services.cost_utils import days_in_month

logger = logging.getLogger("costing-indirect")


class _ConfigIndex:
    """Keyed lookups over the configuration collections (first record wins)."""

    def __init__(self, config: CostConfiguration) -> None:
        self.centers = [
            c for c in config.cost_centers
            if c.type == INDIRECT_CENTER_TYPE and c.is_active and c.id
        ]
        self.values: Dict[Tuple[str, str], CostCenterValue] = {}
        for v in config.cost_center_values:
            self.values.setdefault((v.cost_center_id, v.month), v)
        self.allocations: Dict[Tuple[str, str], CostAllocation] = {}
        for a in config.cost_allocations:
            self.allocations.setdefault((a.cost_center_id, a.month), a)

    def line_shares(self, line_id: str, month: str) -> Iterator[Tuple[CostCenter, float, float]]:
        """Yield (center, monthly_allocated, percentage) for every center that reaches the line."""
        for center in self.centers:
            value = self.values.get((center.id, month))
            if value is None or value.amount <= 0:
                continue

            allocation = self.allocations.get((center.id, month))
            if allocation is None:
                logger.debug(
                    f"No allocation for center {center.id} in {month}",
                    extra={"line_id": line_id, "month": month},
                )
                continue

            line_alloc = next(
                (a for a in allocation.allocations if a.line_id == line_id), None
            )
            if line_alloc is None or line_alloc.percentage <= 0:
                continue

            yield center, value.amount * (line_alloc.percentage / 100.0), line_alloc.percentage


def _monthly_indirect(index: _ConfigIndex, line_id: str, month: str) -> float:
    return sum(share for _, share, _ in index.line_shares(line_id, month))


def calculate_daily_indirect_cost(
    line_id: str,
    month: str,
    config: CostConfiguration,
) -> float:
    """
    Daily indirect cost allocated to ``line_id`` for ``month`` ("YYYY-MM").

    Sums every active indirect center's monthly amount × the line's allocation
    percentage, then spreads the total evenly across the days of the month.
    Returns 0.0 for a malformed month key.
    """
    days = days_in_month(month)
    if days <= 0:
        logger.debug(
            f"Malformed month key {month!r}; indirect cost is zero",
            extra={"line_id": line_id, "month": month},
        )
        return 0.0
    return _monthly_indirect(_ConfigIndex(config), line_id, month) / days


class IndirectCostResolver:
    """
    Memoised ``calculate_daily_indirect_cost`` for one batch computation.

    Create one per call; the memo must not outlive the inputs it was built from.
    """

    def __init__(self, config: CostConfiguration) -> None:
        self._index = _ConfigIndex(config)
        self._cache: Dict[Tuple[str, str], float] = {}

    def daily_indirect_cost(self, line_id: str, month: str) -> float:
        key = (line_id, month)
        if key not in self._cache:
            days = days_in_month(month)
            self._cache[key] = (
                _monthly_indirect(self._index, line_id, month) / days if days > 0 else 0.0
            )
        return self._cache[key]


def build_line_allocated_cost_summary(
    line_id: str,
    month: str,
    config: CostConfiguration,
) -> LineAllocatedCostSummary:
    """
    Monthly and daily indirect cost received by a line, broken down by cost
    center and sorted by monthly amount (largest first).
    """
    days = days_in_month(month)
    if not line_id or days <= 0:
        return LineAllocatedCostSummary(month=month, days_in_month=max(days, 0))

    centers = [
        LineAllocatedCenterCost(
            cost_center_id=center.id,
            cost_center_name=center.name,
            monthly_allocated=monthly,
            daily_allocated=monthly / days,
            percentage=percentage,
        )
        for center, monthly, percentage in _ConfigIndex(config).line_shares(line_id, month)
    ]
    centers.sort(key=lambda c: c.monthly_allocated, reverse=True)
    total_monthly = sum(c.monthly_allocated for c in centers)

    return LineAllocatedCostSummary(
        month=month,
        days_in_month=days,
        total_monthly_allocated=total_monthly,
        total_daily_allocated=total_monthly / days,
        centers=centers,
    )
