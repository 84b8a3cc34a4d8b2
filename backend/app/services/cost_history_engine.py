"""
cost_history_engine.py — Historical views of product cost.

Covers:
  - Quantity-weighted average cost of a product over a report set
  - Cost of a product broken down by the line it ran on
  - Cost-per-unit series by date (trend chart)
  - Daily production cost chart filtered by product / line / month
  - First-half vs second-half trend direction of a cost series

Every builder prices individual reports through ReportApportioner, so the
averages and series here reconcile exactly with the per-report costs.
"""

import logging
from collections import defaultdict
from typing import Callable, Dict, Iterable, List, Optional

from app.config import TREND_FLAT_THRESHOLD
from app.models.cost_models import (
    CostConfiguration,
    CostTrend,
    DailyCostPoint,
    DailyProductionCostPoint,
    ProductCostData,
    ProductLineCost,
    ProductionReport,
    ReportCostBreakdown,
)
from app.services.cost_utils import in_month, unit_cost
from app.services.labor_engine import SupervisorRates
from app.services.report_cost_engine import ReportApportioner

logger = logging.getLogger("costing-history")


class _CostTotals:
    __slots__ = ("labor", "indirect", "quantity")

    def __init__(self) -> None:
        self.labor = 0.0
        self.indirect = 0.0
        self.quantity = 0.0

    def add(self, breakdown: ReportCostBreakdown) -> None:
        self.labor += breakdown.labor_cost
        self.indirect += breakdown.indirect_cost
        self.quantity += breakdown.quantity_produced

    @property
    def total(self) -> float:
        return self.labor + self.indirect

    @property
    def cost_per_unit(self) -> float:
        return unit_cost(self.total, self.quantity)


def _priced(
    selected: Iterable[ProductionReport],
    apportioner: ReportApportioner,
):
    """Yield (report, breakdown) for the selected reports that produced something."""
    for r in selected:
        breakdown = apportioner.breakdown(r)
        if breakdown is not None:
            yield r, breakdown


def build_product_avg_cost(
    product_id: str,
    reports: List[ProductionReport],
    hourly_rate: float,
    config: CostConfiguration,
    supervisor_rates: Optional[SupervisorRates] = None,
) -> ProductCostData:
    """
    Average cost per unit of a product across ``reports``.

    total cost / total produced, so a report producing more units weighs
    proportionally more than a plain mean of per-report unit costs would.
    """
    product_reports = [r for r in reports if r.product_id == product_id]
    if not product_reports:
        return ProductCostData()

    apportioner = ReportApportioner(reports, hourly_rate, config, supervisor_rates)
    totals = _CostTotals()
    for _, breakdown in _priced(product_reports, apportioner):
        totals.add(breakdown)

    return ProductCostData(
        labor_cost=totals.labor,
        indirect_cost=totals.indirect,
        total_cost=totals.total,
        quantity_produced=totals.quantity,
        cost_per_unit=totals.cost_per_unit,
    )


def build_product_cost_by_line(
    product_id: str,
    reports: List[ProductionReport],
    hourly_rate: float,
    config: CostConfiguration,
    get_line_name: Callable[[str], str],
    supervisor_rates: Optional[SupervisorRates] = None,
) -> List[ProductLineCost]:
    """One row per line the product was produced on, in first-seen order."""
    product_reports = [r for r in reports if r.product_id == product_id]
    if not product_reports:
        return []

    apportioner = ReportApportioner(reports, hourly_rate, config, supervisor_rates)
    by_line: Dict[str, _CostTotals] = defaultdict(_CostTotals)
    for r, breakdown in _priced(product_reports, apportioner):
        by_line[r.line_id].add(breakdown)

    return [
        ProductLineCost(
            line_id=line_id,
            line_name=get_line_name(line_id),
            total_produced=totals.quantity,
            total_cost=totals.total,
            cost_per_unit=totals.cost_per_unit,
        )
        for line_id, totals in by_line.items()
    ]


def build_product_cost_history(
    product_id: str,
    reports: List[ProductionReport],
    hourly_rate: float,
    config: CostConfiguration,
    supervisor_rates: Optional[SupervisorRates] = None,
) -> List[DailyCostPoint]:
    """Cost per unit of a product for each date it was produced, oldest first."""
    product_reports = [r for r in reports if r.product_id == product_id]
    if not product_reports:
        return []

    apportioner = ReportApportioner(reports, hourly_rate, config, supervisor_rates)
    by_date: Dict[str, _CostTotals] = defaultdict(_CostTotals)
    for r, breakdown in _priced(product_reports, apportioner):
        by_date[r.date].add(breakdown)

    return sorted(
        (
            DailyCostPoint(date=day, cost_per_unit=totals.cost_per_unit, quantity=totals.quantity)
            for day, totals in by_date.items()
        ),
        key=lambda p: p.date,
    )


def build_daily_production_cost_chart(
    reports: List[ProductionReport],
    hourly_rate: float,
    config: CostConfiguration,
    product_id: str = "",
    line_id: str = "",
    month: str = "",
    supervisor_rates: Optional[SupervisorRates] = None,
) -> List[DailyProductionCostPoint]:
    """
    Daily production and cost for the reports matching the optional product,
    line and month filters. Line-day totals still come from the whole batch.
    """
    filtered = [
        r for r in reports
        if (not product_id or r.product_id == product_id)
        and (not line_id or r.line_id == line_id)
        and (not month or in_month(r.date, month))
    ]
    if not filtered:
        return []

    apportioner = ReportApportioner(reports, hourly_rate, config, supervisor_rates)
    by_date: Dict[str, _CostTotals] = defaultdict(_CostTotals)
    for r, breakdown in _priced(filtered, apportioner):
        by_date[r.date].add(breakdown)

    points = [
        DailyProductionCostPoint(
            date=day,
            day=day[8:],
            production=totals.quantity,
            labor_cost=totals.labor,
            indirect_cost=totals.indirect,
            total_cost=totals.total,
            cost_per_unit=totals.cost_per_unit,
        )
        for day, totals in by_date.items()
    ]
    points.sort(key=lambda p: p.date)
    logger.debug(
        f"Daily chart: {len(points)} days from {len(filtered)} reports",
        extra={"product_id": product_id or None, "line_id": line_id or None, "month": month or None},
    )
    return points


def analyze_cost_trend(
    points: List[DailyCostPoint],
    flat_threshold: float = TREND_FLAT_THRESHOLD,
) -> CostTrend:
    """
    Compare the average unit cost of the older half of a series with the newer
    half. Odd-length series put the middle point in the newer half.
    """
    if len(points) < 2:
        return CostTrend()

    mid = len(points) // 2
    first = [p.cost_per_unit for p in points[:mid]]
    second = [p.cost_per_unit for p in points[mid:]]
    first_avg = sum(first) / len(first)
    second_avg = sum(second) / len(second)

    if first_avg > 0:
        change = (second_avg - first_avg) / first_avg
    else:
        # Any rise from a zero baseline is reported as a full step up
        change = 1.0 if second_avg > 0 else 0.0
    if abs(change) < flat_threshold:
        direction = "flat"
    else:
        direction = "up" if change > 0 else "down"

    return CostTrend(
        direction=direction,
        first_half_avg=first_avg,
        second_half_avg=second_avg,
        change_pct=round(change * 100.0, 2),
    )
