"""
production_cost_engine.py — Today's cost snapshots per line and per product,
plus the live estimate shown while a report form is being filled in.

Line snapshot:
    labor    = Σ(workers × hours) × hourly_rate over the line's reports
    indirect = daily indirect cost of the line for the month
    unit     = (labor + indirect) / Σ quantity_produced

Product snapshot: a line's daily indirect cost is split across the products
that ran on it that day, weighted by each product's share of the line's
output (never by report count or worker count).
"""

import logging
from collections import defaultdict
from datetime import date as _date
from typing import Dict, Iterable, List, Optional

from app.models.cost_models import (
    CostConfiguration,
    CostEstimate,
    LaborSettings,
    LineCostData,
    ProductCostData,
    ProductionReport,
)
from app.services.cost_utils import current_month, month_of, non_negative, unit_cost
from app.services.indirect_cost_engine import IndirectCostResolver, calculate_daily_indirect_cost
from app.services.labor_engine import calculate_daily_labor_cost, resolve_hourly_rate

logger = logging.getLogger("costing-production")


def _total_produced(reports: Iterable[ProductionReport]) -> float:
    return sum(non_negative(r.quantity_produced) for r in reports)


def build_line_costs(
    line_ids: Iterable[str],
    today_reports: List[ProductionReport],
    labor_settings: Optional[LaborSettings],
    config: CostConfiguration,
    month: Optional[str] = None,
) -> Dict[str, LineCostData]:
    """Cost snapshot for every requested line over today's reports."""
    hourly_rate = resolve_hourly_rate(labor_settings)
    month = month or current_month()
    resolver = IndirectCostResolver(config)
    result: Dict[str, LineCostData] = {}

    for line_id in line_ids:
        line_reports = [r for r in today_reports if r.line_id == line_id]
        labor_cost = calculate_daily_labor_cost(line_reports, hourly_rate)
        indirect_cost = resolver.daily_indirect_cost(line_id, month)
        total_cost = labor_cost + indirect_cost

        result[line_id] = LineCostData(
            labor_cost=labor_cost,
            indirect_cost=indirect_cost,
            total_cost=total_cost,
            cost_per_unit=unit_cost(total_cost, _total_produced(line_reports)),
        )

    return result


def build_product_costs(
    product_ids: Iterable[str],
    today_reports: List[ProductionReport],
    labor_settings: Optional[LaborSettings],
    config: CostConfiguration,
    month: Optional[str] = None,
) -> Dict[str, ProductCostData]:
    """
    Cost snapshot for every requested product over today's reports.

    Indirect cost per product = Σ over the lines it ran on of
    line_indirect × product_qty_on_line / line_total_qty.
    """
    hourly_rate = resolve_hourly_rate(labor_settings)
    month = month or current_month()

    line_totals: Dict[str, float] = defaultdict(float)
    for r in today_reports:
        line_totals[r.line_id] += non_negative(r.quantity_produced)

    resolver = IndirectCostResolver(config)
    result: Dict[str, ProductCostData] = {}

    for product_id in product_ids:
        product_reports = [r for r in today_reports if r.product_id == product_id]
        if not product_reports:
            result[product_id] = ProductCostData()
            continue

        labor_cost = calculate_daily_labor_cost(product_reports, hourly_rate)
        quantity_produced = _total_produced(product_reports)

        product_by_line: Dict[str, float] = defaultdict(float)
        for r in product_reports:
            product_by_line[r.line_id] += non_negative(r.quantity_produced)

        indirect_cost = 0.0
        for line_id, product_qty in product_by_line.items():
            line_total = line_totals.get(line_id, 0.0)
            if line_total <= 0:
                continue
            indirect_cost += resolver.daily_indirect_cost(line_id, month) * (product_qty / line_total)

        total_cost = labor_cost + indirect_cost
        result[product_id] = ProductCostData(
            labor_cost=labor_cost,
            indirect_cost=indirect_cost,
            total_cost=total_cost,
            quantity_produced=quantity_produced,
            cost_per_unit=unit_cost(total_cost, quantity_produced),
        )

    logger.debug(
        f"Product snapshot for {len(result)} products over {len(line_totals)} lines ({month})",
        extra={"month": month},
    )
    return result


def estimate_report_cost(
    workers_count: float,
    work_hours: float,
    quantity_produced: float,
    hourly_rate: float,
    supervisor_hourly_rate: float,
    line_id: str,
    report_date: Optional[str],
    config: CostConfiguration,
    today: Optional[_date] = None,
) -> CostEstimate:
    """
    Projected cost per unit for a report that has not been saved yet.

    The line's full daily indirect cost is charged to the hypothetical report,
    plus supervisor_rate × work_hours. Returns zeros when nothing is produced.
    """
    if quantity_produced <= 0:
        return CostEstimate()

    workers_count = non_negative(workers_count)
    work_hours = non_negative(work_hours)

    labor_cost = workers_count * work_hours * non_negative(hourly_rate)
    supervisor_cost = non_negative(supervisor_hourly_rate) * work_hours
    month = month_of(report_date, current_month(today))
    shared_indirect = calculate_daily_indirect_cost(line_id, month, config) if line_id else 0.0

    indirect_cost = shared_indirect + supervisor_cost
    total_cost = labor_cost + indirect_cost
    return CostEstimate(
        labor_cost=labor_cost,
        indirect_cost=indirect_cost,
        total_cost=total_cost,
        cost_per_unit=total_cost / quantity_produced,
    )
