"""
monthly_cost_engine.py — Month-close production cost per product and the
full unit-cost breakdown of a product.

Monthly close differs from the report-level apportioner in how a line-day's
indirect cost is shared: by work hours when both the line-day and the report
logged hours, falling back to the quantity share otherwise. Supervisor cost
uses only the override rate map (no base-rate fallback). A closed month is
frozen: recalculating it returns the stored record unchanged.
"""

import logging
from collections import defaultdict
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

from app.models.cost_models import (
    CostConfiguration,
    MonthlyProductionCost,
    ProductCostBreakdown,
    ProductCostInputs,
    ProductMaterial,
    ProductionReport,
)
from app.services.cost_utils import in_month, month_of, non_negative, unit_cost
from app.services.indirect_cost_engine import IndirectCostResolver
from app.services.labor_engine import SupervisorRates, override_supervisor_cost, report_labor_cost
from app.services.report_cost_engine import LineDayKey, line_day_key, line_day_totals

logger = logging.getLogger("costing-monthly")


def _now_iso(now: Optional[datetime] = None) -> str:
    return (now or datetime.now(timezone.utc)).isoformat()


def calculate_monthly_production_cost(
    product_id: str,
    month: str,
    reports: Iterable[ProductionReport],
    hourly_rate: float,
    config: CostConfiguration,
    supervisor_rates: Optional[SupervisorRates] = None,
    existing: Optional[MonthlyProductionCost] = None,
    now: Optional[datetime] = None,
) -> MonthlyProductionCost:
    """
    Total production cost and average unit cost of a product for one month.

    ``reports`` may contain other products and other months; only reports
    dated inside ``month`` are used, and every product's output counts toward
    the line-day totals.
    """
    if existing is not None and existing.is_closed:
        logger.info(
            f"Month {month} closed for product {product_id}; keeping stored figures",
            extra={"product_id": product_id, "month": month},
        )
        return existing

    hourly_rate = non_negative(hourly_rate)
    month_reports = [r for r in reports if in_month(r.date, month)]
    product_reports = [r for r in month_reports if r.product_id == product_id]

    qty_totals = line_day_totals(month_reports)
    hours_totals: Dict[LineDayKey, float] = defaultdict(float)
    for r in month_reports:
        hours_totals[line_day_key(r)] += non_negative(r.work_hours)

    resolver = IndirectCostResolver(config)
    total_labor = 0.0
    total_indirect = 0.0
    total_qty = 0.0

    for r in product_reports:
        quantity = non_negative(r.quantity_produced)
        if quantity <= 0:
            continue

        total_labor += report_labor_cost(r, hourly_rate)
        total_qty += quantity

        key = line_day_key(r)
        line_indirect = resolver.daily_indirect_cost(r.line_id, month_of(r.date, month))
        day_hours = hours_totals.get(key, 0.0)
        report_hours = non_negative(r.work_hours)
        if day_hours > 0 and report_hours > 0:
            total_indirect += line_indirect * (report_hours / day_hours)
        else:
            day_qty = qty_totals.get(key, 0.0)
            if day_qty > 0:
                total_indirect += line_indirect * (quantity / day_qty)

        total_indirect += override_supervisor_cost(r, supervisor_rates)

    total_cost = total_labor + total_indirect
    return MonthlyProductionCost(
        product_id=product_id,
        month=month,
        total_produced_qty=total_qty,
        total_production_cost=total_cost,
        average_unit_cost=unit_cost(total_cost, total_qty),
        is_closed=False,
        calculated_at=_now_iso(now),
    )


def calculate_all_monthly_production_costs(
    product_ids: Iterable[str],
    month: str,
    reports: Iterable[ProductionReport],
    hourly_rate: float,
    config: CostConfiguration,
    supervisor_rates: Optional[SupervisorRates] = None,
    existing: Optional[Dict[str, MonthlyProductionCost]] = None,
    now: Optional[datetime] = None,
) -> List[MonthlyProductionCost]:
    reports = list(reports)
    existing = existing or {}
    return [
        calculate_monthly_production_cost(
            pid, month, reports, hourly_rate, config,
            supervisor_rates=supervisor_rates,
            existing=existing.get(pid),
            now=now,
        )
        for pid in product_ids
    ]


def close_monthly_production_cost(
    record: MonthlyProductionCost,
    now: Optional[datetime] = None,
) -> MonthlyProductionCost:
    """Closed copy of ``record``; later recalculations leave it as is."""
    return record.model_copy(update={"is_closed": True, "calculated_at": _now_iso(now)})


def calculate_product_cost_breakdown(
    product: ProductCostInputs,
    materials: Iterable[ProductMaterial],
    monthly_avg_unit_cost: float = 0.0,
) -> ProductCostBreakdown:
    """
    Full unit cost of a product:

        base unit cost
      + Σ material quantity_used × unit_cost
      + inner box cost
      + outer carton cost / units per carton
      + production overhead share (the month's average production unit cost)
    """
    raw_material_cost = sum(
        non_negative(m.quantity_used) * non_negative(m.unit_cost) for m in materials
    )
    units_per_carton = non_negative(product.units_per_carton)
    outer_carton_cost = non_negative(product.outer_carton_cost)
    carton_share = outer_carton_cost / units_per_carton if units_per_carton > 0 else 0.0
    overhead_share = non_negative(monthly_avg_unit_cost)

    base = non_negative(product.base_unit_cost)
    inner_box = non_negative(product.inner_box_cost)

    return ProductCostBreakdown(
        base_unit_cost=base,
        raw_material_cost=raw_material_cost,
        inner_box_cost=inner_box,
        outer_carton_cost=outer_carton_cost,
        units_per_carton=units_per_carton,
        carton_share=carton_share,
        production_overhead_share=overhead_share,
        total_calculated_cost=base + raw_material_cost + inner_box + carton_share + overhead_share,
    )
