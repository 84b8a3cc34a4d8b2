"""
report_cost_engine.py — Cost per unit for every report in an arbitrary batch.

The batch may span many dates and months. A line's daily indirect cost is
shared by every report on that line-day, weighted strictly by quantity
produced:

    shared_indirect = line_daily_indirect(month of report)
                      × report.quantity_produced / line_day_total_quantity

    cost_per_unit   = (labor + shared_indirect + supervisor_indirect)
                      / report.quantity_produced

Line-day totals are taken over the whole batch, so the shares of one
line-day add back up to the line's daily indirect cost when the batch holds
all of that day's output. Historical builders reuse ``ReportApportioner`` so
every view of a report's cost agrees.
"""

import logging
from collections import defaultdict
from typing import Dict, Iterable, Optional, Tuple

from app.models.cost_models import CostConfiguration, ProductionReport, ReportCostBreakdown
from app.services.cost_utils import month_of, non_negative, unit_cost
from app.services.indirect_cost_engine import IndirectCostResolver
from app.services.labor_engine import (
    SupervisorRates,
    report_labor_cost,
    supervisor_indirect_cost,
)

logger = logging.getLogger("costing-reports")

LineDayKey = Tuple[str, str]


def line_day_key(report: ProductionReport) -> LineDayKey:
    """The (line, date) grouping key shared by every apportioning builder."""
    return report.line_id, report.date


def line_day_totals(reports: Iterable[ProductionReport]) -> Dict[LineDayKey, float]:
    """Total quantity produced per line-day."""
    totals: Dict[LineDayKey, float] = defaultdict(float)
    for r in reports:
        totals[line_day_key(r)] += non_negative(r.quantity_produced)
    return dict(totals)


class ReportApportioner:
    """
    Prices single reports against one batch.

    Holds the batch's line-day totals and a call-scoped indirect-cost memo;
    build one per computation and discard it afterwards.
    """

    def __init__(
        self,
        reports: Iterable[ProductionReport],
        hourly_rate: float,
        config: CostConfiguration,
        supervisor_rates: Optional[SupervisorRates] = None,
    ) -> None:
        self.hourly_rate = non_negative(hourly_rate)
        self.supervisor_rates = supervisor_rates
        self.line_day_totals = line_day_totals(reports)
        self.resolver = IndirectCostResolver(config)

    def shared_indirect(self, report: ProductionReport) -> float:
        quantity = non_negative(report.quantity_produced)
        total = self.line_day_totals.get(line_day_key(report), 0.0)
        if total <= 0 or quantity <= 0:
            return 0.0
        line_indirect = self.resolver.daily_indirect_cost(report.line_id, month_of(report.date))
        return line_indirect * (quantity / total)

    def breakdown(self, report: ProductionReport) -> Optional[ReportCostBreakdown]:
        """Cost components of one report; None when it produced nothing."""
        quantity = non_negative(report.quantity_produced)
        if quantity <= 0:
            return None

        labor = report_labor_cost(report, self.hourly_rate)
        shared = self.shared_indirect(report)
        supervisor = supervisor_indirect_cost(report, self.supervisor_rates, self.hourly_rate)
        total = labor + shared + supervisor

        return ReportCostBreakdown(
            labor_cost=labor,
            shared_indirect_cost=shared,
            supervisor_indirect_cost=supervisor,
            total_cost=total,
            quantity_produced=quantity,
            cost_per_unit=unit_cost(total, quantity),
        )


def build_report_cost_breakdowns(
    reports: Iterable[ProductionReport],
    hourly_rate: float,
    config: CostConfiguration,
    supervisor_rates: Optional[SupervisorRates] = None,
) -> Dict[str, ReportCostBreakdown]:
    """
    Cost components for every report with an id and quantity_produced > 0.

    Reports that produced nothing are left out of the result entirely: their
    cost per unit is undefined, not zero.
    """
    reports = list(reports)
    apportioner = ReportApportioner(reports, hourly_rate, config, supervisor_rates)

    result: Dict[str, ReportCostBreakdown] = {}
    for r in reports:
        if not r.id:
            continue
        breakdown = apportioner.breakdown(r)
        if breakdown is not None:
            result[r.id] = breakdown

    logger.debug(f"Priced {len(result)} of {len(reports)} reports")
    return result


def build_reports_costs(
    reports: Iterable[ProductionReport],
    hourly_rate: float,
    config: CostConfiguration,
    supervisor_rates: Optional[SupervisorRates] = None,
) -> Dict[str, float]:
    """Report id → cost per unit for every report that produced something."""
    breakdowns = build_report_cost_breakdowns(reports, hourly_rate, config, supervisor_rates)
    return {report_id: b.cost_per_unit for report_id, b in breakdowns.items()}
