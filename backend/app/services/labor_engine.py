"""
labor_engine.py — Direct labor and supervisor cost for production reports.

Covers:
  - Daily labor cost of a set of reports (workers × hours × hourly rate)
  - Hourly rate resolution from labor settings
  - Supervisor hourly-rate override map built from the employee directory
  - Supervisor indirect cost per report (cached value wins over recompute)
"""

from typing import Callable, Dict, Iterable, Mapping, Optional, Union

from app.config import SUPERVISOR_LEVEL
from app.models.cost_models import Employee, LaborSettings, ProductionReport
from app.services.cost_utils import non_negative

# An employee-id → hourly-rate override: a mapping or a lookup callable
SupervisorRates = Union[Mapping[str, float], Callable[[str], Optional[float]]]


# ---------------------------------------------------------------------------
# Labor
# ---------------------------------------------------------------------------

def resolve_hourly_rate(labor_settings: Optional[LaborSettings]) -> float:
    """Base hourly rate; absent settings mean a rate of 0."""
    if labor_settings is None:
        return 0.0
    return non_negative(labor_settings.hourly_rate)


def report_labor_hours(report: ProductionReport) -> float:
    return non_negative(report.workers_count) * non_negative(report.work_hours)


def report_labor_cost(report: ProductionReport, hourly_rate: float) -> float:
    return report_labor_hours(report) * hourly_rate


def calculate_daily_labor_cost(
    reports: Iterable[ProductionReport],
    hourly_rate: float,
) -> float:
    """
    Daily labor cost = Σ(workers_count × work_hours) × hourly_rate.

    Negative or missing counts/hours count as 0.
    """
    total_labor_hours = sum(report_labor_hours(r) for r in reports)
    return total_labor_hours * hourly_rate


# ---------------------------------------------------------------------------
# Supervisor rates
# ---------------------------------------------------------------------------

def build_supervisor_hourly_rates_map(employees: Iterable[Employee]) -> Dict[str, float]:
    """Active supervisor-level employees with an id → non-negative hourly rate."""
    return {
        e.id: non_negative(e.hourly_rate)
        for e in employees
        if e.id and e.level == SUPERVISOR_LEVEL and e.is_active
    }


def _lookup_rate(supervisor_rates: Optional[SupervisorRates], employee_id: str) -> float:
    if supervisor_rates is None:
        return 0.0
    if callable(supervisor_rates):
        return non_negative(supervisor_rates(employee_id))
    return non_negative(supervisor_rates.get(employee_id))


def effective_supervisor_rate(
    report: ProductionReport,
    supervisor_rates: Optional[SupervisorRates] = None,
    fallback_rate: float = 0.0,
) -> float:
    """
    The report employee's override rate when positive, else the base rate.
    Reports without an employee id always use the base rate.
    """
    if report.employee_id:
        specific = _lookup_rate(supervisor_rates, report.employee_id)
        if specific > 0:
            return specific
    return non_negative(fallback_rate)


def supervisor_indirect_cost(
    report: ProductionReport,
    supervisor_rates: Optional[SupervisorRates] = None,
    fallback_rate: float = 0.0,
) -> float:
    """
    Supervisor share of indirect cost for one report.

    A cached ``supervisor_indirect_cost`` > 0 on the report is used verbatim so
    a stored figure is never recomputed differently; otherwise
    effective_rate × work_hours.
    """
    cached = non_negative(report.supervisor_indirect_cost)
    if cached > 0:
        return cached
    rate = effective_supervisor_rate(report, supervisor_rates, fallback_rate)
    return rate * non_negative(report.work_hours)


def override_supervisor_cost(
    report: ProductionReport,
    supervisor_rates: Optional[SupervisorRates],
) -> float:
    """Override rate × work_hours with no base-rate fallback (monthly close rule)."""
    if not report.employee_id:
        return 0.0
    return _lookup_rate(supervisor_rates, report.employee_id) * non_negative(report.work_hours)
