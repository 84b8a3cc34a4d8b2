"""
Cost Engine API Routes

POST /api/costs/line-indirect                  — daily indirect cost of a line + per-center summary
POST /api/costs/lines                          — today's cost snapshot per line
POST /api/costs/products                       — today's cost snapshot per product
POST /api/costs/reports                        — cost per unit of every report in a batch
POST /api/costs/products/{product_id}/average  — weighted average cost of a product
POST /api/costs/products/{product_id}/by-line  — product cost per production line
POST /api/costs/products/{product_id}/history  — cost-per-unit series + trend direction
POST /api/costs/daily-chart                    — daily production cost chart
POST /api/costs/estimate                       — live estimate for an unsaved report
POST /api/costs/monthly                        — month-close production cost per product

Stateless: every request carries the already-fetched records, nothing is stored.
"""
import logging
from typing import Dict, List, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from app.config import COSTS_API_PREFIX
from app.models.cost_models import (
    CostConfiguration,
    CostEstimate,
    CostTrend,
    DailyCostPoint,
    DailyProductionCostPoint,
    Employee,
    LaborSettings,
    LineAllocatedCostSummary,
    LineCostData,
    MonthlyProductionCost,
    ProductCostData,
    ProductLineCost,
    ProductionReport,
    ReportCostBreakdown,
)
from app.services.cost_history_engine import (
    analyze_cost_trend,
    build_daily_production_cost_chart,
    build_product_avg_cost,
    build_product_cost_by_line,
    build_product_cost_history,
)
from app.services.cost_utils import is_month_key
from app.services.indirect_cost_engine import (
    build_line_allocated_cost_summary,
    calculate_daily_indirect_cost,
)
from app.services.labor_engine import build_supervisor_hourly_rates_map
from app.services.monthly_cost_engine import calculate_all_monthly_production_costs
from app.services.production_cost_engine import (
    build_line_costs,
    build_product_costs,
    estimate_report_cost,
)
from app.services.report_cost_engine import build_report_cost_breakdowns

router = APIRouter(prefix=COSTS_API_PREFIX, tags=["Cost Engine"])
logger = logging.getLogger("costing-api")


def _require_product_id(product_id: str) -> str:
    if not product_id or not product_id.strip():
        raise HTTPException(status_code=400, detail="Product id must not be empty")
    return product_id


def _require_month(month: str) -> str:
    if not is_month_key(month):
        raise HTTPException(status_code=400, detail=f"Invalid month key: {month!r} (expected YYYY-MM)")
    return month


# ── Pydantic Models ─────────────────────────────────────────────────────────

class LineIndirectRequest(BaseModel):
    line_id: str
    month: str
    config: CostConfiguration = Field(default_factory=CostConfiguration)


class LineIndirectResponse(BaseModel):
    line_id: str
    month: str
    daily_indirect_cost: float
    summary: LineAllocatedCostSummary


class TodaySnapshotRequest(BaseModel):
    reports: List[ProductionReport] = Field(default_factory=list)
    labor_settings: Optional[LaborSettings] = None
    config: CostConfiguration = Field(default_factory=CostConfiguration)
    month: Optional[str] = None     # defaults to the current month


class LineSnapshotRequest(TodaySnapshotRequest):
    line_ids: List[str]


class ProductSnapshotRequest(TodaySnapshotRequest):
    product_ids: List[str]


class BatchCostRequest(BaseModel):
    reports: List[ProductionReport] = Field(default_factory=list)
    hourly_rate: float = 0.0
    config: CostConfiguration = Field(default_factory=CostConfiguration)
    supervisor_hourly_rates: Dict[str, float] = Field(default_factory=dict)
    employees: List[Employee] = Field(default_factory=list)

    def rate_map(self) -> Dict[str, float]:
        """Explicit overrides win over rates derived from the employee directory."""
        rates = build_supervisor_hourly_rates_map(self.employees)
        rates.update(self.supervisor_hourly_rates)
        return rates


class ReportCostsResponse(BaseModel):
    costs: Dict[str, float]
    breakdowns: Dict[str, ReportCostBreakdown]


class ProductByLineRequest(BatchCostRequest):
    line_names: Dict[str, str] = Field(default_factory=dict)


class ProductHistoryResponse(BaseModel):
    points: List[DailyCostPoint]
    trend: CostTrend


class DailyChartRequest(BatchCostRequest):
    product_id: str = ""
    line_id: str = ""
    month: str = ""


class EstimateRequest(BaseModel):
    workers_count: float = 0.0
    work_hours: float = 0.0
    quantity_produced: float = 0.0
    hourly_rate: float = 0.0
    supervisor_hourly_rate: float = 0.0
    line_id: str = ""
    report_date: Optional[str] = None
    config: CostConfiguration = Field(default_factory=CostConfiguration)


class MonthlyCostRequest(BatchCostRequest):
    product_ids: List[str]
    month: str
    existing: List[MonthlyProductionCost] = Field(default_factory=list)


# ── Line indirect cost ──────────────────────────────────────────────────────

@router.post("/line-indirect", response_model=LineIndirectResponse)
async def get_line_indirect(req: LineIndirectRequest):
    """Daily indirect cost allocated to one line for one month, with per-center breakdown."""
    return LineIndirectResponse(
        line_id=req.line_id,
        month=req.month,
        daily_indirect_cost=calculate_daily_indirect_cost(req.line_id, req.month, req.config),
        summary=build_line_allocated_cost_summary(req.line_id, req.month, req.config),
    )


# ── Today's snapshots ───────────────────────────────────────────────────────

@router.post("/lines", response_model=Dict[str, LineCostData])
async def get_line_costs(req: LineSnapshotRequest):
    return build_line_costs(
        req.line_ids, req.reports, req.labor_settings, req.config, month=req.month
    )


@router.post("/products", response_model=Dict[str, ProductCostData])
async def get_product_costs(req: ProductSnapshotRequest):
    return build_product_costs(
        req.product_ids, req.reports, req.labor_settings, req.config, month=req.month
    )


# ── Per-report costs ────────────────────────────────────────────────────────

@router.post("/reports", response_model=ReportCostsResponse)
async def get_report_costs(req: BatchCostRequest):
    """Cost per unit for every report that produced something; others are omitted."""
    breakdowns = build_report_cost_breakdowns(
        req.reports, req.hourly_rate, req.config, req.rate_map()
    )
    return ReportCostsResponse(
        costs={report_id: b.cost_per_unit for report_id, b in breakdowns.items()},
        breakdowns=breakdowns,
    )


# ── Product history ─────────────────────────────────────────────────────────

@router.post("/products/{product_id}/average", response_model=ProductCostData)
async def get_product_average(product_id: str, req: BatchCostRequest):
    _require_product_id(product_id)
    return build_product_avg_cost(
        product_id, req.reports, req.hourly_rate, req.config, req.rate_map()
    )


@router.post("/products/{product_id}/by-line", response_model=List[ProductLineCost])
async def get_product_by_line(product_id: str, req: ProductByLineRequest):
    _require_product_id(product_id)
    return build_product_cost_by_line(
        product_id,
        req.reports,
        req.hourly_rate,
        req.config,
        lambda line_id: req.line_names.get(line_id, line_id),
        req.rate_map(),
    )


@router.post("/products/{product_id}/history", response_model=ProductHistoryResponse)
async def get_product_history(product_id: str, req: BatchCostRequest):
    _require_product_id(product_id)
    points = build_product_cost_history(
        product_id, req.reports, req.hourly_rate, req.config, req.rate_map()
    )
    return ProductHistoryResponse(points=points, trend=analyze_cost_trend(points))


@router.post("/daily-chart", response_model=List[DailyProductionCostPoint])
async def get_daily_chart(req: DailyChartRequest):
    if req.month:
        _require_month(req.month)
    return build_daily_production_cost_chart(
        req.reports,
        req.hourly_rate,
        req.config,
        product_id=req.product_id,
        line_id=req.line_id,
        month=req.month,
        supervisor_rates=req.rate_map(),
    )


# ── Live estimate ───────────────────────────────────────────────────────────

@router.post("/estimate", response_model=CostEstimate)
async def get_estimate(req: EstimateRequest):
    return estimate_report_cost(
        req.workers_count,
        req.work_hours,
        req.quantity_produced,
        req.hourly_rate,
        req.supervisor_hourly_rate,
        req.line_id,
        req.report_date,
        req.config,
    )


# ── Monthly close ───────────────────────────────────────────────────────────

@router.post("/monthly", response_model=List[MonthlyProductionCost])
async def get_monthly_costs(req: MonthlyCostRequest):
    """Month-close cost per product; products whose month is closed keep their stored figures."""
    _require_month(req.month)
    for product_id in req.product_ids:
        _require_product_id(product_id)

    existing = {r.product_id: r for r in req.existing if r.month == req.month}
    results = calculate_all_monthly_production_costs(
        req.product_ids,
        req.month,
        req.reports,
        req.hourly_rate,
        req.config,
        supervisor_rates=req.rate_map(),
        existing=existing,
    )
    logger.info(
        f"Monthly costs computed for {len(results)} products ({req.month})",
        extra={"month": req.month},
    )
    return results
