from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CostRecord(BaseModel):
    """
    Base for records handed to the engine by the data layer.

    Accepts the document-store camelCase field names (``workersCount``) as well
    as snake_case, and is frozen so the engine can never mutate its inputs.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


# ── Configuration records ───────────────────────────────────────────────────

class CostCenter(CostRecord):
    id: str = Field(..., description="Cost center identity")
    name: str = ""
    type: Literal["direct", "indirect"] = Field(..., description="Only indirect centers are allocated")
    is_active: bool = True


class CostCenterValue(CostRecord):
    """Total overhead booked to one cost center for one month."""
    cost_center_id: str
    month: str = Field(..., description="YYYY-MM")
    amount: float = 0.0


class LineAllocation(CostRecord):
    line_id: str
    percentage: float = 0.0


class CostAllocation(CostRecord):
    """How a center's monthly amount is split across lines for that month."""
    cost_center_id: str
    month: str = Field(..., description="YYYY-MM")
    allocations: List[LineAllocation] = Field(default_factory=list)


class CostConfiguration(CostRecord):
    """The three configuration collections every indirect-cost lookup reads."""
    cost_centers: List[CostCenter] = Field(default_factory=list)
    cost_center_values: List[CostCenterValue] = Field(default_factory=list)
    cost_allocations: List[CostAllocation] = Field(default_factory=list)


class LaborSettings(CostRecord):
    hourly_rate: float = 0.0


class Employee(CostRecord):
    id: Optional[str] = None
    level: int = 0
    is_active: bool = True
    hourly_rate: float = 0.0


# ── Production records ──────────────────────────────────────────────────────

class ProductionReport(CostRecord):
    id: Optional[str] = None
    date: str = Field("", description="YYYY-MM-DD")
    line_id: str = ""
    product_id: str = ""
    employee_id: Optional[str] = None
    workers_count: float = 0.0
    work_hours: float = 0.0
    quantity_produced: float = 0.0
    quantity_waste: float = 0.0
    # Cached supervisor indirect cost; honoured verbatim when > 0
    supervisor_indirect_cost: Optional[float] = None


class ProductMaterial(CostRecord):
    material_id: str = ""
    quantity_used: float = 0.0
    unit_cost: float = 0.0


class ProductCostInputs(CostRecord):
    """Per-unit packaging and purchase costs configured on a product."""
    id: str = ""
    base_unit_cost: float = 0.0
    inner_box_cost: float = 0.0
    outer_carton_cost: float = 0.0
    units_per_carton: float = 0.0


# ── Derived figures (engine output) ─────────────────────────────────────────

class LineCostData(BaseModel):
    labor_cost: float = 0.0
    indirect_cost: float = 0.0
    total_cost: float = 0.0
    cost_per_unit: float = 0.0


class ProductCostData(LineCostData):
    quantity_produced: float = 0.0


class CostEstimate(LineCostData):
    pass


class ReportCostBreakdown(BaseModel):
    labor_cost: float = 0.0
    shared_indirect_cost: float = 0.0
    supervisor_indirect_cost: float = 0.0
    total_cost: float = 0.0
    quantity_produced: float = 0.0
    cost_per_unit: float = 0.0

    @property
    def indirect_cost(self) -> float:
        return self.shared_indirect_cost + self.supervisor_indirect_cost


class ProductLineCost(BaseModel):
    line_id: str
    line_name: str
    total_produced: float
    total_cost: float
    cost_per_unit: float


class DailyCostPoint(BaseModel):
    date: str
    cost_per_unit: float
    quantity: float


class DailyProductionCostPoint(BaseModel):
    date: str
    day: str
    production: float
    labor_cost: float
    indirect_cost: float
    total_cost: float
    cost_per_unit: float


class CostTrend(BaseModel):
    direction: Literal["up", "down", "flat"] = "flat"
    first_half_avg: float = 0.0
    second_half_avg: float = 0.0
    change_pct: float = 0.0


class LineAllocatedCenterCost(BaseModel):
    cost_center_id: str
    cost_center_name: str
    monthly_allocated: float
    daily_allocated: float
    percentage: float


class LineAllocatedCostSummary(BaseModel):
    month: str
    days_in_month: int
    total_monthly_allocated: float = 0.0
    total_daily_allocated: float = 0.0
    centers: List[LineAllocatedCenterCost] = Field(default_factory=list)


class MonthlyProductionCost(BaseModel):
    product_id: str
    month: str
    total_produced_qty: float = 0.0
    total_production_cost: float = 0.0
    average_unit_cost: float = 0.0
    is_closed: bool = False
    calculated_at: Optional[str] = None


class ProductCostBreakdown(BaseModel):
    base_unit_cost: float = 0.0
    raw_material_cost: float = 0.0
    inner_box_cost: float = 0.0
    outer_carton_cost: float = 0.0
    units_per_carton: float = 0.0
    carton_share: float = 0.0
    production_overhead_share: float = 0.0
    total_calculated_cost: float = 0.0
