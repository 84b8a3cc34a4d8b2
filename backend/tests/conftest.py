"""
conftest.py — Shared pytest fixtures for the cost engine test suite.

No database or external service fixtures are defined here.  All engine tests
are pure unit tests over in-memory records; the API tests use FastAPI's
TestClient against the stateless router.

Import-path bootstrapping:
    The ``backend/`` directory is inserted into sys.path so that all
    ``app.*`` imports resolve correctly regardless of where pytest is invoked.
"""

import sys
import os
import pytest

# ---------------------------------------------------------------------------
# Ensure ``backend/`` is on the import path before any app imports occur.
# ---------------------------------------------------------------------------
_BACKEND_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _BACKEND_DIR not in sys.path:
    sys.path.insert(0, _BACKEND_DIR)


# ---------------------------------------------------------------------------
# Cost configuration fixtures
# ---------------------------------------------------------------------------

@pytest.fixture(scope="session")
def june_config():
    """
    The worked example for June 2024 (30 days).

      OH-1  indirect, active   30 000 / month   L1 50 %, L2 25 %
      DIR-1 direct,   active   90 000 / month   L1 100 %   (never allocated)
      OLD-1 indirect, inactive 60 000 / month   L1 100 %   (never allocated)

    L1 daily indirect = 30 000 × 0.50 / 30 = 500
    L2 daily indirect = 30 000 × 0.25 / 30 = 250
    """
    from app.models.cost_models import (
        CostAllocation,
        CostCenter,
        CostCenterValue,
        CostConfiguration,
        LineAllocation,
    )
    return CostConfiguration(
        cost_centers=[
            CostCenter(id="OH-1", name="Factory overhead", type="indirect", is_active=True),
            CostCenter(id="DIR-1", name="Raw labor pool", type="direct", is_active=True),
            CostCenter(id="OLD-1", name="Retired center", type="indirect", is_active=False),
        ],
        cost_center_values=[
            CostCenterValue(cost_center_id="OH-1", month="2024-06", amount=30_000.0),
            CostCenterValue(cost_center_id="DIR-1", month="2024-06", amount=90_000.0),
            CostCenterValue(cost_center_id="OLD-1", month="2024-06", amount=60_000.0),
        ],
        cost_allocations=[
            CostAllocation(
                cost_center_id="OH-1",
                month="2024-06",
                allocations=[
                    LineAllocation(line_id="L1", percentage=50.0),
                    LineAllocation(line_id="L2", percentage=25.0),
                ],
            ),
            CostAllocation(
                cost_center_id="DIR-1",
                month="2024-06",
                allocations=[LineAllocation(line_id="L1", percentage=100.0)],
            ),
            CostAllocation(
                cost_center_id="OLD-1",
                month="2024-06",
                allocations=[LineAllocation(line_id="L1", percentage=100.0)],
            ),
        ],
    )


@pytest.fixture(scope="session")
def empty_config():
    from app.models.cost_models import CostConfiguration
    return CostConfiguration()


# ---------------------------------------------------------------------------
# Production report fixtures
# ---------------------------------------------------------------------------

def make_report(report_id, date, line_id, product_id, workers=0, hours=0, qty=0, **extra):
    """Build a ProductionReport with the fields most tests care about."""
    from app.models.cost_models import ProductionReport
    return ProductionReport(
        id=report_id,
        date=date,
        line_id=line_id,
        product_id=product_id,
        workers_count=workers,
        work_hours=hours,
        quantity_produced=qty,
        **extra,
    )


@pytest.fixture
def report_factory():
    """Expose make_report to test modules."""
    return make_report


@pytest.fixture
def shared_line_day():
    """
    Two products sharing L1 on 2024-06-10.

      rA: product A, 5 workers × 8 h, 80 units
      rB: product B, 2 workers × 5 h, 20 units
    """
    return [
        make_report("rA", "2024-06-10", "L1", "A", workers=5, hours=8, qty=80),
        make_report("rB", "2024-06-10", "L1", "B", workers=2, hours=5, qty=20),
    ]


@pytest.fixture
def product_a_history(shared_line_day):
    """
    shared_line_day plus product A alone on L1 the next day, listed first so
    ordering by date is exercised.

      rA2: product A, 2024-06-11, 5 workers × 8 h, 20 units (only report that day)
    """
    return [
        make_report("rA2", "2024-06-11", "L1", "A", workers=5, hours=8, qty=20),
        *shared_line_day,
    ]
