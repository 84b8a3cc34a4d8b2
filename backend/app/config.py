"""
Cost engine configuration — single source of truth for engine constants,
logging switches and API settings.

Import from here in services and routes rather than hardcoding values.
"""
from __future__ import annotations

import os

from dotenv import load_dotenv

# Load .env in dev (no-op when the file is missing)
load_dotenv()


# ── Logging ────────────────────────────────────────────────────────────────────

LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

# "json" for structured production logs, "text" for local development
LOG_FORMAT: str = os.getenv("LOG_FORMAT", "json").lower()


# ── API ────────────────────────────────────────────────────────────────────────

API_TITLE: str = os.getenv("API_TITLE", "Factory Cost Engine API")
API_VERSION: str = "1.0.0"
COSTS_API_PREFIX: str = "/api/costs"

CORS_ORIGINS: list[str] = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "*").split(",")
    if origin.strip()
]


# ── Cost engine constants ──────────────────────────────────────────────────────

# Only cost centers of this type take part in line allocation
INDIRECT_CENTER_TYPE: str = "indirect"

# Employee level whose hourly rate feeds supervisor indirect cost
SUPERVISOR_LEVEL: int = 2

# Decimal places used by format_cost
COST_DECIMALS: int = 2

# Relative change between first-half and second-half average unit cost
# below which a trend is reported as flat (0.05 = 5 %)
TREND_FLAT_THRESHOLD: float = 0.05
