"""
Pydantic models for API responses.

These models define the structure of estimate rows returned by the API.
Missing medians and undefined rates are returned as null.
"""

from pydantic import BaseModel, Field
from typing import Dict, List, Optional
from datetime import datetime


# ============================================================================
# ESTIMATE ROWS
# ============================================================================

class Estimate(BaseModel):
    """Weighted totals, medians and rates shared by every geography"""

    total_hh: float = Field(..., description="Weighted household count")
    total_population: float = Field(..., description="Weighted persons in households")
    total_multi_gen: float = Field(..., description="Weighted multigenerational households")

    total_black_hoh: float
    total_asian_hoh: float
    total_hispanic_hoh: float
    total_white_hoh: float
    total_non_white_hoh: float

    total_black_multigen: float
    total_asian_multigen: float
    total_hispanic_multigen: float
    total_white_multigen: float
    total_non_white_multigen: float

    median_hh_income: Optional[float] = None
    median_hh_age: Optional[float] = None

    multi_gen_pct: Optional[float] = Field(None, description="Share of households that are multigenerational")
    black_multigen_pct: Optional[float] = None
    asian_multigen_pct: Optional[float] = None
    hispanic_multigen_pct: Optional[float] = None
    white_multigen_pct: Optional[float] = None
    non_white_multigen_pct: Optional[float] = None


class CountyEstimate(Estimate):
    """County-level estimate"""
    state: int
    state_abbr: Optional[str] = None
    state_name: Optional[str] = None
    county: str = Field(..., description="5-digit county FIPS code", examples=["06037"])
    county_name: Optional[str] = None


class StateEstimate(Estimate):
    """State-level estimate"""
    state: int
    state_abbr: Optional[str] = None
    state_name: Optional[str] = None


# ============================================================================
# RESPONSE MODELS
# ============================================================================

class CountyEstimatesResponse(BaseModel):
    """County estimates for a year, highest multigenerational rate first"""
    year: int
    count: int
    counties: List[CountyEstimate]


class StateEstimatesResponse(BaseModel):
    """State estimates for a year"""
    year: int
    count: int
    states: List[StateEstimate]


class HealthResponse(BaseModel):
    """Health check response"""
    status: str
    version: str
    database: str
    timestamp: datetime = Field(default_factory=datetime.now)


class AvailableYearsResponse(BaseModel):
    """Years with stored estimates"""
    years: Dict[int, List[str]] = Field(
        ...,
        description="Year -> stored levels",
        examples=[{2019: ["county", "state"]}]
    )
    total_years: int
