"""
Estimate endpoints.
"""

from typing import Annotated, List, Optional

import pandas as pd
from fastapi import APIRouter, Depends, HTTPException, Query

from ..models import CountyEstimatesResponse, StateEstimatesResponse
from ..dependencies import get_result_store
from ..config import Settings, get_settings
from multigen.database import ResultStore


router = APIRouter(
    prefix="/api/v1/estimates",
    tags=["estimates"]
)


def _records(df: pd.DataFrame) -> List[dict]:
    """DataFrame rows as dicts with NaN turned into None (JSON null)."""
    return df.astype(object).where(df.notna(), None).to_dict('records')


def _load(store: ResultStore, level: str, year: int) -> pd.DataFrame:
    if not store.table_exists(level, year):
        raise HTTPException(
            status_code=404,
            detail=f"No {level} estimates stored for {year}"
        )
    try:
        return store.load_table(level, year)
    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"Failed to load {level} estimates: {str(e)}"
        )


@router.get("/{year}/counties", response_model=CountyEstimatesResponse)
async def get_county_estimates(
    year: int,
    settings: Annotated[Settings, Depends(get_settings)],
    store: Annotated[ResultStore, Depends(get_result_store)],
    state: Optional[int] = Query(None, description="State FIPS code filter", ge=1, le=78),
    limit: Optional[int] = Query(None, description="Maximum rows to return", ge=1)
):
    """
    County estimates for a year, ordered by descending multigenerational rate.
    """
    counties = _load(store, 'county', year)
    
    if state is not None:
        counties = counties[counties['state'] == state]
    
    max_rows = settings.max_rows_per_request
    if limit is not None:
        max_rows = min(limit, max_rows)
    counties = counties.head(max_rows)
    
    return CountyEstimatesResponse(
        year=year,
        count=len(counties),
        counties=_records(counties)
    )


@router.get("/{year}/states", response_model=StateEstimatesResponse)
async def get_state_estimates(
    year: int,
    store: Annotated[ResultStore, Depends(get_result_store)]
):
    """
    State estimates for a year, ordered by state code.
    """
    states = _load(store, 'state', year)
    
    return StateEstimatesResponse(
        year=year,
        count=len(states),
        states=_records(states)
    )
