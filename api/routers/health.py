"""
Health check and system status endpoints.
"""

from typing import Annotated
from fastapi import APIRouter, Depends, HTTPException

from ..models import HealthResponse, AvailableYearsResponse
from ..dependencies import get_result_store
from ..config import Settings, get_settings
from multigen.database import ResultStore


router = APIRouter(
    prefix="/api/v1",
    tags=["health"]
)


@router.get("/health", response_model=HealthResponse)
async def health_check(
    settings: Annotated[Settings, Depends(get_settings)],
    store: Annotated[ResultStore, Depends(get_result_store)]
):
    """
    Health check endpoint.
    
    Returns the health status of the API and database connection.
    """
    try:
        store._verify_connection()
        
        return HealthResponse(
            status="healthy",
            version=settings.app_version,
            database="connected"
        )
    except Exception as e:
        return HealthResponse(
            status="unhealthy",
            version=settings.app_version,
            database=f"disconnected: {str(e)}"
        )


@router.get("/available-years", response_model=AvailableYearsResponse)
async def list_available_years(
    store: Annotated[ResultStore, Depends(get_result_store)]
):
    """
    List years that have estimate tables in the database.
    """
    try:
        years = store.list_available_years()
        
        return AvailableYearsResponse(
            years=years,
            total_years=len(years)
        )
    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"Failed to list available years: {str(e)}"
        )
